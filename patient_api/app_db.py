# -*- coding: utf-8 -*-
"""Patient store — SQLite-backed document collection.

Each patient is kept as one JSON document (embedded clinical list included) in
the ``patients`` table. ``id`` and ``email`` are mirrored into columns so the
store can enforce the primary key and email uniqueness itself.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import Iterator, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

_SQLITE_PREFIX = "sqlite:///"
_MEMORY_NAMES = {"", ":memory:"}


def resolve_db_url(db_url: str) -> Optional[Path]:
    """Map a connection string to a database file, or ``None`` for in-memory."""
    value = (db_url or "").strip()
    if value.startswith(_SQLITE_PREFIX):
        value = value[len(_SQLITE_PREFIX):]
    elif value in {"sqlite://", "sqlite:"}:
        value = ""
    elif "://" in value:
        raise ValueError(f"Unsupported database URL: {db_url}")
    if value in _MEMORY_NAMES:
        return None
    return Path(value).expanduser()


class PatientStore:
    """Explicit handle on the patient collection.

    ``open()`` creates the schema and keeps one connection alive for the
    lifetime of the handle; each operation then works on its own short-lived
    connection, the same way the rest of the app talks to SQLite.
    """

    def __init__(self, db_url: str) -> None:
        self.db_url = db_url
        self.db_path = resolve_db_url(db_url)
        if self.db_path is None:
            # Named shared-cache memory database, alive while the keeper connection is open.
            self._target = f"file:patients-{uuid4().hex}?mode=memory&cache=shared"
            self._uri = True
        else:
            self._target = str(self.db_path)
            self._uri = False
        self._keeper: Optional[sqlite3.Connection] = None
        # Shared-cache memory databases fail on table locks instead of waiting,
        # so connections to them are taken one at a time.
        self._lock = threading.RLock() if self.db_path is None else None

    @property
    def is_open(self) -> bool:
        return self._keeper is not None

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._target, uri=self._uri, check_same_thread=False, timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    def open(self) -> "PatientStore":
        if self._keeper is not None:
            return self
        if self.db_path is not None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._keeper = self._connect()
        self.init_schema()
        logger.info("Patient store opened at %s", self.db_path or ":memory:")
        return self

    def close(self) -> None:
        if self._keeper is None:
            return
        self._keeper.close()
        self._keeper = None
        logger.info("Patient store closed")

    def init_schema(self) -> None:
        with self.connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS patients (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE COLLATE NOCASE,
                    document_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        if self._keeper is None:
            raise RuntimeError("Patient store is not open")
        with self._lock or nullcontext():
            conn = self._connect()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Connection holding the write lock from the first read until commit."""
        with self.connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
