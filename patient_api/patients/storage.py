# -*- coding: utf-8 -*-
"""Patients — access layer over the patient store.

Every function takes the store handle explicitly and is one independent round
trip. Read-modify-write operations run inside a single immediate transaction,
so existence and index checks always see the clinical list they mutate.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4

from ..app_db import PatientStore
from .errors import (
    DuplicateEmail,
    HasClinicalData,
    IndexOutOfRange,
    NoClinicalData,
    NoCriticalPatients,
    NoPatients,
    NotFound,
)
from .models import (
    ClinicalEntry,
    ClinicalEntryUpdate,
    Patient,
    PatientCreateRequest,
    PatientUpdateRequest,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CriticalThresholds:
    """Normal blood-pressure bounds; a reading strictly outside them is critical."""

    bph_min: float = 50
    bph_max: float = 150
    bpl_min: float = 60
    bpl_max: float = 90

    @classmethod
    def from_settings(cls, settings) -> "CriticalThresholds":
        return cls(
            bph_min=settings.critical_bph_min,
            bph_max=settings.critical_bph_max,
            bpl_min=settings.critical_bpl_min,
            bpl_max=settings.critical_bpl_max,
        )

    def is_critical(self, entry: ClinicalEntry) -> bool:
        return (
            entry.bph < self.bph_min
            or entry.bph > self.bph_max
            or entry.bpl < self.bpl_min
            or entry.bpl > self.bpl_max
        )


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _clean_email(email: str) -> str:
    # Kept as sent; the email column compares case-insensitively.
    return email.strip()


def _to_patient(document: Dict[str, Any]) -> Patient:
    return Patient.model_validate(document)


def _load(conn: sqlite3.Connection, patient_id: str) -> Dict[str, Any]:
    row = conn.execute("SELECT document_json FROM patients WHERE id = ?", (patient_id,)).fetchone()
    if not row:
        raise NotFound()
    return json.loads(row["document_json"])


def _save(conn: sqlite3.Connection, document: Dict[str, Any]) -> Patient:
    document["updatedAt"] = _utc_now()
    patient = _to_patient(document)
    payload = patient.model_dump(mode="json", by_alias=True)
    try:
        conn.execute(
            "UPDATE patients SET email = ?, document_json = ?, updated_at = ? WHERE id = ?",
            (patient.email, json.dumps(payload, ensure_ascii=False, allow_nan=False), patient.updated_at, patient.id),
        )
    except sqlite3.IntegrityError as exc:
        raise DuplicateEmail() from exc
    return patient


def _check_index(document: Dict[str, Any], index: int) -> None:
    # Bounds are taken from the list as stored right now, never a cached length.
    if index < 0 or index >= len(document.get("clinical") or []):
        raise IndexOutOfRange()


def create_patient(store: PatientStore, request: PatientCreateRequest) -> Patient:
    email = _clean_email(request.email)
    now = _utc_now()
    patient = Patient(
        id=str(uuid4()),
        name=request.name,
        email=email,
        phone=request.phone,
        bdate=request.bdate,
        address=request.address,
        clinical=list(request.clinical),
        created_at=now,
        updated_at=now,
    )
    payload = patient.model_dump(mode="json", by_alias=True)

    with store.transaction() as conn:
        existing = conn.execute("SELECT 1 FROM patients WHERE email = ?", (email,)).fetchone()
        if existing:
            raise DuplicateEmail()
        try:
            conn.execute(
                """
                INSERT INTO patients (id, email, document_json, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (patient.id, email, json.dumps(payload, ensure_ascii=False, allow_nan=False), now, now),
            )
        except sqlite3.IntegrityError as exc:
            raise DuplicateEmail() from exc

    logger.info("Created patient %s", patient.id)
    return patient


def list_patients(store: PatientStore) -> List[Patient]:
    with store.connection() as conn:
        rows = conn.execute("SELECT document_json FROM patients ORDER BY rowid").fetchall()
    if not rows:
        raise NoPatients()
    return [_to_patient(json.loads(r["document_json"])) for r in rows]


def get_patient(store: PatientStore, patient_id: str) -> Patient:
    with store.connection() as conn:
        return _to_patient(_load(conn, patient_id))


def update_patient(store: PatientStore, patient_id: str, request: PatientUpdateRequest) -> Patient:
    changes = request.model_dump(mode="json", exclude_unset=True)
    if "email" in changes:
        changes["email"] = _clean_email(changes["email"])

    with store.transaction() as conn:
        document = _load(conn, patient_id)
        new_email = changes.get("email")
        if new_email and new_email != document.get("email"):
            taken = conn.execute(
                "SELECT 1 FROM patients WHERE email = ? AND id != ?",
                (new_email, patient_id),
            ).fetchone()
            if taken:
                raise DuplicateEmail()
        document.update(changes)
        patient = _save(conn, document)

    logger.info("Updated patient %s fields=%s", patient_id, sorted(changes))
    return patient


def delete_patient(store: PatientStore, patient_id: str) -> None:
    with store.transaction() as conn:
        document = _load(conn, patient_id)
        if document.get("clinical"):
            raise HasClinicalData()
        conn.execute("DELETE FROM patients WHERE id = ?", (patient_id,))
    logger.info("Deleted patient %s", patient_id)


def append_clinical_entry(store: PatientStore, patient_id: str, entry: ClinicalEntry) -> Patient:
    with store.transaction() as conn:
        document = _load(conn, patient_id)
        clinical = document.setdefault("clinical", [])
        clinical.append(entry.model_dump())
        patient = _save(conn, document)
    logger.info("Appended clinical entry %d to patient %s", len(patient.clinical) - 1, patient_id)
    return patient


def get_clinical_entry_at(store: PatientStore, patient_id: str, index: int) -> ClinicalEntry:
    with store.connection() as conn:
        document = _load(conn, patient_id)
    _check_index(document, index)
    return ClinicalEntry.model_validate(document["clinical"][index])


def get_latest_clinical_entry(store: PatientStore, patient_id: str) -> ClinicalEntry:
    with store.connection() as conn:
        document = _load(conn, patient_id)
    clinical = document.get("clinical") or []
    if not clinical:
        raise NoClinicalData()
    return ClinicalEntry.model_validate(clinical[-1])


def update_clinical_entry_at(
    store: PatientStore,
    patient_id: str,
    index: int,
    partial: ClinicalEntryUpdate,
) -> Patient:
    changes = partial.model_dump(exclude_unset=True)
    with store.transaction() as conn:
        document = _load(conn, patient_id)
        _check_index(document, index)
        current = document["clinical"][index]
        document["clinical"][index] = {**current, **changes}
        patient = _save(conn, document)
    logger.info("Updated clinical entry %d of patient %s", index, patient_id)
    return patient


def remove_clinical_entry_at(store: PatientStore, patient_id: str, index: int) -> Patient:
    with store.transaction() as conn:
        document = _load(conn, patient_id)
        _check_index(document, index)
        document["clinical"].pop(index)
        patient = _save(conn, document)
    logger.info("Removed clinical entry %d of patient %s", index, patient_id)
    return patient


def find_critical_patients(
    store: PatientStore,
    thresholds: CriticalThresholds | None = None,
) -> List[Patient]:
    """Patients with at least one reading (any, not only the latest) outside the bounds."""
    t = thresholds or CriticalThresholds()
    with store.connection() as conn:
        rows = conn.execute(
            """
            SELECT p.document_json FROM patients AS p
            WHERE EXISTS (
                SELECT 1 FROM json_each(p.document_json, '$.clinical') AS c
                WHERE json_extract(c.value, '$.bph') < ?
                   OR json_extract(c.value, '$.bph') > ?
                   OR json_extract(c.value, '$.bpl') < ?
                   OR json_extract(c.value, '$.bpl') > ?
            )
            ORDER BY p.rowid
            """,
            (t.bph_min, t.bph_max, t.bpl_min, t.bpl_max),
        ).fetchall()
    if not rows:
        raise NoCriticalPatients()
    return [_to_patient(json.loads(r["document_json"])) for r in rows]
