from __future__ import annotations

import os
from pathlib import Path
from typing import List


def _env(*names: str, default: str = "") -> str:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return default


class Settings:
    """Centralized configuration for the patient records service."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        default_db = repo_root / "data" / "patients.db"

        self.db_url: str = _env("PATIENT_DB_URL", default=f"sqlite:///{default_db}")
        self.host: str = _env("PATIENT_API_HOST", "HOST", default="127.0.0.1")
        port_raw = _env("PATIENT_API_PORT", "PORT", default="8000")
        try:
            self.port: int = int(port_raw)
        except ValueError:
            self.port = 8000
        self.log_level: str = _env("PATIENT_API_LOG_LEVEL", default="info").lower()

        # Normal vital-sign bounds; readings strictly outside them are critical.
        self.critical_bph_min: float = float(_env("CRITICAL_BPH_MIN", default="50"))
        self.critical_bph_max: float = float(_env("CRITICAL_BPH_MAX", default="150"))
        self.critical_bpl_min: float = float(_env("CRITICAL_BPL_MIN", default="60"))
        self.critical_bpl_max: float = float(_env("CRITICAL_BPL_MAX", default="90"))

        cors = _env("PATIENT_API_CORS_ORIGINS", default="*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
