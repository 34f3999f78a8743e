# -*- coding: utf-8 -*-
"""Patients — failure conditions raised by the storage layer.

Each error carries the HTTP status and client-facing message it maps to; the
app-level exception handler renders them as ``{"message": ...}``.
"""

from __future__ import annotations


class PatientError(Exception):
    """Base class for client-visible patient failures."""

    status_code = 400
    message = "Bad request"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class NotFound(PatientError):
    status_code = 404
    message = "Patient not found"


class DuplicateEmail(PatientError):
    status_code = 400
    message = "Patient already exists"


class HasClinicalData(PatientError):
    status_code = 400
    message = "Cannot delete patient with clinical data"


class IndexOutOfRange(PatientError):
    status_code = 400
    message = "Invalid clinical data index"


class EmptyResult(PatientError):
    status_code = 404
    message = "No results found"


class NoPatients(EmptyResult):
    # Listing an empty collection has always answered 400.
    status_code = 400
    message = "Patient not found"


class NoCriticalPatients(EmptyResult):
    message = "No patients in critical condition found"


class NoClinicalData(PatientError):
    status_code = 404
    message = "No clinical data available for this patient"


class InvalidPayload(PatientError):
    status_code = 400
    message = "Invalid request body"

    def __init__(self, message: str | None = None, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body
