# -*- coding: utf-8 -*-
"""Patients — Pydantic models.

Design goals:
- A patient is one document; clinical readings are embedded in ``clinical`` and
  addressed by position (oldest first, latest last).
- Request bodies are explicit: unknown fields are rejected, and the update
  models make every field optional so only supplied fields are merged.
- Wire names follow the stored document (``_id``, ``bdate``, ``createdAt``).
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

CLINICAL_FIELDS = ("bph", "bpl", "rr", "bol", "hbr")

# Integers stay integers on the wire; only finite numbers are accepted.
Reading = Union[int, float]


class ClinicalEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    bph: Reading = Field(0, description="Blood pressure high (systolic)")
    bpl: Reading = Field(0, description="Blood pressure low (diastolic)")
    rr: Reading = Field(0, description="Respiratory rate")
    bol: Reading = Field(0, description="Blood oxygen level")
    hbr: Reading = Field(0, description="Heart beat rate")


class ClinicalEntryUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    bph: Optional[Reading] = None
    bpl: Optional[Reading] = None
    rr: Optional[Reading] = None
    bol: Optional[Reading] = None
    hbr: Optional[Reading] = None

    @field_validator(*CLINICAL_FIELDS, mode="before")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("must be a number")
        return value


class PatientCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=256)
    email: str = Field(..., min_length=3, max_length=254)
    phone: str = Field(..., min_length=1, max_length=64)
    bdate: date = Field(..., description="Birth date, YYYY-MM-DD")
    address: Optional[str] = Field(None, max_length=1024)
    clinical: List[ClinicalEntry] = Field(default_factory=list)


class PatientUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=256)
    email: Optional[str] = Field(None, min_length=3, max_length=254)
    phone: Optional[str] = Field(None, min_length=1, max_length=64)
    bdate: Optional[date] = None
    address: Optional[str] = Field(None, max_length=1024)

    @field_validator("name", "email", "phone", "bdate", mode="before")
    @classmethod
    def _required_not_null(cls, value):
        # Required patient fields may be omitted from an update, not cleared.
        if value is None:
            raise ValueError("field cannot be null")
        return value


class Patient(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    name: str
    email: str
    phone: str
    bdate: date
    address: Optional[str] = None
    clinical: List[ClinicalEntry] = Field(default_factory=list)
    created_at: str = Field(..., alias="createdAt")
    updated_at: str = Field(..., alias="updatedAt")
