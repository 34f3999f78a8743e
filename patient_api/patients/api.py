# -*- coding: utf-8 -*-
"""Patients — API endpoints."""

from __future__ import annotations

import re
from typing import List

from fastapi import APIRouter, Depends, Request, Response

from ..app_db import PatientStore
from .errors import IndexOutOfRange
from .models import (
    ClinicalEntry,
    ClinicalEntryUpdate,
    Patient,
    PatientCreateRequest,
    PatientUpdateRequest,
)
from .storage import (
    CriticalThresholds,
    append_clinical_entry,
    create_patient,
    delete_patient,
    find_critical_patients,
    get_clinical_entry_at,
    get_latest_clinical_entry,
    get_patient,
    list_patients,
    remove_clinical_entry_at,
    update_clinical_entry_at,
    update_patient,
)

router = APIRouter(prefix="/api/patient", tags=["Patients"])

_INDEX_RE = re.compile(r"-?[0-9]+")


def get_store(request: Request) -> PatientStore:
    return request.app.state.store


def get_thresholds(request: Request) -> CriticalThresholds:
    return request.app.state.thresholds


def _parse_index(raw: str) -> int:
    # Plain ASCII integers only: no sign prefix, underscores, padding or other digit scripts.
    if not isinstance(raw, str) or not _INDEX_RE.fullmatch(raw):
        raise IndexOutOfRange()
    return int(raw)


@router.get("/patients", response_model=List[Patient], summary="Fetch all patients")
def list_patients_api(store: PatientStore = Depends(get_store)):
    return list_patients(store)


@router.get(
    "/patients/critical",
    response_model=List[Patient],
    summary="Patients with any clinical reading outside normal blood-pressure bounds",
)
def critical_patients_api(
    store: PatientStore = Depends(get_store),
    thresholds: CriticalThresholds = Depends(get_thresholds),
):
    return find_critical_patients(store, thresholds)


@router.get("/patients/{patient_id}", response_model=Patient, summary="Fetch a patient by ID")
def get_patient_api(patient_id: str, store: PatientStore = Depends(get_store)):
    return get_patient(store, patient_id)


@router.post("/patients", response_model=Patient, summary="Create a new patient")
def create_patient_api(request: PatientCreateRequest, store: PatientStore = Depends(get_store)):
    return create_patient(store, request)


@router.put("/patients/{patient_id}", response_model=Patient, status_code=201, summary="Update a patient's details")
def update_patient_api(
    patient_id: str,
    request: PatientUpdateRequest,
    store: PatientStore = Depends(get_store),
):
    return update_patient(store, patient_id, request)


@router.delete(
    "/patients/{patient_id}",
    status_code=204,
    response_class=Response,
    summary="Delete a patient without clinical data",
)
def delete_patient_api(patient_id: str, store: PatientStore = Depends(get_store)):
    delete_patient(store, patient_id)
    return Response(status_code=204)


@router.post("/patients/{patient_id}/clinical", response_model=Patient, summary="Add clinical data to a patient")
def add_clinical_api(patient_id: str, entry: ClinicalEntry, store: PatientStore = Depends(get_store)):
    return append_clinical_entry(store, patient_id, entry)


@router.get(
    "/patients/{patient_id}/clinical/latest",
    response_model=ClinicalEntry,
    summary="Fetch the most recently added clinical entry",
)
def latest_clinical_api(patient_id: str, store: PatientStore = Depends(get_store)):
    return get_latest_clinical_entry(store, patient_id)


@router.get(
    "/patients/{patient_id}/clinical/{index}",
    response_model=ClinicalEntry,
    summary="Fetch clinical data by index",
)
def get_clinical_api(patient_id: str, index: str, store: PatientStore = Depends(get_store)):
    return get_clinical_entry_at(store, patient_id, _parse_index(index))


@router.put(
    "/patients/{patient_id}/clinical/{index}",
    response_model=Patient,
    summary="Update clinical data at an index",
)
def update_clinical_api(
    patient_id: str,
    index: str,
    partial: ClinicalEntryUpdate,
    store: PatientStore = Depends(get_store),
):
    return update_clinical_entry_at(store, patient_id, _parse_index(index), partial)


@router.delete(
    "/patients/{patient_id}/clinical/{index}",
    response_model=Patient,
    summary="Delete clinical data at an index",
)
def delete_clinical_api(patient_id: str, index: str, store: PatientStore = Depends(get_store)):
    return remove_clinical_entry_at(store, patient_id, _parse_index(index))
