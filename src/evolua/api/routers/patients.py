"""
Patient endpoints: registration, lookup, updates, search, status
transitions and duplicate handling.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, Request, status

from ...application.dto.common import Pagination
from ...application.dto.patient_dto import PatientSearchCriteria
from ...domain.errors import PatientNotFoundError
from ..deps import CurrentUserDep, PatientRegistryDep
from ..schemas.common import ERROR_RESPONSES, ApiResponse, ErrorResponse
from ..schemas.patient import (
    CreatePatientSchema,
    MergePatientsSchema,
    ReasonSchema,
    StatusChangeSchema,
    UpdatePatientSchema,
)
from ..utils.responses import ok

router = APIRouter(prefix="/patients", tags=["patients"])
logger = logging.getLogger("evolua")

CONFLICT = {409: {"model": ErrorResponse, "description": "Duplicate patient or invalid transition"}}


@router.post(
    "/",
    response_model=ApiResponse[Dict[str, Any]],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new patient",
    responses={**ERROR_RESPONSES, **CONFLICT},
)
async def create_patient(
    request: Request,
    body: CreatePatientSchema,
    registry: PatientRegistryDep,
    user: CurrentUserDep,
):
    patient = await registry.create_patient(body.to_dto(), created_by=user.user_id)
    return ok(request, data=patient.to_dict(), message="Created")


@router.post(
    "/check-duplicates",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Report existing patients that look like the given one",
    responses=ERROR_RESPONSES,
)
async def check_duplicates(request: Request, body: CreatePatientSchema, registry: PatientRegistryDep):
    result = await registry.check_duplicates(body.to_dto())
    return ok(request, data=result.to_dict())


@router.get(
    "/",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Search patients of the caller's clinic",
    responses=ERROR_RESPONSES,
)
async def search_patients(
    request: Request,
    registry: PatientRegistryDep,
    query: Optional[str] = Query(None, description="Name, email, phone or CPF fragment"),
    patient_status: Optional[str] = Query(None, alias="status"),
    min_age: Optional[int] = Query(None),
    max_age: Optional[int] = Query(None),
    created_after: Optional[datetime] = Query(None),
    created_before: Optional[datetime] = Query(None),
    page: int = Query(1),
    limit: int = Query(20),
    sort_by: str = Query("name"),
    sort_order: str = Query("asc"),
):
    criteria = PatientSearchCriteria(
        query=query,
        status=patient_status,
        min_age=min_age,
        max_age=max_age,
        created_after=created_after,
        created_before=created_before,
    )
    result = await registry.search_patients(
        criteria, Pagination(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
    )
    return ok(request, data=result.to_dict(lambda p: p.to_dict()))


@router.get(
    "/{patient_id}",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Get one patient",
    responses=ERROR_RESPONSES,
)
async def get_patient(request: Request, patient_id: str, registry: PatientRegistryDep):
    patient = await registry.get_patient(patient_id)
    if patient is None:
        raise PatientNotFoundError(patient_id)
    return ok(request, data=patient.to_dict())


@router.put(
    "/{patient_id}",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Update patient sections",
    responses={**ERROR_RESPONSES, **CONFLICT},
)
async def update_patient(
    request: Request,
    patient_id: str,
    body: UpdatePatientSchema,
    registry: PatientRegistryDep,
    user: CurrentUserDep,
):
    patient = await registry.update_patient(patient_id, body.to_dto(), updated_by=user.user_id)
    return ok(request, data=patient.to_dict(), message="Updated")


@router.delete(
    "/{patient_id}",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Delete a patient",
    responses=ERROR_RESPONSES,
)
async def delete_patient(
    request: Request, patient_id: str, registry: PatientRegistryDep, user: CurrentUserDep
):
    await registry.delete_patient(patient_id, deleted_by=user.user_id)
    return ok(request, data={"id": patient_id}, message="Deleted")


@router.post(
    "/{patient_id}/status",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Change patient status",
    responses={**ERROR_RESPONSES, **CONFLICT},
)
async def change_status(
    request: Request,
    patient_id: str,
    body: StatusChangeSchema,
    registry: PatientRegistryDep,
    user: CurrentUserDep,
):
    patient = await registry.change_patient_status(
        patient_id, body.status, body.reason, changed_by=user.user_id
    )
    return ok(request, data=patient.to_dict())


@router.post(
    "/{patient_id}/discharge",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Discharge a patient",
    responses={**ERROR_RESPONSES, **CONFLICT},
)
async def discharge_patient(
    request: Request,
    patient_id: str,
    body: ReasonSchema,
    registry: PatientRegistryDep,
    user: CurrentUserDep,
):
    patient = await registry.discharge_patient(patient_id, body.reason, changed_by=user.user_id)
    return ok(request, data=patient.to_dict())


@router.post(
    "/{patient_id}/reactivate",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Reactivate a discharged or inactive patient",
    responses={**ERROR_RESPONSES, **CONFLICT},
)
async def reactivate_patient(
    request: Request,
    patient_id: str,
    body: ReasonSchema,
    registry: PatientRegistryDep,
    user: CurrentUserDep,
):
    patient = await registry.reactivate_patient(patient_id, body.reason, changed_by=user.user_id)
    return ok(request, data=patient.to_dict())


@router.post(
    "/{patient_id}/merge",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Merge a duplicate patient into this one",
    responses={**ERROR_RESPONSES, **CONFLICT},
)
async def merge_patients(
    request: Request,
    patient_id: str,
    body: MergePatientsSchema,
    registry: PatientRegistryDep,
    user: CurrentUserDep,
):
    patient = await registry.merge_patients(
        patient_id, body.duplicate_id, strategy=body.strategy(), merged_by=user.user_id
    )
    logger.info("Merged patient %s into %s", body.duplicate_id, patient_id)
    return ok(request, data=patient.to_dict(), message="Merged")
