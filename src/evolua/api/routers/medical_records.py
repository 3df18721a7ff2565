"""
Medical record endpoints.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Request, status

from ...domain.errors import MedicalRecordNotFoundError
from ..deps import CurrentUserDep, MedicalRecordManagerDep
from ..schemas.common import ERROR_RESPONSES, ApiResponse
from ..schemas.medical_record import (
    AssessmentSchema,
    CreateMedicalRecordSchema,
    ProgressNoteSchema,
    UpdateMedicalRecordSchema,
)
from ..utils.responses import ok

router = APIRouter(prefix="/medical-records", tags=["medical-records"])


@router.post(
    "/",
    response_model=ApiResponse[Dict[str, Any]],
    status_code=status.HTTP_201_CREATED,
    summary="Create a medical record for a patient",
    responses=ERROR_RESPONSES,
)
async def create_medical_record(
    request: Request,
    body: CreateMedicalRecordSchema,
    manager: MedicalRecordManagerDep,
    user: CurrentUserDep,
):
    record = await manager.create_medical_record(body.to_dto(), created_by=user.user_id)
    return ok(request, data=record.to_dict(), message="Created")


@router.get(
    "/patient/{patient_id}",
    response_model=ApiResponse[List[Dict[str, Any]]],
    summary="All medical records of a patient, oldest first",
)
async def get_medical_history(request: Request, patient_id: str, manager: MedicalRecordManagerDep):
    records = await manager.get_medical_history(patient_id)
    return ok(request, data=[r.to_dict() for r in records])


@router.get(
    "/patient/{patient_id}/timeline",
    response_model=ApiResponse[List[Dict[str, Any]]],
    summary="Chronological clinical events of a patient",
)
async def get_timeline(request: Request, patient_id: str, manager: MedicalRecordManagerDep):
    events = await manager.get_timeline(patient_id)
    return ok(request, data=[e.to_dict() for e in events])


@router.get(
    "/{record_id}",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Get one medical record",
    responses=ERROR_RESPONSES,
)
async def get_medical_record(request: Request, record_id: str, manager: MedicalRecordManagerDep):
    record = await manager.get_medical_record(record_id)
    if record is None:
        raise MedicalRecordNotFoundError(record_id)
    return ok(request, data=record.to_dict())


@router.put(
    "/{record_id}",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Replace clinical lists of a record",
    responses=ERROR_RESPONSES,
)
async def update_medical_record(
    request: Request,
    record_id: str,
    body: UpdateMedicalRecordSchema,
    manager: MedicalRecordManagerDep,
    user: CurrentUserDep,
):
    record = await manager.update_medical_record(record_id, body.to_dto(), updated_by=user.user_id)
    return ok(request, data=record.to_dict(), message="Updated")


@router.post(
    "/{record_id}/progress-notes",
    response_model=ApiResponse[Dict[str, Any]],
    status_code=status.HTTP_201_CREATED,
    summary="Append a progress note",
    responses=ERROR_RESPONSES,
)
async def add_progress_note(
    request: Request,
    record_id: str,
    body: ProgressNoteSchema,
    manager: MedicalRecordManagerDep,
    user: CurrentUserDep,
):
    note = await manager.add_progress_note(record_id, body.to_dto(), created_by=user.user_id)
    return ok(request, data=note.to_dict(), message="Created")


@router.post(
    "/{record_id}/assessments",
    response_model=ApiResponse[Dict[str, Any]],
    status_code=status.HTTP_201_CREATED,
    summary="Add an assessment",
    responses=ERROR_RESPONSES,
)
async def add_assessment(
    request: Request,
    record_id: str,
    body: AssessmentSchema,
    manager: MedicalRecordManagerDep,
    user: CurrentUserDep,
):
    assessment = await manager.add_assessment(record_id, body.to_dto(), assessed_by=user.user_id)
    return ok(request, data=assessment.to_dict(), message="Created")


@router.get(
    "/{record_id}/integrity",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Run clinical consistency checks",
    responses=ERROR_RESPONSES,
)
async def check_integrity(request: Request, record_id: str, manager: MedicalRecordManagerDep):
    report = await manager.check_integrity(record_id)
    return ok(request, data=report.to_dict())
