"""
Document endpoints. Uploads are multipart; downloads stream the original
bytes back with their MIME type.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, File, Form, Query, Request, UploadFile, status
from fastapi.responses import Response

from ...application.dto.common import Pagination
from ...application.dto.document_dto import (
    DocumentSearchCriteria,
    DownloadRequest,
    UploadDocumentRequest,
)
from ...domain.errors import DocumentNotFoundError
from ..deps import CurrentUserDep, DocumentManagerDep
from ..schemas.common import ERROR_RESPONSES, ApiResponse, ErrorResponse
from ..schemas.document import BulkOperationSchema, UpdateDocumentSchema
from ..utils.responses import ok

router = APIRouter(prefix="/documents", tags=["documents"])

FORBIDDEN = {403: {"model": ErrorResponse, "description": "Access denied"}}


def _tags(raw: Optional[str]) -> List[str]:
    return [t.strip() for t in (raw or "").split(",") if t.strip()]


@router.post(
    "/",
    response_model=ApiResponse[Dict[str, Any]],
    status_code=status.HTTP_201_CREATED,
    summary="Upload a clinical document",
    responses=ERROR_RESPONSES,
)
async def upload_document(
    request: Request,
    manager: DocumentManagerDep,
    user: CurrentUserDep,
    file: UploadFile = File(...),
    patient_id: str = Form(...),
    title: str = Form(...),
    document_type: str = Form("other"),
    description: Optional[str] = Form(None),
    tags: Optional[str] = Form(None, description="Comma-separated tags"),
    is_confidential: bool = Form(False),
    retention_period: Optional[int] = Form(None),
    legal_basis: Optional[str] = Form(None),
    expires_at: Optional[datetime] = Form(None),
):
    content = await file.read()
    upload = UploadDocumentRequest(
        patient_id=patient_id,
        file_name=file.filename or "",
        mime_type=file.content_type or "application/octet-stream",
        content=content,
        title=title,
        document_type=document_type,
        description=description,
        tags=_tags(tags),
        is_confidential=is_confidential,
        retention_period=retention_period,
        legal_basis=legal_basis,
        expires_at=expires_at,
    )
    document = await manager.upload_document(upload, uploaded_by=user.user_id)
    return ok(request, data=document.to_dict(), message="Created")


@router.get(
    "/",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Search documents of the caller's clinic",
    responses=ERROR_RESPONSES,
)
async def search_documents(
    request: Request,
    manager: DocumentManagerDep,
    patient_id: Optional[str] = Query(None),
    document_type: Optional[str] = Query(None),
    document_status: Optional[str] = Query(None, alias="status"),
    query: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(20),
    sort_by: str = Query("uploaded_at"),
    sort_order: str = Query("desc"),
):
    criteria = DocumentSearchCriteria(
        patient_id=patient_id, document_type=document_type, status=document_status, query=query
    )
    result = await manager.search_documents(
        criteria, Pagination(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
    )
    return ok(request, data=result.to_dict(lambda d: d.to_dict()))


@router.get(
    "/statistics",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Document counts and sizes for the caller's clinic",
)
async def document_statistics(request: Request, manager: DocumentManagerDep):
    stats = await manager.get_document_statistics()
    return ok(request, data=stats.to_dict())


@router.post(
    "/archive-expired",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Archive documents past their expiry or retention period",
)
async def archive_expired(request: Request, manager: DocumentManagerDep):
    archived = await manager.archive_expired_documents()
    return ok(request, data={"archived": archived})


@router.post(
    "/bulk",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Archive or delete several documents",
    responses=ERROR_RESPONSES,
)
async def bulk_operation(
    request: Request, body: BulkOperationSchema, manager: DocumentManagerDep, user: CurrentUserDep
):
    result = await manager.perform_bulk_operation(body.document_ids, body.operation, user.user_id)
    return ok(request, data=result.to_dict())


@router.get(
    "/patient/{patient_id}",
    response_model=ApiResponse[List[Dict[str, Any]]],
    summary="Documents of a patient, newest first",
)
async def patient_documents(request: Request, patient_id: str, manager: DocumentManagerDep):
    documents = await manager.get_patient_documents(patient_id)
    return ok(request, data=[d.to_dict() for d in documents])


@router.get(
    "/{document_id}",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Get document metadata",
    responses=ERROR_RESPONSES,
)
async def get_document(request: Request, document_id: str, manager: DocumentManagerDep):
    document = await manager.get_document(document_id)
    if document is None:
        raise DocumentNotFoundError(document_id)
    return ok(request, data=document.to_dict())


@router.get(
    "/{document_id}/download",
    summary="Download the original file",
    responses={**ERROR_RESPONSES, **FORBIDDEN},
)
async def download_document(document_id: str, manager: DocumentManagerDep, user: CurrentUserDep):
    result = await manager.download_document(DownloadRequest(document_id=document_id, user_id=user.user_id))
    return Response(
        content=result.content,
        media_type=result.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{result.file_name}"'},
    )


@router.put(
    "/{document_id}",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Update document metadata or status",
    responses={**ERROR_RESPONSES, **FORBIDDEN},
)
async def update_document(
    request: Request,
    document_id: str,
    body: UpdateDocumentSchema,
    manager: DocumentManagerDep,
    user: CurrentUserDep,
):
    document = await manager.update_document(body.to_dto(document_id, user.user_id))
    return ok(request, data=document.to_dict(), message="Updated")


@router.delete(
    "/{document_id}",
    response_model=ApiResponse[Dict[str, Any]],
    summary="Delete a document and its stored bytes",
    responses={**ERROR_RESPONSES, **FORBIDDEN},
)
async def delete_document(
    request: Request, document_id: str, manager: DocumentManagerDep, user: CurrentUserDep
):
    await manager.delete_document(document_id, user.user_id)
    return ok(request, data={"id": document_id}, message="Deleted")
