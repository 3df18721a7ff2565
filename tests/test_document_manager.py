"""
Document manager with in-memory storage, signature scanning and
clinic-membership authorization.
"""

from datetime import timedelta

import pytest

from evolua.adapters.security import (
    EICAR_SIGNATURE,
    ApiKeyUserDirectory,
    ClinicAuthorizationService,
    SignatureVirusScanner,
)
from evolua.application.dto.common import Pagination
from evolua.application.dto.document_dto import (
    DocumentSearchCriteria,
    DownloadRequest,
    UpdateDocumentRequest,
    UploadDocumentRequest,
)
from evolua.application.services.document_manager import DocumentManager
from evolua.domain.enums.document import DocumentStatus, VirusScanResult
from evolua.domain.errors import (
    DocumentNotFoundError,
    InvalidStateTransitionError,
    UnauthorizedError,
    ValidationFailedError,
)

from .conftest import NOW

THERAPIST = "u-therapist"
RECEPTIONIST = "u-reception"
OTHER_CLINIC_USER = "u-other"

PDF_BYTES = b"%PDF-1.4 speech evaluation"


def upload(**overrides) -> UploadDocumentRequest:
    data = dict(
        patient_id="p-1",
        file_name="evaluation report.pdf",
        mime_type="application/pdf",
        content=PDF_BYTES,
        title="Initial evaluation",
        document_type="medical_report",
        tags=["speech", "evaluation"],
    )
    data.update(overrides)
    return UploadDocumentRequest(**data)


@pytest.mark.asyncio
async def test_upload_and_download(document_manager, object_storage):
    document = await document_manager.upload_document(upload(), uploaded_by=THERAPIST)

    assert document.status == DocumentStatus.ACTIVE
    assert document.security_info.virus_scan_result == VirusScanResult.CLEAN
    assert document.security_info.virus_scan_date == NOW
    assert document.file_size == len(PDF_BYTES)
    assert document.file_path.startswith("clinic-1/p-1/")
    assert document.file_path.endswith("/evaluation_report.pdf")
    assert document.metadata.retention_period == 20
    assert document.file_path in object_storage.objects

    result = await document_manager.download_document(
        DownloadRequest(document_id=document.id.value, user_id=THERAPIST)
    )
    assert result.content == PDF_BYTES
    assert result.file_name == "evaluation report.pdf"
    assert result.mime_type == "application/pdf"


@pytest.mark.asyncio
async def test_upload_validation(document_manager, object_storage):
    with pytest.raises(ValidationFailedError) as exc_info:
        await document_manager.upload_document(
            upload(mime_type="application/zip", content=b"", title=" ", patient_id=""),
            uploaded_by=THERAPIST,
        )
    errors = exc_info.value.field_errors
    assert {"mime_type", "file_size", "patient_id", "metadata.title"} <= set(errors)
    assert object_storage.objects == {}


@pytest.mark.asyncio
async def test_configured_limits_only_tighten(document_repo, object_storage, auth_service, clock):
    manager = DocumentManager(
        document_repo,
        object_storage,
        ClinicAuthorizationService(ApiKeyUserDirectory(auth_service), document_repo),
        SignatureVirusScanner(clock=clock),
        max_file_size_bytes=10,
        allowed_mime_types={"application/pdf", "application/x-sh"},
        clock=clock,
    )
    with pytest.raises(ValidationFailedError) as exc_info:
        await manager.upload_document(upload(), uploaded_by=THERAPIST)
    assert "file_size" in exc_info.value.field_errors

    with pytest.raises(ValidationFailedError) as exc_info:
        await manager.upload_document(
            upload(file_name="run.sh", mime_type="application/x-sh", content=b"echo"), uploaded_by=THERAPIST
        )
    assert "mime_type" in exc_info.value.field_errors


@pytest.mark.asyncio
async def test_infected_upload_is_quarantined(document_manager):
    document = await document_manager.upload_document(
        upload(content=b"prefix " + EICAR_SIGNATURE), uploaded_by=THERAPIST
    )
    assert document.status == DocumentStatus.QUARANTINED
    assert document.security_info.is_infected()
    assert not document.can_be_accessed()

    with pytest.raises(UnauthorizedError):
        await document_manager.download_document(
            DownloadRequest(document_id=document.id.value, user_id=THERAPIST)
        )
    with pytest.raises(InvalidStateTransitionError):
        await document_manager.update_document(
            UpdateDocumentRequest(document_id=document.id.value, updated_by=THERAPIST, status="active")
        )


@pytest.mark.asyncio
async def test_authorization_before_existence(document_manager):
    with pytest.raises(UnauthorizedError):
        await document_manager.download_document(DownloadRequest(document_id="missing", user_id="nobody"))
    with pytest.raises(DocumentNotFoundError):
        await document_manager.download_document(DownloadRequest(document_id="missing", user_id=THERAPIST))


@pytest.mark.asyncio
async def test_other_clinic_cannot_access(document_manager):
    document = await document_manager.upload_document(upload(), uploaded_by=THERAPIST)
    with pytest.raises(UnauthorizedError):
        await document_manager.download_document(
            DownloadRequest(document_id=document.id.value, user_id=OTHER_CLINIC_USER)
        )


@pytest.mark.asyncio
async def test_confidential_documents_need_clinical_role(document_manager):
    document = await document_manager.upload_document(upload(is_confidential=True), uploaded_by=THERAPIST)

    with pytest.raises(UnauthorizedError):
        await document_manager.download_document(
            DownloadRequest(document_id=document.id.value, user_id=RECEPTIONIST)
        )
    result = await document_manager.download_document(
        DownloadRequest(document_id=document.id.value, user_id=THERAPIST)
    )
    assert result.content == PDF_BYTES


@pytest.mark.asyncio
async def test_update_metadata_and_status(document_manager):
    document = await document_manager.upload_document(upload(), uploaded_by=THERAPIST)

    updated = await document_manager.update_document(
        UpdateDocumentRequest(
            document_id=document.id.value, updated_by=THERAPIST, title="Revised evaluation", tags=["final"]
        )
    )
    assert updated.metadata.title == "Revised evaluation"
    assert updated.metadata.tags == ("final",)
    assert updated.metadata.version == 2

    archived = await document_manager.update_document(
        UpdateDocumentRequest(document_id=document.id.value, updated_by=THERAPIST, status="archived")
    )
    assert archived.status == DocumentStatus.ARCHIVED

    with pytest.raises(ValidationFailedError):
        await document_manager.update_document(
            UpdateDocumentRequest(document_id=document.id.value, updated_by=THERAPIST)
        )
    with pytest.raises(ValidationFailedError) as exc_info:
        await document_manager.update_document(
            UpdateDocumentRequest(document_id=document.id.value, updated_by=THERAPIST, document_type="selfie")
        )
    assert "metadata.document_type" in exc_info.value.field_errors


@pytest.mark.asyncio
async def test_delete_removes_metadata_and_bytes(document_manager, object_storage):
    document = await document_manager.upload_document(upload(), uploaded_by=THERAPIST)
    await document_manager.delete_document(document.id.value, THERAPIST)

    assert await document_manager.get_document(document.id.value) is None
    assert object_storage.objects == {}
    with pytest.raises(DocumentNotFoundError):
        await document_manager.delete_document(document.id.value, THERAPIST)


@pytest.mark.asyncio
async def test_search_and_patient_documents(document_manager):
    first = await document_manager.upload_document(upload(), uploaded_by=THERAPIST)
    second = await document_manager.upload_document(
        upload(title="Consent", document_type="consent_form", tags=[], patient_id="p-2"),
        uploaded_by=THERAPIST,
    )

    by_type = await document_manager.search_documents(DocumentSearchCriteria(document_type="consent_form"))
    assert [d.id for d in by_type.data] == [second.id]

    by_query = await document_manager.search_documents(DocumentSearchCriteria(query="speech"))
    assert [d.id for d in by_query.data] == [first.id]

    by_title = await document_manager.search_documents(
        pagination=Pagination(sort_by="title", sort_order="asc")
    )
    assert [d.metadata.title for d in by_title.data] == ["Consent", "Initial evaluation"]

    assert [d.id for d in await document_manager.get_patient_documents("p-1")] == [first.id]

    with pytest.raises(ValidationFailedError):
        await document_manager.search_documents(DocumentSearchCriteria(status="lost"))


@pytest.mark.asyncio
async def test_archive_expired_documents(document_manager):
    expired = await document_manager.upload_document(
        upload(expires_at=NOW - timedelta(days=1)), uploaded_by=THERAPIST
    )
    current = await document_manager.upload_document(upload(), uploaded_by=THERAPIST)

    archived = await document_manager.archive_expired_documents()
    assert archived == [expired.id.value]
    assert (await document_manager.get_document(expired.id.value)).status == DocumentStatus.ARCHIVED
    assert (await document_manager.get_document(current.id.value)).status == DocumentStatus.ACTIVE

    later = NOW.replace(year=NOW.year + 21)
    assert await document_manager.archive_expired_documents(now=later) == [current.id.value]


@pytest.mark.asyncio
async def test_bulk_operation_collects_failures(document_manager):
    first = await document_manager.upload_document(upload(), uploaded_by=THERAPIST)
    second = await document_manager.upload_document(upload(), uploaded_by=THERAPIST)

    result = await document_manager.perform_bulk_operation(
        [first.id.value, "missing", second.id.value], "archive", THERAPIST
    )
    assert result.successful == [first.id.value, second.id.value]
    assert [f["id"] for f in result.failed] == ["missing"]

    deleted = await document_manager.perform_bulk_operation([first.id.value], "delete", THERAPIST)
    assert deleted.successful == [first.id.value]

    with pytest.raises(ValidationFailedError):
        await document_manager.perform_bulk_operation([second.id.value], "shred", THERAPIST)


@pytest.mark.asyncio
async def test_statistics(document_manager):
    await document_manager.upload_document(upload(is_confidential=True), uploaded_by=THERAPIST)
    await document_manager.upload_document(
        upload(document_type="consent_form", content=b"consent"), uploaded_by=THERAPIST
    )

    stats = await document_manager.get_document_statistics()
    assert stats.total_documents == 2
    assert stats.total_size == len(PDF_BYTES) + len(b"consent")
    assert stats.by_type == {"medical_report": 1, "consent_form": 1}
    assert stats.by_status == {"active": 2}
    assert stats.confidential == 1
