"""
Document manager: upload, download, metadata updates, deletion and
housekeeping of clinical documents.

Bytes live in the object store; this service persists metadata and
security information only.
"""

import re
from datetime import datetime
from typing import AbstractSet, Callable, Dict, List, Optional, Union

from ...core.exceptions import EvoluaException, VirusScanError
from ...core.structured_logger import get_logger
from ...core.utils.datetime_utils import utc_now
from ...domain.entities.document import (
    ALLOWED_MIME_TYPES,
    DEFAULT_RETENTION_YEARS,
    MAX_FILE_SIZE_BYTES,
    Document,
    DocumentMetadata,
    SecurityInfo,
    validate_file,
)
from ...domain.enums.document import BulkOperation, DocumentStatus, DocumentType
from ...domain.errors import (
    DocumentNotFoundError,
    DomainError,
    UnauthorizedError,
    ValidationFailedError,
)
from ...domain.value_objects.identifiers import DocumentId, PatientId, UserId
from ...observability.audit import audit_log_event
from ..dto.common import BulkOperationResult, PaginatedResult, Pagination
from ..dto.document_dto import (
    DocumentSearchCriteria,
    DocumentStatistics,
    DownloadRequest,
    DownloadResult,
    UpdateDocumentRequest,
    UploadDocumentRequest,
)
from ..ports.repositories.document_repo import DocumentRepository
from ..ports.services.authorization_service import AuthorizationService
from ..ports.services.object_storage import ObjectStorage
from ..ports.services.virus_scanner import VirusScanner
from .errors import repository_errors, storage_errors

logger = get_logger("evolua.documents")

DOCUMENT_SORT_FIELDS = ("uploaded_at", "updated_at", "title", "file_size", "name")


def _safe_file_name(file_name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", file_name.strip())
    return cleaned.strip("._") or "document"


class DocumentManager:
    """Application service for the document aggregate."""

    def __init__(
        self,
        document_repository: DocumentRepository,
        object_storage: ObjectStorage,
        authorization_service: AuthorizationService,
        virus_scanner: VirusScanner,
        default_retention_years: int = DEFAULT_RETENTION_YEARS,
        max_file_size_bytes: int = MAX_FILE_SIZE_BYTES,
        allowed_mime_types: AbstractSet[str] = ALLOWED_MIME_TYPES,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._document_repository = document_repository
        self._object_storage = object_storage
        self._authorization_service = authorization_service
        self._virus_scanner = virus_scanner
        self._default_retention_years = default_retention_years
        self._max_file_size_bytes = min(max_file_size_bytes, MAX_FILE_SIZE_BYTES)
        self._allowed_mime_types = frozenset(allowed_mime_types) & ALLOWED_MIME_TYPES
        self._clock = clock

    @property
    def _clinic(self) -> str:
        return self._document_repository.clinic_id.value

    async def upload_document(
        self, request: UploadDocumentRequest, uploaded_by: Union[str, UserId]
    ) -> Document:
        """
        Store the bytes, scan them and persist the metadata.

        Infected uploads are kept but quarantined so they can be inspected;
        they are never served by ``download_document``.
        """
        author = uploaded_by if isinstance(uploaded_by, UserId) else UserId(uploaded_by)
        patient_id, metadata = self._validate_upload(request)

        document_id = DocumentId.generate()
        path = "/".join(
            [self._clinic, patient_id.value, document_id.value, _safe_file_name(request.file_name)]
        )
        with storage_errors("store document"):
            stored = await self._object_storage.put(request.content, path)

        try:
            verdict = await self._virus_scanner.scan(request.content, request.file_name)
        except EvoluaException:
            await self._discard(stored.path)
            raise
        except Exception as exc:
            await self._discard(stored.path)
            raise VirusScanError(str(exc)) from exc

        security_info = SecurityInfo(
            checksum=stored.checksum,
            is_encrypted=stored.is_encrypted,
            encryption_algorithm=stored.encryption_algorithm,
            virus_scan_result=verdict.result,
            virus_scan_date=verdict.scanned_at,
        )
        now = self._clock()
        document = Document(
            id=document_id,
            patient_id=patient_id,
            clinic_id=self._document_repository.clinic_id,
            file_name=request.file_name.strip(),
            file_path=stored.path,
            mime_type=request.mime_type,
            file_size=len(request.content),
            metadata=metadata,
            security_info=security_info,
            uploaded_by=author,
            status=DocumentStatus.QUARANTINED if security_info.is_infected() else DocumentStatus.ACTIVE,
            uploaded_at=now,
            updated_at=now,
            expires_at=request.expires_at,
        )

        try:
            with repository_errors("save document metadata"):
                saved = await self._document_repository.create(document)
        except Exception:
            await self._discard(stored.path)
            raise

        if saved.status == DocumentStatus.QUARANTINED:
            logger.warning(
                "Uploaded document quarantined",
                document_id=saved.id.value,
                clinic_id=self._clinic,
                signature=verdict.signature,
            )
        else:
            logger.info(
                "Document uploaded",
                document_id=saved.id.value,
                clinic_id=self._clinic,
                size=saved.file_size,
                mime_type=saved.mime_type,
            )
        await audit_log_event(
            event="document.uploaded",
            patient_id=patient_id.value,
            resource_id=saved.id.value,
            user_id=author.value,
            clinic_id=self._clinic,
            payload={
                "document_type": metadata.document_type.value,
                "status": saved.status.value,
                "checksum": security_info.checksum,
                "virus_scan_result": security_info.virus_scan_result.value,
            },
        )
        return saved

    def _validate_upload(self, request: UploadDocumentRequest):
        errors = validate_file(
            request.file_name,
            request.mime_type,
            len(request.content or b""),
            max_size=self._max_file_size_bytes,
            allowed_mime_types=self._allowed_mime_types,
        )
        patient_id = errors.capture("patient_id", PatientId, request.patient_id)
        metadata = errors.capture(
            "metadata",
            DocumentMetadata,
            title=request.title,
            document_type=request.document_type or DocumentType.OTHER,
            description=request.description,
            tags=tuple(request.tags or ()),
            is_confidential=bool(request.is_confidential),
            retention_period=request.retention_period or self._default_retention_years,
            legal_basis=request.legal_basis,
        )
        errors.raise_if_any("Invalid document upload")
        return patient_id, metadata

    async def get_document(self, document_id: str) -> Optional[Document]:
        try:
            did = DocumentId(document_id)
        except ValueError:
            return None
        with repository_errors("load document"):
            return await self._document_repository.find_by_id(did)

    async def download_document(self, request: DownloadRequest) -> DownloadResult:
        """Authorization first, then existence, then accessibility."""
        await self._authorize(request.user_id, request.document_id)
        document = await self._require(request.document_id)
        if not document.can_be_accessed():
            raise UnauthorizedError(
                request.user_id,
                request.document_id,
                f"document is not accessible (status: {document.status.value}, "
                f"scan: {document.security_info.virus_scan_result.value})",
            )

        with storage_errors("fetch document"):
            content = await self._object_storage.get(document.file_path)

        await audit_log_event(
            event="document.downloaded",
            patient_id=document.patient_id.value,
            resource_id=document.id.value,
            user_id=request.user_id,
            clinic_id=self._clinic,
        )
        return DownloadResult(content=content, file_name=document.file_name, mime_type=document.mime_type)

    async def update_document(self, request: UpdateDocumentRequest) -> Document:
        await self._authorize(request.updated_by, request.document_id)
        document = await self._require(request.document_id)

        changes = request.metadata_changes()
        if not changes and request.status is None:
            raise ValidationFailedError.single("document", "No changes supplied")

        now = self._clock()
        previous_status = document.status
        if changes:
            try:
                document.update_metadata(changes, now=now)
            except ValidationFailedError as exc:
                raise exc.prefixed("metadata") from exc
        if request.status is not None:
            try:
                status = DocumentStatus(request.status)
            except ValueError as exc:
                raise ValidationFailedError.single("status", str(exc)) from exc
            document.change_status(status, now=now)

        with repository_errors("update document"):
            saved = await self._document_repository.update(document)

        await audit_log_event(
            event="document.updated",
            patient_id=saved.patient_id.value,
            resource_id=saved.id.value,
            user_id=request.updated_by,
            clinic_id=self._clinic,
            payload={
                "fields": sorted(changes),
                "version": saved.metadata.version,
                "status": {"from": previous_status.value, "to": saved.status.value},
            },
        )
        return saved

    async def delete_document(self, document_id: str, user_id: str) -> None:
        """Remove the metadata, then ask the object store to drop the bytes."""
        await self._authorize(user_id, document_id)
        document = await self._require(document_id)

        with repository_errors("delete document"):
            await self._document_repository.delete(document.id)
        with storage_errors("delete document bytes"):
            await self._object_storage.delete(document.file_path)

        logger.info("Document deleted", document_id=document.id.value, clinic_id=self._clinic)
        await audit_log_event(
            event="document.deleted",
            patient_id=document.patient_id.value,
            resource_id=document.id.value,
            user_id=user_id,
            clinic_id=self._clinic,
        )

    async def search_documents(
        self,
        criteria: Optional[DocumentSearchCriteria] = None,
        pagination: Optional[Pagination] = None,
    ) -> PaginatedResult[Document]:
        criteria = criteria or DocumentSearchCriteria()
        pagination = pagination or Pagination(sort_by="uploaded_at", sort_order="desc")
        pagination.validate(DOCUMENT_SORT_FIELDS)

        field_errors: Dict[str, List[str]] = {}
        for name, enum in (("document_type", DocumentType), ("status", DocumentStatus)):
            value = getattr(criteria, name)
            if value is not None:
                try:
                    enum(value)
                except ValueError as exc:
                    field_errors[name] = [str(exc)]
        if field_errors:
            raise ValidationFailedError(field_errors, "Invalid search criteria")

        with repository_errors("search documents"):
            return await self._document_repository.search(criteria, pagination)

    async def get_patient_documents(self, patient_id: str) -> List[Document]:
        try:
            pid = PatientId(patient_id)
        except ValueError:
            return []
        with repository_errors("load patient documents"):
            documents = await self._document_repository.find_by_patient_id(pid)
        return sorted(documents, key=lambda d: d.uploaded_at, reverse=True)

    async def archive_expired_documents(self, now: Optional[datetime] = None) -> List[str]:
        """Archive every active document past its expiry or retention period."""
        current = now or self._clock()
        with repository_errors("find expired documents"):
            expired = await self._document_repository.find_expired(current)

        archived: List[str] = []
        for document in expired:
            if document.status != DocumentStatus.ACTIVE or not document.should_be_archived(current):
                continue
            document.archive(now=current)
            with repository_errors("archive document"):
                await self._document_repository.update(document)
            archived.append(document.id.value)
            await audit_log_event(
                event="document.archived",
                patient_id=document.patient_id.value,
                resource_id=document.id.value,
                clinic_id=self._clinic,
                payload={"reason": "retention"},
            )

        if archived:
            logger.info("Archived expired documents", clinic_id=self._clinic, count=len(archived))
        return archived

    async def perform_bulk_operation(
        self, document_ids: List[str], operation: Union[str, BulkOperation], user_id: str
    ) -> BulkOperationResult:
        """Apply ``operation`` to each document; failures are collected, not raised."""
        try:
            op = BulkOperation(operation)
        except ValueError as exc:
            raise ValidationFailedError.single("operation", str(exc)) from exc

        result = BulkOperationResult()
        for document_id in document_ids:
            try:
                if op == BulkOperation.DELETE:
                    await self.delete_document(document_id, user_id)
                else:
                    await self._archive_one(document_id, user_id)
            except (DomainError, EvoluaException) as exc:
                result.failed.append({"id": document_id, "error": exc.message})
            else:
                result.successful.append(document_id)

        logger.info(
            "Bulk document operation finished",
            clinic_id=self._clinic,
            operation=op.value,
            successful=len(result.successful),
            failed=len(result.failed),
        )
        return result

    async def _archive_one(self, document_id: str, user_id: str) -> None:
        await self._authorize(user_id, document_id)
        document = await self._require(document_id)
        document.archive(now=self._clock())
        with repository_errors("archive document"):
            await self._document_repository.update(document)
        await audit_log_event(
            event="document.archived",
            patient_id=document.patient_id.value,
            resource_id=document.id.value,
            user_id=user_id,
            clinic_id=self._clinic,
            payload={"reason": "bulk"},
        )

    async def get_document_statistics(self) -> DocumentStatistics:
        with repository_errors("load documents"):
            documents = await self._document_repository.find_all()

        stats = DocumentStatistics(total_documents=len(documents))
        for document in documents:
            stats.total_size += document.file_size
            doc_type = document.metadata.document_type.value
            stats.by_type[doc_type] = stats.by_type.get(doc_type, 0) + 1
            stats.by_status[document.status.value] = stats.by_status.get(document.status.value, 0) + 1
            if document.is_confidential():
                stats.confidential += 1
        return stats

    async def _authorize(self, user_id: str, document_id: str) -> None:
        try:
            allowed = await self._authorization_service.can_access(user_id, document_id)
        except (DomainError, EvoluaException):
            raise
        except Exception as exc:
            raise EvoluaException(
                "Authorization check failed", "AUTHORIZATION_SERVICE_ERROR", {"error": str(exc)}
            ) from exc
        if not allowed:
            logger.warning("Document access denied", user_id=user_id, document_id=document_id)
            raise UnauthorizedError(user_id, document_id)

    async def _require(self, document_id: str) -> Document:
        document = await self.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    async def _discard(self, path: str) -> None:
        try:
            await self._object_storage.delete(path)
        except Exception as exc:
            logger.error("Failed to remove orphaned document bytes", path=path, error=str(exc))
