"""Clinical document aggregate: metadata and security info for a stored file."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import AbstractSet, Any, Dict, List, Mapping, Optional, Tuple

from ...core.utils.datetime_utils import add_years, utc_now
from ..enums.document import DocumentStatus, DocumentType, VirusScanResult
from ..errors import InvalidStateTransitionError
from ..validation import FieldErrors
from ..value_objects.identifiers import ClinicId, DocumentId, PatientId, UserId

MAX_FILE_SIZE_BYTES = 50 * 1024 * 1024
DEFAULT_RETENTION_YEARS = 20

ALLOWED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "image/jpeg",
        "image/png",
        "image/gif",
        "text/plain",
    }
)


@dataclass(frozen=True)
class DocumentMetadata:
    title: str
    document_type: DocumentType = DocumentType.OTHER
    description: Optional[str] = None
    tags: Tuple[str, ...] = ()
    is_confidential: bool = False
    version: int = 1
    retention_period: int = DEFAULT_RETENTION_YEARS
    legal_basis: Optional[str] = None

    def __post_init__(self) -> None:
        errors = FieldErrors()
        if not self.title or not self.title.strip():
            errors.add("title", "Document title is required")
        document_type = errors.capture("document_type", DocumentType, self.document_type)
        if not isinstance(self.version, int) or self.version < 1:
            errors.add("version", "Document version must be at least 1")
        if not isinstance(self.retention_period, int) or self.retention_period < 1:
            errors.add("retention_period", "Retention period must be at least 1 year")
        errors.raise_if_any("Invalid document metadata")

        object.__setattr__(self, "title", self.title.strip())
        object.__setattr__(self, "document_type", document_type)
        object.__setattr__(self, "tags", tuple(t.strip() for t in self.tags if t and t.strip()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "document_type": self.document_type.value,
            "tags": list(self.tags),
            "is_confidential": self.is_confidential,
            "version": self.version,
            "retention_period": self.retention_period,
            "legal_basis": self.legal_basis,
        }


@dataclass(frozen=True)
class SecurityInfo:
    checksum: str
    is_encrypted: bool = False
    encryption_algorithm: Optional[str] = None
    virus_scan_result: VirusScanResult = VirusScanResult.PENDING
    virus_scan_date: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "virus_scan_result", VirusScanResult(self.virus_scan_result))

    def is_infected(self) -> bool:
        return self.virus_scan_result == VirusScanResult.INFECTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checksum": self.checksum,
            "is_encrypted": self.is_encrypted,
            "encryption_algorithm": self.encryption_algorithm,
            "virus_scan_result": self.virus_scan_result.value,
            "virus_scan_date": self.virus_scan_date,
        }


def validate_file(
    file_name: str,
    mime_type: str,
    file_size: int,
    max_size: int = MAX_FILE_SIZE_BYTES,
    allowed_mime_types: AbstractSet[str] = ALLOWED_MIME_TYPES,
) -> FieldErrors:
    """File-level checks shared by upload validation and the aggregate."""
    errors = FieldErrors()
    if not file_name or not file_name.strip():
        errors.add("file_name", "File name is required")
    if mime_type not in allowed_mime_types:
        errors.add("mime_type", f"File type '{mime_type}' is not allowed")
    if file_size is None or file_size <= 0:
        errors.add("file_size", "File cannot be empty")
    elif file_size > max_size:
        errors.add("file_size", f"File exceeds maximum size of {max_size // (1024 * 1024)}MB")
    return errors


@dataclass
class Document:
    id: DocumentId
    patient_id: PatientId
    clinic_id: ClinicId
    file_name: str
    file_path: str
    mime_type: str
    file_size: int
    metadata: DocumentMetadata
    security_info: SecurityInfo
    uploaded_by: UserId
    status: DocumentStatus = DocumentStatus.ACTIVE
    uploaded_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    expires_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        errors = validate_file(self.file_name, self.mime_type, self.file_size)
        if not self.file_path or not self.file_path.strip():
            errors.add("file_path", "File path is required")
        errors.raise_if_any("Invalid document")
        self.status = DocumentStatus(self.status)

    def can_be_accessed(self) -> bool:
        if self.status in (DocumentStatus.QUARANTINED, DocumentStatus.DELETED):
            return False
        return not self.security_info.is_infected()

    def retention_ends_at(self) -> datetime:
        return add_years(self.uploaded_at, self.metadata.retention_period)

    def should_be_archived(self, now: Optional[datetime] = None) -> bool:
        current = now or utc_now()
        if self.expires_at is not None and self.expires_at <= current:
            return True
        return self.retention_ends_at() <= current

    def is_confidential(self) -> bool:
        return self.metadata.is_confidential

    def update_metadata(self, changes: Mapping[str, Any], now: Optional[datetime] = None) -> None:
        """Merge metadata fields and bump the version."""
        allowed = {"title", "description", "document_type", "tags", "is_confidential",
                   "retention_period", "legal_basis"}
        merged = {k: v for k, v in changes.items() if k in allowed and v is not None}
        if "tags" in merged:
            merged["tags"] = tuple(merged["tags"])
        self.metadata = replace(self.metadata, version=self.metadata.version + 1, **merged)
        self.updated_at = now or utc_now()

    def change_status(self, status: DocumentStatus, now: Optional[datetime] = None) -> None:
        target = DocumentStatus(status)
        if self.status == DocumentStatus.DELETED and target != DocumentStatus.DELETED:
            raise InvalidStateTransitionError(self.status.value, target.value, "document was deleted")
        if target == DocumentStatus.ACTIVE and self.security_info.is_infected():
            raise InvalidStateTransitionError(
                self.status.value, target.value, "infected documents stay quarantined"
            )
        self.status = target
        self.updated_at = now or utc_now()

    def archive(self, now: Optional[datetime] = None) -> None:
        self.change_status(DocumentStatus.ARCHIVED, now)

    def quarantine(self, now: Optional[datetime] = None) -> None:
        self.change_status(DocumentStatus.QUARANTINED, now)

    def matches_query(self, query: str) -> bool:
        needle = query.strip().lower()
        haystack: List[str] = [self.metadata.title, self.file_name, *self.metadata.tags]
        if self.metadata.description:
            haystack.append(self.metadata.description)
        return any(needle in value.lower() for value in haystack)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id.value,
            "patient_id": self.patient_id.value,
            "clinic_id": self.clinic_id.value,
            "file_name": self.file_name,
            "file_path": self.file_path,
            "mime_type": self.mime_type,
            "file_size": self.file_size,
            "metadata": self.metadata.to_dict(),
            "status": self.status.value,
            "security_info": self.security_info.to_dict(),
            "uploaded_at": self.uploaded_at,
            "uploaded_by": self.uploaded_by.value,
            "updated_at": self.updated_at,
            "expires_at": self.expires_at,
            "can_be_accessed": self.can_be_accessed(),
        }
