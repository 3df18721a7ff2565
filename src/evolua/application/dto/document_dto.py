"""Document DTOs."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class UploadDocumentRequest:
    patient_id: str
    file_name: str
    mime_type: str
    content: bytes
    title: str
    document_type: str = "other"
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    is_confidential: bool = False
    retention_period: Optional[int] = None
    legal_basis: Optional[str] = None
    expires_at: Optional[datetime] = None


@dataclass
class DownloadRequest:
    document_id: str
    user_id: str


@dataclass
class DownloadResult:
    content: bytes
    file_name: str
    mime_type: str


@dataclass
class UpdateDocumentRequest:
    """Metadata and/or status change; file bytes are never rewritten."""

    document_id: str
    updated_by: str
    title: Optional[str] = None
    description: Optional[str] = None
    document_type: Optional[str] = None
    tags: Optional[List[str]] = None
    is_confidential: Optional[bool] = None
    retention_period: Optional[int] = None
    legal_basis: Optional[str] = None
    status: Optional[str] = None

    def metadata_changes(self) -> Dict[str, Any]:
        changes = {
            "title": self.title,
            "description": self.description,
            "document_type": self.document_type,
            "tags": self.tags,
            "is_confidential": self.is_confidential,
            "retention_period": self.retention_period,
            "legal_basis": self.legal_basis,
        }
        return {k: v for k, v in changes.items() if v is not None}


@dataclass
class DocumentSearchCriteria:
    patient_id: Optional[str] = None
    document_type: Optional[str] = None
    status: Optional[str] = None
    query: Optional[str] = None


@dataclass
class DocumentStatistics:
    total_documents: int = 0
    total_size: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    by_status: Dict[str, int] = field(default_factory=dict)
    confidential: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_documents": self.total_documents,
            "total_size": self.total_size,
            "by_type": dict(self.by_type),
            "by_status": dict(self.by_status),
            "confidential": self.confidential,
        }
