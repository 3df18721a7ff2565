"""
MongoDB Beanie model for clinical document metadata.

The file bytes live in object storage; ``file_path`` is the object key.
"""

from datetime import datetime
from typing import List, Optional

from beanie import Document
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING, IndexModel


class DocumentMetadataMongo(BaseModel):
    title: str
    document_type: str = "other"
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_confidential: bool = False
    version: int = 1
    retention_period: int = 20
    legal_basis: Optional[str] = None


class SecurityInfoMongo(BaseModel):
    checksum: str
    is_encrypted: bool = False
    encryption_algorithm: Optional[str] = None
    virus_scan_result: str = "pending"
    virus_scan_date: Optional[datetime] = None


class DocumentMongo(Document):
    """MongoDB model for the Document aggregate."""

    document_id: str = Field(..., description="Document ID")
    patient_id: str = Field(..., description="Patient ID reference")
    clinic_id: str = Field(..., description="Owning clinic")
    file_name: str = Field(..., description="Original filename")
    file_path: str = Field(..., description="Object storage key")
    mime_type: str = Field(..., description="MIME type of the file")
    file_size: int = Field(..., description="File size in bytes")
    metadata: DocumentMetadataMongo
    security_info: SecurityInfoMongo
    status: str = Field(default="active", description="active, archived, quarantined, deleted")
    uploaded_by: str
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: Optional[datetime] = Field(None, description="Explicit expiry, if any")
    retention_ends_at: datetime = Field(..., description="uploaded_at plus the retention period")

    class Settings:
        name = "clinical_documents"
        indexes = [
            IndexModel([("clinic_id", ASCENDING), ("document_id", ASCENDING)], unique=True),
            IndexModel([("clinic_id", ASCENDING), ("patient_id", ASCENDING), ("uploaded_at", DESCENDING)]),
            IndexModel([("clinic_id", ASCENDING), ("status", ASCENDING)]),
            IndexModel([("clinic_id", ASCENDING), ("metadata.document_type", ASCENDING)]),
            "expires_at",
            "retention_ends_at",
        ]
