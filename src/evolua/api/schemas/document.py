"""
Document request schemas. Uploads arrive as multipart form data and are
parsed in the router.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from ...application.dto.document_dto import UpdateDocumentRequest


class UpdateDocumentSchema(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    document_type: Optional[str] = None
    tags: Optional[List[str]] = None
    is_confidential: Optional[bool] = None
    retention_period: Optional[int] = None
    legal_basis: Optional[str] = None
    status: Optional[str] = None

    def to_dto(self, document_id: str, updated_by: str) -> UpdateDocumentRequest:
        return UpdateDocumentRequest(
            document_id=document_id, updated_by=updated_by, **self.model_dump()
        )


class BulkOperationSchema(BaseModel):
    document_ids: List[str] = Field(..., min_length=1)
    operation: str = Field(..., description="archive or delete")
