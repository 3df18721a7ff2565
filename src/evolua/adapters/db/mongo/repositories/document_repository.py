"""
MongoDB implementation of DocumentRepository.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from .....application.dto.common import PaginatedResult, Pagination
from .....application.dto.document_dto import DocumentSearchCriteria
from .....application.ports.repositories.document_repo import DocumentRepository
from .....domain.entities.document import Document, DocumentMetadata, SecurityInfo
from .....domain.enums.document import DocumentStatus
from .....domain.value_objects.identifiers import ClinicId, DocumentId, PatientId, UserId
from ..models.document_m import DocumentMetadataMongo, DocumentMongo, SecurityInfoMongo
from .patient_repository import sort_spec

SORT_FIELDS = {
    "uploaded_at": "uploaded_at",
    "updated_at": "updated_at",
    "title": "metadata.title",
    "name": "file_name",
    "file_size": "file_size",
}


class MongoDocumentRepository(DocumentRepository):
    """MongoDB implementation of DocumentRepository bound to one clinic."""

    def __init__(self, clinic_id: ClinicId):
        self._clinic_id = clinic_id

    @property
    def clinic_id(self) -> ClinicId:
        return self._clinic_id

    def _scope(self, **criteria: Any) -> Dict[str, Any]:
        return {"clinic_id": self._clinic_id.value, **criteria}

    async def create(self, document: Document) -> Document:
        await self._domain_to_mongo(document).insert()
        return document

    async def find_by_id(self, document_id: DocumentId) -> Optional[Document]:
        document_mongo = await DocumentMongo.find_one(self._scope(document_id=document_id.value))
        if not document_mongo:
            return None
        return self._mongo_to_domain(document_mongo)

    async def update(self, document: Document) -> Document:
        existing = await DocumentMongo.find_one(self._scope(document_id=document.id.value))
        document_mongo = self._domain_to_mongo(document)
        if existing is None:
            await document_mongo.insert()
        else:
            document_mongo.id = existing.id
            await document_mongo.replace()
        return document

    async def delete(self, document_id: DocumentId) -> bool:
        result = await DocumentMongo.find(self._scope(document_id=document_id.value)).delete()
        return bool(result and result.deleted_count)

    async def find_by_patient_id(self, patient_id: PatientId) -> List[Document]:
        documents_mongo = (
            await DocumentMongo.find(self._scope(patient_id=patient_id.value))
            .sort("-uploaded_at")
            .to_list()
        )
        return [self._mongo_to_domain(d) for d in documents_mongo]

    async def search(self, criteria: DocumentSearchCriteria, pagination: Pagination) -> PaginatedResult[Document]:
        query = self._scope()
        if criteria.patient_id:
            query["patient_id"] = criteria.patient_id
        if criteria.document_type:
            query["metadata.document_type"] = criteria.document_type
        if criteria.status:
            query["status"] = criteria.status
        if criteria.query:
            pattern = {"$regex": re.escape(criteria.query.strip()), "$options": "i"}
            query["$or"] = [
                {"metadata.title": pattern},
                {"metadata.description": pattern},
                {"metadata.tags": pattern},
                {"file_name": pattern},
            ]

        total = await DocumentMongo.find(query).count()
        documents_mongo = (
            await DocumentMongo.find(query)
            .sort(sort_spec(SORT_FIELDS, pagination))
            .skip(pagination.offset)
            .limit(pagination.limit)
            .to_list()
        )
        return PaginatedResult(
            data=[self._mongo_to_domain(d) for d in documents_mongo],
            total=total,
            page=pagination.page,
            limit=pagination.limit,
        )

    async def find_all(self) -> List[Document]:
        return [self._mongo_to_domain(d) for d in await DocumentMongo.find(self._scope()).to_list()]

    async def find_expired(self, now: datetime) -> List[Document]:
        query = self._scope(
            status=DocumentStatus.ACTIVE.value,
            **{"$or": [{"expires_at": {"$lte": now}}, {"retention_ends_at": {"$lte": now}}]},
        )
        return [self._mongo_to_domain(d) for d in await DocumentMongo.find(query).to_list()]

    def _domain_to_mongo(self, document: Document) -> DocumentMongo:
        """Convert domain entity to MongoDB model."""
        return DocumentMongo(
            document_id=document.id.value,
            patient_id=document.patient_id.value,
            clinic_id=document.clinic_id.value,
            file_name=document.file_name,
            file_path=document.file_path,
            mime_type=document.mime_type,
            file_size=document.file_size,
            metadata=DocumentMetadataMongo(**document.metadata.to_dict()),
            security_info=SecurityInfoMongo(**document.security_info.to_dict()),
            status=document.status.value,
            uploaded_by=document.uploaded_by.value,
            uploaded_at=document.uploaded_at,
            updated_at=document.updated_at,
            expires_at=document.expires_at,
            retention_ends_at=document.retention_ends_at(),
        )

    def _mongo_to_domain(self, document_mongo: DocumentMongo) -> Document:
        """Convert MongoDB model to domain entity."""
        metadata = document_mongo.metadata.model_dump()
        metadata["tags"] = tuple(metadata["tags"])
        return Document(
            id=DocumentId(document_mongo.document_id),
            patient_id=PatientId(document_mongo.patient_id),
            clinic_id=ClinicId(document_mongo.clinic_id),
            file_name=document_mongo.file_name,
            file_path=document_mongo.file_path,
            mime_type=document_mongo.mime_type,
            file_size=document_mongo.file_size,
            metadata=DocumentMetadata(**metadata),
            security_info=SecurityInfo(**document_mongo.security_info.model_dump()),
            uploaded_by=UserId(document_mongo.uploaded_by),
            status=DocumentStatus(document_mongo.status),
            uploaded_at=document_mongo.uploaded_at,
            updated_at=document_mongo.updated_at,
            expires_at=document_mongo.expires_at,
        )
