"""
Document metadata repository interface.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ....domain.entities.document import Document
from ....domain.value_objects.identifiers import ClinicId, DocumentId, PatientId
from ...dto.common import PaginatedResult, Pagination
from ...dto.document_dto import DocumentSearchCriteria


class DocumentRepository(ABC):
    """Abstract repository for document metadata, scoped to one clinic."""

    @property
    @abstractmethod
    def clinic_id(self) -> ClinicId:
        pass

    @abstractmethod
    async def create(self, document: Document) -> Document:
        pass

    @abstractmethod
    async def find_by_id(self, document_id: DocumentId) -> Optional[Document]:
        pass

    @abstractmethod
    async def update(self, document: Document) -> Document:
        pass

    @abstractmethod
    async def delete(self, document_id: DocumentId) -> bool:
        """Remove the metadata row."""
        pass

    @abstractmethod
    async def find_by_patient_id(self, patient_id: PatientId) -> List[Document]:
        pass

    @abstractmethod
    async def search(
        self, criteria: DocumentSearchCriteria, pagination: Pagination
    ) -> PaginatedResult[Document]:
        pass

    @abstractmethod
    async def find_all(self) -> List[Document]:
        """Every document of the clinic (statistics and sweeps)."""
        pass

    @abstractmethod
    async def find_expired(self, now: datetime) -> List[Document]:
        """Active documents whose expiry or retention period has passed."""
        pass
