"""
Medical record repository interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ....domain.entities.medical_record import MedicalRecord
from ....domain.value_objects.identifiers import ClinicId, MedicalRecordId, PatientId


class MedicalRecordRepository(ABC):
    """Abstract repository for medical records, scoped to one clinic."""

    @property
    @abstractmethod
    def clinic_id(self) -> ClinicId:
        pass

    @abstractmethod
    async def create(self, record: MedicalRecord) -> MedicalRecord:
        pass

    @abstractmethod
    async def find_by_id(self, record_id: MedicalRecordId) -> Optional[MedicalRecord]:
        pass

    @abstractmethod
    async def find_by_patient_id(self, patient_id: PatientId) -> List[MedicalRecord]:
        """All records of a patient, oldest first."""
        pass

    @abstractmethod
    async def update(self, record: MedicalRecord) -> MedicalRecord:
        pass

    @abstractmethod
    async def delete(self, record_id: MedicalRecordId) -> bool:
        pass
