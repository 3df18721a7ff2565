"""
Patient repository interface for data access abstraction.

Implementations are bound to one clinic at construction time and must
scope every read and write to that clinic.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from ....domain.entities.patient import Patient
from ....domain.value_objects.cpf import CPF
from ....domain.value_objects.identifiers import ClinicId, PatientId
from ...dto.common import PaginatedResult, Pagination


@dataclass
class PatientFilter:
    """Search filter with ages already translated into birth-date bounds."""

    query: Optional[str] = None
    status: Optional[str] = None
    born_on_or_after: Optional[date] = None
    born_on_or_before: Optional[date] = None
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None


class PatientRepository(ABC):
    """Abstract repository for patient data access."""

    @property
    @abstractmethod
    def clinic_id(self) -> ClinicId:
        """Clinic this repository is bound to."""
        pass

    @abstractmethod
    async def create(self, patient: Patient) -> Patient:
        """Insert a new patient."""
        pass

    @abstractmethod
    async def find_by_id(self, patient_id: PatientId) -> Optional[Patient]:
        """Find a patient by ID."""
        pass

    @abstractmethod
    async def update(self, patient: Patient) -> Patient:
        """Persist changes to an existing patient."""
        pass

    @abstractmethod
    async def delete(self, patient_id: PatientId) -> bool:
        """Delete a patient by ID."""
        pass

    @abstractmethod
    async def find_by_cpf(self, cpf: CPF) -> Optional[Patient]:
        """Find the patient holding this CPF."""
        pass

    @abstractmethod
    async def find_potential_duplicates(
        self, cpf: CPF, full_name: str, date_of_birth: date
    ) -> List[Patient]:
        """Patients sharing the CPF or the date of birth."""
        pass

    @abstractmethod
    async def search(
        self, patient_filter: PatientFilter, pagination: Pagination
    ) -> PaginatedResult[Patient]:
        """Filtered, sorted and paginated search."""
        pass

    @abstractmethod
    async def find_by_clinic(self, pagination: Pagination) -> PaginatedResult[Patient]:
        """All patients of the bound clinic."""
        pass
