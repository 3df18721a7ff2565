"""
In-memory implementations of the repository ports.

All clinics share one ``InMemoryStore``; each repository is bound to a
single clinic and only ever sees that clinic's rows. Aggregates are
deep-copied on the way in and out so callers must go through ``update``
for changes to stick.
"""

import copy
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from ....application.dto.common import PaginatedResult, Pagination
from ....application.dto.document_dto import DocumentSearchCriteria
from ....application.ports.repositories.document_repo import DocumentRepository
from ....application.ports.repositories.medical_record_repo import MedicalRecordRepository
from ....application.ports.repositories.patient_repo import PatientFilter, PatientRepository
from ....domain.entities.document import Document
from ....domain.entities.medical_record import MedicalRecord
from ....domain.entities.patient import Patient
from ....domain.enums.document import DocumentStatus
from ....domain.errors import DuplicatePatientError
from ....domain.value_objects.cpf import CPF
from ....domain.value_objects.identifiers import ClinicId, DocumentId, MedicalRecordId, PatientId


class InMemoryStore:
    """Process-local tables keyed by (clinic_id, aggregate_id)."""

    def __init__(self) -> None:
        self.patients: Dict[Tuple[str, str], Patient] = {}
        self.medical_records: Dict[Tuple[str, str], MedicalRecord] = {}
        self.documents: Dict[Tuple[str, str], Document] = {}

    def clear(self) -> None:
        self.patients.clear()
        self.medical_records.clear()
        self.documents.clear()


def _sort(items: List[Any], key: Callable[[Any], Any], pagination: Pagination) -> List[Any]:
    return sorted(items, key=key, reverse=pagination.descending)


class _ClinicScoped:
    def __init__(self, store: InMemoryStore, clinic_id: ClinicId) -> None:
        self._store = store
        self._clinic_id = clinic_id

    @property
    def clinic_id(self) -> ClinicId:
        return self._clinic_id

    def _key(self, entity_id: Any) -> Tuple[str, str]:
        return (self._clinic_id.value, entity_id.value)

    def _rows(self, table: Dict[Tuple[str, str], Any]) -> List[Any]:
        return [copy.deepcopy(v) for (clinic, _), v in table.items() if clinic == self._clinic_id.value]


PATIENT_SORT_KEYS: Dict[str, Callable[[Patient], Any]] = {
    "name": lambda p: p.full_name.casefold(),
    "created_at": lambda p: p.created_at,
    "updated_at": lambda p: p.updated_at,
    "status": lambda p: p.status.value,
}


def _patient_matches_query(patient: Patient, query: str) -> bool:
    needle = query.casefold()
    digits = re.sub(r"[^0-9]", "", query)
    if needle in patient.full_name.casefold():
        return True
    email = patient.contact_info.email
    if email is not None and needle in email.value:
        return True
    if digits:
        phones = [patient.contact_info.primary_phone, patient.contact_info.secondary_phone]
        if any(p is not None and digits in p.get_clean_value() for p in phones):
            return True
        if digits in patient.personal_info.cpf.get_clean_value():
            return True
    return False


class InMemoryPatientRepository(_ClinicScoped, PatientRepository):
    def __init__(self, store: InMemoryStore, clinic_id: ClinicId) -> None:
        super().__init__(store, clinic_id)

    async def create(self, patient: Patient) -> Patient:
        # Mirrors the (clinic_id, cpf) unique index of the MongoDB adapter.
        existing = await self.find_by_cpf(patient.personal_info.cpf)
        if existing is not None:
            raise DuplicatePatientError(
                [{"id": existing.id.value, "name": existing.full_name,
                  "cpf": existing.personal_info.cpf.value}]
            )
        self._store.patients[self._key(patient.id)] = copy.deepcopy(patient)
        return copy.deepcopy(patient)

    async def find_by_id(self, patient_id: PatientId) -> Optional[Patient]:
        patient = self._store.patients.get(self._key(patient_id))
        return copy.deepcopy(patient) if patient is not None else None

    async def update(self, patient: Patient) -> Patient:
        self._store.patients[self._key(patient.id)] = copy.deepcopy(patient)
        return copy.deepcopy(patient)

    async def delete(self, patient_id: PatientId) -> bool:
        return self._store.patients.pop(self._key(patient_id), None) is not None

    async def find_by_cpf(self, cpf: CPF) -> Optional[Patient]:
        for patient in self._rows(self._store.patients):
            if patient.personal_info.cpf == cpf:
                return patient
        return None

    async def find_potential_duplicates(self, cpf, full_name, date_of_birth) -> List[Patient]:
        return [
            p
            for p in self._rows(self._store.patients)
            if p.personal_info.cpf == cpf or p.personal_info.date_of_birth == date_of_birth
        ]

    async def search(self, patient_filter: PatientFilter, pagination: Pagination) -> PaginatedResult[Patient]:
        f = patient_filter
        results = []
        for p in self._rows(self._store.patients):
            dob = p.personal_info.date_of_birth
            if f.query and not _patient_matches_query(p, f.query):
                continue
            if f.status and p.status.value != f.status:
                continue
            if f.born_on_or_after and dob < f.born_on_or_after:
                continue
            if f.born_on_or_before and dob > f.born_on_or_before:
                continue
            if f.created_after and p.created_at < f.created_after:
                continue
            if f.created_before and p.created_at > f.created_before:
                continue
            results.append(p)
        ordered = _sort(results, PATIENT_SORT_KEYS[pagination.sort_by], pagination)
        return PaginatedResult.from_list(ordered, pagination)

    async def find_by_clinic(self, pagination: Pagination) -> PaginatedResult[Patient]:
        ordered = _sort(self._rows(self._store.patients), PATIENT_SORT_KEYS[pagination.sort_by], pagination)
        return PaginatedResult.from_list(ordered, pagination)


class InMemoryMedicalRecordRepository(_ClinicScoped, MedicalRecordRepository):
    def __init__(self, store: InMemoryStore, clinic_id: ClinicId) -> None:
        super().__init__(store, clinic_id)

    async def create(self, record: MedicalRecord) -> MedicalRecord:
        self._store.medical_records[self._key(record.id)] = copy.deepcopy(record)
        return copy.deepcopy(record)

    async def find_by_id(self, record_id: MedicalRecordId) -> Optional[MedicalRecord]:
        record = self._store.medical_records.get(self._key(record_id))
        return copy.deepcopy(record) if record is not None else None

    async def find_by_patient_id(self, patient_id: PatientId) -> List[MedicalRecord]:
        records = [r for r in self._rows(self._store.medical_records) if r.patient_id == patient_id]
        return sorted(records, key=lambda r: r.created_at)

    async def update(self, record: MedicalRecord) -> MedicalRecord:
        self._store.medical_records[self._key(record.id)] = copy.deepcopy(record)
        return copy.deepcopy(record)

    async def delete(self, record_id: MedicalRecordId) -> bool:
        return self._store.medical_records.pop(self._key(record_id), None) is not None


DOCUMENT_SORT_KEYS: Dict[str, Callable[[Document], Any]] = {
    "uploaded_at": lambda d: d.uploaded_at,
    "updated_at": lambda d: d.updated_at,
    "title": lambda d: d.metadata.title.casefold(),
    "name": lambda d: d.file_name.casefold(),
    "file_size": lambda d: d.file_size,
}


class InMemoryDocumentRepository(_ClinicScoped, DocumentRepository):
    def __init__(self, store: InMemoryStore, clinic_id: ClinicId) -> None:
        super().__init__(store, clinic_id)

    async def create(self, document: Document) -> Document:
        self._store.documents[self._key(document.id)] = copy.deepcopy(document)
        return copy.deepcopy(document)

    async def find_by_id(self, document_id: DocumentId) -> Optional[Document]:
        document = self._store.documents.get(self._key(document_id))
        return copy.deepcopy(document) if document is not None else None

    async def update(self, document: Document) -> Document:
        self._store.documents[self._key(document.id)] = copy.deepcopy(document)
        return copy.deepcopy(document)

    async def delete(self, document_id: DocumentId) -> bool:
        return self._store.documents.pop(self._key(document_id), None) is not None

    async def find_by_patient_id(self, patient_id: PatientId) -> List[Document]:
        return [d for d in self._rows(self._store.documents) if d.patient_id == patient_id]

    async def search(self, criteria: DocumentSearchCriteria, pagination: Pagination) -> PaginatedResult[Document]:
        results = []
        for d in self._rows(self._store.documents):
            if criteria.patient_id and d.patient_id.value != criteria.patient_id:
                continue
            if criteria.document_type and d.metadata.document_type.value != criteria.document_type:
                continue
            if criteria.status and d.status.value != criteria.status:
                continue
            if criteria.query and not d.matches_query(criteria.query):
                continue
            results.append(d)
        ordered = _sort(results, DOCUMENT_SORT_KEYS[pagination.sort_by], pagination)
        return PaginatedResult.from_list(ordered, pagination)

    async def find_all(self) -> List[Document]:
        return self._rows(self._store.documents)

    async def find_expired(self, now: datetime) -> List[Document]:
        return [
            d
            for d in self._rows(self._store.documents)
            if d.status == DocumentStatus.ACTIVE and d.should_be_archived(now)
        ]
