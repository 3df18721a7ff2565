"""
MongoDB implementation of PatientRepository.
"""

import re
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from .....application.dto.common import PaginatedResult, Pagination
from .....application.ports.repositories.patient_repo import PatientFilter, PatientRepository
from .....core.utils.datetime_utils import to_date
from .....domain.entities.patient import Patient, StatusChange
from .....domain.errors import DuplicatePatientError
from .....domain.value_objects.contact_information import ContactInformation
from .....domain.value_objects.cpf import CPF
from .....domain.value_objects.emergency_contact import EmergencyContact
from .....domain.value_objects.identifiers import ClinicId, PatientId, UserId
from .....domain.value_objects.insurance_information import InsuranceInformation
from .....domain.value_objects.patient_status import PatientStatus
from .....domain.value_objects.personal_information import PersonalInformation
from ..models.patient_m import (
    ContactInfoMongo,
    EmergencyContactMongo,
    InsuranceInfoMongo,
    PatientMongo,
    PersonalInfoMongo,
    StatusChangeMongo,
)

SORT_FIELDS = {
    "name": "full_name_lower",
    "created_at": "created_at",
    "updated_at": "updated_at",
    "status": "status",
}


def _midnight(value: date) -> datetime:
    return datetime.combine(value, time.min)


def sort_spec(fields: Dict[str, str], pagination: Pagination) -> str:
    """Beanie sort expression such as ``-created_at``."""
    prefix = "-" if pagination.descending else "+"
    return prefix + fields[pagination.sort_by]


class MongoPatientRepository(PatientRepository):
    """MongoDB implementation of PatientRepository bound to one clinic."""

    def __init__(self, clinic_id: ClinicId):
        self._clinic_id = clinic_id

    @property
    def clinic_id(self) -> ClinicId:
        return self._clinic_id

    def _scope(self, **criteria: Any) -> Dict[str, Any]:
        return {"clinic_id": self._clinic_id.value, **criteria}

    async def create(self, patient: Patient) -> Patient:
        patient_mongo = self._domain_to_mongo(patient)
        try:
            await patient_mongo.insert()
        except DuplicateKeyError:
            await self._raise_duplicate(patient)
            raise
        return patient

    async def find_by_id(self, patient_id: PatientId) -> Optional[Patient]:
        patient_mongo = await PatientMongo.find_one(self._scope(patient_id=patient_id.value))
        if not patient_mongo:
            return None
        return self._mongo_to_domain(patient_mongo)

    async def update(self, patient: Patient) -> Patient:
        existing = await PatientMongo.find_one(self._scope(patient_id=patient.id.value))
        patient_mongo = self._domain_to_mongo(patient)
        if existing is None:
            await patient_mongo.insert()
            return patient
        patient_mongo.id = existing.id
        try:
            await patient_mongo.replace()
        except DuplicateKeyError:
            await self._raise_duplicate(patient)
            raise
        return patient

    async def delete(self, patient_id: PatientId) -> bool:
        result = await PatientMongo.find(self._scope(patient_id=patient_id.value)).delete()
        return bool(result and result.deleted_count)

    async def find_by_cpf(self, cpf: CPF) -> Optional[Patient]:
        patient_mongo = await PatientMongo.find_one(self._scope(cpf=cpf.get_clean_value()))
        if not patient_mongo:
            return None
        return self._mongo_to_domain(patient_mongo)

    async def find_potential_duplicates(
        self, cpf: CPF, full_name: str, date_of_birth: date
    ) -> List[Patient]:
        query = self._scope(
            **{"$or": [{"cpf": cpf.get_clean_value()}, {"date_of_birth": _midnight(date_of_birth)}]}
        )
        return [self._mongo_to_domain(p) for p in await PatientMongo.find(query).to_list()]

    async def search(self, patient_filter: PatientFilter, pagination: Pagination) -> PaginatedResult[Patient]:
        query = self._build_query(patient_filter)
        return await self._page(query, pagination)

    async def find_by_clinic(self, pagination: Pagination) -> PaginatedResult[Patient]:
        return await self._page(self._scope(), pagination)

    async def _page(self, query: Dict[str, Any], pagination: Pagination) -> PaginatedResult[Patient]:
        total = await PatientMongo.find(query).count()
        patients_mongo = (
            await PatientMongo.find(query)
            .sort(sort_spec(SORT_FIELDS, pagination))
            .skip(pagination.offset)
            .limit(pagination.limit)
            .to_list()
        )
        return PaginatedResult(
            data=[self._mongo_to_domain(p) for p in patients_mongo],
            total=total,
            page=pagination.page,
            limit=pagination.limit,
        )

    def _build_query(self, f: PatientFilter) -> Dict[str, Any]:
        query = self._scope()
        if f.query:
            text = re.escape(f.query.strip().casefold())
            alternatives: List[Dict[str, Any]] = [
                {"full_name_lower": {"$regex": text}},
                {"email": {"$regex": text}},
            ]
            digits = re.sub(r"[^0-9]", "", f.query)
            if digits:
                alternatives.append({"cpf": {"$regex": digits}})
                alternatives.append({"phone_digits": {"$regex": digits}})
            query["$or"] = alternatives
        if f.status:
            query["status"] = f.status
        dob: Dict[str, Any] = {}
        if f.born_on_or_after:
            dob["$gte"] = _midnight(f.born_on_or_after)
        if f.born_on_or_before:
            dob["$lte"] = _midnight(f.born_on_or_before)
        if dob:
            query["date_of_birth"] = dob
        created: Dict[str, Any] = {}
        if f.created_after:
            created["$gte"] = f.created_after
        if f.created_before:
            created["$lte"] = f.created_before
        if created:
            query["created_at"] = created
        return query

    async def _raise_duplicate(self, patient: Patient) -> None:
        existing = await self.find_by_cpf(patient.personal_info.cpf)
        if existing is not None and existing.id != patient.id:
            raise DuplicatePatientError(
                [{"id": existing.id.value, "name": existing.full_name,
                  "cpf": existing.personal_info.cpf.value}]
            )

    def _domain_to_mongo(self, patient: Patient) -> PatientMongo:
        """Convert domain entity to MongoDB model."""
        contact = patient.contact_info
        phones = [p.get_clean_value() for p in (contact.primary_phone, contact.secondary_phone) if p]
        return PatientMongo(
            patient_id=patient.id.value,
            clinic_id=patient.clinic_id.value,
            personal_info=PersonalInfoMongo(**patient.personal_info.to_dict()),
            contact_info=ContactInfoMongo(**contact.to_dict()),
            emergency_contact=(
                EmergencyContactMongo(**patient.emergency_contact.to_dict())
                if patient.emergency_contact else None
            ),
            insurance_info=(
                InsuranceInfoMongo(**patient.insurance_info.to_dict())
                if patient.insurance_info else None
            ),
            medical_history=dict(patient.medical_history),
            status=patient.status.value,
            discharge_date=patient.discharge_date,
            discharge_reason=patient.discharge_reason,
            status_history=[StatusChangeMongo(**c.to_dict()) for c in patient.status_history],
            created_by=patient.created_by.value if patient.created_by else None,
            cpf=patient.personal_info.cpf.get_clean_value(),
            full_name_lower=patient.full_name.casefold(),
            date_of_birth=_midnight(patient.personal_info.date_of_birth),
            email=contact.email.value if contact.email else None,
            phone_digits=phones,
            created_at=patient.created_at,
            updated_at=patient.updated_at,
        )

    def _mongo_to_domain(self, patient_mongo: PatientMongo) -> Patient:
        """Convert MongoDB model to domain entity."""
        insurance = None
        if patient_mongo.insurance_info is not None:
            data = patient_mongo.insurance_info
            # Built directly: stored policies are allowed to have expired.
            insurance = InsuranceInformation(
                provider=data.provider,
                policy_number=data.policy_number,
                group_number=data.group_number,
                valid_until=to_date(data.valid_until) if data.valid_until else None,
            )
        emergency = None
        if patient_mongo.emergency_contact is not None:
            emergency = EmergencyContact.from_dict(patient_mongo.emergency_contact.model_dump())
        return Patient(
            id=PatientId(patient_mongo.patient_id),
            clinic_id=ClinicId(patient_mongo.clinic_id),
            personal_info=PersonalInformation.from_dict(patient_mongo.personal_info.model_dump()),
            contact_info=ContactInformation.from_dict(patient_mongo.contact_info.model_dump()),
            status=PatientStatus(patient_mongo.status),
            emergency_contact=emergency,
            insurance_info=insurance,
            medical_history=dict(patient_mongo.medical_history or {}),
            discharge_date=patient_mongo.discharge_date,
            discharge_reason=patient_mongo.discharge_reason,
            status_history=[StatusChange(**h.model_dump()) for h in patient_mongo.status_history],
            created_by=UserId(patient_mongo.created_by) if patient_mongo.created_by else None,
            created_at=patient_mongo.created_at,
            updated_at=patient_mongo.updated_at,
        )
