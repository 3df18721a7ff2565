"""
Patient request schemas.

These check structure only; business rules (CPF digits, phone format,
transitions) are enforced by the domain and reported per field.
"""

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ...application.dto.patient_dto import (
    CreatePatientRequest,
    MergeSource,
    MergeStrategy,
    UpdatePatientRequest,
)


class AddressSchema(BaseModel):
    street: str
    number: str
    complement: Optional[str] = None
    neighborhood: str
    city: str
    state: str
    zip_code: str


class PersonalInfoSchema(BaseModel):
    full_name: str
    date_of_birth: date
    gender: str
    cpf: str
    rg: Optional[str] = None


class ContactInfoSchema(BaseModel):
    primary_phone: str
    secondary_phone: Optional[str] = None
    email: Optional[str] = None
    address: AddressSchema


class EmergencyContactSchema(BaseModel):
    name: str
    phone: str
    relationship: str


class InsuranceInfoSchema(BaseModel):
    provider: Optional[str] = None
    policy_number: Optional[str] = None
    group_number: Optional[str] = None
    valid_until: Optional[date] = None


def _dump(section: Optional[BaseModel]) -> Optional[Dict[str, Any]]:
    return section.model_dump(exclude_none=True) if section is not None else None


class CreatePatientSchema(BaseModel):
    personal_info: PersonalInfoSchema
    contact_info: ContactInfoSchema
    emergency_contact: Optional[EmergencyContactSchema] = None
    insurance_info: Optional[InsuranceInfoSchema] = None
    medical_history: Optional[Dict[str, Any]] = None
    status: Optional[str] = Field(None, description="Initial status: new or active (default)")

    def to_dto(self) -> CreatePatientRequest:
        return CreatePatientRequest(
            personal_info=_dump(self.personal_info),
            contact_info=_dump(self.contact_info),
            emergency_contact=_dump(self.emergency_contact),
            insurance_info=_dump(self.insurance_info),
            medical_history=self.medical_history,
            status=self.status,
        )


class UpdatePatientSchema(BaseModel):
    personal_info: Optional[PersonalInfoSchema] = None
    contact_info: Optional[ContactInfoSchema] = None
    emergency_contact: Optional[EmergencyContactSchema] = None
    insurance_info: Optional[InsuranceInfoSchema] = None
    medical_history: Optional[Dict[str, Any]] = None

    def to_dto(self) -> UpdatePatientRequest:
        return UpdatePatientRequest(
            personal_info=_dump(self.personal_info),
            contact_info=_dump(self.contact_info),
            emergency_contact=_dump(self.emergency_contact),
            insurance_info=_dump(self.insurance_info),
            medical_history=self.medical_history,
        )


class StatusChangeSchema(BaseModel):
    status: str
    reason: Optional[str] = None


class ReasonSchema(BaseModel):
    reason: str


class MergePatientsSchema(BaseModel):
    duplicate_id: str
    personal_info: MergeSource = MergeSource.PRIMARY
    contact_info: MergeSource = MergeSource.PRIMARY
    emergency_contact: MergeSource = MergeSource.MERGE
    insurance_info: MergeSource = MergeSource.MERGE
    medical_history: MergeSource = MergeSource.MERGE

    def strategy(self) -> MergeStrategy:
        return MergeStrategy(
            personal_info=self.personal_info,
            contact_info=self.contact_info,
            emergency_contact=self.emergency_contact,
            insurance_info=self.insurance_info,
            medical_history=self.medical_history,
        )
