"""
MongoDB Beanie models for the patient aggregate.

Value-object sections are stored as embedded sub-documents; a few
flattened fields (``cpf``, ``full_name_lower``, ``date_of_birth`` ...)
exist only to back indexes and search queries.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from beanie import Document
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING, IndexModel


class AddressMongo(BaseModel):
    street: str
    number: str
    neighborhood: str
    city: str
    state: str
    zip_code: str
    complement: Optional[str] = None


class PersonalInfoMongo(BaseModel):
    full_name: str
    date_of_birth: str = Field(..., description="ISO date (YYYY-MM-DD)")
    gender: str
    cpf: str
    rg: Optional[str] = None


class ContactInfoMongo(BaseModel):
    primary_phone: str
    secondary_phone: Optional[str] = None
    email: Optional[str] = None
    address: AddressMongo


class EmergencyContactMongo(BaseModel):
    name: str
    phone: str
    relationship: str


class InsuranceInfoMongo(BaseModel):
    provider: Optional[str] = None
    policy_number: Optional[str] = None
    group_number: Optional[str] = None
    valid_until: Optional[str] = None


class StatusChangeMongo(BaseModel):
    from_status: Optional[str] = None
    to_status: str
    changed_at: datetime
    changed_by: Optional[str] = None
    reason: Optional[str] = None


class PatientMongo(Document):
    """MongoDB model for the Patient aggregate."""

    patient_id: str = Field(..., description="Patient ID")
    clinic_id: str = Field(..., description="Owning clinic")
    personal_info: PersonalInfoMongo
    contact_info: ContactInfoMongo
    emergency_contact: Optional[EmergencyContactMongo] = None
    insurance_info: Optional[InsuranceInfoMongo] = None
    medical_history: Dict[str, Any] = Field(default_factory=dict)
    status: str = Field(default="active", description="new, active, on_hold, discharged, inactive")
    discharge_date: Optional[datetime] = None
    discharge_reason: Optional[str] = None
    status_history: List[StatusChangeMongo] = Field(default_factory=list)
    created_by: Optional[str] = None

    # Search fields
    cpf: str = Field(..., description="CPF digits only")
    full_name_lower: str = Field(..., description="Case-folded full name")
    date_of_birth: datetime = Field(..., description="Birth date at midnight UTC")
    email: Optional[str] = None
    phone_digits: List[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "patients"
        indexes = [
            IndexModel([("clinic_id", ASCENDING), ("patient_id", ASCENDING)], unique=True),
            # One CPF per clinic
            IndexModel([("clinic_id", ASCENDING), ("cpf", ASCENDING)], unique=True),
            IndexModel([("clinic_id", ASCENDING), ("full_name_lower", ASCENDING)]),
            IndexModel([("clinic_id", ASCENDING), ("date_of_birth", ASCENDING)]),
            IndexModel([("clinic_id", ASCENDING), ("status", ASCENDING)]),
            IndexModel([("clinic_id", ASCENDING), ("created_at", DESCENDING)]),
        ]
