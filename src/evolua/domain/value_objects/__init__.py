"""
Value objects package for domain layer.
"""

from .address import Address
from .allergy import Allergy
from .assessment import Assessment
from .contact_information import ContactInformation
from .cpf import CPF
from .diagnosis import Diagnosis
from .email import Email
from .emergency_contact import EmergencyContact
from .full_name import FullName
from .gender import Gender
from .identifiers import ClinicId, DocumentId, MedicalRecordId, PatientId, UserId
from .insurance_information import InsuranceInformation
from .medication import Medication
from .patient_status import PatientStatus
from .personal_information import PersonalInformation
from .phone_number import PhoneNumber
from .progress_note import ProgressNote
from .rg import RG
from .treatment_history import TreatmentHistory

__all__ = [
    "Address",
    "Allergy",
    "Assessment",
    "CPF",
    "ClinicId",
    "ContactInformation",
    "Diagnosis",
    "DocumentId",
    "Email",
    "EmergencyContact",
    "FullName",
    "Gender",
    "InsuranceInformation",
    "MedicalRecordId",
    "Medication",
    "PatientId",
    "PatientStatus",
    "PersonalInformation",
    "PhoneNumber",
    "ProgressNote",
    "RG",
    "TreatmentHistory",
    "UserId",
]
