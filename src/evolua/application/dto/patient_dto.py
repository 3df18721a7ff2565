"""Patient DTOs for application service communication."""

from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ...domain.entities.patient import Patient

PATIENT_SORT_FIELDS = ("name", "created_at", "updated_at", "status")


def section_to_dict(section: Any) -> Any:
    """Dataclass input sections become plain dicts for the domain builders."""
    if section is not None and is_dataclass(section) and not isinstance(section, type):
        return asdict(section)
    return section


@dataclass
class AddressInput:
    street: str
    number: str
    neighborhood: str
    city: str
    state: str
    zip_code: str
    complement: Optional[str] = None


@dataclass
class PersonalInfoInput:
    full_name: str
    date_of_birth: date
    gender: str
    cpf: str
    rg: Optional[str] = None


@dataclass
class ContactInfoInput:
    primary_phone: str
    address: AddressInput
    secondary_phone: Optional[str] = None
    email: Optional[str] = None


@dataclass
class EmergencyContactInput:
    name: str
    phone: str
    relationship: str


@dataclass
class InsuranceInfoInput:
    provider: Optional[str] = None
    policy_number: Optional[str] = None
    group_number: Optional[str] = None
    valid_until: Optional[date] = None


@dataclass
class CreatePatientRequest:
    """Request DTO for patient registration."""

    personal_info: Any
    contact_info: Any
    emergency_contact: Optional[Any] = None
    insurance_info: Optional[Any] = None
    medical_history: Optional[Dict[str, Any]] = None
    status: Optional[str] = None


@dataclass
class UpdatePatientRequest:
    """Partial update; only non-None sections are applied."""

    personal_info: Optional[Any] = None
    contact_info: Optional[Any] = None
    emergency_contact: Optional[Any] = None
    insurance_info: Optional[Any] = None
    medical_history: Optional[Dict[str, Any]] = None


@dataclass
class PatientSearchCriteria:
    query: Optional[str] = None
    status: Optional[str] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None


class DuplicateConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class DuplicateMatch:
    patient: Patient
    confidence: DuplicateConfidence
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.patient.id.value,
            "name": self.patient.full_name,
            "cpf": self.patient.personal_info.cpf.value,
            "confidence": self.confidence.value,
            "reasons": list(self.reasons),
        }


@dataclass
class DuplicateCheckResult:
    matches: List[DuplicateMatch] = field(default_factory=list)

    @property
    def is_duplicate(self) -> bool:
        return any(m.confidence == DuplicateConfidence.HIGH for m in self.matches)

    @property
    def high_confidence(self) -> List[DuplicateMatch]:
        return [m for m in self.matches if m.confidence == DuplicateConfidence.HIGH]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_duplicate": self.is_duplicate,
            "matches": [m.to_dict() for m in self.matches],
        }


class MergeSource(str, Enum):
    PRIMARY = "primary"
    DUPLICATE = "duplicate"
    MERGE = "merge"


@dataclass
class MergeStrategy:
    """Where each section of the merged patient comes from.

    ``merge`` keeps the primary's value and fills gaps from the duplicate;
    for ``medical_history`` it combines both dicts.
    """

    personal_info: MergeSource = MergeSource.PRIMARY
    contact_info: MergeSource = MergeSource.PRIMARY
    emergency_contact: MergeSource = MergeSource.MERGE
    insurance_info: MergeSource = MergeSource.MERGE
    medical_history: MergeSource = MergeSource.MERGE
