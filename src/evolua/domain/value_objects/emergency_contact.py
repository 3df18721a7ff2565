"""Emergency contact section of the patient aggregate."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..validation import FieldErrors
from .full_name import FullName
from .phone_number import PhoneNumber

MAX_RELATIONSHIP_LENGTH = 50


def _relationship(value: str) -> str:
    value = value.strip()
    if len(value) > MAX_RELATIONSHIP_LENGTH:
        raise ValueError(f"Relationship cannot exceed {MAX_RELATIONSHIP_LENGTH} characters")
    return value


@dataclass(frozen=True)
class EmergencyContact:
    name: FullName
    phone: PhoneNumber
    relationship: str

    def __post_init__(self) -> None:
        if not self.relationship or not self.relationship.strip():
            raise ValueError("Relationship is required")
        object.__setattr__(self, "relationship", _relationship(self.relationship))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmergencyContact":
        errors = FieldErrors()
        name = errors.build(data, "name", FullName)
        phone = errors.build(data, "phone", PhoneNumber)
        relationship = errors.build(data, "relationship", _relationship)
        errors.raise_if_any("Invalid emergency contact")
        return cls(name=name, phone=phone, relationship=relationship)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "phone": self.phone.value,
            "relationship": self.relationship,
        }
