"""
Identifier value objects for type-safe references between aggregates.

Identifiers are opaque: any non-empty string supplied by the caller is
accepted, and ``generate`` is only used by application services when a
new aggregate is created.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Type, TypeVar

T = TypeVar("T", bound="EntityId")


@dataclass(frozen=True, eq=False)
class EntityId:
    """Immutable opaque identifier."""

    value: str

    def __post_init__(self) -> None:
        """Validate identifier."""
        if not isinstance(self.value, str):
            raise ValueError(f"{self._label()} must be a string")

        stripped = self.value.strip()
        if not stripped:
            raise ValueError(f"{self._label()} cannot be empty")
        object.__setattr__(self, "value", stripped)

    @classmethod
    def _label(cls) -> str:
        return getattr(cls, "label", cls.__name__)

    def __str__(self) -> str:
        """String representation."""
        return self.value

    def __eq__(self, other: Any) -> bool:
        """Equality comparison."""
        if type(other) is not type(self):
            return False
        return self.value == other.value

    def __hash__(self) -> int:
        """Hash for use in sets and dictionaries."""
        return hash((type(self).__name__, self.value))

    @classmethod
    def generate(cls: Type[T]) -> T:
        """Generate a new random identifier."""
        return cls(str(uuid.uuid4()))


class PatientId(EntityId):
    label = "Patient ID"


class UserId(EntityId):
    label = "User ID"


class ClinicId(EntityId):
    label = "Clinic ID"


class MedicalRecordId(EntityId):
    label = "Medical record ID"


class DocumentId(EntityId):
    label = "Document ID"
