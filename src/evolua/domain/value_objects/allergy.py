"""Allergy entry of a medical record."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ...core.utils.datetime_utils import to_datetime
from ..enums.clinical import AllergySeverity
from ..validation import FieldErrors, ensure_max_length, ensure_not_future, ensure_required


@dataclass(frozen=True)
class Allergy:
    allergen: str
    reaction: str
    severity: AllergySeverity
    diagnosed_at: datetime
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        errors = FieldErrors()
        allergen = errors.capture("allergen", ensure_required, self.allergen, "Allergen")
        errors.capture("allergen", ensure_max_length, allergen, "Allergen", 100)
        reaction = errors.capture("reaction", ensure_required, self.reaction, "Reaction")
        errors.capture("reaction", ensure_max_length, reaction, "Reaction", 200)
        severity = errors.capture("severity", AllergySeverity, self.severity)
        errors.capture("diagnosed_at", ensure_not_future, self.diagnosed_at, "Diagnosis date")
        errors.capture("notes", ensure_max_length, self.notes, "Notes", 500)
        errors.raise_if_any("Invalid allergy")

        object.__setattr__(self, "allergen", allergen)
        object.__setattr__(self, "reaction", reaction)
        object.__setattr__(self, "severity", severity)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Allergy":
        errors = FieldErrors()
        diagnosed_at = errors.build(data, "diagnosed_at", to_datetime)
        errors.raise_if_any("Invalid allergy")
        return cls(
            allergen=data.get("allergen"),
            reaction=data.get("reaction"),
            severity=data.get("severity"),
            diagnosed_at=diagnosed_at,
            notes=data.get("notes"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allergen": self.allergen,
            "reaction": self.reaction,
            "severity": self.severity.value,
            "diagnosed_at": self.diagnosed_at,
            "notes": self.notes,
        }

    def is_life_threatening(self) -> bool:
        return self.severity == AllergySeverity.LIFE_THREATENING

    def is_severe(self) -> bool:
        return self.severity in (AllergySeverity.SEVERE, AllergySeverity.LIFE_THREATENING)
