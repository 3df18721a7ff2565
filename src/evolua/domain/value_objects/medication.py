"""Medication entry of a medical record."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ...core.utils.datetime_utils import to_datetime, utc_now
from ..validation import FieldErrors, ensure_max_length, ensure_not_future, ensure_required

MAX_NOTES_LENGTH = 500


@dataclass(frozen=True)
class Medication:
    name: str
    dosage: str
    frequency: str
    start_date: datetime
    prescribed_by: str
    end_date: Optional[datetime] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        errors = FieldErrors()
        for field_name, label in (
            ("name", "Medication name"),
            ("dosage", "Dosage"),
            ("frequency", "Frequency"),
            ("prescribed_by", "Prescriber"),
        ):
            value = errors.capture(field_name, ensure_required, getattr(self, field_name), label)
            if value is not None:
                object.__setattr__(self, field_name, value)
        errors.capture("start_date", ensure_not_future, self.start_date, "Start date")
        if self.end_date is not None and self.start_date is not None and self.end_date < self.start_date:
            errors.add("end_date", "End date must be on or after start date")
        errors.capture("notes", ensure_max_length, self.notes, "Notes", MAX_NOTES_LENGTH)
        errors.raise_if_any("Invalid medication")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Medication":
        errors = FieldErrors()
        start_date = errors.build(data, "start_date", to_datetime)
        end_date = errors.build(data, "end_date", to_datetime, required=False)
        errors.raise_if_any("Invalid medication")
        return cls(
            name=data.get("name"),
            dosage=data.get("dosage"),
            frequency=data.get("frequency"),
            start_date=start_date,
            prescribed_by=data.get("prescribed_by"),
            end_date=end_date,
            notes=data.get("notes"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "prescribed_by": self.prescribed_by,
            "notes": self.notes,
        }

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Active while there is no end date or the end date is still ahead."""
        return self.end_date is None or self.end_date > (now or utc_now())
