"""Treatment plan entry kept in a medical record's treatment history."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from ...core.utils.datetime_utils import to_datetime, utc_now
from ..enums.clinical import TreatmentStatus
from ..validation import FieldErrors, ensure_max_length, ensure_required

MAX_DESCRIPTION_LENGTH = 1000


@dataclass(frozen=True)
class TreatmentHistory:
    description: str
    start_date: datetime
    goals: Tuple[str, ...]
    status: TreatmentStatus = TreatmentStatus.IN_PROGRESS
    end_date: Optional[datetime] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    recorded_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        errors = FieldErrors()
        description = errors.capture("description", ensure_required, self.description, "Description")
        errors.capture("description", ensure_max_length, description, "Description", MAX_DESCRIPTION_LENGTH)
        if self.start_date is None:
            errors.add("start_date", "Start date is required")
        elif self.end_date is not None and self.end_date < self.start_date:
            errors.add("end_date", "End date must be on or after start date")
        goals = tuple(g.strip() for g in (self.goals or ()) if g and g.strip())
        if not goals:
            errors.add("goals", "At least one treatment goal is required")
        status = errors.capture("status", TreatmentStatus, self.status)
        errors.raise_if_any("Invalid treatment")

        object.__setattr__(self, "description", description)
        object.__setattr__(self, "goals", goals)
        object.__setattr__(self, "status", status)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TreatmentHistory":
        errors = FieldErrors()
        start_date = errors.build(data, "start_date", to_datetime)
        end_date = errors.build(data, "end_date", to_datetime, required=False)
        errors.raise_if_any("Invalid treatment")
        kwargs: Dict[str, Any] = {}
        if data.get("id"):
            kwargs["id"] = data["id"]
        if data.get("recorded_at"):
            kwargs["recorded_at"] = to_datetime(data["recorded_at"])
        return cls(
            description=data.get("description"),
            start_date=start_date,
            goals=tuple(data.get("goals") or ()),
            status=data.get("status") or TreatmentStatus.IN_PROGRESS,
            end_date=end_date,
            **kwargs,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "status": self.status.value,
            "goals": list(self.goals),
            "recorded_at": self.recorded_at,
        }

    def is_active(self, now: Optional[datetime] = None) -> bool:
        if self.status in (TreatmentStatus.COMPLETED, TreatmentStatus.DISCONTINUED):
            return False
        return self.end_date is None or self.end_date > (now or utc_now())

    def duration_days(self, now: Optional[datetime] = None) -> int:
        end = self.end_date or now or utc_now()
        return (end - self.start_date).days
