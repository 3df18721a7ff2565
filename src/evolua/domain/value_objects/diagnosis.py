"""Diagnosis entry of a medical record."""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping

from ...core.utils.datetime_utils import to_datetime
from ..enums.clinical import DiagnosisSeverity
from ..validation import FieldErrors, ensure_max_length, ensure_not_future, ensure_required

ICD10_PATTERN = re.compile(r"^[A-Z][0-9]{2}(\.[0-9]{1,2})?$")
MAX_DESCRIPTION_LENGTH = 500


@dataclass(frozen=True)
class Diagnosis:
    code: str
    description: str
    diagnosed_at: datetime
    severity: DiagnosisSeverity = DiagnosisSeverity.UNKNOWN

    def __post_init__(self) -> None:
        errors = FieldErrors()
        code = errors.capture("code", ensure_required, self.code, "Diagnosis code")
        description = errors.capture(
            "description", ensure_required, self.description, "Diagnosis description"
        )
        errors.capture("description", ensure_max_length, description, "Diagnosis description", MAX_DESCRIPTION_LENGTH)
        errors.capture("diagnosed_at", ensure_not_future, self.diagnosed_at, "Diagnosis date")
        severity = errors.capture("severity", DiagnosisSeverity, self.severity)
        errors.raise_if_any("Invalid diagnosis")

        object.__setattr__(self, "code", code.upper())
        object.__setattr__(self, "description", description)
        object.__setattr__(self, "severity", severity)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Diagnosis":
        errors = FieldErrors()
        diagnosed_at = errors.build(data, "diagnosed_at", to_datetime)
        errors.raise_if_any("Invalid diagnosis")
        return cls(
            code=data.get("code"),
            description=data.get("description"),
            diagnosed_at=diagnosed_at,
            severity=data.get("severity") or DiagnosisSeverity.UNKNOWN,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "description": self.description,
            "diagnosed_at": self.diagnosed_at,
            "severity": self.severity.value,
        }

    def has_standard_code(self) -> bool:
        """Whether the code follows the ICD-10 layout (e.g. ``F80.1``)."""
        return bool(ICD10_PATTERN.match(self.code))
