"""Clinical assessment (e.g. speech or language evaluation) of a patient."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from ...core.utils.datetime_utils import to_datetime
from ..validation import FieldErrors, ensure_max_length, ensure_not_future, ensure_required
from .identifiers import UserId

MAX_FINDINGS_LENGTH = 1000
MAX_RECOMMENDATION_LENGTH = 200


@dataclass(frozen=True)
class Assessment:
    type: str
    findings: str
    recommendations: Tuple[str, ...]
    date: datetime
    assessed_by: UserId
    results: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        errors = FieldErrors()
        assessment_type = errors.capture("type", ensure_required, self.type, "Assessment type")
        findings = errors.capture("findings", ensure_required, self.findings, "Findings")
        errors.capture("findings", ensure_max_length, findings, "Findings", MAX_FINDINGS_LENGTH)

        recommendations = tuple(r.strip() for r in (self.recommendations or ()) if r and r.strip())
        if not recommendations:
            errors.add("recommendations", "At least one recommendation is required")
        for index, recommendation in enumerate(recommendations):
            errors.capture(
                f"recommendations[{index}]",
                ensure_max_length,
                recommendation,
                "Recommendation",
                MAX_RECOMMENDATION_LENGTH,
            )
        errors.capture("date", ensure_not_future, self.date, "Assessment date")
        if not isinstance(self.assessed_by, UserId):
            errors.add("assessed_by", "Assessor is required")
        errors.raise_if_any("Invalid assessment")

        object.__setattr__(self, "type", assessment_type)
        object.__setattr__(self, "findings", findings)
        object.__setattr__(self, "recommendations", recommendations)
        object.__setattr__(self, "results", dict(self.results or {}))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], assessed_by: Optional[UserId] = None) -> "Assessment":
        errors = FieldErrors()
        date = errors.build(data, "date", to_datetime)
        assessor = assessed_by or errors.build(data, "assessed_by", UserId)
        errors.raise_if_any("Invalid assessment")
        kwargs: Dict[str, Any] = {}
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(
            type=data.get("type"),
            findings=data.get("findings"),
            recommendations=tuple(data.get("recommendations") or ()),
            date=date,
            assessed_by=assessor,
            results=data.get("results") or {},
            **kwargs,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "findings": self.findings,
            "results": dict(self.results),
            "recommendations": list(self.recommendations),
            "date": self.date,
            "assessed_by": self.assessed_by.value,
        }
