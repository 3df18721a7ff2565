"""Health insurance section of the patient aggregate."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Mapping, Optional

from ...core.utils.datetime_utils import to_date, today
from ..validation import FieldErrors


@dataclass(frozen=True)
class InsuranceInformation:
    """Insurance plan details; every field is optional but a provider is
    mandatory as soon as any other detail is given.

    The "not already expired" rule only applies to new input
    (``from_dict``); stored records are allowed to expire.
    """

    provider: Optional[str] = None
    policy_number: Optional[str] = None
    group_number: Optional[str] = None
    valid_until: Optional[date] = None

    def __post_init__(self) -> None:
        for name in ("provider", "policy_number", "group_number"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, value.strip() or None)
        if self.valid_until is not None:
            object.__setattr__(self, "valid_until", to_date(self.valid_until))

        has_details = any([self.policy_number, self.group_number, self.valid_until])
        if has_details and not self.provider:
            raise ValueError("Insurance provider is required when insurance details are given")

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], reference: Optional[date] = None
    ) -> "InsuranceInformation":
        errors = FieldErrors()
        valid_until = errors.build(data, "valid_until", to_date, required=False)
        if valid_until is not None and valid_until < (reference or today()):
            errors.add("valid_until", "Insurance validity date cannot be in the past")
        has_details = any(data.get(k) for k in ("policy_number", "group_number", "valid_until"))
        if has_details and not (data.get("provider") or "").strip():
            errors.add("provider", "Insurance provider is required when insurance details are given")
        errors.raise_if_any("Invalid insurance information")
        return cls(
            provider=data.get("provider"),
            policy_number=data.get("policy_number"),
            group_number=data.get("group_number"),
            valid_until=valid_until,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "policy_number": self.policy_number,
            "group_number": self.group_number,
            "valid_until": self.valid_until.isoformat() if self.valid_until else None,
        }

    def has_insurance(self) -> bool:
        return bool(self.provider)

    def is_expired(self, reference: Optional[date] = None) -> bool:
        if self.valid_until is None:
            return False
        return self.valid_until < (reference or today())

    def days_until_expiration(self, reference: Optional[date] = None) -> Optional[int]:
        if self.valid_until is None:
            return None
        return (self.valid_until - (reference or today())).days
