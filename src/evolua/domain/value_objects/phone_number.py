"""Brazilian phone number value object."""

import re
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, eq=False)
class PhoneNumber:
    """Landline (10 digits) or mobile (11 digits) number with area code.

    ``value`` holds the formatted form, e.g. ``(11) 91234-5678``.
    """

    raw: str = field(repr=False)
    value: str = field(init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.raw, str) or not self.raw.strip():
            raise ValueError("Phone number cannot be empty")

        clean = re.sub(r"[^0-9]", "", self.raw)
        if len(clean) not in (10, 11):
            raise ValueError("Phone number must have 10 or 11 digits")

        area_code = int(clean[:2])
        if area_code < 11 or area_code > 99:
            raise ValueError(f"Invalid area code: {clean[:2]}")

        if len(clean) == 11 and clean[2] != "9":
            raise ValueError("Mobile numbers must start with 9 after the area code")

        if len(clean) == 11:
            formatted = f"({clean[:2]}) {clean[2:7]}-{clean[7:]}"
        else:
            formatted = f"({clean[:2]}) {clean[2:6]}-{clean[6:]}"
        object.__setattr__(self, "value", formatted)

    def get_clean_value(self) -> str:
        return re.sub(r"[^0-9]", "", self.value)

    @property
    def area_code(self) -> str:
        return self.get_clean_value()[:2]

    def is_mobile(self) -> bool:
        return len(self.get_clean_value()) == 11

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, PhoneNumber):
            return False
        return self.get_clean_value() == other.get_clean_value()

    def __hash__(self) -> int:
        return hash(self.get_clean_value())

    def __str__(self) -> str:
        return self.value
