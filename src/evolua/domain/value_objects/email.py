"""Email address value object."""

import re
from dataclasses import dataclass

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class Email:
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("Email cannot be empty")

        normalized = self.value.strip().lower()
        if len(normalized) > 254:
            raise ValueError("Email cannot exceed 254 characters")
        if not EMAIL_PATTERN.match(normalized):
            raise ValueError(f"Invalid email format: {self.value}")

        local, domain = normalized.rsplit("@", 1)
        if len(local) > 64:
            raise ValueError("Email local part cannot exceed 64 characters")
        if len(domain) > 253:
            raise ValueError("Email domain cannot exceed 253 characters")

        object.__setattr__(self, "value", normalized)

    @property
    def domain(self) -> str:
        return self.value.rsplit("@", 1)[1]

    def __str__(self) -> str:
        return self.value
