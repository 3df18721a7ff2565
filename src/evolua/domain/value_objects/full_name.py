"""Full name value object with Brazilian name normalization."""

import re
from dataclasses import dataclass
from typing import List

LOWERCASE_PARTICLES = frozenset({"de", "da", "do", "das", "dos", "e"})

MIN_LENGTH = 2
MAX_LENGTH = 255


def _normalize(name: str) -> str:
    words = re.split(r"\s+", name.strip())
    normalized = []
    for index, word in enumerate(words):
        lower = word.lower()
        if index > 0 and lower in LOWERCASE_PARTICLES:
            normalized.append(lower)
        else:
            normalized.append(lower[:1].upper() + lower[1:])
    return " ".join(normalized)


@dataclass(frozen=True)
class FullName:
    """Patient or contact full name, at least first and last name."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("Full name cannot be empty")

        trimmed = self.value.strip()
        if len(trimmed) < MIN_LENGTH:
            raise ValueError(f"Full name must be at least {MIN_LENGTH} characters")
        if len(trimmed) > MAX_LENGTH:
            raise ValueError(f"Full name cannot exceed {MAX_LENGTH} characters")
        if len(trimmed.split()) < 2:
            raise ValueError("Full name must include first and last name")

        object.__setattr__(self, "value", _normalize(trimmed))

    @property
    def parts(self) -> List[str]:
        return self.value.split(" ")

    @property
    def first_name(self) -> str:
        return self.parts[0]

    @property
    def last_name(self) -> str:
        return self.parts[-1]

    @property
    def initials(self) -> str:
        return "".join(
            part[0].upper() for part in self.parts if part not in LOWERCASE_PARTICLES
        )

    def __str__(self) -> str:
        return self.value
