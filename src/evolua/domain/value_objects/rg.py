"""RG (Registro Geral) identity card number."""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class RG:
    """State identity card number, kept as typed by the patient."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("RG cannot be empty")

        object.__setattr__(self, "value", self.value.strip())
        clean = self.get_clean_value()
        if len(clean) < 7 or len(clean) > 9:
            raise ValueError("RG must have between 7 and 9 digits")
        if clean == clean[0] * len(clean):
            raise ValueError("RG cannot have all digits equal")

    def get_clean_value(self) -> str:
        return re.sub(r"[^0-9]", "", self.value)

    def __str__(self) -> str:
        return self.value
