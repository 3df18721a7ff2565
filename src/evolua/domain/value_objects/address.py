"""Postal address value object (Brazil)."""

import re
from dataclasses import dataclass
from typing import Optional

BRAZILIAN_STATES = frozenset(
    {
        "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO", "MA", "MT", "MS", "MG", "PA",
        "PB", "PR", "PE", "PI", "RJ", "RN", "RS", "RO", "RR", "SC", "SP", "SE", "TO",
    }
)


@dataclass(frozen=True)
class Address:
    """Street address with CEP (zip code)."""

    street: str
    number: str
    neighborhood: str
    city: str
    state: str
    zip_code: str
    complement: Optional[str] = None

    def __post_init__(self) -> None:
        for name in ("street", "number", "neighborhood", "city"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Address {name} is required")
            object.__setattr__(self, name, value.strip())

        state = (self.state or "").strip().upper()
        if state not in BRAZILIAN_STATES:
            raise ValueError(f"Invalid state: {self.state}")
        object.__setattr__(self, "state", state)

        zip_code = re.sub(r"[^0-9]", "", self.zip_code or "")
        if len(zip_code) != 8:
            raise ValueError("Zip code must have 8 digits")
        object.__setattr__(self, "zip_code", zip_code)

        if self.complement is not None:
            object.__setattr__(self, "complement", self.complement.strip() or None)

    @property
    def formatted_zip_code(self) -> str:
        return f"{self.zip_code[:5]}-{self.zip_code[5:]}"

    def full_address(self) -> str:
        line = f"{self.street}, {self.number}"
        if self.complement:
            line = f"{line}, {self.complement}"
        return f"{line} - {self.neighborhood}, {self.city}/{self.state} - {self.formatted_zip_code}"

    def is_complete(self) -> bool:
        return all(
            [self.street, self.number, self.neighborhood, self.city, self.state, self.zip_code]
        )
