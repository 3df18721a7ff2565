"""
CPF (Cadastro de Pessoas Fisicas) value object.

Accepts formatted (``123.456.789-09``) or raw (``12345678909``) input and
validates the two trailing check digits with the weighted modulo-11 rule.
"""

import re
from dataclasses import dataclass, field
from typing import Any, List

from ..errors import InvalidCPFError


def _check_digit(digits: List[int]) -> int:
    weight = len(digits) + 1
    total = sum(d * w for d, w in zip(digits, range(weight, 1, -1)))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


@dataclass(frozen=True, eq=False)
class CPF:
    """Brazilian taxpayer registry number."""

    raw: str = field(repr=False)
    value: str = field(init=False)
    _clean: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.raw is None or not isinstance(self.raw, str):
            raise InvalidCPFError(str(self.raw), "CPF must be a string")

        clean = re.sub(r"[^0-9]", "", self.raw)
        if len(clean) != 11:
            raise InvalidCPFError(self.raw, "CPF must have exactly 11 digits")

        if clean == clean[0] * 11:
            raise InvalidCPFError(self.raw, "CPF cannot have all digits equal")

        digits = [int(c) for c in clean]
        first = _check_digit(digits[:9])
        second = _check_digit(digits[:9] + [first])
        if digits[9] != first or digits[10] != second:
            raise InvalidCPFError(self.raw, "CPF check digits do not match")

        object.__setattr__(self, "_clean", clean)
        object.__setattr__(
            self, "value", f"{clean[:3]}.{clean[3:6]}.{clean[6:9]}-{clean[9:]}"
        )

    def get_clean_value(self) -> str:
        """Return the 11 digits without punctuation."""
        return self._clean

    def equals(self, other: "CPF") -> bool:
        return isinstance(other, CPF) and self._clean == other._clean

    def __eq__(self, other: Any) -> bool:
        return self.equals(other)

    def __hash__(self) -> int:
        return hash(self._clean)

    def __str__(self) -> str:
        return self.value

    @staticmethod
    def is_valid(raw: str) -> bool:
        try:
            CPF(raw)
        except InvalidCPFError:
            return False
        return True
