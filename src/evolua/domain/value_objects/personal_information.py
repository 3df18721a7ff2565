"""Personal information section of the patient aggregate."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Mapping, Optional

from ...core.utils.datetime_utils import add_years, get_age_from_birthdate, to_date, today
from ..errors import ValidationFailedError
from ..validation import FieldErrors
from .cpf import CPF
from .full_name import FullName
from .gender import Gender
from .rg import RG

MAX_AGE_YEARS = 150
ADULT_AGE = 18


@dataclass(frozen=True)
class PersonalInformation:
    full_name: FullName
    date_of_birth: date
    gender: Gender
    cpf: CPF
    rg: Optional[RG] = None

    def __post_init__(self) -> None:
        dob = to_date(self.date_of_birth)
        object.__setattr__(self, "date_of_birth", dob)

        current = today()
        if dob > current:
            raise ValueError("Date of birth cannot be in the future")
        if dob < add_years(current, -MAX_AGE_YEARS):
            raise ValueError(f"Date of birth cannot be more than {MAX_AGE_YEARS} years ago")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PersonalInformation":
        errors = FieldErrors()
        full_name = errors.build(data, "full_name", FullName)
        dob = errors.build(data, "date_of_birth", to_date)
        gender = errors.build(data, "gender", Gender)
        cpf = errors.build(data, "cpf", CPF)
        rg = errors.build(data, "rg", RG, required=False)
        errors.raise_if_any("Invalid personal information")

        try:
            return cls(full_name=full_name, date_of_birth=dob, gender=gender, cpf=cpf, rg=rg)
        except ValueError as exc:
            raise ValidationFailedError.single("date_of_birth", str(exc)) from exc

    def to_dict(self) -> Dict[str, Any]:
        return {
            "full_name": self.full_name.value,
            "date_of_birth": self.date_of_birth.isoformat(),
            "gender": self.gender.value,
            "cpf": self.cpf.value,
            "rg": self.rg.value if self.rg else None,
        }

    def get_age(self, reference: Optional[date] = None) -> int:
        return get_age_from_birthdate(self.date_of_birth, reference)

    def is_minor(self, reference: Optional[date] = None) -> bool:
        return self.get_age(reference) < ADULT_AGE
