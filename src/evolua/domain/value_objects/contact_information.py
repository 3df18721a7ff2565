"""Contact information section of the patient aggregate."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from ..validation import FieldErrors
from .address import Address
from .email import Email
from .phone_number import PhoneNumber


def _address_from_dict(data: Mapping[str, Any]) -> Address:
    if isinstance(data, Address):
        return data
    errors = FieldErrors()
    for name in ("street", "number", "neighborhood", "city", "state", "zip_code"):
        value = data.get(name)
        if value is None or not str(value).strip():
            errors.add(name, f"{name} is required")
    errors.raise_if_any("Invalid address")
    return Address(
        street=data["street"],
        number=str(data["number"]),
        neighborhood=data["neighborhood"],
        city=data["city"],
        state=data["state"],
        zip_code=str(data["zip_code"]),
        complement=data.get("complement"),
    )


@dataclass(frozen=True)
class ContactInformation:
    primary_phone: PhoneNumber
    address: Address
    secondary_phone: Optional[PhoneNumber] = None
    email: Optional[Email] = None

    def __post_init__(self) -> None:
        if self.secondary_phone is not None and self.secondary_phone == self.primary_phone:
            raise ValueError("Secondary phone must differ from primary phone")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ContactInformation":
        errors = FieldErrors()
        primary = errors.build(data, "primary_phone", PhoneNumber)
        secondary = errors.build(data, "secondary_phone", PhoneNumber, required=False)
        email = errors.build(data, "email", Email, required=False)
        address = errors.build(data, "address", _address_from_dict)
        if primary is not None and secondary is not None and primary == secondary:
            errors.add("secondary_phone", "Secondary phone must differ from primary phone")
        errors.raise_if_any("Invalid contact information")
        return cls(primary_phone=primary, address=address, secondary_phone=secondary, email=email)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary_phone": self.primary_phone.value,
            "secondary_phone": self.secondary_phone.value if self.secondary_phone else None,
            "email": self.email.value if self.email else None,
            "address": {
                "street": self.address.street,
                "number": self.address.number,
                "complement": self.address.complement,
                "neighborhood": self.address.neighborhood,
                "city": self.address.city,
                "state": self.address.state,
                "zip_code": self.address.zip_code,
            },
        }
