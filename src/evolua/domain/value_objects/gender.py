"""Gender value object."""

from dataclasses import dataclass

GENDER_DISPLAY_NAMES = {
    "male": "Masculino",
    "female": "Feminino",
    "other": "Outro",
    "prefer_not_to_say": "Prefiro não informar",
}


@dataclass(frozen=True)
class Gender:
    value: str

    def __post_init__(self) -> None:
        normalized = (self.value or "").strip().lower()
        if normalized not in GENDER_DISPLAY_NAMES:
            raise ValueError(
                f"Invalid gender: {self.value}. Must be one of: {list(GENDER_DISPLAY_NAMES)}"
            )
        object.__setattr__(self, "value", normalized)

    @property
    def display_name(self) -> str:
        return GENDER_DISPLAY_NAMES[self.value]

    def __str__(self) -> str:
        return self.value
