"""
Patient status value object and the status transition table.

Canonical values use underscores. ``on-hold`` (and any casing) is read as
``on_hold`` so records written by older clients migrate on load.
"""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional

NEW = "new"
ACTIVE = "active"
ON_HOLD = "on_hold"
DISCHARGED = "discharged"
INACTIVE = "inactive"

STATUS_DISPLAY = {
    NEW: ("Novo", "blue"),
    ACTIVE: ("Ativo", "green"),
    ON_HOLD: ("Em pausa", "yellow"),
    DISCHARGED: ("Alta", "gray"),
    INACTIVE: ("Inativo", "red"),
}


@dataclass(frozen=True)
class StatusRule:
    allowed: FrozenSet[str]
    requires_reason: FrozenSet[str] = frozenset()


STATUS_TRANSITIONS: Dict[Optional[str], StatusRule] = {
    None: StatusRule(frozenset({NEW, ACTIVE})),
    NEW: StatusRule(frozenset({ACTIVE, INACTIVE}), frozenset({INACTIVE})),
    ACTIVE: StatusRule(
        frozenset({ON_HOLD, DISCHARGED, INACTIVE}),
        frozenset({ON_HOLD, DISCHARGED, INACTIVE}),
    ),
    ON_HOLD: StatusRule(
        frozenset({ACTIVE, DISCHARGED, INACTIVE}),
        frozenset({DISCHARGED, INACTIVE}),
    ),
    DISCHARGED: StatusRule(frozenset({ACTIVE, INACTIVE}), frozenset({ACTIVE})),
    INACTIVE: StatusRule(frozenset({ACTIVE}), frozenset({ACTIVE})),
}


@dataclass(frozen=True)
class PatientStatus:
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise ValueError("Patient status must be a string")
        normalized = self.value.strip().lower().replace("-", "_")
        if normalized not in STATUS_DISPLAY:
            raise ValueError(
                f"Invalid patient status: {self.value}. Must be one of: {list(STATUS_DISPLAY)}"
            )
        object.__setattr__(self, "value", normalized)

    @classmethod
    def default(cls) -> "PatientStatus":
        return cls(ACTIVE)

    @property
    def display_name(self) -> str:
        return STATUS_DISPLAY[self.value][0]

    @property
    def color(self) -> str:
        return STATUS_DISPLAY[self.value][1]

    def is_active(self) -> bool:
        return self.value == ACTIVE

    def is_discharged(self) -> bool:
        return self.value == DISCHARGED

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, str):
            return self.value == other
        if not isinstance(other, PatientStatus):
            return False
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __str__(self) -> str:
        return self.value


def can_transition(current: Optional[PatientStatus], target: PatientStatus) -> bool:
    rule = STATUS_TRANSITIONS[current.value if current else None]
    return target.value in rule.allowed


def requires_reason(current: Optional[PatientStatus], target: PatientStatus) -> bool:
    rule = STATUS_TRANSITIONS[current.value if current else None]
    return target.value in rule.requires_reason
