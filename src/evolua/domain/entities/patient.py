"""Patient aggregate root."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from ...core.utils.datetime_utils import utc_now
from ..errors import InvalidStateTransitionError, ValidationFailedError
from ..validation import FieldErrors
from ..value_objects.contact_information import ContactInformation
from ..value_objects.emergency_contact import EmergencyContact
from ..value_objects.identifiers import ClinicId, PatientId, UserId
from ..value_objects.insurance_information import InsuranceInformation
from ..value_objects.patient_status import (
    ACTIVE,
    DISCHARGED,
    INACTIVE,
    PatientStatus,
    can_transition,
    requires_reason,
)
from ..value_objects.personal_information import PersonalInformation

Section = Union[Mapping[str, Any], Any]


@dataclass(frozen=True)
class StatusChange:
    """One entry of the patient's status history."""

    from_status: Optional[str]
    to_status: str
    changed_at: datetime
    changed_by: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_status": self.from_status,
            "to_status": self.to_status,
            "changed_at": self.changed_at,
            "changed_by": self.changed_by,
            "reason": self.reason,
        }


@dataclass
class PatientUpdate:
    """Partial update; sections left as None are not touched."""

    personal_info: Optional[Section] = None
    contact_info: Optional[Section] = None
    emergency_contact: Optional[Section] = None
    insurance_info: Optional[Section] = None
    medical_history: Optional[Dict[str, Any]] = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.personal_info,
                self.contact_info,
                self.emergency_contact,
                self.insurance_info,
                self.medical_history,
            )
        )


def _section(errors: FieldErrors, name: str, value: Section, kind: type) -> Any:
    if isinstance(value, kind):
        return value
    return errors.capture(name, kind.from_dict, value)


@dataclass
class Patient:
    """Patient aggregate.

    ``status`` can only be changed through ``change_status`` and the
    ``discharge``/``reactivate`` shortcuts; assigning it directly raises.
    """

    id: PatientId
    clinic_id: ClinicId
    personal_info: PersonalInformation
    contact_info: ContactInformation
    status: PatientStatus = field(default_factory=PatientStatus.default)
    emergency_contact: Optional[EmergencyContact] = None
    insurance_info: Optional[InsuranceInformation] = None
    medical_history: Dict[str, Any] = field(default_factory=dict)
    discharge_date: Optional[datetime] = None
    discharge_reason: Optional[str] = None
    status_history: List[StatusChange] = field(default_factory=list)
    created_by: Optional[UserId] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not isinstance(self.status, PatientStatus):
            object.__setattr__(self, "status", PatientStatus(self.status))
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "status" and getattr(self, "_sealed", False):
            raise AttributeError("Patient status can only change through change_status()")
        super().__setattr__(name, value)

    @classmethod
    def create(
        cls,
        clinic_id: ClinicId,
        personal_info: Section,
        contact_info: Section,
        emergency_contact: Optional[Section] = None,
        insurance_info: Optional[Section] = None,
        medical_history: Optional[Dict[str, Any]] = None,
        status: Optional[str] = None,
        created_by: Optional[UserId] = None,
        patient_id: Optional[PatientId] = None,
        now: Optional[datetime] = None,
    ) -> "Patient":
        """Validate every section and assemble a new patient.

        All section failures are reported together in one
        ``ValidationFailedError``.
        """
        errors = FieldErrors()
        personal = None
        contact = None
        emergency = None
        insurance = None

        if personal_info is None:
            errors.add("personal_info", "personal_info is required")
        else:
            personal = _section(errors, "personal_info", personal_info, PersonalInformation)
        if contact_info is None:
            errors.add("contact_info", "contact_info is required")
        else:
            contact = _section(errors, "contact_info", contact_info, ContactInformation)
        if emergency_contact is not None:
            emergency = _section(errors, "emergency_contact", emergency_contact, EmergencyContact)
        if insurance_info is not None:
            insurance = _section(errors, "insurance_info", insurance_info, InsuranceInformation)

        initial_status = errors.capture("status", PatientStatus, status or ACTIVE)
        if initial_status is not None and not can_transition(None, initial_status):
            errors.add("status", f"New patients cannot start as '{initial_status.value}'")
        errors.raise_if_any("Invalid patient data")

        timestamp = now or utc_now()
        return cls(
            id=patient_id or PatientId.generate(),
            clinic_id=clinic_id,
            personal_info=personal,
            contact_info=contact,
            status=initial_status,
            emergency_contact=emergency,
            insurance_info=insurance,
            medical_history=dict(medical_history or {}),
            status_history=[
                StatusChange(
                    from_status=None,
                    to_status=initial_status.value,
                    changed_at=timestamp,
                    changed_by=created_by.value if created_by else None,
                )
            ],
            created_by=created_by,
            created_at=timestamp,
            updated_at=timestamp,
        )

    def update(self, changes: PatientUpdate, now: Optional[datetime] = None) -> None:
        """Merge the supplied sections; nothing changes if any section is invalid."""
        errors = FieldErrors()
        personal = contact = emergency = insurance = None
        if changes.personal_info is not None:
            personal = _section(errors, "personal_info", changes.personal_info, PersonalInformation)
        if changes.contact_info is not None:
            contact = _section(errors, "contact_info", changes.contact_info, ContactInformation)
        if changes.emergency_contact is not None:
            emergency = _section(errors, "emergency_contact", changes.emergency_contact, EmergencyContact)
        if changes.insurance_info is not None:
            insurance = _section(errors, "insurance_info", changes.insurance_info, InsuranceInformation)
        errors.raise_if_any("Invalid patient data")

        if personal is not None:
            self.personal_info = personal
        if contact is not None:
            self.contact_info = contact
        if emergency is not None:
            self.emergency_contact = emergency
        if insurance is not None:
            self.insurance_info = insurance
        if changes.medical_history is not None:
            self.medical_history = dict(changes.medical_history)
        self.updated_at = now or utc_now()

    def change_status(
        self,
        new_status: Union[str, PatientStatus],
        *,
        reason: Optional[str] = None,
        changed_by: Optional[UserId] = None,
        now: Optional[datetime] = None,
        discharge_date: Optional[datetime] = None,
    ) -> StatusChange:
        """Apply a guarded status transition and record it in the history."""
        try:
            target = new_status if isinstance(new_status, PatientStatus) else PatientStatus(new_status)
        except ValueError as exc:
            raise ValidationFailedError.single("status", str(exc)) from exc

        current = self.status
        if target == current:
            raise InvalidStateTransitionError(current.value, target.value, "patient already has this status")
        if not can_transition(current, target):
            raise InvalidStateTransitionError(current.value, target.value)
        reason = reason.strip() if reason else None
        if requires_reason(current, target) and not reason:
            raise InvalidStateTransitionError(current.value, target.value, "a reason is required")

        timestamp = now or utc_now()
        change = StatusChange(
            from_status=current.value,
            to_status=target.value,
            changed_at=timestamp,
            changed_by=changed_by.value if changed_by else None,
            reason=reason,
        )

        object.__setattr__(self, "status", target)
        if target.value == DISCHARGED:
            self.discharge_date = discharge_date or timestamp
            self.discharge_reason = reason
        elif current.value == DISCHARGED and target.value == ACTIVE:
            self.discharge_date = None
            self.discharge_reason = None
        self.status_history.append(change)
        self.updated_at = timestamp
        return change

    def discharge(
        self,
        reason: str,
        *,
        changed_by: Optional[UserId] = None,
        discharge_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> StatusChange:
        return self.change_status(
            DISCHARGED,
            reason=reason,
            changed_by=changed_by,
            now=now,
            discharge_date=discharge_date,
        )

    def reactivate(
        self,
        reason: str,
        *,
        changed_by: Optional[UserId] = None,
        now: Optional[datetime] = None,
    ) -> StatusChange:
        if self.status.value not in (DISCHARGED, INACTIVE):
            raise InvalidStateTransitionError(
                self.status.value, ACTIVE, "only discharged or inactive patients can be reactivated"
            )
        return self.change_status(ACTIVE, reason=reason, changed_by=changed_by, now=now)

    @property
    def full_name(self) -> str:
        return self.personal_info.full_name.value

    def get_age(self, reference: Optional[date] = None) -> int:
        return self.personal_info.get_age(reference)

    def is_active(self) -> bool:
        return self.status.is_active()

    def can_schedule_appointment(self) -> bool:
        return self.is_active() and self.discharge_date is None

    def to_dict(self, reference: Optional[date] = None) -> Dict[str, Any]:
        """Plain-data projection for API responses."""
        return {
            "id": self.id.value,
            "clinic_id": self.clinic_id.value,
            "personal_info": self.personal_info.to_dict(),
            "contact_info": self.contact_info.to_dict(),
            "emergency_contact": self.emergency_contact.to_dict() if self.emergency_contact else None,
            "insurance_info": self.insurance_info.to_dict() if self.insurance_info else None,
            "medical_history": dict(self.medical_history),
            "status": self.status.value,
            "status_display": self.status.display_name,
            "discharge_date": self.discharge_date,
            "discharge_reason": self.discharge_reason,
            "age": self.get_age(reference),
            "can_schedule_appointment": self.can_schedule_appointment(),
            "created_by": self.created_by.value if self.created_by else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
