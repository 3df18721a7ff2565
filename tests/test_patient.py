"""
Patient aggregate: creation, updates and status lifecycle.
"""

from datetime import date, datetime

import pytest

from evolua.domain.entities.patient import Patient, PatientUpdate
from evolua.domain.errors import InvalidStateTransitionError, ValidationFailedError
from evolua.domain.value_objects import ClinicId, UserId

from .conftest import NOW, contact_info, personal_info


def make_patient(**kwargs) -> Patient:
    return Patient.create(
        clinic_id=ClinicId("clinic-1"),
        personal_info=kwargs.pop("personal_info", personal_info()),
        contact_info=kwargs.pop("contact_info", contact_info()),
        created_by=UserId("u-therapist"),
        now=NOW,
        **kwargs,
    )


def test_create_defaults_to_active():
    patient = make_patient()
    assert patient.status.value == "active"
    assert patient.full_name == "Ana Souza"
    assert patient.get_age(date(2025, 3, 2)) == 10
    assert patient.can_schedule_appointment()
    assert patient.created_at == patient.updated_at == NOW
    assert [c.to_status for c in patient.status_history] == ["active"]


def test_create_reports_all_section_errors():
    with pytest.raises(ValidationFailedError) as exc_info:
        Patient.create(
            clinic_id=ClinicId("clinic-1"),
            personal_info=personal_info(cpf="11111111111"),
            contact_info=contact_info(primary_phone="123"),
        )
    errors = exc_info.value.field_errors
    assert "personal_info.cpf" in errors
    assert "contact_info.primary_phone" in errors


def test_create_rejects_terminal_initial_status():
    with pytest.raises(ValidationFailedError) as exc_info:
        make_patient(status="discharged")
    assert "status" in exc_info.value.field_errors


def test_status_cannot_be_assigned_directly():
    patient = make_patient()
    with pytest.raises(AttributeError):
        patient.status = "inactive"


def test_discharge_and_reactivate():
    patient = make_patient()
    later = datetime(2025, 4, 1)
    patient.discharge("Goals achieved", changed_by=UserId("u-therapist"), now=later)

    assert patient.status.value == "discharged"
    assert patient.discharge_date == later
    assert patient.discharge_reason == "Goals achieved"
    assert not patient.can_schedule_appointment()

    patient.reactivate("Returned for follow-up", now=datetime(2025, 5, 1))
    assert patient.status.value == "active"
    assert patient.discharge_date is None
    assert patient.can_schedule_appointment()
    assert [c.to_status for c in patient.status_history] == ["active", "discharged", "active"]


def test_transition_requires_reason():
    patient = make_patient()
    with pytest.raises(InvalidStateTransitionError):
        patient.change_status("on_hold")
    patient.change_status("on-hold", reason="Travelling")
    assert patient.status.value == "on_hold"


def test_illegal_transitions():
    patient = make_patient(status="new")
    with pytest.raises(InvalidStateTransitionError):
        patient.change_status("discharged", reason="x")
    with pytest.raises(InvalidStateTransitionError):
        patient.change_status("new")
    with pytest.raises(InvalidStateTransitionError):
        patient.reactivate("not discharged")
    with pytest.raises(ValidationFailedError):
        patient.change_status("archived")


def test_update_is_all_or_nothing():
    patient = make_patient()
    with pytest.raises(ValidationFailedError):
        patient.update(
            PatientUpdate(
                contact_info=contact_info(email="new@example.com"),
                personal_info=personal_info(cpf="123"),
            )
        )
    assert patient.contact_info.email.value == "ana.souza@example.com"

    patient.update(PatientUpdate(contact_info=contact_info(email="new@example.com")), now=datetime(2025, 3, 3))
    assert patient.contact_info.email.value == "new@example.com"
    assert patient.updated_at == datetime(2025, 3, 3)
    assert patient.created_at == NOW


def test_to_dict_projection():
    data = make_patient(insurance_info={"provider": "Unimed"}).to_dict(reference=date(2025, 3, 2))
    assert data["status"] == "active"
    assert data["status_display"] == "Ativo"
    assert data["age"] == 10
    assert data["personal_info"]["cpf"] == "111.444.777-35"
    assert data["insurance_info"]["provider"] == "Unimed"
    assert data["emergency_contact"] is None
