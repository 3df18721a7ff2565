"""
Medical record aggregate and its clinical value objects.
"""

from datetime import datetime, timedelta

import pytest

from evolua.domain.entities.medical_record import MedicalRecord, MedicalRecordUpdate
from evolua.domain.enums.clinical import IntegrityStatus
from evolua.domain.errors import ValidationFailedError
from evolua.domain.value_objects import (
    Allergy,
    Assessment,
    ClinicId,
    Diagnosis,
    Medication,
    PatientId,
    ProgressNote,
    TreatmentHistory,
    UserId,
)

NOW = datetime(2025, 3, 2, 12, 0, 0)
AUTHOR = UserId("u-therapist")


def medication(name="Fluoxetine", start=NOW - timedelta(days=30), end=None):
    return {
        "name": name,
        "dosage": "20mg",
        "frequency": "daily",
        "start_date": start,
        "end_date": end,
        "prescribed_by": "Dr. Lima",
    }


def diagnosis(code="F80.1"):
    return {
        "code": code,
        "description": "Expressive language disorder",
        "diagnosed_at": NOW - timedelta(days=60),
    }


def make_record(**kwargs) -> MedicalRecord:
    return MedicalRecord.create(
        patient_id=PatientId("p-1"),
        clinic_id=ClinicId("clinic-1"),
        created_by=AUTHOR,
        now=NOW,
        **kwargs,
    )


def test_medication_that_ended_yesterday_is_inactive():
    med = Medication.from_dict(medication(end=NOW - timedelta(days=1)))
    assert not med.is_active(NOW)
    assert Medication.from_dict(medication()).is_active(NOW)
    assert Medication.from_dict(medication(end=NOW + timedelta(days=1))).is_active(NOW)


def test_medication_end_before_start():
    with pytest.raises(ValidationFailedError) as exc_info:
        Medication.from_dict(medication(end=NOW - timedelta(days=40)))
    assert "end_date" in exc_info.value.field_errors


def test_clinical_dates_cannot_be_in_the_future():
    with pytest.raises(ValidationFailedError) as exc_info:
        Diagnosis.from_dict({**diagnosis(), "diagnosed_at": datetime(2999, 1, 1)})
    assert "diagnosed_at" in exc_info.value.field_errors


def test_diagnosis_code_is_uppercased():
    d = Diagnosis.from_dict(diagnosis(code="f80.1"))
    assert d.code == "F80.1"
    assert d.has_standard_code()
    assert not Diagnosis.from_dict(diagnosis(code="speech-1")).has_standard_code()


def test_allergy_severity():
    allergy = Allergy.from_dict(
        {"allergen": "Latex", "reaction": "Rash", "severity": "life_threatening",
         "diagnosed_at": NOW - timedelta(days=10)}
    )
    assert allergy.is_life_threatening()
    assert allergy.is_severe()
    with pytest.raises(ValidationFailedError):
        Allergy.from_dict({"allergen": "Latex", "reaction": "Rash", "severity": "fatal",
                           "diagnosed_at": NOW})


def test_assessment_requires_recommendation():
    with pytest.raises(ValidationFailedError) as exc_info:
        Assessment.from_dict(
            {"type": "speech", "findings": "Mild delay", "recommendations": [], "date": NOW},
            assessed_by=AUTHOR,
        )
    assert "recommendations" in exc_info.value.field_errors


def test_progress_note_limits():
    with pytest.raises(ValidationFailedError) as exc_info:
        ProgressNote.from_dict({"content": "x" * 2001, "session_date": NOW}, created_by=AUTHOR)
    assert "content" in exc_info.value.field_errors


def test_treatment_requires_goals():
    with pytest.raises(ValidationFailedError) as exc_info:
        TreatmentHistory.from_dict({"description": "Speech therapy", "start_date": NOW, "goals": []})
    assert "goals" in exc_info.value.field_errors


def test_create_reports_item_paths():
    with pytest.raises(ValidationFailedError) as exc_info:
        make_record(medications=[medication(), medication(end=NOW - timedelta(days=40))])
    assert "medications[1].end_date" in exc_info.value.field_errors


def test_create_with_initial_assessment():
    record = make_record(
        diagnosis=[diagnosis()],
        initial_assessment={
            "type": "language",
            "findings": "Reduced vocabulary",
            "recommendations": ["Weekly sessions"],
            "date": NOW - timedelta(days=1),
        },
    )
    assert record.get_latest_assessment().assessed_by == AUTHOR
    assert record.created_by == record.updated_by == AUTHOR


def test_replace_is_wholesale():
    record = make_record(medications=[medication("A med"), medication("B med")])
    record.replace(MedicalRecordUpdate(medications=[medication("C med")]), updated_by=UserId("u-2"))
    assert [m.name for m in record.medications] == ["C med"]
    assert record.updated_by == UserId("u-2")


def test_progress_notes_are_appended():
    record = make_record()
    note = ProgressNote.from_dict({"content": "Good session", "session_date": NOW}, created_by=AUTHOR)
    record.add_progress_note(note, now=NOW + timedelta(hours=1))
    assert record.progress_notes == [note]
    assert record.updated_at == NOW + timedelta(hours=1)


def test_active_medications_and_severe_allergies():
    record = make_record(
        medications=[medication("Old", end=NOW - timedelta(days=1)), medication("Current")],
        allergies=[
            {"allergen": "Dust", "reaction": "Sneezing", "severity": "mild",
             "diagnosed_at": NOW - timedelta(days=5)},
            {"allergen": "Peanut", "reaction": "Anaphylaxis", "severity": "severe",
             "diagnosed_at": NOW - timedelta(days=5)},
        ],
    )
    assert [m.name for m in record.get_active_medications(NOW)] == ["Current"]
    assert [a.allergen for a in record.get_severe_allergies()] == ["Peanut"]


def test_timeline_is_chronological():
    record = make_record(
        diagnosis=[diagnosis()],
        medications=[medication(end=NOW - timedelta(days=1))],
    )
    events = record.timeline()
    assert [e.type for e in events] == ["diagnosis", "medication", "medication"]
    assert events == sorted(events, key=lambda e: e.date)


def test_integrity_flags_allergy_conflict_and_interactions():
    record = make_record(
        diagnosis=[diagnosis(), diagnosis()],
        medications=[medication("Warfarin"), medication("Aspirin")],
        allergies=[{"allergen": "aspirin", "reaction": "Hives", "severity": "moderate",
                    "diagnosed_at": NOW - timedelta(days=5)}],
    )
    report = record.check_integrity(NOW)
    codes = {issue.code for issue in report.issues}
    assert report.status == IntegrityStatus.FAILED
    assert {"ALLERGY_CONFLICT", "DRUG_INTERACTION", "DUPLICATE_DIAGNOSIS"} <= codes


def test_integrity_passes_for_clean_record():
    report = make_record(diagnosis=[diagnosis()], medications=[medication()]).check_integrity(NOW)
    assert report.status == IntegrityStatus.PASSED
    assert report.to_dict() == {"status": "passed", "issues": []}


def test_integrity_warns_without_diagnosis():
    report = make_record().check_integrity(NOW)
    assert report.status == IntegrityStatus.WARNING
    assert [i.code for i in report.issues] == ["NO_DIAGNOSIS"]
