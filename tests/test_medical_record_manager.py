"""
Medical record manager against the in-memory repositories.
"""

from datetime import datetime, timedelta

import pytest

from evolua.application.dto.medical_record_dto import (
    AddAssessmentRequest,
    AddProgressNoteRequest,
    CreateMedicalRecordRequest,
    UpdateMedicalRecordRequest,
)
from evolua.application.dto.patient_dto import CreatePatientRequest
from evolua.domain.enums.clinical import IntegrityStatus
from evolua.domain.errors import (
    MedicalRecordNotFoundError,
    PatientNotFoundError,
    ValidationFailedError,
)

from .conftest import NOW, contact_info, personal_info


def medication(name, end=None):
    return {
        "name": name,
        "dosage": "5mg",
        "frequency": "twice a day",
        "start_date": NOW - timedelta(days=20),
        "end_date": end,
        "prescribed_by": "Dr. Lima",
    }


async def create_patient(registry):
    return await registry.create_patient(
        CreatePatientRequest(personal_info=personal_info(), contact_info=contact_info()),
        created_by="u-therapist",
    )


@pytest.mark.asyncio
async def test_create_requires_existing_patient(record_manager):
    with pytest.raises(PatientNotFoundError):
        await record_manager.create_medical_record(
            CreateMedicalRecordRequest(patient_id="missing"), created_by="u-therapist"
        )


@pytest.mark.asyncio
async def test_create_and_load_record(registry, record_manager):
    patient = await create_patient(registry)
    record = await record_manager.create_medical_record(
        CreateMedicalRecordRequest(
            patient_id=patient.id.value,
            diagnosis=[{"code": "F80.1", "description": "Expressive language disorder",
                        "diagnosed_at": NOW - timedelta(days=30)}],
            medications=[medication("Melatonin")],
            initial_assessment={
                "type": "speech",
                "findings": "Phonological errors",
                "recommendations": ["Weekly therapy"],
                "date": NOW - timedelta(days=2),
            },
        ),
        created_by="u-therapist",
    )

    loaded = await record_manager.get_medical_record(record.id.value)
    assert loaded.patient_id == patient.id
    assert loaded.created_at == NOW
    assert [d.code for d in loaded.diagnosis] == ["F80.1"]
    assert loaded.get_latest_assessment().type == "speech"
    assert await record_manager.get_medical_record("missing") is None


@pytest.mark.asyncio
async def test_create_reports_invalid_items(registry, record_manager):
    patient = await create_patient(registry)
    with pytest.raises(ValidationFailedError) as exc_info:
        await record_manager.create_medical_record(
            CreateMedicalRecordRequest(
                patient_id=patient.id.value,
                allergies=[{"allergen": "", "reaction": "Rash", "severity": "mild",
                            "diagnosed_at": NOW}],
            ),
            created_by="u-therapist",
        )
    assert "allergies[0].allergen" in exc_info.value.field_errors


@pytest.mark.asyncio
async def test_update_replaces_lists(registry, record_manager):
    patient = await create_patient(registry)
    record = await record_manager.create_medical_record(
        CreateMedicalRecordRequest(patient_id=patient.id.value, medications=[medication("A"), medication("B")]),
        created_by="u-therapist",
    )

    updated = await record_manager.update_medical_record(
        record.id.value,
        UpdateMedicalRecordRequest(medications=[medication("C")]),
        updated_by="u-doctor",
    )
    assert [m.name for m in updated.medications] == ["C"]
    assert updated.updated_by.value == "u-doctor"

    with pytest.raises(MedicalRecordNotFoundError):
        await record_manager.update_medical_record("missing", UpdateMedicalRecordRequest(), updated_by="u")


@pytest.mark.asyncio
async def test_progress_notes_and_assessments(registry, record_manager):
    patient = await create_patient(registry)
    record = await record_manager.create_medical_record(
        CreateMedicalRecordRequest(patient_id=patient.id.value), created_by="u-therapist"
    )

    note = await record_manager.add_progress_note(
        record.id.value,
        AddProgressNoteRequest(content="Produced /r/ in isolation", session_date=NOW - timedelta(hours=2),
                               category="goal_progress"),
        created_by="u-therapist",
    )
    assessment = await record_manager.add_assessment(
        record.id.value,
        AddAssessmentRequest(type="hearing", findings="Normal", recommendations=["Re-test in 1 year"],
                             date=NOW - timedelta(days=1)),
        assessed_by="u-therapist",
    )

    stored = await record_manager.get_medical_record(record.id.value)
    assert [n.id for n in stored.progress_notes] == [note.id]
    assert stored.progress_notes[0].created_by.value == "u-therapist"
    assert [a.id for a in stored.assessments] == [assessment.id]


@pytest.mark.asyncio
async def test_progress_note_validation(registry, record_manager):
    patient = await create_patient(registry)
    record = await record_manager.create_medical_record(
        CreateMedicalRecordRequest(patient_id=patient.id.value), created_by="u-therapist"
    )
    with pytest.raises(ValidationFailedError) as exc_info:
        await record_manager.add_progress_note(
            record.id.value,
            AddProgressNoteRequest(content=" ", session_date=datetime(2999, 1, 1)),
            created_by="u-therapist",
        )
    assert {"progress_note.content", "progress_note.session_date"} <= set(exc_info.value.field_errors)

    with pytest.raises(MedicalRecordNotFoundError):
        await record_manager.add_progress_note(
            "missing", AddProgressNoteRequest(content="x", session_date=NOW), created_by="u"
        )


@pytest.mark.asyncio
async def test_history_and_timeline(registry, record_manager):
    patient = await create_patient(registry)
    first = await record_manager.create_medical_record(
        CreateMedicalRecordRequest(
            patient_id=patient.id.value,
            medications=[medication("Old", end=NOW - timedelta(days=1))],
        ),
        created_by="u-therapist",
    )
    second = await record_manager.create_medical_record(
        CreateMedicalRecordRequest(
            patient_id=patient.id.value,
            diagnosis=[{"code": "F80.0", "description": "Phonological disorder",
                        "diagnosed_at": NOW - timedelta(days=90)}],
        ),
        created_by="u-therapist",
    )

    history = await record_manager.get_medical_history(patient.id.value)
    assert {r.id for r in history} == {first.id, second.id}

    timeline = await record_manager.get_timeline(patient.id.value)
    assert [e.type for e in timeline] == ["diagnosis", "medication", "medication"]
    assert await record_manager.get_medical_history("unknown") == []


@pytest.mark.asyncio
async def test_check_integrity(registry, record_manager):
    patient = await create_patient(registry)
    record = await record_manager.create_medical_record(
        CreateMedicalRecordRequest(
            patient_id=patient.id.value,
            medications=[medication("Penicillin V")],
            allergies=[{"allergen": "Penicillin", "reaction": "Rash", "severity": "severe",
                        "diagnosed_at": NOW - timedelta(days=100)}],
        ),
        created_by="u-therapist",
    )
    report = await record_manager.check_integrity(record.id.value)
    assert report.status == IntegrityStatus.FAILED
    assert "ALLERGY_CONFLICT" in [i.code for i in report.issues]
