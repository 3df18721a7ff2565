"""
Document aggregate: file validation, accessibility and retention.
"""

from datetime import datetime, timedelta

import pytest

from evolua.domain.entities.document import (
    MAX_FILE_SIZE_BYTES,
    Document,
    DocumentMetadata,
    SecurityInfo,
    validate_file,
)
from evolua.domain.enums.document import DocumentStatus, DocumentType, VirusScanResult
from evolua.domain.errors import InvalidStateTransitionError, ValidationFailedError
from evolua.domain.value_objects import ClinicId, DocumentId, PatientId, UserId

NOW = datetime(2025, 3, 2, 12, 0, 0)


def make_document(scan=VirusScanResult.CLEAN, **kwargs) -> Document:
    metadata = kwargs.pop("metadata", DocumentMetadata(title="Speech evaluation"))
    return Document(
        id=DocumentId("d-1"),
        patient_id=PatientId("p-1"),
        clinic_id=ClinicId("clinic-1"),
        file_name="evaluation.pdf",
        file_path="clinic-1/p-1/d-1/evaluation.pdf",
        mime_type="application/pdf",
        file_size=1024,
        metadata=metadata,
        security_info=SecurityInfo(checksum="abc", virus_scan_result=scan, virus_scan_date=NOW),
        uploaded_by=UserId("u-therapist"),
        uploaded_at=NOW,
        updated_at=NOW,
        **kwargs,
    )


def test_validate_file_rules():
    assert not validate_file("a.pdf", "application/pdf", 10)
    errors = validate_file("", "application/zip", 0).errors
    assert set(errors) == {"file_name", "mime_type", "file_size"}
    assert "file_size" in validate_file("a.pdf", "application/pdf", MAX_FILE_SIZE_BYTES + 1).errors
    assert "mime_type" in validate_file("a.png", "image/png", 10, allowed_mime_types={"application/pdf"}).errors


def test_document_construction_validates_file():
    with pytest.raises(ValidationFailedError):
        Document(
            id=DocumentId("d-2"),
            patient_id=PatientId("p-1"),
            clinic_id=ClinicId("clinic-1"),
            file_name="virus.exe",
            file_path="x",
            mime_type="application/x-msdownload",
            file_size=10,
            metadata=DocumentMetadata(title="x"),
            security_info=SecurityInfo(checksum="abc"),
            uploaded_by=UserId("u"),
        )


def test_metadata_validation():
    with pytest.raises(ValidationFailedError) as exc_info:
        DocumentMetadata(title=" ", document_type="photo", retention_period=0)
    assert set(exc_info.value.field_errors) == {"title", "document_type", "retention_period"}
    metadata = DocumentMetadata(title=" Report ", document_type="exam_result", tags=("a", " ", "b "))
    assert metadata.title == "Report"
    assert metadata.document_type == DocumentType.EXAM_RESULT
    assert metadata.tags == ("a", "b")


def test_infected_document_is_not_accessible():
    assert make_document().can_be_accessed()
    assert not make_document(scan=VirusScanResult.INFECTED).can_be_accessed()
    assert not make_document(status=DocumentStatus.QUARANTINED).can_be_accessed()
    assert make_document(status=DocumentStatus.ARCHIVED).can_be_accessed()


def test_expired_document_should_be_archived():
    assert make_document(expires_at=NOW - timedelta(days=1)).should_be_archived(NOW)
    assert not make_document(expires_at=NOW + timedelta(days=1)).should_be_archived(NOW)


def test_retention_period_drives_archiving():
    document = make_document(metadata=DocumentMetadata(title="Old", retention_period=1))
    assert document.retention_ends_at() == datetime(2026, 3, 2, 12, 0, 0)
    assert not document.should_be_archived(NOW)
    assert document.should_be_archived(datetime(2026, 3, 2, 12, 0, 0))


def test_update_metadata_bumps_version():
    document = make_document()
    document.update_metadata({"title": "Updated", "tags": ["speech"], "unknown": "ignored"}, now=NOW)
    assert document.metadata.title == "Updated"
    assert document.metadata.tags == ("speech",)
    assert document.metadata.version == 2


def test_status_changes():
    document = make_document()
    document.archive(NOW)
    assert document.status == DocumentStatus.ARCHIVED

    infected = make_document(scan=VirusScanResult.INFECTED, status=DocumentStatus.QUARANTINED)
    with pytest.raises(InvalidStateTransitionError):
        infected.change_status(DocumentStatus.ACTIVE)

    deleted = make_document(status=DocumentStatus.DELETED)
    with pytest.raises(InvalidStateTransitionError):
        deleted.archive()


def test_matches_query():
    document = make_document(
        metadata=DocumentMetadata(title="Audiometry", description="Hearing test", tags=("ENT",))
    )
    assert document.matches_query("hearing")
    assert document.matches_query("ent")
    assert document.matches_query("EVALUATION")
    assert not document.matches_query("x-ray")
