"""
Medical record manager: creation, wholesale updates, progress notes,
assessments, history and integrity checks.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Union

from ...core.utils.datetime_utils import utc_now
from ...domain.entities.medical_record import (
    IntegrityReport,
    MedicalRecord,
    MedicalRecordUpdate,
    TimelineEvent,
)
from ...domain.errors import (
    MedicalRecordNotFoundError,
    PatientNotFoundError,
    ValidationFailedError,
)
from ...domain.value_objects.assessment import Assessment
from ...domain.value_objects.identifiers import MedicalRecordId, PatientId, UserId
from ...domain.value_objects.progress_note import ProgressNote
from ...observability.audit import audit_log_event
from ..dto.medical_record_dto import (
    AddAssessmentRequest,
    AddProgressNoteRequest,
    CreateMedicalRecordRequest,
    UpdateMedicalRecordRequest,
)
from ..dto.patient_dto import section_to_dict
from ..ports.repositories.medical_record_repo import MedicalRecordRepository
from ..ports.repositories.patient_repo import PatientRepository
from .errors import repository_errors

logger = logging.getLogger("evolua")


def _as_user(user: Union[str, UserId]) -> UserId:
    return user if isinstance(user, UserId) else UserId(user)


class MedicalRecordManager:
    """Application service for the medical record aggregate."""

    def __init__(
        self,
        medical_record_repository: MedicalRecordRepository,
        patient_repository: PatientRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._medical_record_repository = medical_record_repository
        self._patient_repository = patient_repository
        self._clock = clock

    @property
    def _clinic(self) -> str:
        return self._medical_record_repository.clinic_id.value

    async def create_medical_record(
        self, request: CreateMedicalRecordRequest, created_by: Union[str, UserId]
    ) -> MedicalRecord:
        author = _as_user(created_by)
        patient_id = self._parse_patient_id(request.patient_id)
        with repository_errors("load patient"):
            patient = await self._patient_repository.find_by_id(patient_id)
        if patient is None:
            raise PatientNotFoundError(request.patient_id)

        record = MedicalRecord.create(
            patient_id=patient_id,
            clinic_id=self._medical_record_repository.clinic_id,
            created_by=author,
            diagnosis=request.diagnosis,
            medications=request.medications,
            allergies=request.allergies,
            treatment_history=request.treatment_history,
            initial_assessment=section_to_dict(request.initial_assessment),
            now=self._clock(),
        )
        with repository_errors("create medical record"):
            saved = await self._medical_record_repository.create(record)

        self._log_integrity(saved)
        await audit_log_event(
            event="medical_record.created",
            patient_id=patient_id.value,
            resource_id=saved.id.value,
            user_id=author.value,
            clinic_id=self._clinic,
            payload={
                "diagnosis": len(saved.diagnosis),
                "medications": len(saved.medications),
                "allergies": len(saved.allergies),
                "initial_assessment": bool(saved.assessments),
            },
        )
        return saved

    async def get_medical_record(self, record_id: str) -> Optional[MedicalRecord]:
        try:
            rid = MedicalRecordId(record_id)
        except ValueError:
            return None
        with repository_errors("load medical record"):
            return await self._medical_record_repository.find_by_id(rid)

    async def get_medical_history(self, patient_id: str) -> List[MedicalRecord]:
        """All records of a patient in chronological order."""
        try:
            pid = PatientId(patient_id)
        except ValueError:
            return []
        with repository_errors("load medical history"):
            records = await self._medical_record_repository.find_by_patient_id(pid)
        return sorted(records, key=lambda r: r.created_at)

    async def update_medical_record(
        self,
        record_id: str,
        request: UpdateMedicalRecordRequest,
        updated_by: Union[str, UserId],
    ) -> MedicalRecord:
        author = _as_user(updated_by)
        record = await self._require(record_id)
        record.replace(
            MedicalRecordUpdate(
                diagnosis=request.diagnosis,
                medications=request.medications,
                allergies=request.allergies,
                treatment_history=request.treatment_history,
            ),
            updated_by=author,
            now=self._clock(),
        )
        with repository_errors("update medical record"):
            saved = await self._medical_record_repository.update(record)

        self._log_integrity(saved)
        replaced = [
            name
            for name in ("diagnosis", "medications", "allergies", "treatment_history")
            if getattr(request, name) is not None
        ]
        await audit_log_event(
            event="medical_record.updated",
            patient_id=saved.patient_id.value,
            resource_id=saved.id.value,
            user_id=author.value,
            clinic_id=self._clinic,
            payload={"replaced": replaced},
        )
        return saved

    async def add_progress_note(
        self,
        record_id: str,
        note: Union[AddProgressNoteRequest, ProgressNote],
        created_by: Union[str, UserId, None] = None,
    ) -> ProgressNote:
        """Append a note; existing notes are never edited or removed."""
        record = await self._require(record_id)
        if not isinstance(note, ProgressNote):
            if created_by is None:
                raise ValidationFailedError.single("created_by", "Note author is required")
            try:
                note = ProgressNote.from_dict(section_to_dict(note), created_by=_as_user(created_by))
            except ValidationFailedError as exc:
                raise exc.prefixed("progress_note") from exc

        record.add_progress_note(note, now=self._clock())
        with repository_errors("add progress note"):
            await self._medical_record_repository.update(record)

        await audit_log_event(
            event="medical_record.progress_note_added",
            patient_id=record.patient_id.value,
            resource_id=record.id.value,
            user_id=note.created_by.value,
            clinic_id=self._clinic,
            payload={"note_id": note.id, "category": note.category.value},
        )
        return note

    async def add_assessment(
        self,
        record_id: str,
        assessment: Union[AddAssessmentRequest, Assessment],
        assessed_by: Union[str, UserId, None] = None,
    ) -> Assessment:
        record = await self._require(record_id)
        if not isinstance(assessment, Assessment):
            if assessed_by is None:
                raise ValidationFailedError.single("assessed_by", "Assessor is required")
            try:
                assessment = Assessment.from_dict(
                    section_to_dict(assessment), assessed_by=_as_user(assessed_by)
                )
            except ValidationFailedError as exc:
                raise exc.prefixed("assessment") from exc

        record.add_assessment(assessment, now=self._clock())
        with repository_errors("add assessment"):
            await self._medical_record_repository.update(record)

        await audit_log_event(
            event="medical_record.assessment_added",
            patient_id=record.patient_id.value,
            resource_id=record.id.value,
            user_id=assessment.assessed_by.value,
            clinic_id=self._clinic,
            payload={"assessment_id": assessment.id, "type": assessment.type},
        )
        return assessment

    async def get_timeline(self, patient_id: str) -> List[TimelineEvent]:
        """Chronological events across all records of a patient."""
        events: List[TimelineEvent] = []
        for record in await self.get_medical_history(patient_id):
            events.extend(record.timeline())
        events.sort(key=lambda e: e.date)
        return events

    async def check_integrity(self, record_id: str) -> IntegrityReport:
        record = await self._require(record_id)
        return record.check_integrity(self._clock())

    def _log_integrity(self, record: MedicalRecord) -> None:
        report = record.check_integrity(self._clock())
        for issue in report.issues:
            logger.warning(
                "Medical record %s integrity %s: %s",
                record.id.value,
                issue.severity.value,
                issue.message,
            )

    async def _require(self, record_id: str) -> MedicalRecord:
        record = await self.get_medical_record(record_id)
        if record is None:
            raise MedicalRecordNotFoundError(record_id)
        return record

    @staticmethod
    def _parse_patient_id(patient_id: str) -> PatientId:
        try:
            return PatientId(patient_id)
        except ValueError:
            raise PatientNotFoundError(str(patient_id))
