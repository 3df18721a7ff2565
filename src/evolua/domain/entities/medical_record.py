"""Medical record aggregate attached to a patient."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

from ...core.utils.datetime_utils import utc_now
from ..enums.clinical import IntegrityStatus
from ..validation import FieldErrors
from ..value_objects.allergy import Allergy
from ..value_objects.assessment import Assessment
from ..value_objects.diagnosis import Diagnosis
from ..value_objects.identifiers import ClinicId, MedicalRecordId, PatientId, UserId
from ..value_objects.medication import Medication
from ..value_objects.progress_note import ProgressNote
from ..value_objects.treatment_history import TreatmentHistory

T = TypeVar("T")

# Pairs of medication name fragments known to interact.
KNOWN_INTERACTIONS = (("warfarin", "aspirin"),)


def build_items(
    errors: FieldErrors,
    field_name: str,
    items: Optional[Iterable[Any]],
    kind: type,
    factory: Optional[Callable[[Mapping[str, Any]], T]] = None,
) -> List[T]:
    """Build each list item, reporting failures as ``field[index].attr``."""
    built: List[T] = []
    for index, item in enumerate(items or []):
        if isinstance(item, kind):
            built.append(item)
            continue
        value = errors.capture(f"{field_name}[{index}]", factory or kind.from_dict, item)
        if value is not None:
            built.append(value)
    return built


@dataclass
class MedicalRecordUpdate:
    """Wholesale replacement of the supplied lists."""

    diagnosis: Optional[List[Any]] = None
    medications: Optional[List[Any]] = None
    allergies: Optional[List[Any]] = None
    treatment_history: Optional[List[Any]] = None


@dataclass(frozen=True)
class IntegrityIssue:
    severity: IntegrityStatus
    code: str
    message: str


@dataclass
class IntegrityReport:
    status: IntegrityStatus = IntegrityStatus.PASSED
    issues: List[IntegrityIssue] = field(default_factory=list)

    def add(self, severity: IntegrityStatus, code: str, message: str) -> None:
        self.issues.append(IntegrityIssue(severity, code, message))
        if severity == IntegrityStatus.FAILED or self.status == IntegrityStatus.PASSED:
            self.status = severity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "issues": [
                {"severity": i.severity.value, "code": i.code, "message": i.message}
                for i in self.issues
            ],
        }


@dataclass(frozen=True)
class TimelineEvent:
    date: datetime
    type: str
    title: str
    description: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "details": dict(self.details),
        }


@dataclass
class MedicalRecord:
    """Clinical history of a patient.

    Progress notes are append-only; the other lists are replaced wholesale
    through ``replace``.
    """

    id: MedicalRecordId
    patient_id: PatientId
    clinic_id: ClinicId
    diagnosis: List[Diagnosis] = field(default_factory=list)
    medications: List[Medication] = field(default_factory=list)
    allergies: List[Allergy] = field(default_factory=list)
    progress_notes: List[ProgressNote] = field(default_factory=list)
    assessments: List[Assessment] = field(default_factory=list)
    treatment_history: List[TreatmentHistory] = field(default_factory=list)
    created_by: Optional[UserId] = None
    updated_by: Optional[UserId] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(
        cls,
        patient_id: PatientId,
        clinic_id: ClinicId,
        created_by: UserId,
        diagnosis: Optional[Iterable[Any]] = None,
        medications: Optional[Iterable[Any]] = None,
        allergies: Optional[Iterable[Any]] = None,
        treatment_history: Optional[Iterable[Any]] = None,
        initial_assessment: Optional[Any] = None,
        record_id: Optional[MedicalRecordId] = None,
        now: Optional[datetime] = None,
    ) -> "MedicalRecord":
        errors = FieldErrors()
        diagnoses = build_items(errors, "diagnosis", diagnosis, Diagnosis)
        meds = build_items(errors, "medications", medications, Medication)
        allergy_list = build_items(errors, "allergies", allergies, Allergy)
        treatments = build_items(errors, "treatment_history", treatment_history, TreatmentHistory)
        assessments: List[Assessment] = []
        if initial_assessment is not None:
            if isinstance(initial_assessment, Assessment):
                assessments.append(initial_assessment)
            else:
                built = errors.capture(
                    "initial_assessment",
                    Assessment.from_dict,
                    initial_assessment,
                    assessed_by=created_by,
                )
                if built is not None:
                    assessments.append(built)
        errors.raise_if_any("Invalid medical record")

        timestamp = now or utc_now()
        return cls(
            id=record_id or MedicalRecordId.generate(),
            patient_id=patient_id,
            clinic_id=clinic_id,
            diagnosis=diagnoses,
            medications=meds,
            allergies=allergy_list,
            assessments=assessments,
            treatment_history=treatments,
            created_by=created_by,
            updated_by=created_by,
            created_at=timestamp,
            updated_at=timestamp,
        )

    def _touch(self, user: Optional[UserId], now: Optional[datetime]) -> None:
        self.updated_by = user or self.updated_by
        self.updated_at = now or utc_now()

    def replace(
        self,
        changes: MedicalRecordUpdate,
        updated_by: Optional[UserId] = None,
        now: Optional[datetime] = None,
    ) -> None:
        errors = FieldErrors()
        diagnoses = meds = allergy_list = treatments = None
        if changes.diagnosis is not None:
            diagnoses = build_items(errors, "diagnosis", changes.diagnosis, Diagnosis)
        if changes.medications is not None:
            meds = build_items(errors, "medications", changes.medications, Medication)
        if changes.allergies is not None:
            allergy_list = build_items(errors, "allergies", changes.allergies, Allergy)
        if changes.treatment_history is not None:
            treatments = build_items(
                errors, "treatment_history", changes.treatment_history, TreatmentHistory
            )
        errors.raise_if_any("Invalid medical record")

        if diagnoses is not None:
            self.diagnosis = diagnoses
        if meds is not None:
            self.medications = meds
        if allergy_list is not None:
            self.allergies = allergy_list
        if treatments is not None:
            self.treatment_history = treatments
        self._touch(updated_by, now)

    def add_progress_note(self, note: ProgressNote, now: Optional[datetime] = None) -> None:
        self.progress_notes.append(note)
        self._touch(note.created_by, now)

    def add_assessment(self, assessment: Assessment, now: Optional[datetime] = None) -> None:
        self.assessments.append(assessment)
        self._touch(assessment.assessed_by, now)

    def add_medication(
        self, medication: Medication, added_by: Optional[UserId] = None, now: Optional[datetime] = None
    ) -> None:
        self.medications.append(medication)
        self._touch(added_by, now)

    def update_treatment_plan(
        self, treatment: TreatmentHistory, updated_by: Optional[UserId] = None, now: Optional[datetime] = None
    ) -> None:
        """Record a new treatment plan; earlier entries stay in the history."""
        self.treatment_history.append(treatment)
        self._touch(updated_by, now)

    def get_latest_assessment(self) -> Optional[Assessment]:
        if not self.assessments:
            return None
        return max(self.assessments, key=lambda a: a.date)

    def get_active_medications(self, now: Optional[datetime] = None) -> List[Medication]:
        return [m for m in self.medications if m.is_active(now)]

    def get_severe_allergies(self) -> List[Allergy]:
        return [a for a in self.allergies if a.is_severe()]

    def timeline(self) -> List[TimelineEvent]:
        """All dated clinical events in chronological order."""
        events: List[TimelineEvent] = []
        for d in self.diagnosis:
            events.append(
                TimelineEvent(d.diagnosed_at, "diagnosis", f"Diagnosis {d.code}", d.description,
                              {"severity": d.severity.value})
            )
        for m in self.medications:
            events.append(
                TimelineEvent(m.start_date, "medication", f"Started {m.name}",
                              f"{m.dosage}, {m.frequency}", {"prescribed_by": m.prescribed_by})
            )
            if m.end_date is not None:
                events.append(
                    TimelineEvent(m.end_date, "medication", f"Stopped {m.name}", m.notes or "")
                )
        for a in self.allergies:
            events.append(
                TimelineEvent(a.diagnosed_at, "allergy", f"Allergy to {a.allergen}", a.reaction,
                              {"severity": a.severity.value})
            )
        for n in self.progress_notes:
            events.append(
                TimelineEvent(n.session_date, "progress_note", n.category.value, n.content,
                              {"created_by": n.created_by.value, "note_id": n.id})
            )
        for s in self.assessments:
            events.append(
                TimelineEvent(s.date, "assessment", s.type, s.findings,
                              {"recommendations": list(s.recommendations), "assessment_id": s.id})
            )
        for t in self.treatment_history:
            events.append(
                TimelineEvent(t.start_date, "treatment", t.status.value, t.description,
                              {"goals": list(t.goals), "treatment_id": t.id})
            )
        events.sort(key=lambda e: e.date)
        return events

    def check_integrity(self, now: Optional[datetime] = None) -> IntegrityReport:
        report = IntegrityReport()
        active = self.get_active_medications(now)
        names = [m.name.lower() for m in active]

        for first, second in KNOWN_INTERACTIONS:
            if any(first in n for n in names) and any(second in n for n in names):
                report.add(
                    IntegrityStatus.WARNING,
                    "DRUG_INTERACTION",
                    f"Potential interaction between {first} and {second}",
                )

        for allergy in self.allergies:
            allergen = allergy.allergen.lower()
            for medication in active:
                if allergen in medication.name.lower():
                    report.add(
                        IntegrityStatus.FAILED,
                        "ALLERGY_CONFLICT",
                        f"Active medication {medication.name} conflicts with allergy to {allergy.allergen}",
                    )

        if not self.diagnosis:
            report.add(IntegrityStatus.WARNING, "NO_DIAGNOSIS", "Medical record has no diagnosis")
        codes = [d.code for d in self.diagnosis]
        for code in sorted({c for c in codes if codes.count(c) > 1}):
            report.add(IntegrityStatus.WARNING, "DUPLICATE_DIAGNOSIS", f"Diagnosis {code} recorded more than once")
        for d in self.diagnosis:
            if not d.has_standard_code():
                report.add(IntegrityStatus.WARNING, "NON_STANDARD_CODE", f"Diagnosis code {d.code} is not ICD-10")

        running = sorted(
            (t for t in self.treatment_history if t.is_active(now)), key=lambda t: t.start_date
        )
        for earlier, later in zip(running, running[1:]):
            if earlier.end_date is None or earlier.end_date > later.start_date:
                report.add(
                    IntegrityStatus.WARNING,
                    "OVERLAPPING_TREATMENTS",
                    f"Treatments '{earlier.description}' and '{later.description}' overlap",
                )
        return report

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id.value,
            "patient_id": self.patient_id.value,
            "clinic_id": self.clinic_id.value,
            "diagnosis": [d.to_dict() for d in self.diagnosis],
            "medications": [m.to_dict() for m in self.medications],
            "allergies": [a.to_dict() for a in self.allergies],
            "progress_notes": [n.to_dict() for n in self.progress_notes],
            "assessments": [a.to_dict() for a in self.assessments],
            "treatment_history": [t.to_dict() for t in self.treatment_history],
            "created_by": self.created_by.value if self.created_by else None,
            "updated_by": self.updated_by.value if self.updated_by else None,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
