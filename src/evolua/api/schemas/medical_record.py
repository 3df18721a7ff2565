"""
Medical record request schemas.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ...application.dto.medical_record_dto import (
    AddAssessmentRequest,
    AddProgressNoteRequest,
    CreateMedicalRecordRequest,
    UpdateMedicalRecordRequest,
)


class DiagnosisSchema(BaseModel):
    code: str
    description: str
    diagnosed_at: datetime
    severity: str = "unknown"


class MedicationSchema(BaseModel):
    name: str
    dosage: str
    frequency: str
    start_date: datetime
    end_date: Optional[datetime] = None
    prescribed_by: str
    notes: Optional[str] = None


class AllergySchema(BaseModel):
    allergen: str
    reaction: str
    severity: str
    diagnosed_at: datetime
    notes: Optional[str] = None


class TreatmentSchema(BaseModel):
    description: str
    start_date: datetime
    end_date: Optional[datetime] = None
    status: str = "in_progress"
    goals: List[str] = Field(default_factory=list)


class AssessmentSchema(BaseModel):
    type: str
    findings: str
    recommendations: List[str] = Field(default_factory=list)
    date: datetime
    results: Optional[Dict[str, Any]] = None

    def to_dto(self) -> AddAssessmentRequest:
        return AddAssessmentRequest(
            type=self.type,
            findings=self.findings,
            recommendations=list(self.recommendations),
            date=self.date,
            results=self.results,
        )


def _dump_all(items: Optional[List[BaseModel]]) -> Optional[List[Dict[str, Any]]]:
    if items is None:
        return None
    return [item.model_dump(exclude_none=True) for item in items]


class CreateMedicalRecordSchema(BaseModel):
    patient_id: str
    diagnosis: Optional[List[DiagnosisSchema]] = None
    medications: Optional[List[MedicationSchema]] = None
    allergies: Optional[List[AllergySchema]] = None
    treatment_history: Optional[List[TreatmentSchema]] = None
    initial_assessment: Optional[AssessmentSchema] = None

    def to_dto(self) -> CreateMedicalRecordRequest:
        return CreateMedicalRecordRequest(
            patient_id=self.patient_id,
            diagnosis=_dump_all(self.diagnosis),
            medications=_dump_all(self.medications),
            allergies=_dump_all(self.allergies),
            treatment_history=_dump_all(self.treatment_history),
            initial_assessment=(
                self.initial_assessment.model_dump(exclude_none=True)
                if self.initial_assessment else None
            ),
        )


class UpdateMedicalRecordSchema(BaseModel):
    diagnosis: Optional[List[DiagnosisSchema]] = None
    medications: Optional[List[MedicationSchema]] = None
    allergies: Optional[List[AllergySchema]] = None
    treatment_history: Optional[List[TreatmentSchema]] = None

    def to_dto(self) -> UpdateMedicalRecordRequest:
        return UpdateMedicalRecordRequest(
            diagnosis=_dump_all(self.diagnosis),
            medications=_dump_all(self.medications),
            allergies=_dump_all(self.allergies),
            treatment_history=_dump_all(self.treatment_history),
        )


class ProgressNoteSchema(BaseModel):
    content: str
    session_date: datetime
    category: str = "observation"

    def to_dto(self) -> AddProgressNoteRequest:
        return AddProgressNoteRequest(
            content=self.content, session_date=self.session_date, category=self.category
        )
