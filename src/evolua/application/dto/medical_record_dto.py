"""Medical record DTOs."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class CreateMedicalRecordRequest:
    patient_id: str
    diagnosis: Optional[List[Dict[str, Any]]] = None
    medications: Optional[List[Dict[str, Any]]] = None
    allergies: Optional[List[Dict[str, Any]]] = None
    treatment_history: Optional[List[Dict[str, Any]]] = None
    initial_assessment: Optional[Dict[str, Any]] = None


@dataclass
class UpdateMedicalRecordRequest:
    """Each supplied list replaces the stored one as a whole."""

    diagnosis: Optional[List[Dict[str, Any]]] = None
    medications: Optional[List[Dict[str, Any]]] = None
    allergies: Optional[List[Dict[str, Any]]] = None
    treatment_history: Optional[List[Dict[str, Any]]] = None


@dataclass
class AddProgressNoteRequest:
    content: str
    session_date: datetime
    category: str = "observation"


@dataclass
class AddAssessmentRequest:
    type: str
    findings: str
    recommendations: List[str]
    date: datetime
    results: Optional[Dict[str, Any]] = None
