"""
MongoDB Beanie model for medical records.

Clinical lists are kept as plain embedded dicts in the shape produced by
the value objects' ``to_dict``.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, IndexModel


class MedicalRecordMongo(Document):
    """MongoDB model for the MedicalRecord aggregate."""

    record_id: str = Field(..., description="Medical record ID")
    patient_id: str = Field(..., description="Patient ID reference")
    clinic_id: str = Field(..., description="Owning clinic")
    diagnosis: List[Dict[str, Any]] = Field(default_factory=list)
    medications: List[Dict[str, Any]] = Field(default_factory=list)
    allergies: List[Dict[str, Any]] = Field(default_factory=list)
    progress_notes: List[Dict[str, Any]] = Field(default_factory=list)
    assessments: List[Dict[str, Any]] = Field(default_factory=list)
    treatment_history: List[Dict[str, Any]] = Field(default_factory=list)
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "medical_records"
        indexes = [
            IndexModel([("clinic_id", ASCENDING), ("record_id", ASCENDING)], unique=True),
            IndexModel([("clinic_id", ASCENDING), ("patient_id", ASCENDING), ("created_at", ASCENDING)]),
        ]
