"""
Domain entities (aggregate roots).
"""

from .document import Document, DocumentMetadata, SecurityInfo
from .medical_record import MedicalRecord, MedicalRecordUpdate
from .patient import Patient, PatientUpdate, StatusChange

__all__ = [
    "Document",
    "DocumentMetadata",
    "MedicalRecord",
    "MedicalRecordUpdate",
    "Patient",
    "PatientUpdate",
    "SecurityInfo",
    "StatusChange",
]
