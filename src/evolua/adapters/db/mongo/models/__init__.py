"""Beanie documents registered with ``init_beanie``."""

from .document_m import DocumentMongo
from .medical_record_m import MedicalRecordMongo
from .patient_m import PatientMongo

DOCUMENT_MODELS = [PatientMongo, MedicalRecordMongo, DocumentMongo]

__all__ = ["DOCUMENT_MODELS", "DocumentMongo", "MedicalRecordMongo", "PatientMongo"]
