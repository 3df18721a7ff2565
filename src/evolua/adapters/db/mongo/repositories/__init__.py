"""MongoDB repository implementations."""

from .document_repository import MongoDocumentRepository
from .medical_record_repository import MongoMedicalRecordRepository
from .patient_repository import MongoPatientRepository

__all__ = ["MongoDocumentRepository", "MongoMedicalRecordRepository", "MongoPatientRepository"]
