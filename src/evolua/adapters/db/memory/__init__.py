"""In-memory repositories for development and tests."""

from .repositories import (
    InMemoryDocumentRepository,
    InMemoryMedicalRecordRepository,
    InMemoryPatientRepository,
    InMemoryStore,
)

__all__ = [
    "InMemoryDocumentRepository",
    "InMemoryMedicalRecordRepository",
    "InMemoryPatientRepository",
    "InMemoryStore",
]
