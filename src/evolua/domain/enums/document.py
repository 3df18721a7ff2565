"""
Document lifecycle and classification enums.
"""

from enum import Enum


class DocumentStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    QUARANTINED = "quarantined"  # failed virus scan
    DELETED = "deleted"


class DocumentType(str, Enum):
    MEDICAL_REPORT = "medical_report"
    PRESCRIPTION = "prescription"
    EXAM_RESULT = "exam_result"
    INSURANCE_CARD = "insurance_card"
    IDENTIFICATION = "identification"
    CONSENT_FORM = "consent_form"
    TREATMENT_PLAN = "treatment_plan"
    PROGRESS_NOTE = "progress_note"
    OTHER = "other"


class VirusScanResult(str, Enum):
    CLEAN = "clean"
    INFECTED = "infected"
    PENDING = "pending"


class BulkOperation(str, Enum):
    ARCHIVE = "archive"
    DELETE = "delete"
