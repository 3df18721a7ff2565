"""
Clinical enums used by the medical record aggregate.
"""

from enum import Enum


class DiagnosisSeverity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    UNKNOWN = "unknown"


class AllergySeverity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"
    LIFE_THREATENING = "life_threatening"


class ProgressNoteCategory(str, Enum):
    ASSESSMENT = "assessment"
    TREATMENT = "treatment"
    OBSERVATION = "observation"
    GOAL_PROGRESS = "goal_progress"


class TreatmentStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DISCONTINUED = "discontinued"


class IntegrityStatus(str, Enum):
    """Outcome of a medical record integrity check."""
    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"
