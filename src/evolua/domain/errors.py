"""
Domain-specific error types for business rule violations.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence


class DomainError(Exception):
    """Base domain error."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailedError(DomainError, ValueError):
    """One or more fields failed validation.

    ``field_errors`` maps a dotted field path (``personal_info.cpf``,
    ``medications[1].end_date``) to the messages collected for it.
    """

    def __init__(
        self,
        field_errors: Mapping[str, Sequence[str]],
        message: str = "Validation failed",
    ) -> None:
        self.field_errors: Dict[str, List[str]] = {
            field: list(messages) for field, messages in field_errors.items()
        }
        super().__init__(
            message, "VALIDATION_FAILED", {"field_errors": self.field_errors}
        )

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailedError":
        return cls({field: [message]})

    def prefixed(self, prefix: str) -> "ValidationFailedError":
        """Return a copy with every field path nested under ``prefix``."""
        return ValidationFailedError(
            {f"{prefix}.{field}": messages for field, messages in self.field_errors.items()},
            self.message,
        )


class InvalidCPFError(DomainError, ValueError):
    """CPF failed normalization or check-digit validation."""

    def __init__(self, raw: str, reason: str) -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(f"Invalid CPF: {reason}", "INVALID_CPF", {"reason": reason})


class PatientNotFoundError(DomainError):
    """Patient not found."""

    def __init__(self, patient_id: str) -> None:
        message = f"Patient with ID '{patient_id}' not found"
        super().__init__(message, "PATIENT_NOT_FOUND", {"patient_id": patient_id})


class MedicalRecordNotFoundError(DomainError):
    """Medical record not found."""

    def __init__(self, medical_record_id: str) -> None:
        message = f"Medical record with ID '{medical_record_id}' not found"
        super().__init__(
            message,
            "MEDICAL_RECORD_NOT_FOUND",
            {"medical_record_id": medical_record_id},
        )


class DocumentNotFoundError(DomainError):
    """Document not found."""

    def __init__(self, document_id: str) -> None:
        message = f"Document with ID '{document_id}' not found"
        super().__init__(message, "DOCUMENT_NOT_FOUND", {"document_id": document_id})


class DuplicatePatientError(DomainError):
    """A conflicting patient already exists in the clinic."""

    def __init__(self, duplicates: List[Dict[str, Any]]) -> None:
        message = "Patient already exists with matching identity"
        super().__init__(message, "DUPLICATE_PATIENT", {"duplicates": duplicates})
        self.duplicates = duplicates


class UnauthorizedError(DomainError):
    """Caller is not allowed to access the resource."""

    def __init__(self, user_id: str, resource_id: str, reason: str = "Access denied") -> None:
        message = f"User '{user_id}' is not authorized to access '{resource_id}': {reason}"
        super().__init__(
            message,
            "UNAUTHORIZED",
            {"user_id": user_id, "resource_id": resource_id, "reason": reason},
        )


class InvalidStateTransitionError(DomainError):
    """Illegal status change."""

    def __init__(
        self,
        current_status: Optional[str],
        target_status: str,
        reason: Optional[str] = None,
    ) -> None:
        message = f"Cannot transition from '{current_status}' to '{target_status}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            "INVALID_STATE_TRANSITION",
            {"current_status": current_status, "target_status": target_status},
        )
