"""
Mapping from domain and infrastructure errors to HTTP status codes.
"""

from ..core.exceptions import EvoluaException, ExternalServiceError
from ..domain.errors import (
    DocumentNotFoundError,
    DomainError,
    DuplicatePatientError,
    InvalidCPFError,
    InvalidStateTransitionError,
    MedicalRecordNotFoundError,
    PatientNotFoundError,
    UnauthorizedError,
    ValidationFailedError,
)

DOMAIN_STATUS = (
    (ValidationFailedError, 400),
    (InvalidCPFError, 400),
    (PatientNotFoundError, 404),
    (MedicalRecordNotFoundError, 404),
    (DocumentNotFoundError, 404),
    (UnauthorizedError, 403),
    (DuplicatePatientError, 409),
    (InvalidStateTransitionError, 409),
)


def status_for_domain_error(exc: DomainError) -> int:
    for error_type, status_code in DOMAIN_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 400


def status_for_infrastructure_error(exc: EvoluaException) -> int:
    return 502 if isinstance(exc, ExternalServiceError) else 500


def error_details(exc: DomainError) -> dict:
    details = dict(exc.details or {})
    if isinstance(exc, InvalidCPFError):
        details.setdefault("field_errors", {"cpf": [exc.message]})
    return details
