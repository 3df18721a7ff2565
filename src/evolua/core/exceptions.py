"""
Infrastructure exceptions for Evolua.

Business rule violations live in ``evolua.domain.errors``; the classes
here describe failures of configuration, persistence and external
collaborators. Application services wrap raw adapter failures into these
so storage-layer error types never reach callers.
"""

from typing import Any, Dict, Optional


class EvoluaException(Exception):
    """Base exception class for Evolua infrastructure failures."""

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


class ConfigurationError(EvoluaException):
    """Raised when there's a configuration error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "CONFIG_ERROR", details)


class DatabaseError(EvoluaException):
    """Raised when there's a database operation error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "DATABASE_ERROR", details)


class ExternalServiceError(EvoluaException):
    """Raised when there's an external service error."""

    def __init__(
        self, service: str, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.service = service
        full_message = f"{service} service error: {message}"
        super().__init__(full_message, "EXTERNAL_SERVICE_ERROR", details)


class StorageError(ExternalServiceError):
    """Raised when the object store fails."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("ObjectStorage", message, details)


class VirusScanError(ExternalServiceError):
    """Raised when the virus scanner cannot produce a verdict."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("VirusScanner", message, details)
