"""
Translation of adapter failures into the application error taxonomy.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from ...core.exceptions import DatabaseError, EvoluaException, StorageError
from ...domain.errors import DomainError

logger = logging.getLogger("evolua")


@contextmanager
def repository_errors(operation: str) -> Iterator[None]:
    """Re-raise unexpected repository failures as ``DatabaseError``."""
    try:
        yield
    except (DomainError, EvoluaException):
        raise
    except Exception as exc:
        logger.error("Repository failure during %s: %s", operation, exc, exc_info=True)
        raise DatabaseError(f"Failed to {operation}", {"error": str(exc)}) from exc


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Re-raise unexpected object storage failures as ``StorageError``."""
    try:
        yield
    except (DomainError, EvoluaException):
        raise
    except Exception as exc:
        logger.error("Storage failure during %s: %s", operation, exc, exc_info=True)
        raise StorageError(f"Failed to {operation}", {"error": str(exc)}) from exc
