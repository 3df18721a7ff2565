"""
Field-level error collection for aggregate construction.

Value objects fail fast with ``ValueError``; aggregates build several of
them at once and report every failure together as a single
``ValidationFailedError`` keyed by dotted field path.
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from ..core.utils.datetime_utils import utc_now
from .errors import ValidationFailedError

T = TypeVar("T")


class FieldErrors:
    """Accumulates validation messages per field path."""

    def __init__(self, prefix: Optional[str] = None) -> None:
        self._prefix = prefix
        self._errors: Dict[str, List[str]] = {}

    def _path(self, field: str) -> str:
        return f"{self._prefix}.{field}" if self._prefix else field

    def add(self, field: str, message: str) -> None:
        self._errors.setdefault(self._path(field), []).append(message)

    def capture(self, field: str, factory: Callable[..., T], *args: Any, **kwargs: Any) -> Optional[T]:
        """Call ``factory`` and record its failure under ``field``."""
        try:
            return factory(*args, **kwargs)
        except ValidationFailedError as exc:
            for nested, messages in exc.field_errors.items():
                for message in messages:
                    self.add(f"{field}.{nested}", message)
        except (ValueError, TypeError) as exc:
            self.add(field, str(exc))
        return None

    def build(
        self,
        data: Mapping[str, Any],
        field: str,
        factory: Callable[..., T],
        required: bool = True,
    ) -> Optional[T]:
        """Build ``data[field]`` with ``factory``; missing optional fields yield None."""
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            if required:
                self.add(field, f"{field} is required")
            return None
        if isinstance(factory, type) and isinstance(value, factory):
            return value
        return self.capture(field, factory, value)

    def __bool__(self) -> bool:
        return bool(self._errors)

    @property
    def errors(self) -> Dict[str, List[str]]:
        return dict(self._errors)

    def raise_if_any(self, message: str = "Validation failed") -> None:
        if self._errors:
            raise ValidationFailedError(self._errors, message)


# Client clocks are allowed to run slightly ahead of the server.
CLOCK_SKEW = timedelta(minutes=5)


def ensure_not_future(value: Optional[datetime], label: str, now: Optional[datetime] = None) -> None:
    if value is None:
        raise ValueError(f"{label} is required")
    if value > (now or utc_now()) + CLOCK_SKEW:
        raise ValueError(f"{label} cannot be in the future")


def ensure_max_length(value: Optional[str], label: str, limit: int) -> None:
    if value is not None and len(value) > limit:
        raise ValueError(f"{label} cannot exceed {limit} characters")


def ensure_required(value: Optional[str], label: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(f"{label} is required")
    return str(value).strip()
