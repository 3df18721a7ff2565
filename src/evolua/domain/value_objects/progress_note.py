"""Progress note appended to a medical record after a therapy session."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ...core.utils.datetime_utils import to_datetime, utc_now
from ..enums.clinical import ProgressNoteCategory
from ..validation import FieldErrors, ensure_max_length, ensure_not_future, ensure_required
from .identifiers import UserId

MAX_CONTENT_LENGTH = 2000


@dataclass(frozen=True)
class ProgressNote:
    content: str
    created_by: UserId
    session_date: datetime
    category: ProgressNoteCategory = ProgressNoteCategory.OBSERVATION
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        errors = FieldErrors()
        content = errors.capture("content", ensure_required, self.content, "Note content")
        errors.capture("content", ensure_max_length, content, "Note content", MAX_CONTENT_LENGTH)
        if not isinstance(self.created_by, UserId):
            errors.add("created_by", "Note author is required")
        errors.capture("session_date", ensure_not_future, self.session_date, "Session date")
        category = errors.capture("category", ProgressNoteCategory, self.category)
        errors.raise_if_any("Invalid progress note")

        object.__setattr__(self, "content", content)
        object.__setattr__(self, "category", category)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], created_by: Optional[UserId] = None) -> "ProgressNote":
        errors = FieldErrors()
        session_date = errors.build(data, "session_date", to_datetime)
        author = created_by or errors.build(data, "created_by", UserId)
        errors.raise_if_any("Invalid progress note")
        kwargs: Dict[str, Any] = {}
        if data.get("id"):
            kwargs["id"] = data["id"]
        if data.get("created_at"):
            kwargs["created_at"] = to_datetime(data["created_at"])
        return cls(
            content=data.get("content"),
            created_by=author,
            session_date=session_date,
            category=data.get("category") or ProgressNoteCategory.OBSERVATION,
            **kwargs,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "created_at": self.created_at,
            "created_by": self.created_by.value,
            "session_date": self.session_date,
            "category": self.category.value,
        }
