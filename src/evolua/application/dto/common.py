"""Pagination DTOs shared by search operations."""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Sequence, TypeVar

from ...domain.errors import ValidationFailedError

T = TypeVar("T")

MAX_PAGE_SIZE = 100


@dataclass
class Pagination:
    page: int = 1
    limit: int = 20
    sort_by: str = "name"
    sort_order: str = "asc"

    def validate(self, sortable: Sequence[str]) -> None:
        field_errors: Dict[str, List[str]] = {}
        if self.page < 1:
            field_errors["page"] = ["Page must be at least 1"]
        if self.limit < 1 or self.limit > MAX_PAGE_SIZE:
            field_errors["limit"] = [f"Limit must be between 1 and {MAX_PAGE_SIZE}"]
        if self.sort_by not in sortable:
            field_errors["sort_by"] = [f"Sort field must be one of: {list(sortable)}"]
        if self.sort_order not in ("asc", "desc"):
            field_errors["sort_order"] = ["Sort order must be 'asc' or 'desc'"]
        if field_errors:
            raise ValidationFailedError(field_errors, "Invalid pagination")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def descending(self) -> bool:
        return self.sort_order == "desc"


@dataclass
class PaginatedResult(Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @classmethod
    def from_list(cls, items: List[T], pagination: Pagination) -> "PaginatedResult[T]":
        """Slice an already filtered and sorted list into one page."""
        page = items[pagination.offset: pagination.offset + pagination.limit]
        return cls(data=page, total=len(items), page=pagination.page, limit=pagination.limit)

    def map(self, fn: Callable[[T], Any]) -> "PaginatedResult[Any]":
        return PaginatedResult(
            data=[fn(item) for item in self.data],
            total=self.total,
            page=self.page,
            limit=self.limit,
        )

    def to_dict(self, serialize: Callable[[T], Any] = lambda item: item) -> Dict[str, Any]:
        return {
            "data": [serialize(item) for item in self.data],
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
        }


@dataclass
class BulkOperationResult:
    """Per-item outcome of a bulk operation; failures never abort the batch."""

    successful: List[str] = field(default_factory=list)
    failed: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"successful": list(self.successful), "failed": list(self.failed)}
