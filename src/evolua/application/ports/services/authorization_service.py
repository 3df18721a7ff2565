"""
Authorization interface consulted before document access.
"""

from abc import ABC, abstractmethod


class AuthorizationService(ABC):
    """Decides whether a user may access a resource."""

    @abstractmethod
    async def can_access(self, user_id: str, resource_id: str) -> bool:
        """Return True if ``user_id`` may read or delete ``resource_id``."""
        pass
