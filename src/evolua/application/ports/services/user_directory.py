"""
User directory interface: clinic membership and role of a user.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UserInfo:
    user_id: str
    clinic_id: str
    role: str


class UserDirectory(ABC):
    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserInfo]:
        """Return the user's clinic and role, or None if unknown."""
        pass
