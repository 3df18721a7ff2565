"""
Object storage interface for document bytes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StoredObject:
    path: str
    checksum: str
    is_encrypted: bool = False
    encryption_algorithm: Optional[str] = None


class ObjectStorage(ABC):
    """Abstract interface for the external object store."""

    @abstractmethod
    async def put(self, content: bytes, path: str) -> StoredObject:
        """
        Store ``content`` under ``path``.

        Returns:
            StoredObject with the final path and the sha256 checksum of the
            original (unencrypted) content.
        """
        pass

    @abstractmethod
    async def get(self, path: str) -> bytes:
        """Return the original bytes stored under ``path``."""
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Remove the object; returns False if nothing was stored there."""
        pass
