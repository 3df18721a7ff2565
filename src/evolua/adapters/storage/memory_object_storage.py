"""
Process-local object storage used in development and tests.
"""

from typing import Dict, Optional

from cryptography.fernet import Fernet

from ...application.ports.services.object_storage import ObjectStorage, StoredObject
from ...core.exceptions import StorageError
from ...core.utils.crypto import ENCRYPTION_ALGORITHM, decrypt_bytes, encrypt_bytes, sha256_checksum


class InMemoryObjectStorage(ObjectStorage):
    """Keeps objects in a dict; optionally Fernet-encrypts them like the blob adapter."""

    def __init__(self, fernet: Optional[Fernet] = None):
        self._fernet = fernet
        self.objects: Dict[str, bytes] = {}

    async def put(self, content: bytes, path: str) -> StoredObject:
        checksum = sha256_checksum(content)
        data = encrypt_bytes(content, self._fernet) if self._fernet else content
        self.objects[path] = data
        return StoredObject(
            path=path,
            checksum=checksum,
            is_encrypted=self._fernet is not None,
            encryption_algorithm=ENCRYPTION_ALGORITHM if self._fernet else None,
        )

    async def get(self, path: str) -> bytes:
        if path not in self.objects:
            raise StorageError(f"Object not found: {path}", {"path": path})
        data = self.objects[path]
        return decrypt_bytes(data, self._fernet) if self._fernet else data

    async def delete(self, path: str) -> bool:
        return self.objects.pop(path, None) is not None
