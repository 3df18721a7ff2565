"""
Azure Blob Storage adapter for document bytes.

Blocking SDK calls run in the default executor. When encryption at rest
is enabled the blob holds a Fernet token and the original checksum is
kept in the blob metadata.
"""

import asyncio
import logging
from typing import Optional

import requests
from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.core.pipeline.transport import RequestsTransport
from azure.storage.blob import BlobServiceClient, ContentSettings
from cryptography.fernet import Fernet
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ...application.ports.services.object_storage import ObjectStorage, StoredObject
from ...core.config import AzureBlobSettings
from ...core.exceptions import ConfigurationError, StorageError
from ...core.utils.crypto import ENCRYPTION_ALGORITHM, decrypt_bytes, encrypt_bytes, sha256_checksum

logger = logging.getLogger(__name__)


async def run_blocking(func, *args, **kwargs):
    """Run a blocking function in an executor to avoid blocking the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: func(*args, **kwargs))


class AzureBlobObjectStorage(ObjectStorage):
    """ObjectStorage backed by one Azure Blob container."""

    def __init__(self, settings: AzureBlobSettings, fernet: Optional[Fernet] = None):
        self.settings = settings
        self._fernet = fernet
        self._client: Optional[BlobServiceClient] = None
        self._container_client = None

    @property
    def client(self) -> BlobServiceClient:
        """Get or create BlobServiceClient with retries and timeouts."""
        if self._client is None:
            if not self.settings.connection_string:
                raise ConfigurationError("Azure Blob Storage connection string is required")

            session = requests.Session()
            retry_strategy = Retry(
                total=3,
                connect=3,
                read=3,
                backoff_factor=0.8,
                status_forcelist=[429, 500, 502, 503, 504],
            )
            adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=10, pool_maxsize=10)
            session.mount("http://", adapter)
            session.mount("https://", adapter)

            transport = RequestsTransport(
                session=session,
                connection_timeout=self.settings.connection_timeout,
                read_timeout=self.settings.read_timeout,
            )
            self._client = BlobServiceClient.from_connection_string(
                self.settings.connection_string, transport=transport
            )
            logger.info("Azure Blob Storage client initialized for container: %s", self.settings.container_name)
        return self._client

    @property
    def container_client(self):
        if self._container_client is None:
            self._container_client = self.client.get_container_client(self.settings.container_name)
        return self._container_client

    async def ensure_container_exists(self) -> bool:
        try:
            await run_blocking(self.container_client.create_container)
            logger.info("Created blob container: %s", self.settings.container_name)
        except ResourceExistsError:
            logger.info("Blob container already exists: %s", self.settings.container_name)
        return True

    async def put(self, content: bytes, path: str) -> StoredObject:
        checksum = sha256_checksum(content)
        data = encrypt_bytes(content, self._fernet) if self._fernet else content
        blob_client = self.container_client.get_blob_client(path)
        try:
            await run_blocking(
                blob_client.upload_blob,
                data,
                overwrite=True,
                metadata={"sha256": checksum, "encrypted": str(self._fernet is not None).lower()},
                content_settings=ContentSettings(content_type="application/octet-stream"),
            )
        except AzureError as exc:
            logger.error("Blob upload failed for %s: %s", path, exc)
            raise StorageError(f"Failed to upload {path}", {"path": path}) from exc
        return StoredObject(
            path=path,
            checksum=checksum,
            is_encrypted=self._fernet is not None,
            encryption_algorithm=ENCRYPTION_ALGORITHM if self._fernet else None,
        )

    async def get(self, path: str) -> bytes:
        blob_client = self.container_client.get_blob_client(path)
        try:
            downloader = await run_blocking(blob_client.download_blob)
            data = await run_blocking(downloader.readall)
            properties = await run_blocking(blob_client.get_blob_properties)
        except ResourceNotFoundError as exc:
            raise StorageError(f"Object not found: {path}", {"path": path}) from exc
        except AzureError as exc:
            logger.error("Blob download failed for %s: %s", path, exc)
            raise StorageError(f"Failed to download {path}", {"path": path}) from exc

        if (properties.metadata or {}).get("encrypted") == "true":
            if self._fernet is None:
                raise StorageError(f"Object {path} is encrypted but no key is configured", {"path": path})
            return decrypt_bytes(data, self._fernet)
        return data

    async def delete(self, path: str) -> bool:
        blob_client = self.container_client.get_blob_client(path)
        try:
            await run_blocking(blob_client.delete_blob)
            return True
        except ResourceNotFoundError:
            return False
        except AzureError as exc:
            logger.error("Blob delete failed for %s: %s", path, exc)
            raise StorageError(f"Failed to delete {path}", {"path": path}) from exc
