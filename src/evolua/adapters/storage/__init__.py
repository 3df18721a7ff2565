"""Object storage adapters for document bytes."""

from .azure_blob_object_storage import AzureBlobObjectStorage
from .memory_object_storage import InMemoryObjectStorage

__all__ = ["AzureBlobObjectStorage", "InMemoryObjectStorage"]
