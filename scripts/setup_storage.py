#!/usr/bin/env python3
"""
Setup script to create the blob container for clinical documents.
Uses AZURE_BLOB_CONNECTION_STRING and AZURE_BLOB_CONTAINER_NAME.
"""

import asyncio
import sys

sys.path.insert(0, "src")

from evolua.adapters.storage import AzureBlobObjectStorage
from evolua.core.config import get_settings


async def setup_document_container() -> int:
    settings = get_settings()
    if not settings.azure_blob.enabled:
        print("❌ AZURE_BLOB_CONNECTION_STRING is not set; documents stay in memory")
        return 1

    storage = AzureBlobObjectStorage(settings.azure_blob)
    await storage.ensure_container_exists()
    print(f"✅ Document container ready: {settings.azure_blob.container_name}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(setup_document_container()))
