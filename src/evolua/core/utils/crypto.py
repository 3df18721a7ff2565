"""
Crypto utilities for stored documents:
- sha256 checksums of original content
- Fernet-based symmetric encryption/decryption of file bytes

Env vars used:
- ENCRYPTION_KEY: base64-encoded 32-byte key for Fernet
"""

from __future__ import annotations

import hashlib
import logging
import os
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

ENCRYPTION_ALGORITHM = "fernet"

_fernet_singleton: Optional[Fernet] = None


def sha256_checksum(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def get_fernet(key: Optional[str] = None) -> Fernet:
    """Fernet built from ``key`` or ENCRYPTION_KEY.

    Without any key an ephemeral one is generated; bytes encrypted with it
    cannot be read after a restart, so this is for development only.
    """
    global _fernet_singleton
    if key:
        return Fernet(key.strip().encode("utf-8"))
    if _fernet_singleton is not None:
        return _fernet_singleton

    env_key = os.getenv("ENCRYPTION_KEY", "").strip()
    if not env_key:
        _fernet_singleton = Fernet(Fernet.generate_key())
        logging.getLogger("evolua").warning(
            "ENCRYPTION_KEY not set. Using ephemeral key (dev only). Encrypted files will be unreadable after restart."
        )
        return _fernet_singleton
    _fernet_singleton = Fernet(env_key.encode("utf-8"))
    return _fernet_singleton


def encrypt_bytes(content: bytes, fernet: Optional[Fernet] = None) -> bytes:
    return (fernet or get_fernet()).encrypt(content)


def decrypt_bytes(token: bytes, fernet: Optional[Fernet] = None) -> bytes:
    try:
        return (fernet or get_fernet()).decrypt(token)
    except InvalidToken as exc:
        raise ValueError("Stored content could not be decrypted") from exc
