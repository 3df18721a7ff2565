"""
API key authentication.

Each configured key identifies one user of one clinic with one role:
``SECURITY_API_KEYS="key1:user1:clinic1:therapist,key2:user2:clinic1:admin"``.
The role defaults to ``therapist`` and the clinic to ``default`` when the
entry omits them.
"""

import logging
from typing import Dict, List, Optional

from fastapi import HTTPException

from ..application.ports.services.user_directory import UserInfo
from .config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_CLINIC = "default"
DEFAULT_ROLE = "therapist"


class AuthService:
    """Authentication service for validating API keys"""

    def __init__(self, api_keys: Optional[str] = None):
        self.api_keys: Dict[str, UserInfo] = {}
        if api_keys is None:
            api_keys = get_settings().security.api_keys
        self._parse_api_keys(api_keys)
        if not self.api_keys:
            logger.warning("No API keys configured. Authentication will fail for all requests.")

    def _parse_api_keys(self, api_keys_str: str) -> None:
        """
        Parse API keys string.
        Format: "key:user_id:clinic_id:role,..." (clinic and role optional)
        """
        if not api_keys_str or not api_keys_str.strip():
            return

        for entry in api_keys_str.split(","):
            parts = [p.strip() for p in entry.strip().split(":")]
            if not parts or not parts[0]:
                continue
            key = parts[0]
            user_id = parts[1] if len(parts) > 1 and parts[1] else key
            clinic_id = parts[2] if len(parts) > 2 and parts[2] else DEFAULT_CLINIC
            role = parts[3].lower() if len(parts) > 3 and parts[3] else DEFAULT_ROLE
            self.api_keys[key] = UserInfo(user_id=user_id, clinic_id=clinic_id, role=role)

    @property
    def users(self) -> List[UserInfo]:
        return list(self.api_keys.values())

    def validate_api_key(self, api_key: Optional[str]) -> UserInfo:
        """
        Validate API key and return the user it identifies.

        Raises:
            HTTPException: If API key is invalid or missing
        """
        if not api_key:
            raise HTTPException(
                status_code=401,
                detail="Authentication required. Provide X-API-Key header or Authorization Bearer token.",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if api_key.startswith("Bearer "):
            api_key = api_key[7:].strip()

        user = self.api_keys.get(api_key)
        if user is not None:
            logger.debug("API key validated for user: %s", user.user_id)
            return user

        logger.warning("Invalid API key attempted: %s...", api_key[:4])
        raise HTTPException(
            status_code=401,
            detail="Invalid API key or token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    def get_user_from_request(
        self, api_key: Optional[str] = None, auth_header: Optional[str] = None
    ) -> UserInfo:
        """
        Extract and validate the user from request headers.

        Priority:
        1. X-API-Key header
        2. Authorization Bearer token
        """
        if api_key:
            return self.validate_api_key(api_key)
        if auth_header and auth_header.startswith("Bearer "):
            return self.validate_api_key(auth_header[7:].strip())

        raise HTTPException(
            status_code=401,
            detail="Authentication required. Provide X-API-Key header or Authorization Bearer token.",
            headers={"WWW-Authenticate": "Bearer"},
        )


# Global instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get global authentication service instance (singleton)"""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service


def set_auth_service(service: Optional[AuthService]) -> None:
    """Replace the global instance; None forces a reload from settings."""
    global _auth_service
    _auth_service = service
