"""
Clinic-membership authorization for documents.
"""

import logging
from typing import Iterable, Optional

from ...application.ports.repositories.document_repo import DocumentRepository
from ...application.ports.services.authorization_service import AuthorizationService
from ...application.ports.services.user_directory import UserDirectory, UserInfo
from ...core.auth import AuthService
from ...domain.value_objects.identifiers import DocumentId

logger = logging.getLogger(__name__)

CONFIDENTIAL_ROLES = frozenset({"admin", "therapist", "doctor"})


class ApiKeyUserDirectory(UserDirectory):
    """Users known from the configured API keys."""

    def __init__(self, auth_service: AuthService):
        self._auth_service = auth_service

    async def get_user(self, user_id: str) -> Optional[UserInfo]:
        for user in self._auth_service.users:
            if user.user_id == user_id:
                return user
        return None


class ClinicAuthorizationService(AuthorizationService):
    """
    A user may access a document of their own clinic; confidential
    documents additionally need a clinical or admin role.

    Unknown documents are allowed through so the caller can report them
    as not found.
    """

    def __init__(
        self,
        user_directory: UserDirectory,
        document_repository: DocumentRepository,
        confidential_roles: Iterable[str] = CONFIDENTIAL_ROLES,
    ):
        self._user_directory = user_directory
        self._document_repository = document_repository
        self._confidential_roles = frozenset(r.lower() for r in confidential_roles)

    async def can_access(self, user_id: str, resource_id: str) -> bool:
        user = await self._user_directory.get_user(user_id)
        if user is None:
            logger.warning("Access check for unknown user %s", user_id)
            return False
        if user.clinic_id != self._document_repository.clinic_id.value:
            return False

        try:
            document_id = DocumentId(resource_id)
        except ValueError:
            return True
        document = await self._document_repository.find_by_id(document_id)
        if document is None:
            return True
        if document.clinic_id.value != user.clinic_id:
            return False
        if document.is_confidential() and user.role.lower() not in self._confidential_roles:
            logger.info("User %s lacks a role for confidential document %s", user_id, resource_id)
            return False
        return True
