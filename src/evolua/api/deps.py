"""FastAPI dependency providers.

Repositories and services are built per request and bound to the clinic
of the authenticated caller. Process-wide infrastructure (the in-memory
store, the object storage client, the scanner) lives on ``app.state``
and is set up by ``create_app``.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from ..adapters.db.memory import (
    InMemoryDocumentRepository,
    InMemoryMedicalRecordRepository,
    InMemoryPatientRepository,
)
from ..adapters.db.mongo.repositories import (
    MongoDocumentRepository,
    MongoMedicalRecordRepository,
    MongoPatientRepository,
)
from ..adapters.security import ApiKeyUserDirectory, ClinicAuthorizationService
from ..application.ports.repositories.document_repo import DocumentRepository
from ..application.ports.repositories.medical_record_repo import MedicalRecordRepository
from ..application.ports.repositories.patient_repo import PatientRepository
from ..application.ports.services.user_directory import UserInfo
from ..application.services.document_manager import DocumentManager
from ..application.services.medical_record_manager import MedicalRecordManager
from ..application.services.patient_registry import PatientRegistry
from ..core.auth import get_auth_service
from ..domain.value_objects.identifiers import ClinicId


def get_current_user(request: Request) -> UserInfo:
    """
    Authenticated user from request state.

    The authentication middleware must have run first (which it does by default).
    """
    user_id = getattr(request.state, "user_id", None)
    clinic_id = getattr(request.state, "clinic_id", None)
    if not user_id or not clinic_id:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return UserInfo(user_id=user_id, clinic_id=clinic_id, role=getattr(request.state, "role", ""))


CurrentUserDep = Annotated[UserInfo, Depends(get_current_user)]


def get_clinic_id(user: CurrentUserDep) -> ClinicId:
    return ClinicId(user.clinic_id)


ClinicIdDep = Annotated[ClinicId, Depends(get_clinic_id)]


def get_patient_repository(request: Request, clinic_id: ClinicIdDep) -> PatientRepository:
    store = request.app.state.memory_store
    if store is None:
        return MongoPatientRepository(clinic_id)
    return InMemoryPatientRepository(store, clinic_id)


def get_medical_record_repository(request: Request, clinic_id: ClinicIdDep) -> MedicalRecordRepository:
    store = request.app.state.memory_store
    if store is None:
        return MongoMedicalRecordRepository(clinic_id)
    return InMemoryMedicalRecordRepository(store, clinic_id)


def get_document_repository(request: Request, clinic_id: ClinicIdDep) -> DocumentRepository:
    store = request.app.state.memory_store
    if store is None:
        return MongoDocumentRepository(clinic_id)
    return InMemoryDocumentRepository(store, clinic_id)


PatientRepositoryDep = Annotated[PatientRepository, Depends(get_patient_repository)]
MedicalRecordRepositoryDep = Annotated[MedicalRecordRepository, Depends(get_medical_record_repository)]
DocumentRepositoryDep = Annotated[DocumentRepository, Depends(get_document_repository)]


def get_patient_registry(patient_repo: PatientRepositoryDep) -> PatientRegistry:
    return PatientRegistry(patient_repo)


def get_medical_record_manager(
    record_repo: MedicalRecordRepositoryDep, patient_repo: PatientRepositoryDep
) -> MedicalRecordManager:
    return MedicalRecordManager(record_repo, patient_repo)


def get_document_manager(request: Request, document_repo: DocumentRepositoryDep) -> DocumentManager:
    settings = request.app.state.settings.document
    authorization = ClinicAuthorizationService(
        ApiKeyUserDirectory(get_auth_service()), document_repo
    )
    return DocumentManager(
        document_repo,
        request.app.state.object_storage,
        authorization,
        request.app.state.virus_scanner,
        default_retention_years=settings.default_retention_years,
        max_file_size_bytes=settings.max_file_size_bytes,
        allowed_mime_types=frozenset(settings.allowed_mime_types),
    )


PatientRegistryDep = Annotated[PatientRegistry, Depends(get_patient_registry)]
MedicalRecordManagerDep = Annotated[MedicalRecordManager, Depends(get_medical_record_manager)]
DocumentManagerDep = Annotated[DocumentManager, Depends(get_document_manager)]
