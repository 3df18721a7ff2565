"""
In-memory adapters, crypto helpers, scanning and API key authorization.
"""

import pytest
from cryptography.fernet import Fernet
from fastapi import HTTPException

from evolua.adapters.db.memory import InMemoryPatientRepository
from evolua.adapters.security import (
    ApiKeyUserDirectory,
    ClinicAuthorizationService,
    SignatureVirusScanner,
)
from evolua.adapters.storage import InMemoryObjectStorage
from evolua.application.dto.patient_dto import CreatePatientRequest
from evolua.core.auth import AuthService
from evolua.core.exceptions import StorageError
from evolua.core.utils.crypto import decrypt_bytes, encrypt_bytes, sha256_checksum
from evolua.domain.enums.document import VirusScanResult
from evolua.domain.errors import DuplicatePatientError
from evolua.domain.value_objects.identifiers import ClinicId

from .conftest import NOW, OTHER_CLINIC, contact_info, personal_info


async def create_patient(registry):
    return await registry.create_patient(
        CreatePatientRequest(personal_info=personal_info(), contact_info=contact_info()),
        created_by="u-therapist",
    )


@pytest.mark.asyncio
async def test_repository_rejects_second_row_with_same_cpf(registry, patient_repo):
    patient = await create_patient(registry)
    with pytest.raises(DuplicatePatientError):
        await patient_repo.create(patient)


@pytest.mark.asyncio
async def test_repositories_are_clinic_scoped(registry, store):
    patient = await create_patient(registry)
    other = InMemoryPatientRepository(store, ClinicId(OTHER_CLINIC))

    assert await other.find_by_id(patient.id) is None
    assert await other.find_by_cpf(patient.personal_info.cpf) is None
    assert not await other.delete(patient.id)

    # Same CPF is allowed in another clinic.
    await other.create(patient)
    assert (await other.find_by_id(patient.id)).id == patient.id


@pytest.mark.asyncio
async def test_repository_returns_copies(registry, patient_repo):
    patient = await create_patient(registry)
    loaded = await patient_repo.find_by_id(patient.id)
    loaded.medical_history["notes"] = "changed"

    assert (await patient_repo.find_by_id(patient.id)).medical_history == {}


@pytest.mark.asyncio
async def test_object_storage_encrypts_at_rest():
    storage = InMemoryObjectStorage(Fernet(Fernet.generate_key()))
    stored = await storage.put(b"session audio", "clinic-1/p-1/d-1/audio.mp3")

    assert stored.is_encrypted
    assert stored.encryption_algorithm == "fernet"
    assert stored.checksum == sha256_checksum(b"session audio")
    assert storage.objects[stored.path] != b"session audio"
    assert await storage.get(stored.path) == b"session audio"

    assert await storage.delete(stored.path)
    assert not await storage.delete(stored.path)
    with pytest.raises(StorageError):
        await storage.get(stored.path)


def test_decrypt_with_wrong_key():
    token = encrypt_bytes(b"report", Fernet(Fernet.generate_key()))
    with pytest.raises(ValueError):
        decrypt_bytes(token, Fernet(Fernet.generate_key()))


@pytest.mark.asyncio
async def test_scanner_with_custom_signature():
    scanner = SignatureVirusScanner(signatures=["MALWARE-SAMPLE", ""], clock=lambda: NOW)

    clean = await scanner.scan(b"plain text", "notes.txt")
    assert clean.result == VirusScanResult.CLEAN
    assert clean.scanned_at == NOW

    infected = await scanner.scan(b"header MALWARE-SAMPLE trailer", "notes.txt")
    assert infected.result == VirusScanResult.INFECTED
    assert infected.signature == "MALWARE-SAMPLE"


def test_api_key_parsing_defaults():
    service = AuthService("k1:u1:c1:Admin, k2:u2, k3")

    assert service.validate_api_key("k1").role == "admin"
    assert service.validate_api_key("Bearer k1").user_id == "u1"
    user = service.validate_api_key("k2")
    assert (user.clinic_id, user.role) == ("default", "therapist")
    assert service.validate_api_key("k3").user_id == "k3"


def test_invalid_or_missing_api_key():
    service = AuthService("k1:u1:c1:admin")
    with pytest.raises(HTTPException) as exc_info:
        service.validate_api_key("nope")
    assert exc_info.value.status_code == 401
    assert exc_info.value.headers["WWW-Authenticate"] == "Bearer"

    with pytest.raises(HTTPException):
        service.get_user_from_request(api_key=None, auth_header="Basic abc")
    assert service.get_user_from_request(auth_header="Bearer k1").user_id == "u1"


@pytest.mark.asyncio
async def test_clinic_authorization(auth_service, document_repo):
    authorization = ClinicAuthorizationService(ApiKeyUserDirectory(auth_service), document_repo)

    assert await authorization.can_access("u-therapist", "unknown-document")
    assert await authorization.can_access("u-reception", "unknown-document")
    assert not await authorization.can_access("u-other", "unknown-document")
    assert not await authorization.can_access("ghost", "unknown-document")
