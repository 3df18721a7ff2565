"""
Shared fixtures: in-memory repositories bound to one clinic, services
wired to them, and sample patient payloads.
"""

from datetime import datetime
from typing import Any, Dict

import pytest

from evolua.adapters.db.memory import (
    InMemoryDocumentRepository,
    InMemoryMedicalRecordRepository,
    InMemoryPatientRepository,
    InMemoryStore,
)
from evolua.adapters.security import (
    ApiKeyUserDirectory,
    ClinicAuthorizationService,
    SignatureVirusScanner,
)
from evolua.adapters.storage import InMemoryObjectStorage
from evolua.application.services.document_manager import DocumentManager
from evolua.application.services.medical_record_manager import MedicalRecordManager
from evolua.application.services.patient_registry import PatientRegistry
from evolua.core.auth import AuthService
from evolua.domain.value_objects.identifiers import ClinicId

CLINIC = "clinic-1"
OTHER_CLINIC = "clinic-2"

API_KEYS = ",".join(
    [
        "k-therapist:u-therapist:clinic-1:therapist",
        "k-reception:u-reception:clinic-1:receptionist",
        "k-other:u-other:clinic-2:therapist",
    ]
)

# Fixed "now" used by services under test.
NOW = datetime(2025, 3, 2, 12, 0, 0)


def personal_info(**overrides: Any) -> Dict[str, Any]:
    data = {
        "full_name": "Ana Souza",
        "date_of_birth": "2015-03-01",
        "gender": "female",
        "cpf": "111.444.777-35",
    }
    data.update(overrides)
    return data


def contact_info(**overrides: Any) -> Dict[str, Any]:
    data = {
        "primary_phone": "(11) 91234-5678",
        "email": "ana.souza@example.com",
        "address": {
            "street": "Rua das Flores",
            "number": "123",
            "neighborhood": "Centro",
            "city": "São Paulo",
            "state": "SP",
            "zip_code": "01001-000",
        },
    }
    data.update(overrides)
    return data


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clinic_id():
    return ClinicId(CLINIC)


@pytest.fixture
def patient_repo(store, clinic_id):
    return InMemoryPatientRepository(store, clinic_id)


@pytest.fixture
def record_repo(store, clinic_id):
    return InMemoryMedicalRecordRepository(store, clinic_id)


@pytest.fixture
def document_repo(store, clinic_id):
    return InMemoryDocumentRepository(store, clinic_id)


@pytest.fixture
def registry(patient_repo, clock):
    return PatientRegistry(patient_repo, clock=clock)


@pytest.fixture
def record_manager(record_repo, patient_repo, clock):
    return MedicalRecordManager(record_repo, patient_repo, clock=clock)


@pytest.fixture
def auth_service():
    return AuthService(API_KEYS)


@pytest.fixture
def object_storage():
    return InMemoryObjectStorage()


@pytest.fixture
def document_manager(document_repo, object_storage, auth_service, clock):
    authorization = ClinicAuthorizationService(ApiKeyUserDirectory(auth_service), document_repo)
    return DocumentManager(
        document_repo,
        object_storage,
        authorization,
        SignatureVirusScanner(clock=clock),
        clock=clock,
    )
