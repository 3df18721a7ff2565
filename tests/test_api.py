"""
HTTP surface: authentication, error mapping and the main flows through
the routers, running on in-memory storage.
"""

import pytest
from fastapi.testclient import TestClient

from evolua.adapters.security import EICAR_SIGNATURE
from evolua.api.app import create_app
from evolua.core.auth import AuthService, set_auth_service
from evolua.core.config import DocumentSettings, Settings, reset_settings

from .conftest import API_KEYS, contact_info, personal_info

THERAPIST = {"X-API-Key": "k-therapist"}
OTHER_CLINIC = {"X-API-Key": "k-other"}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.delenv("MONGO_URI", raising=False)
    monkeypatch.delenv("AZURE_BLOB_CONNECTION_STRING", raising=False)
    reset_settings()
    set_auth_service(AuthService(API_KEYS))
    yield TestClient(create_app())
    set_auth_service(None)
    reset_settings()


def patient_payload(**personal):
    return {"personal_info": personal_info(**personal), "contact_info": contact_info()}


def create_patient(client, **personal):
    response = client.post("/patients/", json=patient_payload(**personal), headers=THERAPIST)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def upload(client, content=b"%PDF-1.4 evaluation", **form):
    data = {"patient_id": "p-1", "title": "Evaluation", "document_type": "medical_report"}
    data.update(form)
    return client.post(
        "/documents/",
        files={"file": ("evaluation.pdf", content, "application/pdf")},
        data=data,
        headers=THERAPIST,
    )


def test_requests_without_key_are_rejected(client):
    response = client.get("/patients/")
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "UNAUTHORIZED"

    assert client.get("/patients/", headers={"X-API-Key": "wrong"}).status_code == 401
    assert client.get("/patients/", headers={"Authorization": "Bearer k-therapist"}).status_code == 200


def test_request_id_is_echoed(client):
    response = client.get("/health/live", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"
    assert response.json()["request_id"] == "req-42"
    assert client.get("/health/live").headers["X-Request-ID"]


def test_create_and_get_patient(client):
    patient = create_patient(client)
    assert patient["personal_info"]["full_name"] == "Ana Souza"
    assert patient["clinic_id"] == "clinic-1"
    assert patient["status"] == "active"

    response = client.get(f"/patients/{patient['id']}", headers=THERAPIST)
    assert response.status_code == 200
    assert response.json()["data"]["id"] == patient["id"]


def test_patients_are_invisible_to_other_clinics(client):
    patient = create_patient(client)
    response = client.get(f"/patients/{patient['id']}", headers=OTHER_CLINIC)
    assert response.status_code == 404
    assert response.json()["error"] == "PATIENT_NOT_FOUND"


def test_invalid_cpf_reports_field_errors(client):
    response = client.post("/patients/", json=patient_payload(cpf="123.456.789-00"), headers=THERAPIST)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_FAILED"
    assert "personal_info.cpf" in body["details"]["field_errors"]


def test_malformed_body_is_a_validation_failure(client):
    response = client.post("/patients/", json={"personal_info": {}}, headers=THERAPIST)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_FAILED"
    assert body["details"]["field_errors"]


def test_duplicate_patient_conflict(client):
    create_patient(client)
    response = client.post("/patients/", json=patient_payload(full_name="Joana Lima"), headers=THERAPIST)
    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_PATIENT"


def test_discharge_then_invalid_transition(client):
    patient = create_patient(client)
    response = client.post(
        f"/patients/{patient['id']}/discharge", json={"reason": "Goals achieved"}, headers=THERAPIST
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "discharged"

    response = client.post(
        f"/patients/{patient['id']}/status", json={"status": "on_hold", "reason": "Travel"}, headers=THERAPIST
    )
    assert response.status_code == 409


def test_unknown_patient_is_not_found(client):
    assert client.get("/patients/missing", headers=THERAPIST).status_code == 404
    assert client.delete("/patients/missing", headers=THERAPIST).status_code == 404


def test_medical_record_flow(client):
    patient = create_patient(client)
    response = client.post(
        "/medical-records/",
        json={
            "patient_id": patient["id"],
            "diagnosis": [
                {"code": "F80.1", "description": "Expressive language disorder", "diagnosed_at": "2024-01-10T00:00:00"}
            ],
        },
        headers=THERAPIST,
    )
    assert response.status_code == 201, response.text
    record_id = response.json()["data"]["id"]

    response = client.post(
        f"/medical-records/{record_id}/progress-notes",
        json={"content": "Good engagement", "session_date": "2024-02-01T10:00:00"},
        headers=THERAPIST,
    )
    assert response.status_code == 201, response.text

    response = client.get(f"/medical-records/patient/{patient['id']}", headers=THERAPIST)
    assert response.status_code == 200
    assert [r["id"] for r in response.json()["data"]] == [record_id]

    response = client.get(f"/medical-records/{record_id}/integrity", headers=THERAPIST)
    assert response.json()["data"]["status"] == "passed"


def test_upload_and_download_document(client):
    response = upload(client, tags="speech, evaluation")
    assert response.status_code == 201, response.text
    document = response.json()["data"]
    assert document["status"] == "active"

    response = client.get(f"/documents/{document['id']}/download", headers=THERAPIST)
    assert response.status_code == 200
    assert response.content == b"%PDF-1.4 evaluation"
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="evaluation.pdf"' in response.headers["content-disposition"]

    # Another clinic's repository never sees the document.
    response = client.get(f"/documents/{document['id']}/download", headers=OTHER_CLINIC)
    assert response.status_code == 404


def test_upload_limits_come_from_the_app_settings(client):
    settings = Settings(document=DocumentSettings(allowed_mime_types=["text/plain"], max_file_size_mb=1))
    app_client = TestClient(create_app(settings))

    response = upload(app_client)
    assert response.status_code == 400
    assert "mime_type" in response.json()["details"]["field_errors"]

    response = app_client.post(
        "/documents/",
        files={"file": ("notes.txt", b"x" * (1024 * 1024 + 1), "text/plain")},
        data={"patient_id": "p-1", "title": "Notes", "document_type": "medical_report"},
        headers=THERAPIST,
    )
    assert response.status_code == 400
    assert "file_size" in response.json()["details"]["field_errors"]


def test_infected_document_cannot_be_downloaded(client):
    response = upload(client, content=EICAR_SIGNATURE)
    assert response.status_code == 201
    document = response.json()["data"]
    assert document["status"] == "quarantined"

    response = client.get(f"/documents/{document['id']}/download", headers=THERAPIST)
    assert response.status_code == 403
    assert response.json()["error"] == "UNAUTHORIZED"
