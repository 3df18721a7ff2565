"""
Structured log formatting and audit records.
"""

import json
import logging

import pytest

from evolua.core.structured_logger import JSONFormatter, TextFormatter, get_logger
from evolua.observability.audit import audit_log_event


def make_record(**extra):
    record = logging.LogRecord("evolua.test", logging.INFO, __file__, 10, "Uploaded %s", ("d-1",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_merges_context():
    line = JSONFormatter().format(make_record(extra_data={"clinic_id": "clinic-1", "size": 42}))
    data = json.loads(line)
    assert data["message"] == "Uploaded d-1"
    assert data["level"] == "INFO"
    assert data["logger"] == "evolua.test"
    assert data["clinic_id"] == "clinic-1"
    assert data["size"] == 42


def test_text_formatter_appends_context():
    line = TextFormatter().format(make_record(extra_data={"clinic_id": "clinic-1"}))
    assert "Uploaded d-1" in line
    assert line.endswith('{"clinic_id": "clinic-1"}')


def test_structured_logger_passes_context(caplog):
    caplog.set_level(logging.INFO, logger="evolua.test")
    get_logger("evolua.test").info("Document archived", document_id="d-9")
    assert caplog.records[-1].extra_data == {"document_id": "d-9"}


@pytest.mark.asyncio
async def test_audit_event_is_one_json_line(caplog):
    caplog.set_level(logging.INFO, logger="evolua.audit")
    await audit_log_event(event="patient.created", patient_id="p-1", user_id="u-1", clinic_id="clinic-1")

    message = caplog.records[-1].getMessage()
    assert message.startswith("AUDIT ")
    record = json.loads(message[len("AUDIT "):])
    assert record["event"] == "patient.created"
    assert record["clinic_id"] == "clinic-1"
    assert record["payload"] == {}
