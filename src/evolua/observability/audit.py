"""Audit logging utilities.

Every state-changing operation on patient data emits one structured
record on the ``evolua.audit`` logger. Payloads must not carry document
bytes or free-text clinical content.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional


logger = logging.getLogger("evolua.audit")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def audit_log_event(
    *,
    event: str,
    patient_id: Optional[str] = None,
    resource_id: Optional[str] = None,
    user_id: Optional[str] = None,
    clinic_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    record = {
        "ts": _now_iso(),
        "event": event,
        "clinic_id": clinic_id,
        "patient_id": patient_id,
        "resource_id": resource_id,
        "user_id": user_id,
        "payload": payload or {},
    }
    logger.info("AUDIT %s", json.dumps(record, ensure_ascii=False, default=str))
