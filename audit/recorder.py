"""
audit/recorder.py -- Best-effort recorder for sensitive actions.

record() never raises. A failed write is logged on the "coverdesk.audit"
logger and the caller carries on; an audit outage must not fail a login, a
purchase or a claim decision.

In the HTTP layer, routes hand record() to FastAPI's BackgroundTasks:

    background_tasks.add_task(
        request.app.state.audit.record,
        "claim status update",
        identity.subject_id,
        {"claim_id": claim_id, "status": status},
        request_origin(request),
    )

Background tasks run after the response has been sent, so the primary
request never waits on the audit write.

Layer rule: no imports from api/, auth/, or client/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from typing import Any

from starlette.requests import Request

from audit.models import AuditRecord
from audit.store import AuditStore, AuditWriteFailure
from core.config import get_settings

logger = logging.getLogger("coverdesk.audit")

DEFAULT_ORIGIN = get_settings().audit_default_origin


def request_origin(request: Request) -> str:
    """Return the client address of a request, or DEFAULT_ORIGIN when unknown."""
    if request.client and request.client.host:
        return request.client.host
    return DEFAULT_ORIGIN


class AuditRecorder:
    """Appends audit records through an AuditStore, swallowing failures."""

    def __init__(self, store: AuditStore, default_origin: str = DEFAULT_ORIGIN) -> None:
        self.store = store
        self.default_origin = default_origin

    def record(
        self,
        action: str,
        actor_id: int,
        details: Any = None,
        origin: str | None = None,
    ) -> AuditRecord | None:
        """Persist one audit record. Returns the stored record, or None if the write failed."""
        entry = AuditRecord(
            action=action,
            actor_id=actor_id,
            details=details if details is not None else {},
            ip=origin or self.default_origin,
        )
        try:
            return self.store.append(entry)
        except AuditWriteFailure as exc:
            logger.error("%s", exc, exc_info=exc.cause)
        except Exception as exc:  # noqa: BLE001 -- audit writes never propagate
            logger.exception("Unexpected error recording audit action %r: %s", action, exc)
        return None
