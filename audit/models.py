"""
audit/models.py -- Domain dataclass for audit trail entries.

Pure data container. audit/store.py persists it; audit/recorder.py builds it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class AuditRecord:
    """Immutable entry describing one sensitive action.

    Records are only ever inserted -- never updated or deleted.

    action     -- free-form label, e.g. "user login", "policy purchase"
    actor_id   -- Identity.id of whoever performed the action (required)
    details    -- JSON-serialisable payload describing the event
    ip         -- origin address of the request, "127.0.0.1" when unknown
    timestamp  -- when the action happened (ISO 8601 UTC); defaults to creation
    created_at -- when the store wrote the row; None before insert
    id is None before the record is written to the database.
    """

    action: str
    actor_id: int
    details: Any = field(default_factory=dict)
    ip: str = "127.0.0.1"
    timestamp: str = ""
    id: int | None = None
    created_at: str | None = None
