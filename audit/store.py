"""
audit/store.py -- SQLAlchemy Core persistence for the audit trail.

Pattern: Repository + Data Mapper, append-only. AuditStore exposes insert and
read operations only; there is deliberately no update or delete method.

details is stored as JSON text (the same way JSON arrays are stored as Text
elsewhere in the codebase). Values json cannot encode natively -- datetimes,
Decimals, ids -- are stringified rather than rejected.

actor_id is a plain integer reference to users.id. No foreign key: the audit
database may live apart from the credential store.

DB path: audit/coverdesk_audit.db unless a URL is passed in.

Layer rule: no imports from api/, auth/, or client/.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from audit.models import AuditRecord

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'coverdesk_audit.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_audit_logs = Table(
    "audit_logs",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("action", String(100), nullable=False, index=True),
    Column("actor_id", Integer, nullable=False, index=True),
    Column("details", Text, nullable=False),  # JSON
    Column("ip", String(45), nullable=False),
    Column("timestamp", String(32), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Index("ix_audit_logs_actor_timestamp", "actor_id", "timestamp"),
)


class AuditWriteFailure(Exception):
    """An audit record could not be persisted. Internal only, never surfaced to users."""

    def __init__(self, action: str, cause: BaseException) -> None:
        super().__init__(f"audit write failed for action {action!r}: {cause}")
        self.action = action
        self.cause = cause


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AuditStore:
    """Append-only repository for AuditRecord entries.

    Usage:
        store = AuditStore()
        store.append(AuditRecord(action="user login", actor_id=1, ip="10.0.0.5"))
        recent = store.list_recent(limit=20)
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def append(self, record: AuditRecord) -> AuditRecord:
        """Insert a record and return it with id, timestamp and created_at filled in.

        Raises AuditWriteFailure on any encoding or database error.
        """
        created_at = _now_iso()
        timestamp = record.timestamp or created_at
        try:
            details = json.dumps(record.details, default=str)
            with self.engine.connect() as conn:
                result = conn.execute(
                    _audit_logs.insert().values(
                        action=record.action,
                        actor_id=record.actor_id,
                        details=details,
                        ip=record.ip,
                        timestamp=timestamp,
                        created_at=created_at,
                    )
                )
                conn.commit()
                record_id = result.inserted_primary_key[0]
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            raise AuditWriteFailure(record.action, exc) from exc
        return AuditRecord(
            id=record_id,
            action=record.action,
            actor_id=record.actor_id,
            details=record.details,
            ip=record.ip,
            timestamp=timestamp,
            created_at=created_at,
        )

    def list_recent(self, limit: int = 50) -> list[AuditRecord]:
        """Return up to `limit` records, most recent first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _audit_logs.select().order_by(_audit_logs.c.timestamp.desc(), _audit_logs.c.id.desc()).limit(limit)
            ).fetchall()
        return [_row_to_record(r) for r in rows]

    def list_for_actor(self, actor_id: int, limit: int = 50) -> list[AuditRecord]:
        """Return one actor's trail, most recent first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _audit_logs.select()
                .where(_audit_logs.c.actor_id == actor_id)
                .order_by(_audit_logs.c.timestamp.desc(), _audit_logs.c.id.desc())
                .limit(limit)
            ).fetchall()
        return [_row_to_record(r) for r in rows]

    def get(self, record_id: int) -> AuditRecord | None:
        with self.engine.connect() as conn:
            row = conn.execute(_audit_logs.select().where(_audit_logs.c.id == record_id)).fetchone()
        return _row_to_record(row) if row is not None else None

    def count(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_audit_logs)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


def _row_to_record(row) -> AuditRecord:
    return AuditRecord(
        id=row.id,
        action=row.action,
        actor_id=row.actor_id,
        details=json.loads(row.details) if row.details else {},
        ip=row.ip,
        timestamp=row.timestamp,
        created_at=row.created_at,
    )
