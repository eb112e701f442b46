"""
auth/store.py -- SQLAlchemy Core persistence layer for portal identities.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_identity
is the mapper. Route, service and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(email) is the only race-prevention mechanism for registration. Two
  concurrent registrations for the same email both pass the service-level
  lookup; the second INSERT raises IntegrityError, which auth.service maps to
  DuplicateEmail.

  CHECK(role IN (...)) keeps the role column inside the closed role set even
  if a caller bypasses auth.service.

Identities are created here and read here. This store never deletes a user
and never changes a role -- that belongs to admin user management.

DB path: auth/coverdesk_auth.db unless a URL is passed in.

Layer rule: no imports from api/, audit/, client/, or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import CheckConstraint, Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine

from auth.models import DEFAULT_ROLE, ROLES, Identity

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'coverdesk_auth.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_ROLE_CHECK = "role IN (" + ", ".join(f"'{r}'" for r in sorted(ROLES)) + ")"

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default=DEFAULT_ROLE, index=True),
    Column("created_at", String(32), nullable=False, index=True),
    CheckConstraint(_ROLE_CHECK, name="ck_users_role"),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for Identity records (the credential store).

    Usage:
        store = UserStore()
        uid = store.create_user(Identity(name="Alice", email="alice@x.com", hashed_password=h))
        user = store.get_by_email("alice@x.com")
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

    def create_user(self, identity: Identity) -> int:
        """Insert a new identity and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists or
        the role is outside the allowed set.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    name=identity.name,
                    email=identity.email,
                    hashed_password=identity.hashed_password,
                    role=identity.role,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> Identity | None:
        """Look up an identity by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_identity(row) if row is not None else None

    def get_by_id(self, user_id: int) -> Identity | None:
        """Look up an identity by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_identity(row) if row is not None else None

    def list_users(self) -> list[Identity]:
        """Return all identities, newest first. Admin-only operation."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.created_at.desc(), _users.c.id.desc())).fetchall()
        return [_row_to_identity(r) for r in rows]

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def count_by_role(self) -> dict[str, int]:
        """Return {role: count} for every role, zero-filled."""
        counts = {role: 0 for role in sorted(ROLES)}
        with self.engine.connect() as conn:
            rows = conn.execute(select(_users.c.role, func.count()).group_by(_users.c.role)).fetchall()
        for role, n in rows:
            counts[role] = n
        return counts

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_identity(row) -> Identity:
    return Identity(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=row.hashed_password,
        role=row.role,
        created_at=row.created_at,
    )
