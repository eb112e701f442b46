"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, no behaviour beyond projection).
Stores, the token module and routes do the work.

Layer rule: no imports from api/, audit/, client/, or core/.
"""

from __future__ import annotations

from dataclasses import dataclass

CUSTOMER = "customer"
AGENT = "agent"
ADMIN = "admin"

# Closed set of roles. Enforced again by a CHECK constraint in auth/store.py.
ROLES: frozenset[str] = frozenset({CUSTOMER, AGENT, ADMIN})
DEFAULT_ROLE = CUSTOMER


@dataclass
class Identity:
    """A registered portal user (customer, agent or admin).

    email is unique and compared case-sensitively, exactly as stored.
    hashed_password is a bcrypt hash; the raw password never reaches this
    object. id and created_at are None until the store writes the record.
    """

    name: str
    email: str
    role: str = DEFAULT_ROLE
    hashed_password: str | None = None
    id: int | None = None
    created_at: str | None = None

    def public(self) -> dict:
        """Return the projection that may leave the service: no password hash."""
        return {"id": self.id, "name": self.name, "email": self.email, "role": self.role}


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a session token.

    role is a snapshot taken at issuance. It is not re-read from the store on
    verification, so a role change only applies once the token is reissued.
    """

    subject_id: int
    role: str
    issued_at: int  # epoch seconds
    expires_at: int  # epoch seconds
    token_id: str = ""


@dataclass(frozen=True)
class LoginResult:
    """Successful login: bearer token plus the public user projection."""

    token: str
    user: Identity
    expires_in: int
