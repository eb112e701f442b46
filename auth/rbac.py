"""
auth/rbac.py -- Role-based authorization decision.

One pure function decides every role check in the system. The server-side
dependency (auth.dependencies.require_roles) and the client-side route guard
(client.guards.guard_route) both call authorize(), so the two boundaries
cannot drift apart. They differ only in what they do with a False: the
server answers 403, the client redirects.

No framework imports here -- this module must stay usable from the client.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from auth.models import ADMIN, AGENT, CUSTOMER, ROLES

ALL_ROLES: frozenset[str] = ROLES
STAFF_ROLES: frozenset[str] = frozenset({AGENT, ADMIN})
ADMIN_ONLY: frozenset[str] = frozenset({ADMIN})
CUSTOMER_ONLY: frozenset[str] = frozenset({CUSTOMER})


class HasRole(Protocol):
    role: str | None


def authorize(identity: HasRole | None, allowed_roles: Iterable[str]) -> bool:
    """Return True iff identity.role is one of allowed_roles.

    An identity that is None, or whose role is missing or empty (for example
    a client session still resolving its user), is never authorized --
    whatever allowed_roles contains.

    Raises TypeError when allowed_roles is a bare string such as "admin";
    pass {"admin"} or ADMIN_ONLY instead.
    """
    if isinstance(allowed_roles, str):
        raise TypeError(f"allowed_roles must be a collection of roles, not the string {allowed_roles!r}")
    if identity is None:
        return False
    role = getattr(identity, "role", None)
    if not role:
        return False
    return role in frozenset(allowed_roles)
