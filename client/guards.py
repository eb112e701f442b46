"""
client/guards.py -- Client-side navigation gating.

Each guard returns None when navigation may proceed, or the path to redirect
to. The role decision is auth.rbac.authorize, the same function the server's
require_roles() uses, so the client never allows a route the API would refuse.

Gating here is a convenience for the user. The server check is the one that
protects data.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from auth.rbac import authorize
from client.session import SessionState

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"


def guard_session(state: SessionState) -> Optional[str]:
    """Require a held session. Anonymous users go to the login page."""
    if not state.is_authenticated:
        return LOGIN_PATH
    return None


def guard_route(state: SessionState, allowed_roles: Iterable[str]) -> Optional[str]:
    """Require one of allowed_roles.

    No resolvable role (anonymous, or identity not restored yet) -> LOGIN_PATH.
    A role outside allowed_roles -> DASHBOARD_PATH.
    """
    identity = state.identity
    if identity is None or not identity.role:
        return LOGIN_PATH
    if not authorize(identity, allowed_roles):
        return DASHBOARD_PATH
    return None
