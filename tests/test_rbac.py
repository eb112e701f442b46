"""
tests/test_rbac.py -- Unit tests for auth/rbac.py.

authorize() is the single role decision shared by the server dependency and
the client route guard.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from auth.models import ADMIN, AGENT, CUSTOMER, Identity, TokenClaims
from auth.rbac import ADMIN_ONLY, ALL_ROLES, STAFF_ROLES, authorize


@pytest.mark.parametrize(
    "role, allowed, expected",
    [
        (ADMIN, {ADMIN}, True),
        (AGENT, {AGENT, ADMIN}, True),
        (CUSTOMER, {AGENT, ADMIN}, False),
        (CUSTOMER, ALL_ROLES, True),
        (AGENT, ADMIN_ONLY, False),
        (ADMIN, STAFF_ROLES, True),
        (ADMIN, set(), False),
    ],
)
def test_membership(role: str, allowed, expected: bool) -> None:
    assert authorize(SimpleNamespace(role=role), allowed) is expected


def test_none_identity_denied() -> None:
    assert authorize(None, ALL_ROLES) is False


@pytest.mark.parametrize("role", [None, ""])
def test_unresolved_role_denied(role) -> None:
    assert authorize(SimpleNamespace(role=role), ALL_ROLES) is False


def test_accepts_claims_and_identities() -> None:
    claims = TokenClaims(subject_id=1, role=AGENT, issued_at=0, expires_at=60)
    user = Identity(name="Ann", email="ann@x.com", role=AGENT)
    assert authorize(claims, STAFF_ROLES)
    assert authorize(user, STAFF_ROLES)


def test_allowed_roles_may_be_any_iterable() -> None:
    assert authorize(SimpleNamespace(role=ADMIN), [ADMIN, AGENT])
    assert authorize(SimpleNamespace(role=ADMIN), (r for r in [ADMIN]))


def test_bare_string_roles_rejected() -> None:
    """A bare role string would be read as its characters and deny everyone."""
    with pytest.raises(TypeError):
        authorize(SimpleNamespace(role=ADMIN), ADMIN)
