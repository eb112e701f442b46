"""
auth/dependencies.py -- FastAPI Depends() helpers for the session guard.

Requests authenticate with a single method: an `Authorization: Bearer <token>`
header carrying a session token from POST /auth/login.

get_current_identity() is the guard: it extracts and verifies the token,
attaches the claims to request.state.identity and returns them.
require_roles(...) wraps the guard and adds the role check from auth.rbac.

Failures raise domain errors (Unauthenticated, Forbidden). api/main.py maps
them to 401 / 403 with the standard error envelope. The guard keeps no state
between requests; every verification is pure computation on the token.

Layer rule: no imports from api/, audit/, or client/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Request

from auth.errors import Forbidden, TokenError, Unauthenticated
from auth.models import TokenClaims
from auth.rbac import authorize
from auth.tokens import verify_token

logger = logging.getLogger("coverdesk.auth")


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an `Authorization: Bearer <token>` value, or None.

    The scheme name is case-insensitive (RFC 7235); anything else -- a missing
    header, another scheme, an empty token -- yields None.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def get_current_identity(request: Request) -> TokenClaims:
    """Require authentication. Raises Unauthenticated if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.post("/claims")
        def route(identity: TokenClaims = Depends(get_current_identity)): ...
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise Unauthenticated()
    try:
        claims = verify_token(token)
    except TokenError as exc:
        logger.info("Rejected session token on %s: %s", request.url.path, exc.code)
        raise Unauthenticated() from exc
    request.state.identity = claims
    return claims


def require_roles(*roles: str) -> Callable[[Request], TokenClaims]:
    """Build a dependency that requires one of `roles`.

    Raises Unauthenticated without a valid token and Forbidden when the token's
    role is not allowed:
        @router.get("/admin/summary")
        def route(identity: TokenClaims = Depends(require_roles("admin"))): ...
    """
    allowed = frozenset(roles)

    def dependency(request: Request) -> TokenClaims:
        identity = get_current_identity(request)
        if not authorize(identity, allowed):
            logger.info(
                "Denied %s %s for user id=%s role=%s",
                request.method,
                request.url.path,
                identity.subject_id,
                identity.role,
            )
            raise Forbidden()
        return identity

    return dependency
