"""
auth/tokens.py -- Session token issue and verification (JWT, HS256).

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the subject id, the role, issue time, expiry and a random token id.
       The signature covers the whole claim set, so editing any claim
       (including the role) invalidates the token.

  Expiry: fixed at issue time + Settings.token_expire_seconds (one hour).
       There is no refresh and no server-side revocation list; expiry (or
       rotating SECRET_KEY) is the only way a token stops working.

  Role snapshot: the role claim is copied at issuance and NOT re-read from
       the store on each request. Verification is a pure computation with no
       I/O, at the cost of staleness: a role change takes effect only after
       the holder's token expires and they log in again. Known limitation.

  Expiry check: python-jose's own exp check accepts a token at exactly its
       expiry second (it rejects only exp < now). We disable it and check
       now >= exp ourselves so the expiry instant is already invalid.

Layer rule: no imports from api/, audit/, or client/. Import from core/
is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import secrets
import time

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError

from auth.errors import ExpiredToken, InvalidSignature, MalformedToken
from auth.models import ROLES, TokenClaims
from core.config import get_settings

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Issue
# ---------------------------------------------------------------------------


def issue_token(subject_id: int, role: str, now: float | None = None) -> str:
    """Encode a signed session token for one identity.

    Args:
        subject_id: Identity.id of the holder.
        role:       Role snapshot ("customer", "agent" or "admin").
        now:        Issue time in epoch seconds. Defaults to the wall clock;
                    tests pass a fixed value.

    Every call produces a distinct token, even within the same second, because
    the jti claim is random.
    """
    issued_at = int(time.time() if now is None else now)
    payload = {
        "sub": str(subject_id),
        "role": role,
        "iat": issued_at,
        "exp": issued_at + _settings.token_expire_seconds,
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


# ---------------------------------------------------------------------------
# Verify
# ---------------------------------------------------------------------------


def verify_token(token: str, now: float | None = None) -> TokenClaims:
    """Verify a session token and return its claims.

    Raises:
        MalformedToken:   not a JWT, or required claims missing / mistyped.
        InvalidSignature: signature or algorithm check failed (tampered
                          token, or one signed with a different secret).
        ExpiredToken:     now >= exp.
    """
    if not isinstance(token, str) or not token:
        raise MalformedToken()

    # Parse without verifying first so structural damage is reported as
    # MalformedToken rather than as a signature failure.
    try:
        jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise MalformedToken() from exc

    try:
        payload = jwt.decode(
            token,
            _settings.secret_key,
            algorithms=[_ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTClaimsError as exc:
        raise MalformedToken() from exc
    except JWTError as exc:
        raise InvalidSignature() from exc

    claims = _claims_from_payload(payload)
    current = time.time() if now is None else now
    if current >= claims.expires_at:
        raise ExpiredToken()
    return claims


def _claims_from_payload(payload: dict) -> TokenClaims:
    sub = payload.get("sub")
    role = payload.get("role")
    issued_at = payload.get("iat")
    expires_at = payload.get("exp")
    if not isinstance(sub, str) or not (sub.isascii() and sub.isdigit()):
        raise MalformedToken()
    if not isinstance(role, str) or role not in ROLES:
        raise MalformedToken()
    if not _is_int(issued_at) or not _is_int(expires_at):
        raise MalformedToken()
    return TokenClaims(
        subject_id=int(sub),
        role=role,
        issued_at=issued_at,
        expires_at=expires_at,
        token_id=str(payload.get("jti", "")),
    )
