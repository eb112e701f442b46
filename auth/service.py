"""
auth/service.py -- Registration and login (the auth core).

Both operations are stateless per call and take the credential store as an
argument, so routes, the CLI and tests all drive the same code path.

  register_user(): uniqueness check, bcrypt hash, insert. Issues NO token --
      registration and authentication stay separable; clients log in after
      registering.

  login_user(): constant-time credential check, then a token minted with the
      role stored on the identity. Read-only against the store.

Security:
  Unknown email and wrong password raise the same InvalidCredentials, and both
  paths run bcrypt exactly once (against DUMMY_HASH when the email is unknown)
  so neither the message nor the response time reveals which accounts exist.

  bcrypt is CPU-bound. HTTP routes calling into this module are declared as
  plain `def` so FastAPI runs them in its threadpool, off the event loop.

Layer rule: no imports from api/, audit/, or client/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.errors import DuplicateEmail, InvalidCredentials
from auth.models import DEFAULT_ROLE, ROLES, Identity, LoginResult
from auth.passwords import DUMMY_HASH, hash_password, verify_password
from auth.store import UserStore
from auth.tokens import issue_token
from core.config import get_settings

logger = logging.getLogger("coverdesk.auth")


def register_user(
    store: UserStore,
    name: str,
    email: str,
    password: str,
    role: str = DEFAULT_ROLE,
) -> Identity:
    """Create a new identity and return it as stored.

    Raises:
        DuplicateEmail: the email is already registered, including the case
                        where a concurrent request inserted it first.
        ValueError:     role is not one of customer/agent/admin, or the
                        password is too long for bcrypt.
    """
    if role not in ROLES:
        raise ValueError(f"Unknown role {role!r}; expected one of {sorted(ROLES)}.")
    if store.get_by_email(email) is not None:
        raise DuplicateEmail()

    identity = Identity(name=name, email=email, role=role, hashed_password=hash_password(password))
    try:
        user_id = store.create_user(identity)
    except IntegrityError as exc:
        # Lost the race against a concurrent registration for the same email.
        if store.get_by_email(email) is not None:
            raise DuplicateEmail() from exc
        raise

    logger.info("Registered user id=%s role=%s", user_id, role)
    created = store.get_by_id(user_id)
    return created if created is not None else identity


def login_user(store: UserStore, email: str, password: str) -> LoginResult:
    """Check credentials and mint a session token.

    Raises InvalidCredentials for an unknown email or a wrong password.
    """
    user = store.get_by_email(email)
    if user is None or not user.hashed_password:
        # Equalize timing -- do NOT return early before running bcrypt
        verify_password(password, DUMMY_HASH)
        raise InvalidCredentials()
    if not verify_password(password, user.hashed_password):
        raise InvalidCredentials()

    token = issue_token(user.id, user.role)
    logger.info("Login succeeded for user id=%s", user.id)
    return LoginResult(token=token, user=user, expires_in=get_settings().token_expire_seconds)
