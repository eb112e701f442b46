"""
api/routes/v1/auth.py -- Registration, login and current-identity endpoints.

Routes:
  POST /api/v1/auth/register  -- create an identity (no token issued)
  POST /api/v1/auth/login     -- exchange email + password for a bearer token
  GET  /api/v1/auth/me        -- current identity, re-read from the store

Security:
  POST /register and POST /login are rate-limited per client IP (limits from
  Settings.register_rate_limit / Settings.login_rate_limit).
  login_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Cache-Control: no-store on login responses, success and failure alike.

Register and login hash passwords with bcrypt. They are plain `def` handlers so
FastAPI runs them in its threadpool instead of blocking the event loop.

Sensitive actions are handed to the audit recorder as background tasks; the
response is sent before the audit row is written.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from audit.recorder import AuditRecorder, request_origin
from auth.dependencies import get_current_identity
from auth.errors import RegistrationDisabled, Unauthenticated
from auth.models import TokenClaims
from auth.service import login_user, register_user
from auth.store import UserStore
from core.config import get_settings

logger = logging.getLogger("coverdesk.api")

_settings = get_settings()

# Auth policy:
# - POST /api/v1/auth/register: public -- creating an account needs no prior auth
# - POST /api/v1/auth/login:    public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:       requires auth (get_current_identity)
router = APIRouter()


@limiter.limit(_settings.register_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", response_model=UserResponse, status_code=201)
def register(request: Request, body: RegisterRequest, background_tasks: BackgroundTasks) -> UserResponse:
    """Create a new identity and return its public projection.

    Raises DuplicateEmail (409) when the email is taken -- including when a
    concurrent request registered it first. No token is issued; clients call
    POST /auth/login next.
    """
    if not _settings.registration_enabled:
        raise RegistrationDisabled()

    user_store: UserStore = request.app.state.user_store
    user = register_user(user_store, body.name, body.email, body.password, body.role.value)

    recorder: AuditRecorder = request.app.state.audit
    background_tasks.add_task(
        recorder.record,
        "user registration",
        user.id,
        {"email": user.email, "role": user.role},
        request_origin(request),
    )
    return UserResponse.from_identity(user)


@limiter.limit(_settings.login_rate_limit)  # brute-force mitigation -- must be ABOVE @router
@router.post("/auth/login", response_model=LoginResponse)
def login(
    request: Request,
    body: LoginRequest,
    response: Response,
    background_tasks: BackgroundTasks,
) -> LoginResponse:
    """Authenticate with email and password; return a bearer token and the user.

    Returns the same InvalidCredentials error (401) for an unknown email and a
    wrong password to avoid leaking account existence.
    """
    user_store: UserStore = request.app.state.user_store
    result = login_user(user_store, body.email, body.password)

    recorder: AuditRecorder = request.app.state.audit
    background_tasks.add_task(
        recorder.record,
        "user login",
        result.user.id,
        {"email": result.user.email, "role": result.user.role},
        request_origin(request),
    )
    response.headers["Cache-Control"] = "no-store"
    return LoginResponse(
        token=result.token,
        token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
        expires_in=result.expires_in,
        user=UserResponse.from_identity(result.user),
    )


@router.get("/auth/me", response_model=UserResponse)
def me(request: Request, identity: TokenClaims = Depends(get_current_identity)) -> UserResponse:
    """Return the identity behind the bearer token.

    Reads the store, so name and email are current. An identity that no longer
    exists is treated as unauthenticated.
    """
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(identity.subject_id)
    if user is None:
        raise Unauthenticated("User not found.")
    return UserResponse.from_identity(user)
