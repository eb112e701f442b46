"""
client/portal.py -- requests-based client for the CoverDesk API.

PortalClient wraps the v1 auth endpoints and keeps a SessionCache in step with
the server's answers:

    client = PortalClient("http://localhost:8000/api/v1")
    client.login("alice@example.com", "secret1")
    client.request("GET", "/admin/summary")
    client.logout()

Status mapping (all other failures surface as requests.RequestException):
  409                 -> DuplicateEmail
  401 on login        -> InvalidCredentials
  401 anywhere else   -> session cleared, Unauthenticated
  403                 -> Forbidden (RegistrationDisabled on register)

restore_session() resumes a stored token on start-up. Transport failures on
GET /auth/me are retried with tenacity; an explicit 401 is not.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from auth.errors import DuplicateEmail, Forbidden, InvalidCredentials, RegistrationDisabled, Unauthenticated
from auth.models import Identity
from client.session import SessionCache, SessionState
from core.config import get_settings

logger = logging.getLogger("coverdesk.client")

_REQUEST_TIMEOUT = 10


def _identity_from_json(data: dict[str, Any]) -> Identity:
    return Identity(id=data.get("id"), name=data.get("name", ""), email=data.get("email", ""), role=data.get("role"))


def _error_code(resp: requests.Response) -> Optional[str]:
    """Return error.code from the API error envelope, if the body has one."""
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("code")
    return None


class PortalClient:
    """Session-aware API client.

    Args:
        base_url: API root including the version prefix. Defaults to
                  Settings.api_base_url.
        session:  SessionCache to keep updated. A fresh one is created if omitted.
        http:     requests.Session (or a compatible fake) used for transport.
        retries:  Retries after the first /auth/me attempt during restore.
        delay:    Seconds between restore attempts.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[SessionCache] = None,
        http: Optional[requests.Session] = None,
        retries: Optional[int] = None,
        delay: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.session = session if session is not None else SessionCache()
        self.http = http if http is not None else requests.Session()
        self.retries = settings.session_restore_retries if retries is None else retries
        self.delay = settings.session_restore_delay if delay is None else delay

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _send(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        token = self.session.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        kwargs.setdefault("timeout", _REQUEST_TIMEOUT)
        return self.http.request(method, self._url(path), headers=headers, **kwargs)

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        """Send an authenticated request and map auth failures.

        Raises Unauthenticated (after clearing the session) on 401, Forbidden
        on 403 and requests.HTTPError on any other error status.
        """
        resp = self._send(method, path, **kwargs)
        if resp.status_code == 401:
            logger.info("Session rejected by %s %s; clearing", method, path)
            self.session.clear()
            raise Unauthenticated()
        if resp.status_code == 403:
            raise Forbidden()
        resp.raise_for_status()
        return resp

    # ------------------------------------------------------------------
    # Auth operations
    # ------------------------------------------------------------------

    def register(self, name: str, email: str, password: str, role: Optional[str] = None) -> Identity:
        """Create an account. Does not log in; call login() next."""
        payload: dict[str, Any] = {"name": name, "email": email, "password": password}
        if role is not None:
            payload["role"] = role
        resp = self._send("POST", "/auth/register", json=payload)
        if resp.status_code == 409:
            raise DuplicateEmail()
        if resp.status_code == 403:
            if _error_code(resp) == RegistrationDisabled.code:
                raise RegistrationDisabled()
            raise Forbidden()
        resp.raise_for_status()
        return _identity_from_json(resp.json())

    def login(self, email: str, password: str) -> Identity:
        """Exchange credentials for a token and mark the session authenticated."""
        resp = self._send("POST", "/auth/login", json={"email": email, "password": password})
        if resp.status_code == 401:
            raise InvalidCredentials()
        resp.raise_for_status()
        body = resp.json()
        identity = _identity_from_json(body["user"])
        self.session.authenticated(body["token"], identity)
        logger.info("Logged in as user id=%s role=%s", identity.id, identity.role)
        return identity

    def logout(self) -> None:
        """Forget the token locally. Tokens are stateless; nothing is sent."""
        self.session.clear()

    def current_user(self) -> Identity:
        return _identity_from_json(self.request("GET", "/auth/me").json())

    def restore_session(self) -> SessionState:
        """Resume the token held by the session cache.

        No token -> stays anonymous. Otherwise the state becomes authenticated
        without an identity while GET /auth/me resolves it. A 401 clears the
        session at once; a 403 leaves the token unresolved. Transport errors
        are retried; if every attempt fails the token is kept with no identity
        so a later call can try again.
        """
        token = self.session.token
        if not token:
            self.session.clear()
            return self.session.state

        self.session.restoring(token)
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self.retries + 1),
                wait=wait_fixed(self.delay),
                retry=retry_if_exception_type(requests.RequestException),
                reraise=True,
            ):
                with attempt:
                    identity = self.current_user()
        except Unauthenticated:
            logger.info("Stored session token rejected; session cleared")
            return self.session.state
        except Forbidden:
            logger.warning("Session restore refused with 403; keeping the stored token unresolved")
            return self.session.state
        except requests.RequestException as exc:
            logger.warning(
                "Could not restore session after %d attempts: %s",
                self.retries + 1,
                exc,
            )
            return self.session.state

        self.session.authenticated(token, identity)
        return self.session.state
