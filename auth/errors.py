"""
auth/errors.py -- Exception taxonomy for the auth core.

Each AuthError carries a stable machine-readable code and a user-facing
message. Transport mapping (HTTP status, client redirects) lives with the
caller: api/main.py on the server, client/portal.py on the client.

Layer rule: no imports from api/, audit/, client/, or core/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for errors that end an auth-related request."""

    code = "auth_error"
    message = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class DuplicateEmail(AuthError):
    code = "duplicate_email"
    message = "Email already registered."


class InvalidCredentials(AuthError):
    """Login failure. Deliberately does not say whether the email exists."""

    code = "invalid_credentials"
    message = "Invalid email or password."


class Unauthenticated(AuthError):
    code = "unauthenticated"
    message = "Authentication required."


class Forbidden(AuthError):
    code = "forbidden"
    message = "You do not have permission to access this resource."


class RegistrationDisabled(AuthError):
    code = "registration_disabled"
    message = "Self-registration is disabled."


# ---------------------------------------------------------------------------
# Token verification failures
#
# Raised by auth.tokens.verify_token(). The session guard collapses all of
# them into Unauthenticated; they stay distinct for logging and tests.
# ---------------------------------------------------------------------------


class TokenError(AuthError):
    code = "invalid_token"
    message = "Invalid session token."


class MalformedToken(TokenError):
    code = "malformed_token"
    message = "Session token could not be parsed."


class InvalidSignature(TokenError):
    code = "invalid_signature"
    message = "Session token signature does not match."


class ExpiredToken(TokenError):
    code = "expired_token"
    message = "Session token has expired."

