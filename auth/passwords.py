"""
auth/passwords.py -- One-way salted password hashing (bcrypt).

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error. Direct bcrypt usage has no compatibility shim.

The cost factor comes from Settings.bcrypt_rounds (default 10). Salt and cost
are embedded in every hash, so verify_password() needs nothing but the hash.

Layer rule: no imports from api/, audit/, or client/. Import from core/ is
allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import bcrypt

from core.config import get_settings

_settings = get_settings()

# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Raises ValueError for passwords over 72 UTF-8 bytes instead of letting
    bcrypt silently truncate (or, on bcrypt >= 5, raise its own error). The
    API layer rejects such passwords before they get here.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=_settings.bcrypt_rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed hash, a non-string argument or an over-long password all
    return False. Callers cannot tell "wrong password" from "corrupt hash".
    """
    try:
        encoded = plain.encode("utf-8")
        # bcrypt 4.x truncates at 72 bytes; a longer input must not match a 72-byte prefix.
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except Exception:
        return False


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones. login_user() verifies against it when the email
# is unknown so response time does not reveal which accounts exist.
DUMMY_HASH: str = hash_password("coverdesk_timing_dummy")
