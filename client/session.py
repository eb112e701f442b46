"""
client/session.py -- Observable client-side session cache.

Pattern: Observer. Consumers subscribe once and receive a SessionState on
every change instead of polling. State changes only through the three
explicit update points: authenticated(), restoring() and clear().

    cache = SessionCache()
    unsubscribe = cache.subscribe(lambda state: print(state.is_authenticated))
    cache.authenticated(token, identity)
    unsubscribe()

The token lives in memory only. Persisting it between runs is the embedding
application's concern; it hands the stored token back through restoring().
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from auth.models import Identity

logger = logging.getLogger("coverdesk.client")


@dataclass(frozen=True)
class SessionState:
    """Snapshot handed to observers.

    is_authenticated is True whenever a token is held, even while identity is
    still unresolved (a restored session that has not reached /auth/me yet).
    """

    is_authenticated: bool = False
    identity: Optional[Identity] = None


ANONYMOUS = SessionState()

Observer = Callable[[SessionState], None]


class SessionCache:
    """Holds the bearer token and the current SessionState."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # Held across state change and delivery so observers see changes in order.
        # Re-entrant: an observer may itself call clear().
        self._notify_lock = threading.RLock()
        self._token: Optional[str] = None
        self._state = ANONYMOUS
        self._observers: list[Observer] = []

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """Register an observer and call it with the current state right away.

        Returns a callable that removes the observer again; calling it twice
        is harmless.
        """
        with self._notify_lock:
            with self._lock:
                self._observers.append(callback)
                current = self._state
            callback(current)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def authenticated(self, token: str, identity: Identity) -> None:
        """Record a fresh login or a completed restore."""
        self._publish(token, SessionState(is_authenticated=True, identity=identity))

    def restoring(self, token: str) -> None:
        """Hold a stored token whose identity has not been resolved yet."""
        self._publish(token, SessionState(is_authenticated=True, identity=None))

    def clear(self) -> None:
        """Drop the token and return to the anonymous state."""
        self._publish(None, ANONYMOUS)

    def _publish(self, token: Optional[str], state: SessionState) -> None:
        with self._notify_lock:
            with self._lock:
                self._token = token
                self._state = state
                observers = list(self._observers)
            for callback in observers:
                try:
                    callback(state)
                except Exception:  # noqa: BLE001 -- one broken observer must not starve the rest
                    logger.exception("Session observer %r failed", callback)
