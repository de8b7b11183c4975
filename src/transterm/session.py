"""Session handling for TransTerm.

Authentication itself happens at the hosted backend; this module only
carries the resulting access token around and answers "may this user
write?".

A SessionContext is created by whoever owns the request or the view and is
passed explicitly to every component that gates writes. Components that need
to react to sign-in or sign-out subscribe on mount and unsubscribe on
teardown.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

SessionListener = Callable[["Session | None"], None]


@dataclass
class Session:
    """An authenticated backend session."""

    access_token: str = field(repr=False)  # Never print the token
    user_id: str | None = None
    expires_at: datetime | None = None

    def is_expired(self) -> bool:
        """Check if the backend token has passed its expiry."""
        expires_at = self.expires_at
        if expires_at is None:
            return False
        if expires_at.tzinfo is None:
            # Naive expiry times are read as UTC
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) >= expires_at


class Subscription:
    """Handle returned by SessionContext.subscribe."""

    def __init__(self, context: SessionContext, listener: SessionListener) -> None:
        self._context = context
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving session changes. Idempotent."""
        if self.active:
            self._context._remove(self._listener)
            self.active = False


class SessionContext:
    """The current session plus change notifications."""

    def __init__(self, session: Session | None = None) -> None:
        self._session = session
        self._listeners: list[SessionListener] = []
        self._lock = threading.Lock()

    @property
    def current(self) -> Session | None:
        """The active session, or None when signed out or expired."""
        session = self._session
        if session is not None and session.is_expired():
            return None
        return session

    @property
    def can_write(self) -> bool:
        return self.current is not None

    @property
    def access_token(self) -> str | None:
        session = self.current
        return session.access_token if session else None

    def sign_in(self, session: Session) -> None:
        self._session = session
        logger.info("Session started for %s", session.user_id or "anonymous user")
        self._emit(session)

    def sign_out(self) -> None:
        if self._session is None:
            return
        self._session = None
        logger.info("Session ended")
        self._emit(None)

    def subscribe(self, listener: SessionListener) -> Subscription:
        """Register ``listener`` for sign-in/sign-out changes.

        The listener is called immediately with the current session so a
        freshly mounted component starts in the right state.
        """
        with self._lock:
            self._listeners.append(listener)
        listener(self.current)
        return Subscription(self, listener)

    def _remove(self, listener: SessionListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, session: Session | None) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(session)
