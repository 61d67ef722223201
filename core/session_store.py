"""Single owner of the signed-in identity.

The store subscribes to the auth provider for its whole lifetime and keeps
the local identity cache in step with every auth-state change.

Ordering: notifications are applied in delivery order and the latest one
wins. The initial session fetch records the event sequence number when it
starts; if any notification was applied while the fetch was in flight, the
fetched result is stale and is discarded.

Updates:
  v0.2.0 - 2026-10-07 - Discard stale initial fetches when a notification arrives first.
  v0.1.1 - 2026-10-01 - Force anonymous state when provider sign-out fails.
  v0.1.0 - 2026-09-23 - Introduce SessionStore with identity cache mirroring.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from models.identity_model import Identity

from .exceptions import AuthError
from .notifications import Subscription

if TYPE_CHECKING:
    from collections.abc import Callable

    from .auth import AuthChange, AuthProvider, AuthSession
    from .identity_cache import IdentityCache

logger = logging.getLogger("promptly.session")


class SessionState(str, Enum):
    """Lifecycle of the session store."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SessionStore:
    """Tracks the current identity and exposes sign-in and sign-out."""

    def __init__(
        self,
        provider: AuthProvider,
        cache: IdentityCache,
        *,
        redirect_url: str,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._redirect_url = redirect_url
        self._clock = clock or _utc_now
        self._identity: Identity | None = None
        self._state = SessionState.UNINITIALIZED
        self._event_sequence = 0
        self._listeners: list[Callable[[SessionStore], None]] = []
        self._closed = False
        self._subscription: Subscription | None = provider.on_auth_state_change(
            self._handle_auth_change
        )

    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def loading(self) -> bool:
        """Return ``True`` while the identity is still unknown."""
        return self._state in (SessionState.UNINITIALIZED, SessionState.LOADING)

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    @property
    def closed(self) -> bool:
        return self._closed

    def cached_identity(self) -> Identity | None:
        """Return the last cached identity for display before initialisation completes."""
        return self._cache.read()

    async def initialize(self) -> Identity | None:
        """Fetch the current session and resolve the store to a settled state.

        Provider failures are logged and degrade to anonymous; nothing is raised.
        """
        if self._closed:
            raise RuntimeError("SessionStore is closed")
        if not self.loading:
            return self._identity
        self._set_state(SessionState.LOADING)
        started_at = self._event_sequence
        try:
            session = await self._provider.get_session()
        except AuthError as exc:
            logger.warning("Session fetch failed, continuing signed out: %s", exc)
            session = None
        if self._closed:
            return None
        if self._event_sequence != started_at:
            logger.debug("Discarding initial session fetch superseded by an auth notification")
            return self._identity
        self._apply_session(session)
        return self._identity

    def _handle_auth_change(self, change: AuthChange) -> None:
        if self._closed:
            return
        self._event_sequence += 1
        logger.debug("Applying auth change %s", change.event.value)
        self._apply_session(change.session)

    def _apply_session(self, session: AuthSession | None) -> None:
        identity: Identity | None = None
        if session is not None:
            try:
                identity = Identity.from_session_user(session.user, signed_in_at=self._clock())
            except ValueError as exc:
                logger.warning("Ignoring session without a usable user: %s", exc)
        self._identity = identity
        if identity is None:
            self._cache.remove()
            self._set_state(SessionState.ANONYMOUS)
        else:
            self._cache.write(identity)
            self._set_state(SessionState.AUTHENTICATED)

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(self)

    def subscribe(self, listener: Callable[[SessionStore], None]) -> Subscription:
        """Call *listener* with the store whenever its state changes."""
        self._listeners.append(listener)

        def _detach() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(_detach)

    def sign_in_url(self) -> str:
        """Return the OAuth URL that redirects back to the application root."""
        return self._provider.authorize_url(self._redirect_url)

    async def complete_sign_in(self, redirect_url: str) -> Identity | None:
        """Hand the OAuth redirect to the provider; its ``SIGNED_IN`` event sets the identity.

        Raises:
          AuthError: When the redirect carries an error or invalid tokens.
        """
        await self._provider.exchange_redirect(redirect_url)
        return self._identity

    async def sign_out(self) -> None:
        """Request sign-out, then clear the identity whether or not the provider succeeded."""
        self._event_sequence += 1
        try:
            await self._provider.sign_out()
        except AuthError as exc:
            logger.error("Provider sign-out failed; clearing local session anyway: %s", exc)
        finally:
            if not self._closed:
                self._apply_session(None)
            else:
                self._cache.remove()

    def close(self) -> None:
        """Release the provider subscription; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        self._listeners.clear()

    def __enter__(self) -> SessionStore:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


__all__ = ["SessionState", "SessionStore"]
