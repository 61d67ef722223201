"""Supabase GoTrue adapter used by the session store.

The provider keeps the OAuth session tokens in a local JSON file, refreshes
them when they expire, and broadcasts auth-state changes to subscribers in
the order they happen.

Updates:
  v0.2.1 - 2026-10-09 - Surface GoTrue error descriptions from OAuth redirects.
  v0.2.0 - 2026-10-04 - Refresh expired access tokens before validating the session.
  v0.1.0 - 2026-09-23 - Introduce GoTrue REST provider with local token storage.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable
from urllib.parse import parse_qsl, urlencode, urlsplit

import httpx

from .exceptions import AuthError
from .notifications import Subscription
from .retry import async_retry

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

logger = logging.getLogger("promptly.auth")

OAUTH_PROVIDER = "google"
# Refresh slightly ahead of the server-side expiry.
_EXPIRY_MARGIN = timedelta(seconds=30)


class AuthEvent(str, Enum):
    """Auth-state transitions broadcast to subscribers."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass(slots=True)
class AuthSession:
    """Tokens plus the GoTrue ``user`` payload for the active session."""

    access_token: str
    user: dict[str, Any]
    refresh_token: str | None = None
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        current = now or datetime.now(UTC)
        return current + _EXPIRY_MARGIN >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": int(self.expires_at.timestamp()) if self.expires_at else None,
            "user": dict(self.user),
        }

    @classmethod
    def from_token_payload(
        cls,
        payload: Mapping[str, Any],
        *,
        user: Mapping[str, Any] | None = None,
    ) -> AuthSession:
        """Build a session from a GoTrue token response or a stored record."""
        access_token = str(payload.get("access_token") or "").strip()
        if not access_token:
            raise AuthError("Auth response did not include an access token")
        user_payload = user if user is not None else payload.get("user")
        expires_at: datetime | None = None
        raw_expires_at = payload.get("expires_at")
        raw_expires_in = payload.get("expires_in")
        try:
            if raw_expires_at not in (None, ""):
                expires_at = datetime.fromtimestamp(int(raw_expires_at), UTC)
            elif raw_expires_in not in (None, ""):
                expires_at = datetime.now(UTC) + timedelta(seconds=int(raw_expires_in))
        except (TypeError, ValueError) as exc:
            raise AuthError("Auth response carried an invalid expiry") from exc
        return cls(
            access_token=access_token,
            refresh_token=str(payload.get("refresh_token") or "").strip() or None,
            expires_at=expires_at,
            user=dict(user_payload) if isinstance(user_payload, dict) else {},
        )


@dataclass(slots=True, frozen=True)
class AuthChange:
    """Single notification from the provider's change stream."""

    event: AuthEvent
    session: AuthSession | None


@runtime_checkable
class AuthProvider(Protocol):
    """Collaborator contract consumed by :class:`core.session_store.SessionStore`."""

    def authorize_url(self, redirect_to: str) -> str:
        """Return the URL that starts the OAuth sign-in flow."""
        ...

    async def get_session(self) -> AuthSession | None:
        """Return the current session, or ``None`` when signed out."""
        ...

    async def exchange_redirect(self, redirect_url: str) -> AuthSession:
        """Complete sign-in from the OAuth redirect URL."""
        ...

    async def sign_out(self) -> None:
        """Invalidate the current session."""
        ...

    def on_auth_state_change(self, callback: Callable[[AuthChange], None]) -> Subscription:
        """Subscribe *callback* to auth-state changes."""
        ...


class SessionTokenStore:
    """JSON file holding the provider session between runs."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    def load(self) -> AuthSession | None:
        if not self._path.exists():
            return None
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            return AuthSession.from_token_payload(payload)
        except (OSError, json.JSONDecodeError, AuthError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self._path, exc)
            return None

    def save(self, session: AuthSession) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(session.to_dict(), indent=2), encoding="utf-8")

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


def _parse_redirect_params(redirect_url: str) -> dict[str, str]:
    """Collect OAuth parameters from the fragment (implicit flow) and query string."""
    parts = urlsplit(redirect_url.strip())
    params = dict(parse_qsl(parts.query))
    params.update(parse_qsl(parts.fragment))
    return params


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        for key in ("error_description", "msg", "message", "error"):
            value = payload.get(key)
            if value:
                return str(value)
    return response.reason_phrase


@dataclass(slots=True)
class SupabaseAuthProvider:
    """HTTPX-backed Supabase GoTrue client."""

    base_url: str
    anon_key: str
    token_store: SessionTokenStore
    timeout: float = 15.0
    client_factory: Callable[[], httpx.AsyncClient] | None = None
    _listeners: list[Callable[[AuthChange], None]] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        """Validate the project URL and key."""
        if not self.base_url or not self.base_url.strip():
            raise ValueError("Supabase URL is required")
        if not self.anon_key or not self.anon_key.strip():
            raise ValueError("Supabase anon key is required")
        self.base_url = self.base_url.strip().rstrip("/")
        self.anon_key = self.anon_key.strip()

    def _client(self) -> tuple[httpx.AsyncClient, bool]:
        if self.client_factory is None:
            return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout), True
        return self.client_factory(), False

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
        }

    def on_auth_state_change(self, callback: Callable[[AuthChange], None]) -> Subscription:
        """Register *callback*; notifications are delivered synchronously in order."""
        self._listeners.append(callback)

        def _detach() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return Subscription(_detach)

    def _emit(self, event: AuthEvent, session: AuthSession | None) -> None:
        change = AuthChange(event=event, session=session)
        logger.debug("Auth state change: %s", event.value)
        for listener in list(self._listeners):
            listener(change)

    def authorize_url(self, redirect_to: str) -> str:
        query = urlencode({"provider": OAUTH_PROVIDER, "redirect_to": redirect_to})
        return f"{self.base_url}/auth/v1/authorize?{query}"

    async def _fetch_user(self, access_token: str) -> dict[str, Any] | None:
        """Return the GoTrue user for *access_token*, or ``None`` when it is rejected."""
        client, manage_client = self._client()
        try:

            async def _send_request() -> httpx.Response:
                response = await client.get("/auth/v1/user", headers=self._headers(access_token))
                if response.status_code >= 500:
                    response.raise_for_status()
                return response

            response = await async_retry(_send_request, description="user lookup")
        except httpx.HTTPError as exc:
            raise AuthError("Unable to reach the auth service") from exc
        finally:
            if manage_client:
                await client.aclose()
        if response.status_code in (401, 403):
            return None
        if response.is_error:
            raise AuthError(f"Fetching the signed-in user failed: {_error_message(response)}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthError("Auth service returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise AuthError("Auth service returned an unexpected user payload")
        return payload

    async def _refresh(self, session: AuthSession) -> AuthSession | None:
        if not session.refresh_token:
            return None
        client, manage_client = self._client()
        try:
            response = await client.post(
                "/auth/v1/token",
                params={"grant_type": "refresh_token"},
                json={"refresh_token": session.refresh_token},
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            raise AuthError("Unable to refresh the session") from exc
        finally:
            if manage_client:
                await client.aclose()
        if response.status_code in (400, 401, 403):
            logger.info("Refresh token rejected: %s", _error_message(response))
            return None
        if response.is_error:
            raise AuthError(f"Refreshing the session failed: {_error_message(response)}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthError("Auth service returned invalid JSON") from exc
        refreshed = AuthSession.from_token_payload(payload)
        if not refreshed.user:
            refreshed.user = dict(session.user)
        self.token_store.save(refreshed)
        self._emit(AuthEvent.TOKEN_REFRESHED, refreshed)
        return refreshed

    async def _current_session(self) -> AuthSession | None:
        session = self.token_store.load()
        if session is None:
            return None
        if session.is_expired():
            refreshed = await self._refresh(session)
            if refreshed is None:
                self.token_store.clear()
                return None
            session = refreshed
        return session

    async def get_session(self) -> AuthSession | None:
        """Return the stored session after validating it with the auth service.

        Sessions whose tokens are rejected are dropped locally and reported as
        signed out.
        """
        session = await self._current_session()
        if session is None:
            return None
        user = await self._fetch_user(session.access_token)
        if user is None:
            logger.info("Stored session was rejected; treating user as signed out")
            self.token_store.clear()
            return None
        session.user = user
        self.token_store.save(session)
        return session

    async def access_token(self) -> str:
        """Return a valid access token for database requests."""
        session = await self._current_session()
        if session is None:
            raise AuthError("Not signed in")
        return session.access_token

    async def exchange_redirect(self, redirect_url: str) -> AuthSession:
        """Store the tokens carried by an OAuth redirect and announce ``SIGNED_IN``."""
        params = _parse_redirect_params(redirect_url)
        if "error" in params or "error_description" in params:
            raise AuthError(params.get("error_description") or params.get("error") or "Sign-in failed")
        provisional = AuthSession.from_token_payload(params)
        user = await self._fetch_user(provisional.access_token)
        if user is None:
            raise AuthError("The auth service rejected the sign-in token")
        session = AuthSession.from_token_payload(params, user=user)
        self.token_store.save(session)
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_out(self) -> None:
        """Invalidate the session remotely, then always drop it locally.

        Raises:
          AuthError: When the logout request fails; local state is cleared anyway.
        """
        session = self.token_store.load()
        failure: AuthError | None = None
        if session is not None:
            client, manage_client = self._client()
            try:
                response = await client.post(
                    "/auth/v1/logout",
                    headers=self._headers(session.access_token),
                )
                if response.is_error and response.status_code not in (401, 403, 404):
                    failure = AuthError(f"Sign-out failed: {_error_message(response)}")
            except httpx.HTTPError as exc:
                failure = AuthError("Unable to reach the auth service to sign out")
                failure.__cause__ = exc
            finally:
                if manage_client:
                    await client.aclose()
        self.token_store.clear()
        self._emit(AuthEvent.SIGNED_OUT, None)
        if failure is not None:
            raise failure


__all__ = [
    "AuthChange",
    "AuthEvent",
    "AuthProvider",
    "AuthSession",
    "OAUTH_PROVIDER",
    "SessionTokenStore",
    "SupabaseAuthProvider",
]
