"""Pytest configuration for shared test fixtures and environment hooks.

Updates:
  v0.2.0 - 2026-10-09 - Add fake auth provider, record builder, and session fixtures.
  v0.1.0 - 2026-09-22 - Isolate tests from developer environment variables and config files.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from core.auth import AuthChange, AuthEvent, AuthSession
from core.identity_cache import IdentityCache
from core.notifications import NotificationCenter, Subscription
from core.session_store import SessionStore
from models.prompt_model import PromptRecord

_ENV_VARS = (
    "PROMPTLY_SUPABASE_URL",
    "PROMPTLY_SUPABASE_ANON_KEY",
    "PROMPTLY_SUMMARIZER_URL",
    "PROMPTLY_DATA_DIR",
    "PROMPTLY_IDENTITY_CACHE_PATH",
    "PROMPTLY_SESSION_PATH",
    "PROMPTLY_REQUEST_TIMEOUT_SECONDS",
    "PROMPTLY_RECENT_LIMIT",
    "PROMPTLY_REDIRECT_URL",
    "PROMPTLY_CONFIG_JSON",
    "PROMPTLY_ENV_FILE",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "VITE_SUPABASE_URL",
    "VITE_SUPABASE_ANON_KEY",
    "VITE_RENDER_URL",
    "RENDER_URL",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    """Run each test in an empty working directory without Promptly env vars."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    yield tmp_path


def user_payload(
    user_id: str = "user-1",
    *,
    email: str | None = "ada@example.com",
    full_name: str | None = "Ada Lovelace",
) -> dict[str, Any]:
    metadata: dict[str, Any] = {"avatar_url": "https://cdn.example.com/ada.png"}
    if full_name is not None:
        metadata["full_name"] = full_name
    return {"id": user_id, "email": email, "user_metadata": metadata}


def auth_session(user_id: str = "user-1", **kwargs: Any) -> AuthSession:
    return AuthSession(access_token=f"token-{user_id}", user=user_payload(user_id, **kwargs))


class FakeAuthProvider:
    """In-memory stand-in for the GoTrue provider."""

    def __init__(self, session: AuthSession | None = None) -> None:
        self.session = session
        self.fetch_error: Exception | None = None
        self.sign_out_error: Exception | None = None
        self.fetch_gate: asyncio.Event | None = None
        self.sign_out_calls = 0
        self.listeners: list[Callable[[AuthChange], None]] = []

    def authorize_url(self, redirect_to: str) -> str:
        return f"https://auth.test/authorize?provider=google&redirect_to={redirect_to}"

    async def get_session(self) -> AuthSession | None:
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.session

    async def exchange_redirect(self, redirect_url: str) -> AuthSession:
        session = auth_session("user-2", email="grace@example.com", full_name=None)
        self.session = session
        self.emit(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        self.session = None
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.emit(AuthEvent.SIGNED_OUT, None)

    def on_auth_state_change(self, callback: Callable[[AuthChange], None]) -> Subscription:
        self.listeners.append(callback)
        return Subscription(lambda: self.listeners.remove(callback))

    def emit(self, event: AuthEvent, session: AuthSession | None) -> None:
        for listener in list(self.listeners):
            listener(AuthChange(event=event, session=session))


@pytest.fixture()
def fake_auth() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture()
def identity_cache(tmp_path: Path) -> IdentityCache:
    return IdentityCache(tmp_path / "identity_cache.json")


@pytest.fixture()
def session_store(fake_auth: FakeAuthProvider, identity_cache: IdentityCache) -> Iterator[SessionStore]:
    store = SessionStore(fake_auth, identity_cache, redirect_url="http://localhost:3000/")
    yield store
    store.close()


@pytest.fixture()
def notifications() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture()
def make_record() -> Callable[..., PromptRecord]:
    """Return a builder for prompt records with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _build(
        *,
        prompt: str = "Write a haiku about autumn",
        summary: str = "A short autumn haiku.",
        tags: tuple[str, ...] = ("poetry",),
        created_at: datetime | None = None,
        response: str | None = None,
        user_id: str = "user-1",
        record_id: str | None = None,
    ) -> PromptRecord:
        return PromptRecord(
            id=record_id or f"p{next(counter)}",
            user_id=user_id,
            prompt=prompt,
            summary=summary,
            tags=tags,
            created_at=created_at or datetime(2025, 3, 4, 12, 0, tzinfo=UTC),
            response=response,
        )

    return _build
