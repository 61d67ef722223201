"""Factories for constructing the Promptly service graph from validated settings.

Updates:
  v0.1.1 - 2026-10-05 - Report missing Supabase settings as a single SettingsError.
  v0.1.0 - 2026-09-26 - Introduce build_app wiring auth, storage, and summariser clients.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from config.settings import IDENTITY_CACHE_FILENAME, SESSION_FILENAME, SettingsError

from .auth import SessionTokenStore, SupabaseAuthProvider
from .identity_cache import IdentityCache
from .notifications import NotificationCenter
from .repository import PromptRepository
from .session_store import SessionStore
from .summarizer import SummarizerClient
from .workflows import Dashboard, PromptComposer, PromptLibrary

if TYPE_CHECKING:  # pragma: no cover - typing only
    from collections.abc import Callable, Sequence

    import httpx

    from config import PromptlySettings

factory_logger = logging.getLogger("promptly.factory")


def _format_missing_requirements(values: Sequence[str]) -> str:
    """Return a human-friendly list of missing configuration values."""
    entries = [value for value in values if value]
    if len(entries) <= 1:
        return "".join(entries)
    return ", ".join(entries[:-1]) + f" and {entries[-1]}"


@dataclass(slots=True)
class PromptlyApp:
    """Wired collaborators shared by every screen."""

    settings: PromptlySettings
    session: SessionStore
    repository: PromptRepository
    summarizer: SummarizerClient
    notifications: NotificationCenter

    def composer(self, initial_prompt: str | None = None) -> PromptComposer:
        return PromptComposer(
            self.session,
            self.repository,
            self.summarizer,
            self.notifications,
            initial_prompt=initial_prompt,
        )

    def library(self) -> PromptLibrary:
        return PromptLibrary(self.session, self.repository, self.notifications)

    def dashboard(self) -> Dashboard:
        return Dashboard(self.session, self.repository, fetch_limit=self.settings.recent_limit)

    def close(self) -> None:
        self.session.close()


def build_app(
    settings: PromptlySettings,
    *,
    notifications: NotificationCenter | None = None,
    backend_client_factory: Callable[[], httpx.AsyncClient] | None = None,
    summarizer_client_factory: Callable[[], httpx.AsyncClient] | None = None,
) -> PromptlyApp:
    """Return a :class:`PromptlyApp` wired from *settings*.

    Raises:
      SettingsError: When the Supabase project URL or key is missing.
    """
    missing = settings.missing_backend_settings()
    if missing:
        raise SettingsError(
            f"Supabase is not configured; set {_format_missing_requirements(missing)}."
        )
    supabase_url = settings.supabase_url or ""
    anon_key = settings.supabase_anon_key or ""
    session_path = settings.session_path or settings.data_dir / SESSION_FILENAME
    cache_path = settings.identity_cache_path or settings.data_dir / IDENTITY_CACHE_FILENAME

    timeout = settings.request_timeout_seconds
    provider = SupabaseAuthProvider(
        base_url=supabase_url,
        anon_key=anon_key,
        token_store=SessionTokenStore(session_path),
        timeout=timeout,
        client_factory=backend_client_factory,
    )
    session = SessionStore(
        provider,
        IdentityCache(cache_path),
        redirect_url=settings.redirect_url,
    )
    repository = PromptRepository(
        base_url=supabase_url,
        anon_key=anon_key,
        token_provider=provider.access_token,
        timeout=timeout,
        client_factory=backend_client_factory,
    )
    summarizer = SummarizerClient(
        base_url=settings.summarizer_url,
        timeout=max(timeout, 30.0),
        client_factory=summarizer_client_factory,
    )
    factory_logger.debug(
        "Promptly wired against %s with summariser %s",
        settings.supabase_url,
        settings.summarizer_url,
    )
    return PromptlyApp(
        settings=settings,
        session=session,
        repository=repository,
        summarizer=summarizer,
        notifications=notifications or NotificationCenter(),
    )


__all__ = ["PromptlyApp", "build_app"]
