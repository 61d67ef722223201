"""Printable summaries for Promptly configuration.

Updates:
  v0.1.0 - 2026-09-28 - Extract CLI settings summary rendering.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .utils import describe_path, mask_secret

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import PromptlySettings


def print_settings_summary(settings: PromptlySettings) -> None:
    """Emit a readable summary of configuration and health checks."""
    missing = settings.missing_backend_settings()
    lines = [
        "Promptly configuration summary",
        "------------------------------",
        f"Supabase URL: {settings.supabase_url or 'not set'}",
        f"Supabase anon key: {mask_secret(settings.supabase_anon_key)}",
        f"Summariser URL: {settings.summarizer_url}",
        f"OAuth redirect URL: {settings.redirect_url}",
        f"Data directory: {describe_path(settings.data_dir, expect_directory=True)}",
        f"Identity cache: {describe_path(settings.identity_cache_path, expect_directory=False)}",
        f"Session file: {describe_path(settings.session_path, expect_directory=False)}",
        f"Request timeout: {settings.request_timeout_seconds:g}s",
        f"Recent prompts fetched: {settings.recent_limit}",
        "",
    ]
    if missing:
        lines.append("Backend: not configured (set " + ", ".join(missing) + ")")
    else:
        lines.append("Backend: configured")
    print("\n".join(lines))
