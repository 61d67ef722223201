"""Configuration helpers for Promptly.

Updates: v0.1.1 - 2026-10-02 - Export default summariser and redirect URLs.
Updates: v0.1.0 - 2026-09-22 - Expose settings loader and configuration error types.
"""

from .settings import (
    DEFAULT_REDIRECT_URL,
    DEFAULT_SUMMARIZER_URL,
    PromptlySettings,
    SettingsError,
    load_settings,
)

__all__ = [
    "DEFAULT_REDIRECT_URL",
    "DEFAULT_SUMMARIZER_URL",
    "PromptlySettings",
    "SettingsError",
    "load_settings",
]
