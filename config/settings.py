"""Settings management utilities for Promptly configuration.

Updates:
  v0.2.1 - 2026-10-07 - Accept VITE_RENDER_URL and RENDER_URL aliases for the summariser.
  v0.2.0 - 2026-10-02 - Derive identity cache and session paths from the data directory.
  v0.1.1 - 2026-09-27 - Ignore the Supabase anon key when it appears in JSON config files.
  v0.1.0 - 2026-09-22 - Introduce PromptlySettings with JSON, .env, and environment sources.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

_DOTENV_FALLBACK_PATH = ".env"

DEFAULT_SUMMARIZER_URL = "http://localhost:5000"
DEFAULT_REDIRECT_URL = "http://localhost:3000/"
DEFAULT_DATA_DIR = Path("data")
DEFAULT_RECENT_LIMIT = 10
IDENTITY_CACHE_FILENAME = "identity_cache.json"
SESSION_FILENAME = "session.json"

# Field name -> accepted keys; lowercase keys are only read with the PROMPTLY_ prefix.
_ENV_ALIASES: dict[str, list[str]] = {
    "supabase_url": ["supabase_url", "SUPABASE_URL", "VITE_SUPABASE_URL"],
    "supabase_anon_key": ["supabase_anon_key", "SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY"],
    "summarizer_url": ["summarizer_url", "VITE_RENDER_URL", "RENDER_URL"],
    "data_dir": ["data_dir"],
    "identity_cache_path": ["identity_cache_path"],
    "session_path": ["session_path"],
    "request_timeout_seconds": ["request_timeout_seconds"],
    "recent_limit": ["recent_limit"],
    "redirect_url": ["redirect_url"],
}

_JSON_KEYS = (
    "supabase_url",
    "summarizer_url",
    "data_dir",
    "identity_cache_path",
    "session_path",
    "request_timeout_seconds",
    "recent_limit",
    "redirect_url",
)
_SECRET_JSON_KEYS = {"supabase_anon_key", "SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY"}


def _read_dotenv_values() -> dict[str, str]:
    """Load ``.env`` entries into a mapping without mutating ``os.environ``."""
    env_file_override = os.getenv("PROMPTLY_ENV_FILE")
    if env_file_override is not None:
        candidate = env_file_override.strip()
        if not candidate:
            return {}
        path = Path(candidate).expanduser()
    else:
        path = Path(_DOTENV_FALLBACK_PATH).expanduser()
    if not path.is_file():
        return {}
    raw_values = dotenv_values(str(path))
    return {str(key): str(value) for key, value in raw_values.items() if value is not None}


class SettingsError(Exception):
    """Raised when Promptly configuration cannot be loaded or validated."""


class PromptlySettings(BaseSettings):
    """Application configuration sourced from environment variables or JSON files."""

    supabase_url: str | None = Field(
        default=None,
        description="Supabase project URL hosting auth and the prompts table.",
    )
    supabase_anon_key: str | None = Field(
        default=None,
        description="Supabase anonymous API key.",
        repr=False,
    )
    summarizer_url: str = Field(
        default=DEFAULT_SUMMARIZER_URL,
        description="Base URL of the service exposing POST /api/summarize.",
    )
    data_dir: Path = Field(default=DEFAULT_DATA_DIR)
    identity_cache_path: Path | None = None
    session_path: Path | None = None
    request_timeout_seconds: float = Field(default=15.0, gt=0)
    recent_limit: int = Field(default=DEFAULT_RECENT_LIMIT, gt=0)
    redirect_url: str = Field(
        default=DEFAULT_REDIRECT_URL,
        description="Application root the OAuth provider redirects back to.",
    )

    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": "PROMPTLY_",
            "case_sensitive": False,
            "populate_by_name": True,
            "extra": "ignore",
        },
    )

    @field_validator("supabase_url", "supabase_anon_key", mode="before")
    def _strip_optional(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("supabase_url")
    def _validate_supabase_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if not value.startswith(("http://", "https://")):
            raise ValueError("supabase_url must start with http:// or https://")
        return value.rstrip("/")

    @field_validator("summarizer_url", mode="before")
    def _normalise_summarizer_url(cls, value: object) -> str:
        text = str(value or "").strip()
        if not text:
            return DEFAULT_SUMMARIZER_URL
        return text.rstrip("/")

    @field_validator("redirect_url", mode="before")
    def _normalise_redirect_url(cls, value: object) -> str:
        text = str(value or "").strip()
        return text or DEFAULT_REDIRECT_URL

    @model_validator(mode="after")
    def _derive_paths(self) -> PromptlySettings:
        if self.identity_cache_path is None:
            self.identity_cache_path = self.data_dir / IDENTITY_CACHE_FILENAME
        if self.session_path is None:
            self.session_path = self.data_dir / SESSION_FILENAME
        return self

    @property
    def backend_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    def missing_backend_settings(self) -> list[str]:
        """Return the environment variable names still needed to reach Supabase."""
        missing: list[str] = []
        if not self.supabase_url:
            missing.append("PROMPTLY_SUPABASE_URL")
        if not self.supabase_anon_key:
            missing.append("PROMPTLY_SUPABASE_ANON_KEY")
        return missing

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        """Define configuration source precedence.

        Order (highest → lowest):
            1. Explicit keyword arguments (e.g. load_settings(recent_limit=5)).
            2. JSON configuration file.
            3. Environment variables, ``.env`` values, and their aliases.
            4. File secrets.
        """

        def env_with_aliases(_: BaseSettings | None = None) -> dict[str, Any]:
            data: dict[str, Any] = {}
            config_dict = cast("dict[str, Any]", cls.model_config)
            prefix = str(config_dict.get("env_prefix", ""))
            dotenv_data = _read_dotenv_values()

            def _lookup(candidate: str) -> str | None:
                value = os.getenv(candidate)
                if value is None:
                    value = dotenv_data.get(candidate)
                if value is None:
                    return None
                stripped_value = str(value).strip()
                return stripped_value or None

            for field, keys in _ENV_ALIASES.items():
                for key in keys:
                    candidates = [f"{prefix}{key}", f"{prefix}{key.upper()}"]
                    if key.isupper():
                        candidates.append(key)
                    value = next(
                        (found for found in map(_lookup, candidates) if found is not None),
                        None,
                    )
                    if value is not None:
                        data[field] = value
                        break
            return data

        return (
            init_settings,
            cls._json_config_settings_source(settings_cls),
            cast("PydanticBaseSettingsSource", env_with_aliases),
            file_secret_settings,
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        _: type[BaseSettings],
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            explicit_path = os.getenv("PROMPTLY_CONFIG_JSON")
            candidates: list[Path] = []
            if explicit_path:
                candidates.append(Path(explicit_path).expanduser())
            candidates.append(Path("config") / "config.json")

            for index, path in enumerate(candidates):
                if not path.exists():
                    if explicit_path and index == 0:
                        raise SettingsError(f"Configuration file not found: {path}")
                    continue
                try:
                    raw_contents = path.read_text(encoding="utf-8")
                except OSError as exc:  # pragma: no cover - filesystem failure is env-specific
                    raise SettingsError(f"Unable to read configuration file: {path}") from exc
                try:
                    data = json.loads(raw_contents)
                except json.JSONDecodeError as exc:
                    raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
                if not isinstance(data, dict):
                    raise SettingsError(f"Configuration file {path} must contain a JSON object")
                mapping_data = cast("Mapping[object, Any]", data)
                data_dict = {str(key): value for key, value in mapping_data.items()}
                removed_secrets = sorted(key for key in _SECRET_JSON_KEYS if key in data_dict)
                if removed_secrets:
                    logger.warning(
                        "Ignoring secret key(s) %s in configuration file %s; "
                        "set credentials via environment variables instead.",
                        ", ".join(removed_secrets),
                        path,
                    )
                return {key: data_dict[key] for key in _JSON_KEYS if key in data_dict}
            return {}

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> PromptlySettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return PromptlySettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError(f"Invalid Promptly configuration: {exc}") from exc


logger = logging.getLogger("promptly.settings")
