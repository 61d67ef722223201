"""Local key-value cache holding the last signed-in identity.

The cache lets front-ends render a name in the header before the auth
provider answers. It is never treated as the source of truth: the session
store overwrites or clears it on every auth-state change.

Updates:
  v0.1.1 - 2026-10-05 - Treat corrupt cache files as empty instead of failing start-up.
  v0.1.0 - 2026-09-23 - Introduce JSON-backed identity cache.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from models.identity_model import Identity

logger = logging.getLogger("promptly.identity_cache")

CACHE_KEY = "promptly_user"


class IdentityCache:
    """JSON file acting as a tiny key-value store for the identity record."""

    def __init__(self, path: Path | str, *, key: str = CACHE_KEY) -> None:
        self._path = Path(path)
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    def _load_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable identity cache %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring identity cache %s with unexpected shape", self._path)
            return {}
        return data

    def _dump_all(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    def write(self, identity: Identity) -> None:
        """Store *identity* under the cache key, replacing any previous value."""
        data = self._load_all()
        data[self._key] = identity.to_cache_record()
        self._dump_all(data)
        logger.debug("Cached identity for user %s", identity.id)

    def read(self) -> Identity | None:
        """Return the cached identity, or ``None`` when absent or malformed."""
        record = self._load_all().get(self._key)
        if not isinstance(record, dict):
            return None
        try:
            return Identity.from_cache_record(record)
        except ValueError as exc:
            logger.warning("Discarding malformed cached identity: %s", exc)
            return None

    def remove(self) -> None:
        """Drop the cache entry while keeping unrelated keys intact."""
        data = self._load_all()
        if self._key not in data:
            return
        del data[self._key]
        if data:
            self._dump_all(data)
        else:
            self._path.unlink(missing_ok=True)
        logger.debug("Removed cached identity")


__all__ = ["CACHE_KEY", "IdentityCache"]
