"""Signed-in identity model and cache serialisation helpers.

Updates: v0.1.1 - 2026-10-04 - Fall back to the email address when no display name is supplied.
Updates: v0.1.0 - 2026-09-21 - Introduce Identity dataclass with session and cache converters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def _ensure_datetime(value: Any) -> datetime:
    """Parse ISO-8601 strings (including a trailing ``Z``) into aware datetimes."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if value in (None, ""):
        return _utc_now()
    parsed = datetime.fromisoformat(str(value).strip())
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _format_timestamp(value: datetime) -> str:
    """Render *value* the way browsers serialise dates (millisecond precision, ``Z``)."""
    text = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(slots=True, frozen=True)
class Identity:
    """Profile of the user currently signed in."""

    id: str
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    last_sign_in: datetime = field(default_factory=_utc_now)

    @property
    def label(self) -> str:
        """Return the best human-readable label for headers and prompts."""
        return self.display_name or self.email or self.id

    @classmethod
    def from_session_user(
        cls,
        user: Mapping[str, Any],
        *,
        signed_in_at: datetime | None = None,
    ) -> Identity:
        """Build an identity from the auth provider's ``session.user`` payload."""
        user_id = _clean_text(user.get("id"))
        if user_id is None:
            raise ValueError("session user is missing an id")
        metadata = user.get("user_metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        email = _clean_text(user.get("email"))
        return cls(
            id=user_id,
            email=email,
            display_name=_clean_text(metadata.get("full_name")) or email,
            avatar_url=_clean_text(metadata.get("avatar_url")),
            last_sign_in=signed_in_at or _utc_now(),
        )

    def to_cache_record(self) -> dict[str, Any]:
        """Return the denormalised payload stored in the local identity cache."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.display_name,
            "avatar": self.avatar_url,
            "lastSignIn": _format_timestamp(self.last_sign_in),
        }

    @classmethod
    def from_cache_record(cls, data: Mapping[str, Any]) -> Identity:
        """Hydrate an identity from a cached payload."""
        user_id = _clean_text(data.get("id"))
        if user_id is None:
            raise ValueError("cached identity is missing an id")
        return cls(
            id=user_id,
            email=_clean_text(data.get("email")),
            display_name=_clean_text(data.get("name")),
            avatar_url=_clean_text(data.get("avatar")),
            last_sign_in=_ensure_datetime(data.get("lastSignIn")),
        )


__all__ = ["Identity"]
