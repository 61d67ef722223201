"""Prompt record and composer draft definitions.

Updates: v0.2.1 - 2026-10-19 - Leave summary text assembly to the summariser client.
Updates: v0.2.0 - 2026-10-06 - Add PromptDraft editor state.
Updates: v0.1.1 - 2026-09-28 - Coerce numeric identifiers returned by the database to strings.
Updates: v0.1.0 - 2026-09-21 - Introduce PromptRecord with row hydration.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from .tag_model import commit_tag, normalize_tag, normalize_tags, remove_tag

if TYPE_CHECKING:
    from collections.abc import Mapping

RESPONSE_LABEL = "Response:"


def _ensure_datetime(value: Any) -> datetime:
    """Parse database timestamps into timezone-aware datetimes."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if value in (None, ""):
        raise ValueError("created_at is required")
    parsed = datetime.fromisoformat(str(value).strip())
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _deserialize_tags(value: Any) -> tuple[str, ...]:
    """Coerce the stored tag column into a tuple of strings."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    return tuple(str(item) for item in value if str(item).strip())


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


@dataclass(slots=True, frozen=True)
class PromptRecord:
    """A persisted prompt diary entry."""

    id: str
    user_id: str
    prompt: str
    summary: str
    tags: tuple[str, ...]
    created_at: datetime
    response: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PromptRecord:
        """Hydrate a record from a ``prompts`` table row."""
        return cls(
            id=str(row["id"]),
            user_id=str(row.get("user_id") or ""),
            prompt=str(row.get("prompt") or ""),
            summary=str(row.get("summary") or ""),
            tags=_deserialize_tags(row.get("tags")),
            created_at=_ensure_datetime(row.get("created_at")),
            response=_optional_text(row.get("response")),
        )


@dataclass(slots=True)
class PromptDraft:
    """Mutable editor state for the composer before it is saved."""

    body: str = ""
    response: str = ""
    tags: list[str] = field(default_factory=list)
    tag_draft: str = ""

    def __post_init__(self) -> None:
        self.tags = normalize_tags(self.tags)

    @property
    def trimmed_body(self) -> str:
        return self.body.strip()

    @property
    def response_text(self) -> str | None:
        """Return the optional response, or ``None`` when the field is blank."""
        return self.response if self.response.strip() else None

    def commit_tag(self) -> bool:
        """Move the pending tag draft into the tag list.

        A draft that normalises to nothing is left in place for the user to fix;
        duplicates are dropped silently.
        """
        if not normalize_tag(self.tag_draft):
            return False
        self.tags, accepted = commit_tag(self.tags, self.tag_draft)
        self.tag_draft = ""
        return accepted

    def remove_tag(self, tag: str) -> None:
        self.tags = remove_tag(self.tags, tag)

    def clear(self) -> None:
        self.body = ""
        self.response = ""
        self.tags = []
        self.tag_draft = ""


__all__ = ["PromptDraft", "PromptRecord", "RESPONSE_LABEL"]
