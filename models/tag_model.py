"""Tag normalisation helpers shared by the composer and the library filters.

Updates: v0.1.1 - 2026-10-02 - Re-strip trailing hyphens after truncation so normalising twice is stable.
Updates: v0.1.0 - 2026-09-21 - Introduce tag normalisation and draft helpers.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

MAX_TAG_LENGTH = 24

# Letters and digits (any script), whitespace and hyphens survive; underscores do not.
_DISALLOWED_PATTERN = re.compile(r"[^\w\s-]|_")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_HYPHEN_RUN_PATTERN = re.compile(r"-+")


def normalize_tag(value: str | None) -> str:
    """Return the canonical form of *value* or an empty string when nothing survives."""
    text = (value or "").lower().strip()
    if not text:
        return ""
    text = _DISALLOWED_PATTERN.sub("", text)
    text = _WHITESPACE_PATTERN.sub("-", text)
    text = _HYPHEN_RUN_PATTERN.sub("-", text).strip("-")
    return text[:MAX_TAG_LENGTH].rstrip("-")


def normalize_tags(values: Iterable[str] | None) -> list[str]:
    """Normalise *values*, dropping empties and duplicates while keeping first-seen order."""
    tags: list[str] = []
    seen: set[str] = set()
    for raw in values or ():
        tag = normalize_tag(str(raw))
        if not tag or tag in seen:
            continue
        seen.add(tag)
        tags.append(tag)
    return tags


def commit_tag(tags: Sequence[str], draft: str) -> tuple[list[str], bool]:
    """Append the normalised *draft* to *tags* when it is new.

    Returns the resulting tag list and whether the draft was accepted. A draft
    that normalises to nothing, or duplicates an existing tag, leaves the list
    unchanged.
    """
    tag = normalize_tag(draft)
    current = list(tags)
    if not tag or tag in current:
        return current, False
    current.append(tag)
    return current, True


def remove_tag(tags: Sequence[str], tag: str) -> list[str]:
    """Return *tags* without *tag*."""
    return [existing for existing in tags if existing != tag]


__all__ = [
    "MAX_TAG_LENGTH",
    "commit_tag",
    "normalize_tag",
    "normalize_tags",
    "remove_tag",
]
