"""Search, tag filtering, sorting, and day grouping for the prompt library.

Every function here is pure: inputs are never mutated and the same inputs
always yield an equal timeline.

Updates:
  v0.1.3 - 2026-10-19 - Match search terms verbatim and normalise selected tags.
  v0.1.2 - 2026-10-08 - Add TimelineFilter with tag toggling for interactive views.
  v0.1.1 - 2026-10-05 - Add time-of-day labels for timeline entries.
  v0.1.0 - 2026-09-25 - Introduce build_timeline and supporting helpers.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from enum import Enum
from typing import TYPE_CHECKING

from models.tag_model import normalize_tags

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from models.prompt_model import PromptRecord

_MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class SortOrder(str, Enum):
    """Chronological ordering of the timeline."""
    NEWEST = "newest"
    OLDEST = "oldest"


@dataclass(slots=True, frozen=True)
class TimelineGroup:
    """Records created on the same calendar day."""
    label: str
    records: tuple[PromptRecord, ...]

    def __len__(self) -> int:
        return len(self.records)


@dataclass(slots=True, frozen=True)
class TimelineFilter:
    """User-selected search term, tag set, and sort order."""
    search_term: str = ""
    selected_tags: tuple[str, ...] = ()
    sort_order: SortOrder = SortOrder.NEWEST

    def toggle_tag(self, tag: str) -> TimelineFilter:
        """Return a copy with *tag* added to or removed from the selection."""
        if tag in self.selected_tags:
            tags = tuple(item for item in self.selected_tags if item != tag)
        else:
            tags = (*self.selected_tags, tag)
        return replace(self, selected_tags=tags)

    @property
    def is_active(self) -> bool:
        return bool(self.search_term or self.selected_tags)


def _localize(value: datetime, tz: tzinfo | None) -> datetime:
    # ``astimezone(None)`` converts to the machine's local zone.
    return value.astimezone(tz)


def format_day_label(value: datetime, tz: tzinfo | None = None) -> str:
    """Return an en-US long date such as ``March 4, 2025``."""
    local = _localize(value, tz)
    return f"{_MONTH_NAMES[local.month - 1]} {local.day}, {local.year}"


def format_time_label(value: datetime, tz: tzinfo | None = None) -> str:
    """Return a 12-hour clock label such as ``9:05 AM``."""
    local = _localize(value, tz)
    hour = local.hour % 12 or 12
    suffix = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {suffix}"


def matches_search(record: PromptRecord, search_term: str) -> bool:
    if not search_term:
        return True
    needle = search_term.lower()
    haystacks = (record.prompt, record.summary, record.response or "")
    return any(needle in text.lower() for text in haystacks)


def filter_by_search(records: Iterable[PromptRecord], search_term: str) -> list[PromptRecord]:
    """Keep records whose prompt, summary, or response contains *search_term*."""
    return [record for record in records if matches_search(record, search_term)]


def filter_by_tags(
    records: Iterable[PromptRecord],
    selected_tags: Iterable[str],
) -> list[PromptRecord]:
    """Keep records carrying every selected tag, compared in normalised form."""
    required = set(normalize_tags(selected_tags))
    if not required:
        return list(records)
    return [record for record in records if required.issubset(record.tags)]


def sort_records(
    records: Iterable[PromptRecord],
    sort_order: SortOrder = SortOrder.NEWEST,
) -> list[PromptRecord]:
    """Sort by creation time; records with equal timestamps keep their input order."""
    return sorted(
        records,
        key=lambda record: record.created_at,
        reverse=sort_order is SortOrder.NEWEST,
    )


def group_by_day(
    records: Iterable[PromptRecord],
    tz: tzinfo | None = None,
) -> list[TimelineGroup]:
    """Group records by day label, emitting groups in order of first appearance."""
    buckets: dict[str, list[PromptRecord]] = {}
    for record in records:
        buckets.setdefault(format_day_label(record.created_at, tz), []).append(record)
    return [TimelineGroup(label=label, records=tuple(items)) for label, items in buckets.items()]


def build_timeline(
    records: Sequence[PromptRecord],
    search_term: str = "",
    selected_tags: Iterable[str] = (),
    sort_order: SortOrder = SortOrder.NEWEST,
    tz: tzinfo | None = None,
) -> list[TimelineGroup]:
    """Run search, tag filter, sort, and grouping over *records*."""
    matched = filter_by_tags(filter_by_search(records, search_term), selected_tags)
    return group_by_day(sort_records(matched, sort_order), tz)


def apply_filter(
    records: Sequence[PromptRecord],
    timeline_filter: TimelineFilter,
    tz: tzinfo | None = None,
) -> list[TimelineGroup]:
    return build_timeline(
        records,
        timeline_filter.search_term,
        timeline_filter.selected_tags,
        timeline_filter.sort_order,
        tz,
    )


def collect_tags(records: Iterable[PromptRecord]) -> list[str]:
    """Return the sorted set of tags used across *records*."""
    return sorted({tag for record in records for tag in record.tags})


def count_records(groups: Iterable[TimelineGroup]) -> int:
    return sum(len(group) for group in groups)


__all__ = [
    "SortOrder",
    "TimelineFilter",
    "TimelineGroup",
    "apply_filter",
    "build_timeline",
    "collect_tags",
    "count_records",
    "filter_by_search",
    "filter_by_tags",
    "format_day_label",
    "format_time_label",
    "group_by_day",
    "matches_search",
    "sort_records",
]
