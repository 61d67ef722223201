"""Tests for the library timeline pipeline.

Updates:
  v0.1.3 - 2026-10-19 - Cover verbatim search terms and normalised tag selection.
  v0.1.2 - 2026-10-08 - Cover TimelineFilter tag toggling.
  v0.1.1 - 2026-10-05 - Cover time-of-day labels.
  v0.1.0 - 2026-09-25 - Cover search, tag conjunction, sorting, and grouping.
"""

from __future__ import annotations

import copy
from datetime import UTC, datetime, timedelta, timezone

import pytest

from core.pipeline import (
    SortOrder,
    TimelineFilter,
    build_timeline,
    collect_tags,
    format_day_label,
    format_time_label,
    sort_records,
)


def _ids(groups) -> list[list[str]]:
    return [[record.id for record in group.records] for group in groups]


def test_search_matches_prompt_summary_and_response_case_insensitively(make_record) -> None:
    """Searching "recursion" finds the record whose prompt says "Explain recursion"."""
    records = [
        make_record(record_id="a", prompt="Explain recursion", summary="CS basics"),
        make_record(record_id="b", prompt="Bake bread", summary="Baking RECURSION-free"),
        make_record(record_id="c", prompt="Plan a trip", summary="Travel", response="use Recursion"),
        make_record(record_id="d", prompt="Nothing relevant", summary="Other"),
    ]
    groups = build_timeline(records, "recursion", (), SortOrder.NEWEST, UTC)
    assert [record.id for group in groups for record in group.records] == ["a", "b", "c"]


def test_empty_search_matches_everything(make_record) -> None:
    records = [make_record(), make_record()]
    groups = build_timeline(records, "", (), SortOrder.NEWEST, UTC)
    assert sum(len(group) for group in groups) == 2


@pytest.mark.parametrize(
    ("prompt", "term"),
    [
        ("Explain recursion", "recursion "),
        ("nospaces", "  "),
        ("Stra\N{LATIN SMALL LETTER SHARP S}e names", "strasse"),
    ],
)
def test_search_term_is_matched_verbatim(make_record, prompt: str, term: str) -> None:
    """Whitespace is part of the term and no case folding beyond lowercasing applies."""
    record = make_record(prompt=prompt, summary="", response=None)
    assert build_timeline([record], term, (), SortOrder.NEWEST, UTC) == []


def test_selected_tags_are_normalised_before_matching(make_record) -> None:
    records = [
        make_record(record_id="cs", tags=("cs",)),
        make_record(record_id="ml", tags=("machine-learning",)),
    ]
    assert _ids(build_timeline(records, "", ("CS",), SortOrder.NEWEST, UTC)) == [["cs"]]
    assert _ids(build_timeline(records, "", [" Machine Learning "], SortOrder.NEWEST, UTC)) == [["ml"]]


def test_tag_filter_is_a_conjunction(make_record) -> None:
    """Selecting {a, b} keeps only records tagged with both."""
    only_a = make_record(record_id="only-a", tags=("a",))
    both = make_record(record_id="both", tags=("a", "b", "c"))
    only_b = make_record(record_id="only-b", tags=("b",))
    records = [only_a, both, only_b]

    with_a = build_timeline(records, "", ["a"], SortOrder.NEWEST, UTC)
    with_ab = build_timeline(records, "", ["a", "b"], SortOrder.NEWEST, UTC)

    assert {r.id for g in with_a for r in g.records} == {"only-a", "both"}
    assert {r.id for g in with_ab for r in g.records} == {"both"}


def test_adding_tags_never_grows_the_result(make_record) -> None:
    records = [
        make_record(tags=("a",)),
        make_record(tags=("a", "b")),
        make_record(tags=("a", "b", "c")),
        make_record(tags=("c",)),
    ]
    previous = len(records)
    selection: list[str] = []
    for tag in ("a", "b", "c"):
        selection.append(tag)
        count = sum(len(g) for g in build_timeline(records, "", selection, SortOrder.NEWEST, UTC))
        assert count <= previous
        previous = count


def test_groups_use_long_day_labels_in_first_appearance_order(make_record) -> None:
    base = datetime(2025, 3, 4, 9, 0, tzinfo=UTC)
    records = [
        make_record(record_id="old", created_at=base - timedelta(days=1)),
        make_record(record_id="new-1", created_at=base + timedelta(hours=3)),
        make_record(record_id="new-2", created_at=base),
    ]
    groups = build_timeline(records, "", (), SortOrder.NEWEST, UTC)
    assert [group.label for group in groups] == ["March 4, 2025", "March 3, 2025"]
    assert _ids(groups) == [["new-1", "new-2"], ["old"]]


def test_reversing_sort_reverses_group_order_and_keeps_membership(make_record) -> None:
    base = datetime(2025, 1, 10, 8, 0, tzinfo=UTC)
    records = [
        make_record(created_at=base + timedelta(days=offset, hours=hour))
        for offset in (0, 2, 5)
        for hour in (0, 4)
    ]
    newest = build_timeline(records, "", (), SortOrder.NEWEST, UTC)
    oldest = build_timeline(records, "", (), SortOrder.OLDEST, UTC)

    assert [g.label for g in newest] == list(reversed([g.label for g in oldest]))
    newest_members = {g.label: {r.id for r in g.records} for g in newest}
    oldest_members = {g.label: {r.id for r in g.records} for g in oldest}
    assert newest_members == oldest_members


def test_sort_keeps_input_order_for_equal_timestamps(make_record) -> None:
    stamp = datetime(2025, 5, 1, 12, 0, tzinfo=UTC)
    records = [make_record(record_id=str(index), created_at=stamp) for index in range(4)]
    assert [r.id for r in sort_records(records, SortOrder.NEWEST)] == ["0", "1", "2", "3"]
    assert [r.id for r in sort_records(records, SortOrder.OLDEST)] == ["0", "1", "2", "3"]


def test_build_timeline_is_pure_and_repeatable(make_record) -> None:
    records = [
        make_record(record_id="x", tags=("a",), created_at=datetime(2025, 2, 1, tzinfo=UTC)),
        make_record(record_id="y", tags=("b",), created_at=datetime(2025, 2, 3, tzinfo=UTC)),
    ]
    snapshot = copy.deepcopy(records)
    first = build_timeline(records, "haiku", ["a"], SortOrder.OLDEST, UTC)
    second = build_timeline(records, "haiku", ["a"], SortOrder.OLDEST, UTC)
    assert first == second
    assert records == snapshot


def test_grouping_respects_timezone(make_record) -> None:
    late_utc = make_record(created_at=datetime(2025, 3, 4, 23, 30, tzinfo=UTC))
    plus_two = timezone(timedelta(hours=2))
    assert build_timeline([late_utc], tz=plus_two)[0].label == "March 5, 2025"


@pytest.mark.parametrize(
    ("stamp", "expected"),
    [
        (datetime(2025, 3, 4, 0, 5, tzinfo=UTC), "12:05 AM"),
        (datetime(2025, 3, 4, 9, 5, tzinfo=UTC), "9:05 AM"),
        (datetime(2025, 3, 4, 12, 0, tzinfo=UTC), "12:00 PM"),
        (datetime(2025, 3, 4, 23, 59, tzinfo=UTC), "11:59 PM"),
    ],
)
def test_format_time_label(stamp: datetime, expected: str) -> None:
    assert format_time_label(stamp, UTC) == expected


def test_format_day_label() -> None:
    assert format_day_label(datetime(2024, 12, 25, 10, 0, tzinfo=UTC), UTC) == "December 25, 2024"


def test_collect_tags_returns_sorted_unique_tags(make_record) -> None:
    records = [make_record(tags=("zeta", "alpha")), make_record(tags=("alpha", "mid"))]
    assert collect_tags(records) == ["alpha", "mid", "zeta"]


def test_timeline_filter_toggle_tag() -> None:
    selection = TimelineFilter().toggle_tag("a").toggle_tag("b")
    assert selection.selected_tags == ("a", "b")
    assert selection.toggle_tag("a").selected_tags == ("b",)
    assert selection.is_active
    assert not TimelineFilter().is_active
    assert TimelineFilter(search_term=" ").is_active
