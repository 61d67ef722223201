"""Tests for tag normalisation helpers.

Updates:
  v0.1.1 - 2026-10-06 - Cover composer draft tag commits.
  v0.1.0 - 2026-09-22 - Cover normalisation, length cap, and de-duplication.
"""

from __future__ import annotations

import pytest

from models.prompt_model import PromptDraft
from models.tag_model import MAX_TAG_LENGTH, commit_tag, normalize_tag, normalize_tags, remove_tag


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("  Machine Learning  ", "machine-learning"),
        ("C++ / Rust!", "c-rust"),
        ("--Hello---World--", "hello-world"),
        ("under_score", "underscore"),
        ("Café Crème", "café-crème"),
        ("数据 分析", "数据-分析"),
        ("!!!", ""),
        ("   ", ""),
    ],
)
def test_normalize_tag_examples(raw: str, expected: str) -> None:
    """Ensure tags are lowercased, stripped of punctuation, and hyphenated."""
    assert normalize_tag(raw) == expected


def test_normalize_tag_caps_length_without_trailing_hyphen() -> None:
    raw = "abcdefghijklmnopqrstuvw xyz"
    result = normalize_tag(raw)
    assert len(result) <= MAX_TAG_LENGTH
    assert not result.endswith("-")
    assert result == "abcdefghijklmnopqrstuvw"


@pytest.mark.parametrize(
    "raw",
    ["Deep Learning & NLP", "  --x--  ", "a" * 40, "Prompt   Engineering 101", "ÄÖÜ tags"],
)
def test_normalize_tag_is_idempotent(raw: str) -> None:
    once = normalize_tag(raw)
    assert normalize_tag(once) == once


def test_normalize_tags_deduplicates_in_first_seen_order() -> None:
    assert normalize_tags(["Python", "rust", "PYTHON", "", "Go!"]) == ["python", "rust", "go"]


def test_commit_and_remove_tag() -> None:
    tags, accepted = commit_tag(["python"], " Rust ")
    assert accepted is True
    assert tags == ["python", "rust"]

    tags, accepted = commit_tag(tags, "RUST")
    assert accepted is False
    assert tags == ["python", "rust"]

    assert remove_tag(tags, "python") == ["rust"]


def test_draft_commit_tag_keeps_unusable_draft() -> None:
    draft = PromptDraft()
    draft.tag_draft = "???"
    assert draft.commit_tag() is False
    assert draft.tag_draft == "???"
    assert draft.tags == []


def test_draft_commit_tag_clears_draft_on_duplicate() -> None:
    draft = PromptDraft(tags=["ideas"])
    draft.tag_draft = "Ideas"
    assert draft.commit_tag() is False
    assert draft.tag_draft == ""
    assert draft.tags == ["ideas"]
