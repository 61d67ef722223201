"""Tests for prompt record, draft, and identity model helpers.

Updates:
  v0.1.2 - 2026-10-19 - Cover draft tag commits in place of summary text assembly.
  v0.1.1 - 2026-10-06 - Cover blank responses on drafts.
  v0.1.0 - 2026-09-22 - Cover row hydration and identity cache payloads.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from models.identity_model import Identity
from models.prompt_model import PromptDraft, PromptRecord


def test_from_row_coerces_ids_and_timestamps() -> None:
    record = PromptRecord.from_row(
        {
            "id": 42,
            "user_id": "user-1",
            "prompt": "Explain recursion",
            "response": "   ",
            "summary": "Recursion explained.",
            "tags": ["cs", "basics"],
            "created_at": "2025-03-04T09:05:00+00:00",
        }
    )
    assert record.id == "42"
    assert record.response is None
    assert record.tags == ("cs", "basics")
    assert record.created_at == datetime(2025, 3, 4, 9, 5, tzinfo=UTC)


def test_from_row_treats_naive_timestamps_as_utc() -> None:
    record = PromptRecord.from_row(
        {"id": "a", "prompt": "x", "summary": "y", "tags": None, "created_at": "2025-01-01T00:00:00"}
    )
    assert record.created_at.tzinfo is UTC
    assert record.tags == ()


def test_from_row_requires_created_at() -> None:
    with pytest.raises(ValueError):
        PromptRecord.from_row({"id": "a", "prompt": "x", "summary": "y", "tags": []})


def test_draft_trims_body_and_blank_response() -> None:
    draft = PromptDraft(body="  Explain recursion  ", response="   ")
    assert draft.trimmed_body == "Explain recursion"
    assert draft.response_text is None
    draft.response = "It calls itself."
    assert draft.response_text == "It calls itself."


def test_draft_commits_and_removes_tags() -> None:
    draft = PromptDraft(body="x", tag_draft="Machine Learning")
    assert draft.commit_tag()
    assert draft.tags == ["machine-learning"] and draft.tag_draft == ""
    draft.tag_draft = "!!"
    assert not draft.commit_tag()
    assert draft.tag_draft == "!!"
    draft.remove_tag("machine-learning")
    assert draft.tags == []


def test_draft_normalises_initial_tags_and_clears() -> None:
    draft = PromptDraft(body="x", tags=["Deep Learning", "deep learning", "!!"])
    assert draft.tags == ["deep-learning"]
    draft.clear()
    assert draft.body == "" and draft.tags == [] and draft.tag_draft == ""


def test_identity_from_session_user_falls_back_to_email() -> None:
    signed_in = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=UTC)
    identity = Identity.from_session_user(
        {"id": "u1", "email": "grace@example.com", "user_metadata": {}},
        signed_in_at=signed_in,
    )
    assert identity.display_name == "grace@example.com"
    assert identity.to_cache_record() == {
        "id": "u1",
        "email": "grace@example.com",
        "name": "grace@example.com",
        "avatar": None,
        "lastSignIn": "2026-01-02T03:04:05.678Z",
    }


def test_identity_cache_record_round_trips_other_timezones() -> None:
    offset = timezone(timedelta(hours=2))
    identity = Identity(id="u1", email=None, last_sign_in=datetime(2026, 1, 2, 5, 0, tzinfo=offset))
    restored = Identity.from_cache_record(identity.to_cache_record())
    assert restored.last_sign_in == datetime(2026, 1, 2, 3, 0, tzinfo=UTC)
    assert restored.label == "u1"


def test_identity_requires_id() -> None:
    with pytest.raises(ValueError):
        Identity.from_session_user({"email": "nobody@example.com"})
