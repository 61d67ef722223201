"""Tests for the application notification centre."""

from __future__ import annotations

import pytest

from core.notifications import NotificationCenter, NotificationLevel, NotificationStatus


def test_track_task_publishes_start_and_success() -> None:
    center = NotificationCenter()
    events = []

    center.subscribe(events.append)

    with center.track_task("Saving…", title="Save prompt", success_message="Saved") as task_id:
        assert events[0].is_busy

    assert len(events) == 2
    assert events[0].status is NotificationStatus.STARTED
    assert events[0].message == "Saving…"
    assert events[1].status is NotificationStatus.SUCCEEDED
    assert events[1].level is NotificationLevel.SUCCESS
    assert events[1].message == "Saved"
    assert events[0].task_id == events[1].task_id == task_id
    assert events[1].duration_ms is not None


def test_track_task_failure_includes_exception() -> None:
    center = NotificationCenter()
    failure_events = []
    center.subscribe(failure_events.append)

    with pytest.raises(RuntimeError, match="boom"):
        with center.track_task("Start", title="Explode", success_message="Success"):
            raise RuntimeError("boom")

    assert failure_events[-1].status is NotificationStatus.FAILED
    assert failure_events[-1].message == "boom"
    assert failure_events[-1].level is NotificationLevel.ERROR
    assert not failure_events[-1].is_busy


def test_subscription_can_be_closed() -> None:
    center = NotificationCenter()
    events = []
    subscription = center.subscribe(events.append)
    subscription.close()
    subscription.close()

    with center.track_task("Start", success_message="Done"):
        pass

    assert not events
    assert subscription.closed


def test_subscription_context_manager_detaches() -> None:
    center = NotificationCenter()
    events = []
    with center.subscribe(events.append):
        center.notify("inside")
    center.notify("outside")

    assert [event.message for event in events] == ["inside"]


def test_notify_records_bounded_history() -> None:
    center = NotificationCenter(history_limit=2)
    center.notify("one")
    center.notify("two", NotificationLevel.WARNING, title="Heads up")
    center.notify("three", NotificationLevel.ERROR)

    history = center.history()
    assert [item.message for item in history] == ["two", "three"]
    assert history[0].title == "Heads up"
    assert history[0].status is NotificationStatus.MESSAGE

