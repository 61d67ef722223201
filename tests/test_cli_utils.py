"""Tests for console rendering helpers.

Updates:
  v0.1.0 - 2026-10-19 - Cover toast prefixes and busy indicators.
"""

from __future__ import annotations

from cli.utils import ask_confirmation, mask_secret, render_notification
from core.notifications import Notification, NotificationLevel, NotificationStatus


def test_render_notification_prefixes_finished_toasts() -> None:
    busy = Notification("Saving…", status=NotificationStatus.STARTED)
    done = Notification("Prompt saved", NotificationLevel.SUCCESS, NotificationStatus.SUCCEEDED)
    failed = Notification("timeout", NotificationLevel.ERROR, NotificationStatus.FAILED)

    assert render_notification(busy) == "Saving…"
    assert render_notification(done) == "✓ Prompt saved"
    assert render_notification(failed) == "✗ timeout"


def test_mask_secret() -> None:
    assert mask_secret(None) == "not set"
    assert mask_secret("short") == "set (****)"
    assert mask_secret("anon-key-123456") == "set (anon...3456)"


def test_ask_confirmation_accepts_only_yes() -> None:
    assert ask_confirmation("Delete?", lambda _: "Y")
    assert not ask_confirmation("Delete?", lambda _: "")

    def _eof(_: str) -> str:
        raise EOFError

    assert not ask_confirmation("Delete?", _eof)
