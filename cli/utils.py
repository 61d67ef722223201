"""Shared CLI utility functions for Promptly commands.

Updates:
  v0.1.1 - 2026-10-06 - Add notification rendering and confirmation prompts.
  v0.1.0 - 2026-09-27 - Add stdout logging, masking, and path helpers.
"""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path
from typing import TYPE_CHECKING, Any

from core.notifications import NotificationLevel

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from collections.abc import Callable
    from logging import Logger

    from core.notifications import Notification
else:  # pragma: no cover - runtime placeholders for type-only imports
    Logger = Notification = Any

_LEVEL_PREFIXES = {
    NotificationLevel.INFO: "",
    NotificationLevel.SUCCESS: "✓ ",
    NotificationLevel.WARNING: "! ",
    NotificationLevel.ERROR: "✗ ",
}


def print_and_log(logger: Logger, level: int, message: str) -> None:
    """Log *message* at *level* and mirror it to stdout."""
    logger.log(level, message)
    print(message)


def mask_secret(value: str | None) -> str:
    """Return an obfuscated representation of secret configuration values."""
    if not value:
        return "not set"
    secret = value.strip()
    if len(secret) <= 6:
        return "set (****)"
    return f"set ({secret[:4]}...{secret[-4:]})"


def describe_path(path_value: object, *, expect_directory: bool) -> str:
    """Return a human-friendly description of *path_value* suitability."""
    if path_value is None:
        return "not set"
    resolved = Path(str(path_value)).expanduser()
    if resolved.exists():
        if expect_directory and not resolved.is_dir():
            return f"{resolved} (exists but is not a directory)"
        if not expect_directory and resolved.is_dir():
            return f"{resolved} (exists but is a directory)"
        return f"{resolved} (exists)"
    return f"{resolved} (missing - created on demand)"


def render_notification(notification: Notification) -> str:
    """Return the console line for a toast or busy indicator."""
    if notification.is_busy:
        return notification.message
    return f"{_LEVEL_PREFIXES[notification.level]}{notification.message}"


def print_notification(notification: Notification) -> None:
    """Write toasts to stderr so command output on stdout stays parseable."""
    print(render_notification(notification), file=sys.stderr)


def indent_block(text: str, prefix: str = "    ") -> str:
    return textwrap.indent(text.rstrip(), prefix)


def read_text_argument(inline: str | None, path: Path | None) -> str:
    """Return inline text or the contents of *path*, whichever was supplied."""
    if path is not None:
        return path.expanduser().read_text(encoding="utf-8")
    return inline or ""


def ask_confirmation(question: str, input_fn: Callable[[str], str] = input) -> bool:
    """Return ``True`` when the user answers yes to *question*."""
    try:
        answer = input_fn(f"{question} [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}
