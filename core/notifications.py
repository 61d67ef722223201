"""Toast-style notifications and busy indicators for Promptly workflows.

The composer, library, and session store publish short messages here instead
of printing directly, so the CLI (or any other front-end) decides how to
render success toasts, error alerts, and "Saving…" spinners.

Updates:
  v0.2.0 - 2026-10-08 - Add generic Subscription handle shared with auth listeners.
  v0.1.1 - 2026-10-02 - Add notify() shortcut for one-off toasts.
  v0.1.0 - 2026-09-22 - Introduce notification hub with task tracking helpers.
"""
from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

logger = logging.getLogger("promptly.notifications")


class NotificationLevel(str, Enum):
    """Severity of a toast."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationStatus(str, Enum):
    """Lifecycle stage of a tracked task; ``MESSAGE`` marks plain toasts."""
    MESSAGE = "message"
    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(slots=True)
class Notification:
    """Single toast or task event delivered to listeners."""
    message: str
    level: NotificationLevel = NotificationLevel.INFO
    status: NotificationStatus = NotificationStatus.MESSAGE
    title: str | None = None
    task_id: str | None = None
    duration_ms: int | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_busy(self) -> bool:
        """Return ``True`` while the associated task is still running."""
        return self.status is NotificationStatus.STARTED


class Subscription:
    """Disposable handle that runs its detach callback exactly once."""

    def __init__(self, detach: Callable[[], None]) -> None:
        self._detach = detach
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Detach the listener; repeated calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        self._detach()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


class NotificationCenter:
    """Thread-safe publish/subscribe hub with a bounded history."""

    def __init__(self, history_limit: int = 100) -> None:
        self._subscribers: list[Callable[[Notification], None]] = []
        self._lock = threading.RLock()
        self._history: deque[Notification] = deque(maxlen=history_limit)

    def subscribe(self, callback: Callable[[Notification], None]) -> Subscription:
        """Register *callback* and return a handle that removes it again."""
        with self._lock:
            self._subscribers.append(callback)
        return Subscription(lambda: self._unsubscribe(callback))

    def _unsubscribe(self, callback: Callable[[Notification], None]) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def publish(self, notification: Notification) -> None:
        """Deliver *notification* to every registered subscriber."""
        with self._lock:
            self._history.append(notification)
            subscribers = list(self._subscribers)

        logger.debug(
            "Notification event",
            extra={
                "status": notification.status.value,
                "level": notification.level.value,
                "task_id": notification.task_id,
            },
        )
        for callback in subscribers:
            try:
                callback(notification)
            except Exception:  # pragma: no cover - a broken listener must not break publishing
                logger.exception("Notification subscriber raised an exception")

    def notify(
        self,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
        *,
        title: str | None = None,
    ) -> Notification:
        """Publish a one-off toast and return it."""
        notification = Notification(message=message, level=level, title=title)
        self.publish(notification)
        return notification

    def history(self) -> tuple[Notification, ...]:
        """Return a snapshot of stored notifications."""
        with self._lock:
            return tuple(self._history)

    @contextmanager
    def track_task(
        self,
        busy_message: str,
        *,
        title: str | None = None,
        success_message: str | None = None,
    ) -> Iterator[str]:
        """Emit a busy event, then a success or failure event when the block exits.

        The failure event carries the exception text; the exception itself is
        re-raised so the caller still decides how to report it.
        """
        task_id = f"task:{uuid.uuid4()}"
        started_at = time.perf_counter()
        self.publish(
            Notification(
                message=busy_message,
                status=NotificationStatus.STARTED,
                title=title,
                task_id=task_id,
            )
        )
        try:
            yield task_id
        except Exception as exc:
            self.publish(
                Notification(
                    message=str(exc) or exc.__class__.__name__,
                    level=NotificationLevel.ERROR,
                    status=NotificationStatus.FAILED,
                    title=title,
                    task_id=task_id,
                    duration_ms=int((time.perf_counter() - started_at) * 1000),
                )
            )
            raise
        else:
            self.publish(
                Notification(
                    message=success_message or busy_message,
                    level=NotificationLevel.SUCCESS,
                    status=NotificationStatus.SUCCEEDED,
                    title=title,
                    task_id=task_id,
                    duration_ms=int((time.perf_counter() - started_at) * 1000),
                )
            )


__all__ = [
    "Notification",
    "NotificationCenter",
    "NotificationLevel",
    "NotificationStatus",
    "Subscription",
]
