"""Screen-level controllers shared by the CLI and any other front-end.

Controllers never print. Failures are logged, published through the
notification center, and returned on result objects so the caller decides
how to render them.

Updates:
  v0.3.1 - 2026-10-19 - Report sign-in and backend failures separately on save and delete results.
  v0.3.0 - 2026-10-09 - Discard library loads superseded by a newer load or a sign-out.
  v0.2.1 - 2026-10-06 - Validate composer input before any network call.
  v0.2.0 - 2026-10-04 - Add Dashboard recent-activity controller.
  v0.1.0 - 2026-09-26 - Introduce route gate, composer, and library controllers.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from models.prompt_model import PromptDraft, PromptRecord

from .exceptions import AuthError, PromptlyError, RepositoryError, ValidationError
from .notifications import NotificationLevel
from .pipeline import SortOrder, TimelineFilter, apply_filter, collect_tags

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import tzinfo

    from models.identity_model import Identity

    from .notifications import NotificationCenter
    from .pipeline import TimelineGroup
    from .repository import PromptRepository
    from .session_store import SessionStore
    from .summarizer import SummarizerClient

logger = logging.getLogger("promptly.workflows")

LOGIN_REQUIRED_MESSAGE = "You must be logged in to save prompts!"
MISSING_CONTENT_MESSAGE = "Main text and at least 1 tag are required."
SAVING_MESSAGE = "Saving…"
SAVED_MESSAGE = "Prompt saved"
DELETE_CONFIRMATION_MESSAGE = "Are you sure you want to delete this prompt?"
DELETE_FAILED_MESSAGE = "Failed to delete prompt. Please try again."
DELETED_MESSAGE = "Prompt deleted"
SIGN_IN_REQUIRED_MESSAGE = "Sign in to continue."
RECENT_FETCH_LIMIT = 10
RECENT_DISPLAY_LIMIT = 8


class RouteDecision(str, Enum):
    """Outcome of gating a protected screen."""

    LOADING = "loading"
    REDIRECT = "redirect"
    ALLOW = "allow"


def gate_route(session: SessionStore) -> RouteDecision:
    """Decide whether a protected screen may render yet."""
    if session.loading:
        return RouteDecision.LOADING
    if session.identity is None:
        return RouteDecision.REDIRECT
    return RouteDecision.ALLOW


def require_identity(session: SessionStore) -> Identity:
    """Return the signed-in identity or raise :class:`AuthError`."""
    identity = session.identity
    if identity is None:
        raise AuthError(SIGN_IN_REQUIRED_MESSAGE)
    return identity


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"


@dataclass(slots=True)
class SaveResult:
    """Outcome of a composer save attempt."""

    saved: bool
    record: PromptRecord | None = None
    error: str | None = None
    rejected: bool = False
    auth_required: bool = False


class PromptComposer:
    """Collects a draft and persists it after summarisation."""

    def __init__(
        self,
        session: SessionStore,
        repository: PromptRepository,
        summarizer: SummarizerClient,
        notifications: NotificationCenter,
        *,
        initial_prompt: str | None = None,
    ) -> None:
        self._session = session
        self._repository = repository
        self._summarizer = summarizer
        self._notifications = notifications
        self.draft = PromptDraft(body=initial_prompt or "")
        self.status = SaveStatus.IDLE

    def validate(self) -> Identity:
        """Check the draft locally.

        Raises:
          AuthError: When nobody is signed in.
          ValidationError: When the body is blank or no tag is set.
        """
        identity = self._session.identity
        if identity is None:
            raise AuthError(LOGIN_REQUIRED_MESSAGE)
        if not self.draft.trimmed_body or not self.draft.tags:
            raise ValidationError(MISSING_CONTENT_MESSAGE)
        return identity

    async def save(self) -> SaveResult:
        """Summarise then insert the draft; the draft is kept intact on failure."""
        if self.status is SaveStatus.SAVING:
            return SaveResult(saved=False, error="A save is already in progress.")
        try:
            identity = self.validate()
        except (AuthError, ValidationError) as exc:
            self._notifications.notify(str(exc), NotificationLevel.WARNING)
            return SaveResult(
                saved=False,
                error=str(exc),
                rejected=True,
                auth_required=isinstance(exc, AuthError),
            )

        self.status = SaveStatus.SAVING
        try:
            with self._notifications.track_task(SAVING_MESSAGE, success_message=SAVED_MESSAGE):
                summary = await self._summarizer.summarize(
                    self.draft.trimmed_body,
                    self.draft.response_text,
                )
                record = await self._repository.insert_prompt(
                    user_id=identity.id,
                    prompt=self.draft.trimmed_body,
                    response=self.draft.response_text,
                    summary=summary,
                    tags=list(self.draft.tags),
                )
        except PromptlyError as exc:
            logger.error("Saving prompt failed: %s", exc)
            self.status = SaveStatus.IDLE
            return SaveResult(saved=False, error=f"Error: {exc}")

        self.status = SaveStatus.SAVED
        self.draft.clear()
        return SaveResult(saved=True, record=record)


@dataclass(slots=True)
class LibraryLoadResult:
    """Records fetched for a screen; ``error`` distinguishes failure from an empty diary."""

    records: list[PromptRecord] = field(default_factory=list)
    error: str | None = None
    stale: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class DeleteResult:
    """Outcome of a delete request; no error and nothing deleted means the user cancelled."""

    deleted: bool
    error: str | None = None
    auth_required: bool = False

    @property
    def cancelled(self) -> bool:
        return not self.deleted and self.error is None


class PromptLibrary:
    """Loads the user's records and derives the filtered timeline from them."""

    def __init__(
        self,
        session: SessionStore,
        repository: PromptRepository,
        notifications: NotificationCenter,
    ) -> None:
        self._session = session
        self._repository = repository
        self._notifications = notifications
        self._records: list[PromptRecord] = []
        self._generation = 0
        self.filter = TimelineFilter()
        self.loading = False

    @property
    def records(self) -> tuple[PromptRecord, ...]:
        return tuple(self._records)

    async def load(self) -> LibraryLoadResult:
        """Fetch every record owned by the current identity.

        Only the newest load may update the library. A load whose identity
        changed while it was in flight (for example by signing out) is
        discarded as stale.
        """
        identity = self._session.identity
        if identity is None:
            self._records = []
            return LibraryLoadResult(error=SIGN_IN_REQUIRED_MESSAGE)

        self._generation += 1
        generation = self._generation
        self.loading = True
        try:
            records = await self._repository.list_prompts(identity.id)
        except RepositoryError as exc:
            if generation != self._generation:
                return LibraryLoadResult(records=list(self._records), stale=True)
            self.loading = False
            logger.error("Loading prompts failed: %s", exc)
            self._notifications.notify(f"Failed to load prompts: {exc}", NotificationLevel.ERROR)
            return LibraryLoadResult(records=list(self._records), error=str(exc))

        current = self._session.identity
        if generation != self._generation or current is None or current.id != identity.id:
            logger.debug("Discarding stale prompt load for user %s", identity.id)
            if generation == self._generation:
                self.loading = False
            if current is None:
                self._records = []
            return LibraryLoadResult(records=list(self._records), stale=True)
        self.loading = False
        self._records = records
        return LibraryLoadResult(records=list(records))

    def timeline(self, tz: tzinfo | None = None) -> list[TimelineGroup]:
        return apply_filter(self._records, self.filter, tz)

    def all_tags(self) -> list[str]:
        return collect_tags(self._records)

    def set_search(self, search_term: str) -> None:
        self.filter = TimelineFilter(search_term, self.filter.selected_tags, self.filter.sort_order)

    def toggle_tag(self, tag: str) -> None:
        self.filter = self.filter.toggle_tag(tag)

    def set_sort_order(self, sort_order: SortOrder) -> None:
        self.filter = TimelineFilter(self.filter.search_term, self.filter.selected_tags, sort_order)

    async def delete(self, record_id: str, confirm: Callable[[str], bool]) -> DeleteResult:
        """Delete *record_id* after *confirm* approves the confirmation question.

        ``deleted`` is set once the record is gone from the backend and the local list.
        """
        if not confirm(DELETE_CONFIRMATION_MESSAGE):
            logger.debug("Delete of prompt %s cancelled", record_id)
            return DeleteResult(deleted=False)
        identity = self._session.identity
        if identity is None:
            self._notifications.notify(SIGN_IN_REQUIRED_MESSAGE, NotificationLevel.WARNING)
            return DeleteResult(deleted=False, error=SIGN_IN_REQUIRED_MESSAGE, auth_required=True)
        try:
            removed = await self._repository.delete_prompt(record_id, user_id=identity.id)
        except RepositoryError as exc:
            logger.error("Deleting prompt %s failed: %s", record_id, exc)
            self._notifications.notify(DELETE_FAILED_MESSAGE, NotificationLevel.ERROR)
            return DeleteResult(deleted=False, error=str(exc))
        self._records = [record for record in self._records if record.id != record_id]
        if removed:
            self._notifications.notify(DELETED_MESSAGE, NotificationLevel.SUCCESS)
        else:
            logger.info("Prompt %s was already gone", record_id)
        return DeleteResult(deleted=True)


class Dashboard:
    """Recent-activity panel of the home screen."""

    def __init__(
        self,
        session: SessionStore,
        repository: PromptRepository,
        *,
        fetch_limit: int = RECENT_FETCH_LIMIT,
        display_limit: int = RECENT_DISPLAY_LIMIT,
    ) -> None:
        self._session = session
        self._repository = repository
        self._fetch_limit = fetch_limit
        self._display_limit = display_limit

    async def recent(self) -> LibraryLoadResult:
        """Return the newest records for display, capped to the panel size."""
        identity = self._session.identity
        if identity is None:
            return LibraryLoadResult(error=SIGN_IN_REQUIRED_MESSAGE)
        try:
            records = await self._repository.list_prompts(identity.id, limit=self._fetch_limit)
        except RepositoryError as exc:
            logger.error("Loading recent prompts failed: %s", exc)
            return LibraryLoadResult(error=str(exc))
        return LibraryLoadResult(records=records[: self._display_limit])


__all__ = [
    "DELETE_CONFIRMATION_MESSAGE",
    "DELETE_FAILED_MESSAGE",
    "Dashboard",
    "DeleteResult",
    "LOGIN_REQUIRED_MESSAGE",
    "LibraryLoadResult",
    "MISSING_CONTENT_MESSAGE",
    "PromptComposer",
    "PromptLibrary",
    "RECENT_DISPLAY_LIMIT",
    "RECENT_FETCH_LIMIT",
    "RouteDecision",
    "SaveResult",
    "SaveStatus",
    "gate_route",
    "require_identity",
]
