"""Common exception classes for the core package.

All exceptions ultimately inherit from :class:`PromptlyError`, allowing
callers to catch a single base class for any service failure while still
distinguishing the individual error categories the workflows translate into
user-facing messages.

Updates:
  v0.2.0 - 2026-10-03 - Carry backend status, code, and details on RepositoryError.
  v0.1.0 - 2026-09-21 - Created module with auth, repository, summariser, and validation errors.
"""

from __future__ import annotations

from typing import Any


class PromptlyError(Exception):
    """Base exception for Promptly failures."""


class ValidationError(PromptlyError):
    """Raised when composer input is rejected before any network call."""


class AuthError(PromptlyError):
    """Raised when fetching, establishing, or ending a session fails."""


class RepositoryError(PromptlyError):
    """Raised when the prompt database rejects or fails a request.

    The backend's own error payload is kept unmodified so callers can surface
    it verbatim.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.details = details


class RepositoryNotFoundError(RepositoryError):
    """Raised when a requested prompt record cannot be located."""


class SummarizationError(PromptlyError):
    """Raised when the summary endpoint fails or returns no summary."""


__all__ = [
    "AuthError",
    "PromptlyError",
    "RepositoryError",
    "RepositoryNotFoundError",
    "SummarizationError",
    "ValidationError",
]
