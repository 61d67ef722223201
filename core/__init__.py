"""Core service layer for Promptly.

Updates:
  v0.3.0 - 2026-10-09 - Export workflow controllers and the build_app factory.
  v0.2.0 - 2026-10-04 - Export the timeline pipeline helpers.
  v0.1.0 - 2026-09-24 - Surface session, repository, and summariser clients.
"""

from .auth import AuthChange, AuthEvent, AuthProvider, AuthSession, SupabaseAuthProvider
from .exceptions import (
    AuthError,
    PromptlyError,
    RepositoryError,
    RepositoryNotFoundError,
    SummarizationError,
    ValidationError,
)
from .factory import PromptlyApp, build_app
from .identity_cache import IdentityCache
from .notifications import (
    Notification,
    NotificationCenter,
    NotificationLevel,
    NotificationStatus,
    Subscription,
)
from .pipeline import (
    SortOrder,
    TimelineFilter,
    TimelineGroup,
    build_timeline,
    collect_tags,
    format_day_label,
    format_time_label,
)
from .repository import PromptRepository
from .session_store import SessionState, SessionStore
from .summarizer import SummarizerClient
from .workflows import (
    Dashboard,
    DeleteResult,
    LibraryLoadResult,
    PromptComposer,
    PromptLibrary,
    RouteDecision,
    SaveResult,
    gate_route,
    require_identity,
)

__all__ = [
    "AuthChange",
    "AuthError",
    "AuthEvent",
    "AuthProvider",
    "AuthSession",
    "Dashboard",
    "DeleteResult",
    "IdentityCache",
    "LibraryLoadResult",
    "Notification",
    "NotificationCenter",
    "NotificationLevel",
    "NotificationStatus",
    "PromptComposer",
    "PromptLibrary",
    "PromptRepository",
    "PromptlyApp",
    "PromptlyError",
    "RepositoryError",
    "RepositoryNotFoundError",
    "RouteDecision",
    "SaveResult",
    "SessionState",
    "SessionStore",
    "SortOrder",
    "Subscription",
    "SummarizationError",
    "SummarizerClient",
    "SupabaseAuthProvider",
    "TimelineFilter",
    "TimelineGroup",
    "ValidationError",
    "build_app",
    "build_timeline",
    "collect_tags",
    "format_day_label",
    "format_time_label",
    "gate_route",
    "require_identity",
]
