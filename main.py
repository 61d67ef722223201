"""Application entry point for Promptly.

Updates:
  v0.2.1 - 2026-10-19 - Log session state transitions while commands run.
  v0.2.0 - 2026-10-09 - Render workflow notifications on stderr while commands run.
  v0.1.1 - 2026-10-02 - Default to the home screen when no command is given.
  v0.1.0 - 2026-09-27 - Wire settings, services, and CLI commands.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cli.commands import COMMAND_SPECS
from cli.parser import parse_args
from cli.runtime import setup_logging
from cli.settings_summary import print_settings_summary
from cli.utils import print_notification
from config import SettingsError, load_settings
from core import build_app

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import PromptlySettings
    from core import PromptlyApp, SessionStore

EXIT_SETTINGS_ERROR = 2
EXIT_SERVICES_ERROR = 3


def _initialise_app(settings: PromptlySettings, logger: logging.Logger) -> PromptlyApp | None:
    try:
        return build_app(settings)
    except (SettingsError, ValueError) as exc:
        logger.error("Failed to initialise services: %s", exc)
        return None


def _session_listener(logger: logging.Logger):
    def _log_state(store: SessionStore) -> None:
        logger.debug("Session state changed to %s", store.state.value)

    return _log_state


def main(argv: list[str] | None = None) -> int:
    """Entrypoint that wires settings, services, and CLI commands."""
    args = parse_args(argv)
    setup_logging(args.logging_config)

    logger = logging.getLogger("promptly.main")
    try:
        settings = load_settings()
    except SettingsError as exc:
        logger.error("Failed to load settings: %s", exc)
        return EXIT_SETTINGS_ERROR

    if args.print_settings:
        print_settings_summary(settings)
        return 0

    spec = COMMAND_SPECS[getattr(args, "command", None)]
    app = None
    if spec.requires_app:
        app = _initialise_app(settings, logger)
        if app is None:
            return EXIT_SERVICES_ERROR

    subscriptions = []
    if app is not None:
        subscriptions.append(app.notifications.subscribe(print_notification))
        subscriptions.append(app.session.subscribe(_session_listener(logger)))
    try:
        return spec.handler(app, args, logger)
    finally:
        for subscription in subscriptions:
            subscription.close()
        if app is not None:
            app.close()


if __name__ == "__main__":
    raise SystemExit(main())
