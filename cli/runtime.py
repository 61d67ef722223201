"""Runtime boot helpers for the Promptly CLI.

Updates:
  v0.1.1 - 2026-10-03 - Keep per-request httpx logs out of the default console output.
  v0.1.0 - 2026-09-27 - Extract logging configuration helpers.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

DEFAULT_LOGGING_CONFIG = Path("config/logging.conf")
_HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")


def setup_logging(logging_conf_path: Path | None) -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or DEFAULT_LOGGING_CONFIG
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            return
        except (OSError, KeyError, ValueError) as exc:  # pragma: no cover - configuration fallback
            logging.getLogger("promptly.runtime").warning(
                "Ignoring unusable logging config %s: %s", path, exc
            )
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    configure_http_client_logging(enabled=False)


def configure_http_client_logging(enabled: bool) -> None:
    """Enable or disable the HTTP client's per-request log lines."""
    for name in _HTTP_CLIENT_LOGGERS:
        client_logger = logging.getLogger(name)
        client_logger.setLevel(logging.NOTSET if enabled else logging.WARNING)
