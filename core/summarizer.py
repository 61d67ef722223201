"""HTTP client for the external prompt summarisation endpoint.

Updates:
  v0.1.1 - 2026-10-02 - Reject blank summaries so nothing unsummarised is persisted.
  v0.1.0 - 2026-09-24 - Introduce SummarizerClient posting to /api/summarize.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from models.prompt_model import RESPONSE_LABEL

from .exceptions import SummarizationError
from .retry import async_retry, is_retryable_http_status

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("promptly.summarizer")

DEFAULT_SUMMARIZER_URL = "http://localhost:5000"
SUMMARIZE_PATH = "/api/summarize"
SUMMARY_INSTRUCTION = (
    "Summarize the following text into a concise 1–2 line paragraph, "
    "preserving key details:\n\n"
)


def build_summary_request_text(prompt: str, response: str | None = None) -> str:
    """Return the instruction-wrapped text sent to the summariser."""
    body = prompt.strip()
    if response and response.strip():
        body = f"{body}\n\n{RESPONSE_LABEL}\n{response}"
    return f"{SUMMARY_INSTRUCTION}{body}"


@dataclass(slots=True)
class SummarizerClient:
    """HTTPX-backed summariser."""

    base_url: str = DEFAULT_SUMMARIZER_URL
    timeout: float = 30.0
    client_factory: Callable[[], httpx.AsyncClient] | None = None

    def __post_init__(self) -> None:
        """Fall back to the local default and drop trailing slashes."""
        cleaned = (self.base_url or "").strip() or DEFAULT_SUMMARIZER_URL
        self.base_url = cleaned.rstrip("/")

    async def summarize(self, prompt: str, response: str | None = None) -> str:
        """Return a short summary of *prompt* and its optional *response*.

        Raises:
          SummarizationError: On transport failures, non-2xx answers, invalid
            JSON, or a missing or blank ``summary`` field.
        """
        payload = {"text": build_summary_request_text(prompt, response)}
        manage_client = self.client_factory is None
        if self.client_factory is None:
            client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        else:
            client = self.client_factory()
        try:

            async def _send_request() -> httpx.Response:
                result = await client.post(SUMMARIZE_PATH, json=payload)
                if is_retryable_http_status(result.status_code):
                    result.raise_for_status()
                return result

            result = await async_retry(_send_request, description="summary request")
        except httpx.HTTPStatusError as exc:
            raise SummarizationError(
                f"Summary service returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SummarizationError(f"Unable to reach the summary service: {exc}") from exc
        finally:
            if manage_client:
                await client.aclose()
        if result.is_error:
            raise SummarizationError(f"Summary service returned HTTP {result.status_code}")
        try:
            data = result.json()
        except ValueError as exc:
            raise SummarizationError("Summary service returned invalid JSON") from exc
        summary = data.get("summary") if isinstance(data, dict) else None
        if not isinstance(summary, str) or not summary.strip():
            raise SummarizationError("Failed to generate summary")
        logger.debug("Received summary of %d characters", len(summary))
        return summary.strip()


__all__ = [
    "DEFAULT_SUMMARIZER_URL",
    "SUMMARY_INSTRUCTION",
    "SummarizerClient",
    "build_summary_request_text",
]
