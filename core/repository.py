"""PostgREST-backed storage for prompt diary records.

Every request carries the signed-in user's access token so row-level
security on the ``prompts`` table enforces ownership; queries additionally
filter on ``user_id`` so a misconfigured policy never widens a result set.

Updates:
  v0.2.1 - 2026-10-06 - Add get_prompt for the record detail view.
  v0.2.0 - 2026-10-03 - Surface PostgREST message, code, and details on failures.
  v0.1.1 - 2026-09-29 - Retry transient list and delete failures; never retry inserts.
  v0.1.0 - 2026-09-24 - Introduce PromptRepository over the Supabase REST API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from models.prompt_model import PromptRecord

from .exceptions import AuthError, RepositoryError, RepositoryNotFoundError
from .retry import async_retry, is_retryable_http_status

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

logger = logging.getLogger("promptly.repository")

PROMPTS_TABLE = "prompts"


def _backend_error(response: httpx.Response, action: str) -> RepositoryError:
    """Translate a PostgREST error response without rewriting its message."""
    message = response.reason_phrase or f"HTTP {response.status_code}"
    code: str | None = None
    details: Any | None = None
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        message = str(payload.get("message") or payload.get("error") or message)
        code = str(payload["code"]) if payload.get("code") is not None else None
        details = payload.get("details")
    elif response.text:
        message = response.text
    logger.error("Prompt %s failed (%s): %s", action, response.status_code, message)
    return RepositoryError(
        message,
        status_code=response.status_code,
        code=code,
        details=details,
    )


def _parse_rows(response: httpx.Response) -> list[dict[str, Any]]:
    if not response.content:
        return []
    try:
        payload = response.json()
    except ValueError as exc:
        raise RepositoryError("Database returned invalid JSON") from exc
    if isinstance(payload, dict):
        return [payload]
    if not isinstance(payload, list):
        raise RepositoryError("Database returned an unexpected payload")
    return [row for row in payload if isinstance(row, dict)]


@dataclass(slots=True)
class PromptRepository:
    """HTTPX client for the ``prompts`` table."""

    base_url: str
    anon_key: str
    token_provider: Callable[[], Awaitable[str]]
    timeout: float = 15.0
    table: str = PROMPTS_TABLE
    client_factory: Callable[[], httpx.AsyncClient] | None = None

    def __post_init__(self) -> None:
        """Validate the project URL and key."""
        if not self.base_url or not self.base_url.strip():
            raise ValueError("Supabase URL is required")
        if not self.anon_key or not self.anon_key.strip():
            raise ValueError("Supabase anon key is required")
        self.base_url = self.base_url.strip().rstrip("/")
        self.anon_key = self.anon_key.strip()

    @property
    def _path(self) -> str:
        return f"/rest/v1/{self.table}"

    async def _headers(self, *, prefer: str | None = None) -> dict[str, str]:
        try:
            token = await self.token_provider()
        except AuthError as exc:
            raise RepositoryError(str(exc), status_code=401) from exc
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        *,
        action: str,
        params: dict[str, str] | None = None,
        json: Any | None = None,
        prefer: str | None = None,
        retry: bool = True,
    ) -> httpx.Response:
        headers = await self._headers(prefer=prefer)
        manage_client = self.client_factory is None
        if self.client_factory is None:
            client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        else:
            client = self.client_factory()
        try:

            async def _send_request() -> httpx.Response:
                response = await client.request(
                    method,
                    self._path,
                    params=params,
                    json=json,
                    headers=headers,
                )
                if is_retryable_http_status(response.status_code):
                    response.raise_for_status()
                return response

            if retry:
                response = await async_retry(_send_request, description=f"prompt {action}")
            else:
                response = await _send_request()
        except httpx.HTTPStatusError as exc:
            raise _backend_error(exc.response, action) from exc
        except httpx.HTTPError as exc:
            logger.error("Prompt %s failed: %s", action, exc)
            raise RepositoryError(f"Unable to reach the database: {exc}") from exc
        finally:
            if manage_client:
                await client.aclose()
        if response.is_error:
            raise _backend_error(response, action)
        return response

    async def list_prompts(self, user_id: str, *, limit: int | None = None) -> list[PromptRecord]:
        """Return records owned by *user_id*, newest first.

        An empty list means the user has no records; failures raise instead.
        """
        params = {
            "select": "*",
            "user_id": f"eq.{user_id}",
            "order": "created_at.desc",
        }
        if limit is not None:
            params["limit"] = str(max(0, int(limit)))
        response = await self._request("GET", action="list", params=params)
        records: list[PromptRecord] = []
        for row in _parse_rows(response):
            try:
                records.append(PromptRecord.from_row(row))
            except (KeyError, ValueError) as exc:
                logger.warning("Skipping malformed prompt row %s: %s", row.get("id"), exc)
        logger.debug("Loaded %d prompt(s) for user %s", len(records), user_id)
        return records

    async def get_prompt(self, prompt_id: str, *, user_id: str) -> PromptRecord:
        """Return a single record owned by *user_id*.

        Raises:
          RepositoryNotFoundError: When no such record is visible to the user.
        """
        params = {
            "select": "*",
            "id": f"eq.{prompt_id}",
            "user_id": f"eq.{user_id}",
            "limit": "1",
        }
        response = await self._request("GET", action="lookup", params=params)
        rows = _parse_rows(response)
        if not rows:
            raise RepositoryNotFoundError(f"Prompt {prompt_id} not found", status_code=404)
        try:
            return PromptRecord.from_row(rows[0])
        except (KeyError, ValueError) as exc:
            raise RepositoryError(f"Prompt {prompt_id} is malformed: {exc}") from exc

    async def insert_prompt(
        self,
        *,
        user_id: str,
        prompt: str,
        summary: str,
        tags: Sequence[str],
        response: str | None = None,
    ) -> PromptRecord | None:
        """Persist one record; input is expected to be validated already.

        Inserts are not retried so a timed-out request never produces duplicates.
        Returns the created record when the database echoes it back.
        """
        payload = {
            "user_id": user_id,
            "prompt": prompt,
            "response": response or None,
            "summary": summary,
            "tags": list(tags),
        }
        result = await self._request(
            "POST",
            action="insert",
            json=payload,
            prefer="return=representation",
            retry=False,
        )
        rows = _parse_rows(result)
        if not rows:
            return None
        try:
            record = PromptRecord.from_row(rows[0])
        except (KeyError, ValueError) as exc:
            logger.warning("Inserted prompt echoed a malformed row: %s", exc)
            return None
        logger.info("Saved prompt %s", record.id)
        return record

    async def delete_prompt(self, prompt_id: str, *, user_id: str) -> bool:
        """Permanently delete a record; returns ``False`` when nothing matched."""
        params = {
            "id": f"eq.{prompt_id}",
            "user_id": f"eq.{user_id}",
        }
        response = await self._request(
            "DELETE",
            action="delete",
            params=params,
            prefer="return=representation",
        )
        removed = bool(_parse_rows(response))
        if removed:
            logger.info("Deleted prompt %s", prompt_id)
        else:
            logger.info("Delete matched no prompt with id %s", prompt_id)
        return removed


__all__ = ["PROMPTS_TABLE", "PromptRepository"]
