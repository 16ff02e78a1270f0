"""HTTP client for the backing record store (one POST endpoint per operation)."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from membership.core.exceptions import RepositoryError
from membership.settings.config import Settings

logger = logging.getLogger(__name__)


def _extract_error_hint(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except Exception:
        text = (response.text or "").strip()
        return text[:240] or None

    if not isinstance(data, dict):
        return None

    parts: list[str] = []
    for key in ("message", "error", "details"):
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            parts.append(value.strip())
    if not parts:
        return None
    return "; ".join(dict.fromkeys(parts))[:240]


def _is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code in (408, 429)


async def post_json(
    url: str,
    payload: Any,
    *,
    timeout: float,
    operation: str,
    headers: Optional[dict[str, str]] = None,
) -> httpx.Response:
    """POST a JSON body and map transport/status failures to RepositoryError."""
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, headers=headers, json=payload)
            response.raise_for_status()
    except httpx.TimeoutException as exc:
        logger.warning("Upstream request timed out operation=%s timeout=%.1fs", operation, timeout)
        raise RepositoryError(
            "The request took too long to respond",
            code=f"{operation}_timeout",
            retryable=True,
        ) from exc
    except httpx.HTTPStatusError as exc:
        status = int(getattr(exc.response, "status_code", 0) or 0) or 502
        logger.warning("Upstream request failed operation=%s status=%s", operation, status)
        raise RepositoryError(
            "Upstream request failed",
            code=f"{operation}_failed",
            hint=_extract_error_hint(exc.response),
            retryable=_is_retryable_status(status),
            upstream_status=status,
        ) from exc
    except httpx.HTTPError as exc:
        logger.warning("Upstream request error operation=%s error=%s", operation, type(exc).__name__)
        raise RepositoryError(
            "Upstream request error",
            code=f"{operation}_error",
            retryable=True,
        ) from exc
    return response


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class RecordStoreClient:
    def __init__(self, settings: Settings) -> None:
        if not settings.record_store_url:
            raise RepositoryError(
                "Record store is not configured",
                code="record_store_not_configured",
                hint="Set RECORD_STORE_URL",
                retryable=False,
            )
        self._base_url = str(settings.record_store_url).rstrip("/")
        self._api_key = settings.record_store_api_key
        self._timeout = settings.http_timeout_seconds

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def call(self, operation: str, payload: Optional[dict[str, Any]] = None) -> Any:
        """Invoke ``operation`` and return the decoded JSON body (None when empty)."""
        url = f"{self._base_url}/{operation}"
        response = await post_json(
            url,
            payload or {},
            timeout=self._timeout,
            operation=operation,
            headers=self._headers(),
        )
        return _json_or_none(response)

    async def fetch_rows(self, operation: str, payload: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """Invoke a read operation; non-list bodies yield no rows, a lone object becomes one row."""
        data = await self.call(operation, payload)
        if isinstance(data, dict):
            return [data]
        if not isinstance(data, list):
            return []
        return [row for row in data if isinstance(row, dict)]
