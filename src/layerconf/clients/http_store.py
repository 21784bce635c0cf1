"""
HTTP row store.

Fetches configuration rows from a remote endpoint. Two payload shapes are
accepted:

- a list of rows: ``[{"key": "Database", "value": "{\\"Host\\": \\"db\\"}"}, ...]``
- an object of key -> blob: ``{"AppName": "\\"demo\\"", "Limits": {"Max": 5}}``

String blobs follow the row rules (parsed as JSON when possible, verbatim
otherwise); non-string values in the object form are flattened directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from layerconf.core.errors import ProviderError
from layerconf.flatten import FlatMapping, flatten_into, flatten_rows

logger = structlog.get_logger()


class RetryableFetchError(Exception):
    """Fetch failures worth another attempt (network errors, 408/429/5xx)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def is_retryable_status(status_code: int) -> bool:
    """Determine if HTTP status code is retryable."""
    return status_code in (408, 429, 500, 502, 503, 504)


@dataclass
class HttpRowStore:
    """
    RemoteConfigurationStore backed by an HTTP endpoint.

    Attributes:
        url: Endpoint returning the configuration payload
        token: Bearer token (optional)
        timeout: Request timeout in seconds
        max_attempts: Attempts per fetch for retryable failures
        backoff: Exponential backoff multiplier in seconds
    """

    url: str
    token: str | None = None
    timeout: float = 30.0
    max_attempts: int = 3
    backoff: float = 1.0

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _fetch_once(self) -> Any:
        # A client per fetch: periodic reloads may run on different event loops.
        async with httpx.AsyncClient(headers=self._headers(), timeout=self.timeout) as client:
            try:
                response = await client.get(self.url)
            except httpx.RequestError as e:
                logger.warning("http_network_error", url=self.url, error=str(e))
                raise RetryableFetchError(f"Request failed: {e}") from e

        if is_retryable_status(response.status_code):
            logger.warning("http_retryable_error", url=self.url, status=response.status_code)
            raise RetryableFetchError(
                f"Remote configuration request failed: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"Remote configuration request failed: {e.response.status_code}",
                details={"url": self.url, "status_code": e.response.status_code},
            ) from e
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(
                f"Remote configuration is not valid JSON: {e}", details={"url": self.url}
            ) from e

    async def _get_payload(self) -> Any:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RetryableFetchError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, max=30),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    payload = await self._fetch_once()
        except RetryableFetchError as e:
            details: dict[str, Any] = {"url": self.url, "attempts": self.max_attempts}
            if e.status_code is not None:
                details["status_code"] = e.status_code
            raise ProviderError(str(e), details=details) from e
        return payload

    async def load_configuration(self) -> FlatMapping:
        return rows_from_payload(await self._get_payload(), url=self.url)


def rows_from_payload(payload: Any, *, url: str = "") -> FlatMapping:
    """Convert either accepted payload shape into a flat mapping."""
    if isinstance(payload, list):
        pairs = []
        for row in payload:
            if not isinstance(row, dict) or "key" not in row:
                raise ProviderError(
                    "Remote configuration row must be an object with a 'key'",
                    details={"url": url},
                )
            pairs.append((str(row["key"]), row.get("value")))
    elif isinstance(payload, dict):
        pairs = [(str(key), value) for key, value in payload.items()]
    else:
        raise ProviderError(
            f"Unexpected remote configuration payload: {type(payload).__name__}",
            details={"url": url},
        )

    out: dict[str, str | None] = {}
    for key, value in pairs:
        if value is None or isinstance(value, str):
            out.update(flatten_rows([(key, value)]))
        else:
            flatten_into(value, key, out)
    return FlatMapping(out)
