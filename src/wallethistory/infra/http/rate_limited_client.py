import asyncio
import logging
import time
from typing import Any

import httpx

from wallethistory.exceptions import NetworkError, RateLimited

logger = logging.getLogger(__name__)


def read_json(resp: httpx.Response) -> Any:
    """Decoded body. A non-JSON answer (HTML error page, truncated body) is a NetworkError."""
    try:
        return resp.json()
    except ValueError as e:
        raise NetworkError(f"Non-JSON response (HTTP {resp.status_code}): {e}") from e


class RateLimitedClient:
    """Async HTTP client with interval-based rate limiting and a hard per-request timeout.

    Transport failures, timeouts and 5xx answers surface as NetworkError, HTTP 429 as
    RateLimited. Other 4xx responses are returned for the caller to interpret.
    """

    def __init__(self, rate_per_second: float = 5.0, timeout: float = 15.0) -> None:
        self._min_interval = 1.0 / rate_per_second
        self._last_request_time = 0.0
        self._lock = asyncio.Lock()
        self._client = httpx.AsyncClient(timeout=timeout)

    async def _wait_for_slot(self) -> None:
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_request_time
            if elapsed < self._min_interval:
                await asyncio.sleep(self._min_interval - elapsed)
            self._last_request_time = time.monotonic()

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        await self._wait_for_slot()
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"{method} {url} timed out") from e
        except httpx.TransportError as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e

        if resp.status_code == 429:
            raise RateLimited(f"{method} {url} throttled")
        if resp.status_code >= 500:
            logger.warning("%s %s returned %d", method, url, resp.status_code)
            raise NetworkError(f"{method} {url} returned {resp.status_code}")
        return resp

    async def get(self, url: str, params: dict | None = None) -> httpx.Response:
        return await self._send("GET", url, params=params)

    async def post(
        self, url: str, json: dict | list | None = None, content: str | None = None
    ) -> httpx.Response:
        if content is not None:
            return await self._send("POST", url, content=content)
        return await self._send("POST", url, json=json)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RateLimitedClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
