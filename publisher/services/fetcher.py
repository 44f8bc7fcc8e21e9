"""Upstream digest fetcher.

Retrieves the day's digest from the public 60s API with a bounded,
fixed-delay retry. Any non-2xx status, transport failure or malformed
body counts as a failed attempt.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from publisher.config import FetchConfig
from publisher.errors import FetchError
from publisher.services.retry import RetryPolicy, retry_async

logger = logging.getLogger(__name__)


class SourceFetcher:
    """HTTP client for the upstream digest API."""

    def __init__(self, config: FetchConfig) -> None:
        self._config = config
        self._policy = RetryPolicy(
            max_attempts=config.max_attempts,
            delay=config.retry_delay_seconds,
            retry_on=lambda exc: isinstance(exc, FetchError),
        )

    @property
    def headers(self) -> dict[str, str]:
        return {
            "User-Agent": self._config.user_agent,
            "Referer": self._config.referer,
            "Cache-Control": "no-cache",
            "Accept": "application/json",
        }

    async def fetch(self) -> dict[str, Any]:
        """Fetch the raw digest payload.

        Returns:
            The ``data`` object of the API response.

        Raises:
            FetchError: When every attempt fails; carries the last message.
        """
        logger.info("Fetching digest from %s", self._config.api_url)
        return await retry_async(
            self._fetch_once, self._policy, description="Digest fetch"
        )

    async def _fetch_once(self) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds, headers=self.headers
            ) as client:
                response = await client.get(self._config.api_url)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"HTTP {exc.response.status_code} from {self._config.api_url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(
                f"Network error fetching {self._config.api_url}: {exc}"
            ) from exc
        except ValueError as exc:
            raise FetchError(f"Invalid JSON from {self._config.api_url}") from exc

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            raise FetchError("Upstream response has no 'data' object")
        logger.debug("Upstream payload: %s", data)
        return data
