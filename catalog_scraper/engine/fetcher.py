"""HTTP fetching with bounded retry and failure classification."""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable

import httpx
import structlog

from ..config import USER_AGENT

RATE_LIMIT_STATUSES = frozenset({429, 503})

REQUEST_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


class FetchErrorKind(str, Enum):
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    NETWORK = "network"


class FetchError(RuntimeError):
    """Final failure of a fetch once its retries are exhausted."""

    def __init__(
        self,
        message: str,
        *,
        kind: FetchErrorKind,
        url: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.url = url
        self.status_code = status_code

    @property
    def rate_limited(self) -> bool:
        return self.kind is FetchErrorKind.HTTP_STATUS and self.status_code in RATE_LIMIT_STATUSES


class Fetcher:
    """Issue GET requests with per-attempt timeout and linear backoff.

    ``timeout`` bounds a whole attempt, body included: httpx enforces it per
    phase and the body is streamed against an overall deadline. The
    underlying ``httpx.Client`` is shared by all worker threads; retry state
    lives on the stack of each :meth:`fetch` call.
    """

    def __init__(
        self,
        *,
        user_agent: str = USER_AGENT,
        retry_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        transport: httpx.BaseTransport | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._clock = clock
        self.logger = logger or structlog.get_logger("catalog_scraper.fetcher")
        self._client = httpx.Client(
            follow_redirects=True,
            headers={"User-Agent": user_agent, **REQUEST_HEADERS},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _get(self, url: str, timeout: float | None) -> str:
        deadline = None if timeout is None else self._clock() + timeout
        with self._client.stream("GET", url, timeout=timeout) as response:
            if not response.is_success:
                raise FetchError(
                    f"HTTP {response.status_code}: {response.reason_phrase}",
                    kind=FetchErrorKind.HTTP_STATUS,
                    url=url,
                    status_code=response.status_code,
                )
            parts: list[str] = []
            for chunk in response.iter_text():
                if deadline is not None and self._clock() > deadline:
                    raise FetchError(
                        f"Request timed out after {timeout}s: body still downloading",
                        kind=FetchErrorKind.TIMEOUT,
                        url=url,
                    )
                parts.append(chunk)
            return "".join(parts)

    def fetch(self, url: str, timeout: float | None, max_retries: int) -> str:
        attempts = max(1, max_retries)
        last_error: FetchError | None = None
        for attempt in range(1, attempts + 1):
            try:
                return self._get(url, timeout)
            except FetchError as exc:
                last_error = exc
            except httpx.TimeoutException as exc:
                last_error = FetchError(
                    f"Request timed out after {timeout}s: {exc}",
                    kind=FetchErrorKind.TIMEOUT,
                    url=url,
                )
            except httpx.HTTPError as exc:
                last_error = FetchError(
                    f"Network error: {exc}",
                    kind=FetchErrorKind.NETWORK,
                    url=url,
                )

            if attempt < attempts:
                wait = self.retry_delay * attempt
                self.logger.warning(
                    "fetch_retry",
                    url=url,
                    attempt=attempt,
                    max_attempts=attempts,
                    error=str(last_error),
                    wait_seconds=wait,
                )
                self._sleep(wait)

        assert last_error is not None
        raise last_error


__all__ = ["FetchError", "FetchErrorKind", "Fetcher", "RATE_LIMIT_STATUSES", "REQUEST_HEADERS"]
