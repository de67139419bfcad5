"""Two-stage lookup of one key: search, pick a candidate, fetch its detail page."""

from __future__ import annotations

import time
from typing import Callable, Sequence
from urllib.parse import quote

import structlog

from ..config import ScraperConfig
from .fetcher import FetchError, Fetcher
from .models import Candidate, MatchType, ScrapeResult
from .parser import CatalogParser

RATE_LIMIT_COOLDOWN_SECONDS = 10.0


def build_search_url(config: ScraperConfig, key: str) -> str:
    return config.base_url + config.search_path.format(query=quote(key, safe=""))


def resolve_detail_url(base_url: str, locator: str) -> str:
    """Turn a candidate locator into an absolute URL."""

    clean = locator.strip()
    if clean.startswith(("http://", "https://")):
        return clean
    return f"{base_url.rstrip('/')}/{clean.lstrip('/')}"


def select_best_match(
    candidates: Sequence[Candidate], key: str
) -> tuple[Candidate | None, MatchType]:
    """Pick the candidate for ``key``.

    Identifiers are scanned across the whole list before secondary
    identifiers; without an exact hit the first candidate is a partial match.
    """

    if not candidates:
        return None, MatchType.NONE
    wanted = key.strip().lower()
    for candidate in candidates:
        if candidate.identifier.strip().lower() == wanted:
            return candidate, MatchType.EXACT
    for candidate in candidates:
        secondary = candidate.secondary_identifier
        if secondary is not None and secondary.strip().lower() == wanted:
            return candidate, MatchType.EXACT
    return candidates[0], MatchType.PARTIAL


class Resolver:
    """Resolve keys to :class:`ScrapeResult` objects.

    A rate-limited failure triggers one cooldown followed by exactly one more
    full attempt; the second attempt's outcome is final.
    """

    def __init__(
        self,
        config: ScraperConfig,
        fetcher: Fetcher,
        parser: CatalogParser,
        *,
        cooldown_seconds: float = RATE_LIMIT_COOLDOWN_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.parser = parser
        self.cooldown_seconds = cooldown_seconds
        self._sleep = sleep
        self.logger = logger or structlog.get_logger("catalog_scraper.resolver")

    def resolve(self, key: str) -> ScrapeResult:
        result, rate_limited = self._attempt(key)
        if rate_limited:
            self.logger.warning(
                "rate_limited_cooldown", key=key, cooldown_seconds=self.cooldown_seconds
            )
            self._sleep(self.cooldown_seconds)
            result, _ = self._attempt(key)
        if result.error is not None:
            self.logger.error("key_failed", key=key, match_type=result.match_type.value, error=result.error)
        return result

    # ------------------------------------------------------------------
    def _attempt(self, key: str) -> tuple[ScrapeResult, bool]:
        search_url = build_search_url(self.config, key)
        self.logger.debug("fetch_search", key=key, url=search_url)
        try:
            search_body = self._fetch(search_url)
        except FetchError as exc:
            return ScrapeResult(key=key, match_type=MatchType.NONE, error=str(exc)), exc.rate_limited

        candidates = self.parser.parse_search(search_body, key)
        candidate, match_type = select_best_match(candidates, key)
        if candidate is None:
            return ScrapeResult(key=key, match_type=MatchType.NONE), False
        self.logger.debug(
            "match_selected", key=key, match_type=match_type.value, identifier=candidate.identifier
        )

        detail_url = resolve_detail_url(self.config.base_url, candidate.locator)
        self.logger.debug("fetch_detail", key=key, url=detail_url)
        try:
            detail_body = self._fetch(detail_url)
        except FetchError as exc:
            return ScrapeResult(key=key, match_type=match_type, error=str(exc)), exc.rate_limited

        record = self.parser.parse_detail(detail_body, detail_url)
        return ScrapeResult(key=key, match_type=match_type, detail_record=record), False

    def _fetch(self, url: str) -> str:
        return self.fetcher.fetch(url, self.config.timeout_seconds, self.config.max_retries)


__all__ = [
    "RATE_LIMIT_COOLDOWN_SECONDS",
    "Resolver",
    "build_search_url",
    "resolve_detail_url",
    "select_best_match",
]
