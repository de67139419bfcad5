"""Shared fixtures: config builders and stub collaborators for the resolver."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from catalog_scraper.config import ScraperConfig
from catalog_scraper.engine import Candidate, FetchError, FetchErrorKind
from catalog_scraper.logging_conf import configure_logging

BASE_URL = "https://catalog.test"


@pytest.fixture(scope="session", autouse=True)
def _logging(tmp_path_factory: pytest.TempPathFactory) -> None:
    configure_logging(verbose=True, log_dir=tmp_path_factory.mktemp("logs"))


@pytest.fixture
def write_keys(tmp_path: Path) -> Callable[[Iterable[str]], Path]:
    def _write(keys: Iterable[str], name: str = "keys.txt") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(keys) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., ScraperConfig]:
    def _factory(**overrides: Any) -> ScraperConfig:
        payload: dict[str, Any] = {
            "base_url": BASE_URL,
            "input_path": tmp_path / "keys.txt",
            "output_path": tmp_path / "output" / "products.json",
            "delay_ms": 0,
            "retry_delay_ms": 0,
            "max_retries": 1,
        }
        payload.update(overrides)
        return ScraperConfig(**payload)

    return _factory


def search_url(key: str) -> str:
    return f"{BASE_URL}/catalog?query={key}&sort=Mf"


def rate_limit_error(url: str, status: int = 429) -> FetchError:
    return FetchError(f"HTTP {status}: Too Many Requests", kind=FetchErrorKind.HTTP_STATUS, url=url, status_code=status)


class StubFetcher:
    """Serve canned bodies per URL; a list value is consumed one item per call."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[str] = []

    def fetch(self, url: str, timeout: float | None, max_retries: int) -> str:
        self.calls.append(url)
        if url not in self.responses:
            raise FetchError("HTTP 404: Not Found", kind=FetchErrorKind.HTTP_STATUS, url=url, status_code=404)
        value = self.responses[url]
        if isinstance(value, list):
            value = value.pop(0) if len(value) > 1 else value[0]
        if isinstance(value, Exception):
            raise value
        return value

    def close(self) -> None:
        return


class StubParser:
    """Search bodies name candidate lists registered up front; detail bodies are echoed."""

    def __init__(self, searches: dict[str, list[Candidate]] | None = None) -> None:
        self.searches = dict(searches or {})

    def parse_search(self, body: str, key: str) -> list[Candidate]:
        return list(self.searches.get(body, []))

    def parse_detail(self, body: str, url: str) -> dict[str, Any]:
        return {"productId": body, "productUrl": url}


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
