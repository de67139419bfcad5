from __future__ import annotations

from typing import Callable, Iterator

import httpx
import pytest

from catalog_scraper.engine.fetcher import FetchError, FetchErrorKind, Fetcher


class SteppingClock:
    """Advance ``step`` seconds on every read."""

    def __init__(self, step: float) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


def _make_fetcher(
    sleep_recorder,
    handler: Callable[[httpx.Request], httpx.Response],
    retry_delay: float = 1.0,
    clock: Callable[[], float] | None = None,
) -> Fetcher:
    kwargs = {"clock": clock} if clock is not None else {}
    return Fetcher(
        user_agent="test-agent",
        retry_delay=retry_delay,
        sleep=sleep_recorder,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _respond(status: int, text: str = "") -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text=text)

    return handler


def test_fetcher_returns_body_and_sends_headers(sleep_recorder) -> None:
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["user_agent"] = request.headers["User-Agent"]
        return httpx.Response(200, text="<html>ok</html>")

    fetcher = _make_fetcher(sleep_recorder, handler)
    body = fetcher.fetch("https://catalog.test/page", timeout=2.5, max_retries=3)
    fetcher.close()

    assert body == "<html>ok</html>"
    assert captured == {"method": "GET", "user_agent": "test-agent"}
    assert sleep_recorder.calls == []


def test_fetcher_retries_with_linear_backoff(sleep_recorder) -> None:
    attempts: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(str(request.url))
        return httpx.Response(500)

    fetcher = _make_fetcher(sleep_recorder, handler)
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://catalog.test/broken", timeout=None, max_retries=3)

    assert len(attempts) == 3
    assert sleep_recorder.calls == [1.0, 2.0]
    assert excinfo.value.kind is FetchErrorKind.HTTP_STATUS
    assert excinfo.value.status_code == 500
    assert excinfo.value.rate_limited is False
    assert str(excinfo.value).startswith("HTTP 500")


@pytest.mark.parametrize("status", [429, 503])
def test_fetcher_flags_rate_limit_statuses(sleep_recorder, status: int) -> None:
    fetcher = _make_fetcher(sleep_recorder, _respond(status))

    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://catalog.test/busy", timeout=None, max_retries=1)

    assert excinfo.value.rate_limited is True
    assert sleep_recorder.calls == []


def test_fetcher_classifies_timeouts(sleep_recorder) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    fetcher = _make_fetcher(sleep_recorder, handler)
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://catalog.test/slow", timeout=0.1, max_retries=2)

    assert excinfo.value.kind is FetchErrorKind.TIMEOUT
    assert excinfo.value.rate_limited is False
    assert sleep_recorder.calls == [1.0]


def test_fetcher_timeout_bounds_whole_body_download(sleep_recorder) -> None:
    chunks_sent: list[int] = []

    def trickle() -> Iterator[bytes]:
        for index in range(12):
            chunks_sent.append(index)
            yield b"x"

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=trickle())

    # every clock read is 0.25s later; the deadline passes after a few chunks
    fetcher = _make_fetcher(sleep_recorder, handler, clock=SteppingClock(0.25))
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://catalog.test/trickle", timeout=1.0, max_retries=1)

    assert excinfo.value.kind is FetchErrorKind.TIMEOUT
    assert len(chunks_sent) < 12


def test_fetcher_without_timeout_reads_slow_body(sleep_recorder) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=iter([b"a", b"b", b"c"]))

    fetcher = _make_fetcher(sleep_recorder, handler, clock=SteppingClock(100.0))
    assert fetcher.fetch("https://catalog.test/slow", timeout=None, max_retries=1) == "abc"


def test_fetcher_classifies_network_errors(sleep_recorder) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = _make_fetcher(sleep_recorder, handler)
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://catalog.test/down", timeout=None, max_retries=1)

    assert excinfo.value.kind is FetchErrorKind.NETWORK
    assert excinfo.value.url == "https://catalog.test/down"


def test_fetcher_recovers_after_transient_failure(sleep_recorder) -> None:
    statuses = [502, 200]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(statuses.pop(0), text="recovered")

    fetcher = _make_fetcher(sleep_recorder, handler, retry_delay=0.5)
    assert fetcher.fetch("https://catalog.test/flaky", timeout=None, max_retries=3) == "recovered"
    assert sleep_recorder.calls == [0.5]
