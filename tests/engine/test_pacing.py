from __future__ import annotations

from catalog_scraper.engine import RequestPacer


class FrozenClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_pacer_spaces_starts_from_previous_start() -> None:
    waits: list[float] = []

    def record(delay: float) -> bool:
        waits.append(delay)
        return False

    pacer = RequestPacer(1.5, clock=FrozenClock(), wait=record)
    assert pacer.acquire() is True
    assert pacer.acquire() is True
    assert pacer.acquire() is True
    assert waits == [1.5, 3.0]


def test_pacer_does_not_wait_once_interval_elapsed() -> None:
    clock = FrozenClock()
    waits: list[float] = []
    pacer = RequestPacer(1.0, clock=clock, wait=lambda delay: waits.append(delay) or False)

    pacer.acquire()
    clock.now += 5.0
    pacer.acquire()
    assert waits == []


def test_pacer_zero_interval_never_waits() -> None:
    waits: list[float] = []
    pacer = RequestPacer(0.0, wait=lambda delay: waits.append(delay) or False)
    assert all(pacer.acquire() for _ in range(5))
    assert waits == []


def test_stopped_pacer_refuses_slots() -> None:
    pacer = RequestPacer(60.0)
    assert pacer.acquire() is True
    pacer.stop()
    assert pacer.stopped
    # the stop event wakes the waiter immediately
    assert pacer.acquire() is False
