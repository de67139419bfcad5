"""Bounded worker pool running resolver invocations for many keys."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from threading import Event, Lock
from typing import Any, Callable, Protocol, Sequence

import structlog

from .aggregate import summarize
from .exporter import BaseExporter
from .models import MatchType, RunSummary, ScrapeResult, utc_now
from .pacing import RequestPacer


class KeyResolver(Protocol):
    def resolve(self, key: str) -> ScrapeResult: ...


@dataclass(slots=True, frozen=True)
class ProgressEvent:
    completed: int
    total: int
    key: str
    result: ScrapeResult


ProgressCallback = Callable[[ProgressEvent], None]


class WorkerPool:
    """Run keys through a resolver with ``workers`` threads and global pacing.

    Every finished result is appended to the incremental log, added to the
    in-memory result list and reported to ``on_progress`` inside one
    critical section, so the log stays well formed line by line.
    """

    def __init__(
        self,
        resolver: KeyResolver,
        log: BaseExporter,
        *,
        workers: int = 1,
        pacer: RequestPacer | None = None,
        on_progress: ProgressCallback | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.resolver = resolver
        self.log = log
        self.workers = workers
        self.pacer = pacer or RequestPacer(0.0)
        self.on_progress = on_progress
        self.logger = logger or structlog.get_logger("catalog_scraper.worker_pool")
        self._stop = Event()
        self._lock = Lock()
        self._results: list[ScrapeResult] = []
        self._completed = 0

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def request_stop(self) -> None:
        """Stop starting new keys; in-flight keys still finish and persist."""

        if not self._stop.is_set():
            self.logger.warning("stop_requested", completed=self._completed)
        self._stop.set()
        self.pacer.stop()

    def run_all(self, keys: Sequence[str], config_snapshot: dict[str, Any] | None = None) -> RunSummary:
        started_at = utc_now()
        self._results = []
        self._completed = 0
        total = len(keys)
        self.logger.info("pool_started", workers=self.workers, total=total, delay_seconds=self.pacer.interval)

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="resolver") as executor:
            futures = [executor.submit(self._run_one, key, total) for key in keys]
            for future in as_completed(futures):
                future.result()

        skipped = total - self._completed
        if skipped:
            self.logger.warning("pool_drained", completed=self._completed, not_started=skipped)
        return summarize(
            list(self._results),
            started_at=started_at,
            completed_at=utc_now(),
            config=config_snapshot or {},
        )

    # ------------------------------------------------------------------
    def _run_one(self, key: str, total: int) -> ScrapeResult | None:
        if self._stop.is_set() or not self.pacer.acquire():
            return None
        try:
            result = self.resolver.resolve(key)
        except Exception as exc:  # noqa: BLE001
            self.logger.error("resolve_error", key=key, error=str(exc))
            result = ScrapeResult(key=key, match_type=MatchType.NONE, error=str(exc))
        self._record(result, total)
        return result

    def _record(self, result: ScrapeResult, total: int) -> None:
        with self._lock:
            self.log.export(result.to_dict())
            self._results.append(result)
            self._completed += 1
            event = ProgressEvent(
                completed=self._completed, total=total, key=result.key, result=result
            )
            if self.on_progress is not None:
                self.on_progress(event)


__all__ = ["KeyResolver", "ProgressCallback", "ProgressEvent", "WorkerPool"]
