"""Run orchestrator wiring key planning, resolving, persistence and progress."""

from __future__ import annotations

import time
from typing import Callable, Sequence

import structlog

from .config import ConfigError, ScraperConfig, read_key_list
from .engine import (
    CatalogParser,
    Fetcher,
    HtmlCatalogParser,
    ProgressEvent,
    RequestPacer,
    Resolver,
    RunSummary,
    WorkerPool,
    load_resume_set,
)
from .engine.exporter import JsonlExporter, SnapshotExporter


class Orchestrator:
    """Central coordinator for one scrape run.

    :meth:`plan` turns the input file into the ordered work list, then
    :meth:`run` resolves it and writes the final snapshot.
    """

    def __init__(
        self,
        config: ScraperConfig,
        *,
        fetcher: Fetcher | None = None,
        parser: CatalogParser | None = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or structlog.get_logger("catalog_scraper")
        self.fetcher = fetcher or Fetcher(
            user_agent=config.user_agent,
            retry_delay=config.retry_delay_seconds,
            sleep=sleep,
            logger=self.logger.bind(component="fetcher"),
        )
        self.parser = parser or HtmlCatalogParser()
        self.resolver = Resolver(
            config,
            self.fetcher,
            self.parser,
            sleep=sleep,
            logger=self.logger.bind(component="resolver"),
        )
        self._pool: WorkerPool | None = None
        self._stop_requested = False

    # ------------------------------------------------------------------
    def plan(self) -> list[str]:
        """Return the keys this run should process.

        Raises :class:`ConfigError` when the input is unreadable or holds no
        keys. An empty list is a valid outcome once resume/start/limit apply.
        """

        keys = read_key_list(self.config.input_path)
        if not keys:
            raise ConfigError(f"No keys found in input file: {self.config.input_path}")
        self.logger.info("keys_loaded", path=str(self.config.input_path), count=len(keys))

        if self.config.resume:
            processed = load_resume_set(self.config.incremental_log_path)
            before = len(keys)
            keys = [key for key in keys if key not in processed]
            self.logger.info("resume_applied", already_processed=before - len(keys), remaining=len(keys))

        if self.config.start_index is not None:
            keys = keys[self.config.start_index :]
            self.logger.info("start_index_applied", start_index=self.config.start_index, remaining=len(keys))

        if self.config.limit is not None:
            keys = keys[: self.config.limit]
            self.logger.info("limit_applied", limit=self.config.limit, remaining=len(keys))

        return keys

    def run(
        self,
        keys: Sequence[str],
        progress: Callable[[ProgressEvent], None] | None = None,
    ) -> RunSummary:
        self.logger.info(
            "run_started",
            total=len(keys),
            workers=self.config.workers,
            delay_ms=self.config.delay_ms,
            max_retries=self.config.max_retries,
            timeout_ms=self.config.timeout_ms,
            output=str(self.config.output_path),
        )

        def _on_progress(event: ProgressEvent) -> None:
            percentage = event.completed / event.total * 100 if event.total else 100.0
            self.logger.info(
                "progress",
                completed=event.completed,
                total=event.total,
                percentage=round(percentage, 1),
                key=event.key,
            )
            if event.result.succeeded:
                self.logger.info("key_resolved", key=event.key, match_type=event.result.match_type.value)
            if progress is not None:
                progress(event)

        with JsonlExporter(self.config.incremental_log_path) as log:
            self._pool = WorkerPool(
                self.resolver,
                log,
                workers=self.config.workers,
                pacer=RequestPacer(self.config.delay_seconds),
                on_progress=_on_progress,
                logger=self.logger.bind(component="worker_pool"),
            )
            if self._stop_requested:
                self._pool.request_stop()
            summary = self._pool.run_all(keys, self.config.snapshot())

        SnapshotExporter(self.config.output_path).export(summary.to_dict())
        self.logger.info(
            "run_completed",
            total_processed=summary.total_processed,
            success=summary.success_count,
            failed=summary.failure_count,
            exact=summary.exact_matches,
            partial=summary.partial_matches,
            no_results=summary.no_results,
            duration_seconds=round(summary.duration_seconds, 2),
            output=str(self.config.output_path),
        )
        return summary

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        self._stop_requested = True
        if self._pool is not None:
            self._pool.request_stop()

    def close(self) -> None:
        self.fetcher.close()


__all__ = ["Orchestrator"]
