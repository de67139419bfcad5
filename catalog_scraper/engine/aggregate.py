"""Fold completed results into the final run summary."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from .models import MatchType, RunSummary, ScrapeResult


def summarize(
    results: Sequence[ScrapeResult],
    *,
    started_at: datetime,
    completed_at: datetime,
    config: dict[str, Any],
) -> RunSummary:
    by_type = {match_type: 0 for match_type in MatchType}
    success = failure = 0
    for result in results:
        by_type[result.match_type] += 1
        if result.succeeded:
            success += 1
        if result.failed:
            failure += 1
    return RunSummary(
        started_at=started_at,
        completed_at=completed_at,
        total_processed=len(results),
        success_count=success,
        failure_count=failure,
        exact_matches=by_type[MatchType.EXACT],
        partial_matches=by_type[MatchType.PARTIAL],
        no_results=by_type[MatchType.NONE],
        config=dict(config),
        results=list(results),
    )


__all__ = ["summarize"]
