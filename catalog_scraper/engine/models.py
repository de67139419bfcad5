"""Result types flowing from the resolver to persistence."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

DetailRecord = dict[str, Any]


class MatchType(str, Enum):
    """Quality of a key's resolution against the catalog."""

    EXACT = "exact"
    PARTIAL = "partial"
    NONE = "none"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(slots=True, frozen=True)
class Candidate:
    """One entry of a catalog search result page."""

    identifier: str
    locator: str
    secondary_identifier: str | None = None
    title: str = ""
    manufacturer: str | None = None


@dataclass(slots=True, frozen=True)
class ScrapeResult:
    """Outcome for a single key. Created once, never mutated."""

    key: str
    match_type: MatchType
    detail_record: DetailRecord | None = None
    error: str | None = None
    completed_at: datetime = field(default_factory=utc_now)

    @property
    def succeeded(self) -> bool:
        return self.detail_record is not None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "key": self.key,
            "matchType": self.match_type.value,
            "detailRecord": self.detail_record,
        }
        if self.error is not None:
            payload["error"] = self.error
        payload["completedAt"] = format_timestamp(self.completed_at)
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ScrapeResult":
        """Rebuild a result from one incremental log line.

        Raises ``ValueError`` (or ``KeyError``/``TypeError``) on malformed input.
        """

        key = payload["key"]
        if not isinstance(key, str) or not key:
            raise ValueError("ScrapeResult key must be a non-empty string")
        record = payload.get("detailRecord")
        if record is not None and not isinstance(record, dict):
            raise ValueError("detailRecord must be an object or null")
        error = payload.get("error")
        if error is not None and not isinstance(error, str):
            raise ValueError("error must be a string")
        completed_raw = payload.get("completedAt")
        if completed_raw is not None and not isinstance(completed_raw, str):
            raise ValueError("completedAt must be an ISO-8601 string")
        completed_at = parse_timestamp(completed_raw) if completed_raw else utc_now()
        return cls(
            key=key,
            match_type=MatchType(payload.get("matchType", MatchType.NONE.value)),
            detail_record=record,
            error=error,
            completed_at=completed_at,
        )


@dataclass(slots=True)
class RunSummary:
    """Aggregate view of a finished run, written as the final snapshot."""

    started_at: datetime
    completed_at: datetime
    total_processed: int
    success_count: int
    failure_count: int
    exact_matches: int
    partial_matches: int
    no_results: int
    config: dict[str, Any] = field(default_factory=dict)
    results: list[ScrapeResult] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "startedAt": format_timestamp(self.started_at),
            "completedAt": format_timestamp(self.completed_at),
            "totalProcessed": self.total_processed,
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "exactMatches": self.exact_matches,
            "partialMatches": self.partial_matches,
            "noResults": self.no_results,
            "config": dict(self.config),
            "results": [result.to_dict() for result in self.results],
        }


__all__ = [
    "Candidate",
    "DetailRecord",
    "MatchType",
    "RunSummary",
    "ScrapeResult",
    "format_timestamp",
    "parse_timestamp",
    "utc_now",
]
