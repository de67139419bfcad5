"""Rebuild the set of already processed keys from a previous incremental log."""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from .models import ScrapeResult

logger = structlog.get_logger("catalog_scraper.resume")


def load_resume_set(log_path: Path) -> set[str]:
    """Return every key recorded in ``log_path``.

    A missing file yields an empty set. Lines are parsed independently and
    malformed ones are skipped, so a line torn by a crash does not hide the
    rest of the log.
    """

    processed: set[str] = set()
    if not log_path.exists():
        return processed

    skipped = 0
    with log_path.open("r", encoding="utf-8", errors="replace") as stream:
        for line in stream:
            text = line.strip()
            if not text:
                continue
            try:
                payload = json.loads(text)
                if not isinstance(payload, dict):
                    raise ValueError("log line is not an object")
                result = ScrapeResult.from_dict(payload)
            except (ValueError, KeyError, TypeError):
                skipped += 1
                continue
            processed.add(result.key)

    if skipped:
        logger.debug("resume_lines_skipped", path=str(log_path), skipped=skipped)
    logger.info("resume_set_loaded", path=str(log_path), keys=len(processed))
    return processed


__all__ = ["load_resume_set"]
