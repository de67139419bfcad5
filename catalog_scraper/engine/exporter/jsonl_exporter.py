"""Append-only JSON Lines log used for incremental, resumable output."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from .base import BaseExporter


class JsonlExporter(BaseExporter):
    """Append one compact JSON object per line.

    Each record is flushed and fsynced before :meth:`export` returns, so a
    crash loses at most the record being written. Callers serialise
    concurrent appends.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.path.open("a", encoding="utf-8", newline="\n")
        self.count = 0

    def export(self, record: dict[str, Any]) -> None:
        self._file.write(json.dumps(record, ensure_ascii=False))
        self._file.write("\n")
        self.flush()
        self.count += 1

    def flush(self) -> None:
        self._file.flush()
        os.fsync(self._file.fileno())

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()


__all__ = ["JsonlExporter"]
