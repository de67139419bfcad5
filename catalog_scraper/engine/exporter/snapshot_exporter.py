"""Atomic single-document JSON writer for the final run summary."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from .base import BaseExporter


class SnapshotExporter(BaseExporter):
    """Replace ``path`` with one JSON document in a single rename."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def export(self, record: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as stream:
                json.dump(record, stream, ensure_ascii=False, indent=2)
                stream.write("\n")
                stream.flush()
                os.fsync(stream.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def flush(self) -> None:
        return

    def close(self) -> None:
        return


__all__ = ["SnapshotExporter"]
