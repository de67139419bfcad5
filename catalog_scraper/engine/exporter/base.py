"""Exporter contract shared by the incremental log and the final snapshot."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable


class BaseExporter(ABC):
    """Persist JSON-serialisable records to a destination."""

    @abstractmethod
    def export(self, record: dict[str, Any]) -> None:
        """Persist a single record durably before returning."""

    def export_many(self, records: Iterable[dict[str, Any]]) -> None:
        for record in records:
            self.export(record)

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data to destination."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""

    def __enter__(self) -> "BaseExporter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["BaseExporter"]
