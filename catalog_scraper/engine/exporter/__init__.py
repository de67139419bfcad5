"""Exporter SPI and implementations."""

from .base import BaseExporter
from .jsonl_exporter import JsonlExporter
from .snapshot_exporter import SnapshotExporter

__all__ = ["BaseExporter", "JsonlExporter", "SnapshotExporter"]
