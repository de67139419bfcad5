from __future__ import annotations

import json
from pathlib import Path

import pytest

from catalog_scraper.engine.exporter import JsonlExporter, SnapshotExporter


def test_jsonl_exporter_appends_one_line_per_record(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "log.jsonl"
    with JsonlExporter(path) as exporter:
        exporter.export({"key": "A", "title": "Gauze ½ inch"})
        exporter.export_many([{"key": "B"}, {"key": "C"}])
        assert exporter.count == 3

    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["key"] for line in lines] == ["A", "B", "C"]
    assert "½" in lines[0]


def test_jsonl_exporter_keeps_existing_lines(tmp_path: Path) -> None:
    path = tmp_path / "log.jsonl"
    path.write_text('{"key": "old"}\n', encoding="utf-8")
    exporter = JsonlExporter(path)
    exporter.export({"key": "new"})
    exporter.close()
    exporter.close()

    assert path.read_text(encoding="utf-8").splitlines() == ['{"key": "old"}', '{"key": "new"}']


def test_snapshot_exporter_replaces_document(tmp_path: Path) -> None:
    path = tmp_path / "out" / "products.json"
    exporter = SnapshotExporter(path)
    exporter.export({"totalProcessed": 1})
    exporter.export({"totalProcessed": 2})

    assert json.loads(path.read_text(encoding="utf-8")) == {"totalProcessed": 2}
    assert [p.name for p in path.parent.iterdir()] == ["products.json"]


def test_snapshot_exporter_leaves_no_temp_file_on_failure(tmp_path: Path) -> None:
    path = tmp_path / "products.json"
    path.write_text('{"previous": true}', encoding="utf-8")

    with pytest.raises(TypeError):
        SnapshotExporter(path).export({"bad": object()})

    assert json.loads(path.read_text(encoding="utf-8")) == {"previous": True}
    assert [p.name for p in tmp_path.iterdir()] == ["products.json"]
