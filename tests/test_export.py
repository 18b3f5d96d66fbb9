"""Tests for exporting finished time boxes."""

import json
from datetime import timezone

from conftest import make_box, utc
from timebox.export import ExportFormat, export_boxes, export_csv, export_debug, export_json


def test_csv_layout():
    boxes = [make_box(utc(2025, 1, 1, 9), "design", "review", minutes=90)]

    lines = export_csv(boxes, tz=timezone.utc).split("\n")

    assert lines[0] == "time_start;time_stop;hours;description"
    assert lines[1] == '2025-01-01T09:00:00+00:00;2025-01-01T10:30:00+00:00;1.50;"- design'
    assert lines[2] == '- review"'


def test_csv_without_boxes_is_only_header():
    assert export_csv([], tz=timezone.utc) == "time_start;time_stop;hours;description\n"


def test_json_is_a_list_of_boxes():
    boxes = [make_box(utc(2025, 1, 1, 9), "a"), make_box(utc(2025, 1, 2, 9), "b")]

    data = json.loads(export_json(boxes))

    assert [box["notes"][0]["description"] for box in data] == ["a", "b"]
    assert data[0]["notes"][0]["time"] == "2025-01-01T09:00:00Z"


def test_debug_mentions_descriptions():
    output = export_debug([make_box(utc(2025, 1, 1, 9), "deep work")])
    assert "TimeBox" in output
    assert "deep work" in output


def test_export_boxes_dispatches_on_format():
    boxes = [make_box(utc(2025, 1, 1, 9), "a")]

    assert export_boxes(boxes, ExportFormat.JSON) == export_json(boxes)
    assert export_boxes(boxes, ExportFormat.DEBUG) == export_debug(boxes)
    assert export_boxes(boxes, ExportFormat.CSV).startswith("time_start;")
