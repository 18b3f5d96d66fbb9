"""Export finished time boxes for other tools."""

import csv
import io
import json
from datetime import tzinfo
from enum import Enum

from rich.pretty import pretty_repr

from timebox.tracking.types import TimeBox

CSV_HEADER = ("time_start", "time_stop", "hours", "description")


class ExportFormat(str, Enum):
    """Export targets.

    Attributes:
        DEBUG: Python representation for sanity checks.
        CSV: Semicolon separated values for spreadsheets.
        JSON: JSON list, e.g. as input for ``jq``.
    """

    DEBUG = "debug"
    CSV = "csv"
    JSON = "json"


def export_csv(boxes: list[TimeBox], tz: tzinfo | None = None) -> str:
    """Render time boxes as semicolon separated values.

    Times are shown in ``tz`` (local time when None) with second precision,
    notes are joined into one ``- note`` line each.
    """
    output = io.StringIO()
    writer = csv.writer(output, delimiter=";", lineterminator="\n")
    writer.writerow(CSV_HEADER)

    for box in boxes:
        description = "\n".join(f"- {note.description}" for note in box.notes)
        writer.writerow(
            (
                box.time_start().astimezone(tz).isoformat(timespec="seconds"),
                box.time_stop().astimezone(tz).isoformat(timespec="seconds"),
                f"{box.duration_in_hours():.2f}",
                description,
            )
        )

    return output.getvalue()


def export_json(boxes: list[TimeBox]) -> str:
    return json.dumps([box.model_dump(mode="json") for box in boxes], indent=2)


def export_debug(boxes: list[TimeBox]) -> str:
    return pretty_repr(boxes)


def export_boxes(
    boxes: list[TimeBox],
    export_format: ExportFormat,
    tz: tzinfo | None = None,
) -> str:
    """Render time boxes in the given format, CSV times shown in ``tz``."""
    if export_format == ExportFormat.CSV:
        return export_csv(boxes, tz)
    if export_format == ExportFormat.JSON:
        return export_json(boxes)
    return export_debug(boxes)
