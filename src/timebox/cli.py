"""Command-line interface for the time tracker.

CONCEPTS:
---------
- TIME BOX: A bounded work session. It is a list of notes, the first one
            written when you begin and the last one when you stop.

- ACTIVE:   The time box you are currently working on. There is at most one.

- FINISHED: Time boxes that were ended. They can be listed, exported and
            cleared, and the latest one can be resumed.
"""

import argparse
import logging
import sys
from datetime import tzinfo
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from timebox import __version__
from timebox.config import Settings, settings
from timebox.export import ExportFormat, export_boxes
from timebox.storage import create_backend
from timebox.tracking import (
    InMemoryTimeTracker,
    ListFilter,
    ListOptions,
    NoActiveBoxError,
    SortOrder,
    StateNotFoundError,
    TimeBox,
    TimeTrackingError,
    parse_list_filter,
    utc_now,
)
from timebox.tracking.strategies import JsonFormat

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M"

EPILOG = """Examples:
  tb init                                   Create the storage directory
  tb begin "Fix login bug"                  Begin a time box
  tb note "Found the cause"                 Add a note
  tb note -e "Pushed the fix"               Add a note and end the time box
  tb list -d this-week -o descending        List this week's time boxes
  tb export csv > hours.csv                 Export for a spreadsheet"""


def setup_logging(verbose: bool = False, level: str = "WARNING") -> None:
    """Configure logging. Log records go to stderr so stdout stays clean."""
    log_level = logging.DEBUG if verbose else level.upper()
    fmt = "%(name)s: %(message)s" if verbose else "%(message)s"
    logging.basicConfig(
        level=log_level,
        format=fmt,
        handlers=[RichHandler(rich_tracebacks=True, console=err_console, show_path=verbose)],
    )


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Apply global command-line overrides on top of the loaded settings."""
    overrides = {}
    if args.output is not None:
        overrides["storage_dir"] = Path(args.output)
    if args.json_format is not None:
        overrides["json_format"] = JsonFormat(args.json_format)
    if args.backend is not None:
        overrides["backend"] = args.backend
    if args.repair:
        overrides["repair_on_load"] = True
    return settings.model_copy(update=overrides)


def _open_tracker(args: argparse.Namespace) -> InMemoryTimeTracker:
    config = _settings_from_args(args)
    backend = create_backend(config)
    return InMemoryTimeTracker.open(
        backend.loader, backend.storage, clock=utc_now, tz=config.get_timezone()
    )


def render_time_boxes(boxes: list[TimeBox], caption: str, tz: tzinfo | None = None) -> Table:
    """Render time boxes as one table, a section per box, times shown in ``tz``."""
    table = Table(caption=caption, caption_justify="right")
    table.add_column("At", style="cyan", no_wrap=True)
    table.add_column("Description", style="white")

    for index, box in enumerate(boxes):
        if index > 0:
            table.add_section()
        for note in box.notes:
            table.add_row(note.time.astimezone(tz).strftime(DATE_FORMAT), Text(note.description))

    return table


def render_active(box: TimeBox, tz: tzinfo | None = None) -> Table:
    hours = box.duration_in_hours()
    hours_active = box.active_duration(utc_now()).total_seconds() / 3600
    return render_time_boxes([box], f"tasks {hours:.2f}h, {hours_active:.2f}h active", tz)


def _warn_if_active(tracker: InMemoryTimeTracker) -> None:
    active = tracker.active()
    if active is not None:
        begun = active.time_start().astimezone(tracker.timezone).strftime(DATE_FORMAT)
        logger.warning(f"There is an active time box, begun at {begun}")


# Store commands
def cmd_init(args: argparse.Namespace) -> None:
    """Create a new time tracker. Never overwrites an existing one."""
    config = _settings_from_args(args)
    backend = create_backend(config)
    backend.initializer.init()
    console.print(f"[green]Created time tracker:[/green] {config.get_storage_path()}")


def cmd_begin(args: argparse.Namespace) -> None:
    """Begin a new time box."""
    tracker = _open_tracker(args)
    tracker.begin(args.description)
    console.print("[green]Began a new time box[/green]")


def cmd_note(args: argparse.Namespace) -> None:
    """Add a note to the active time box."""
    tracker = _open_tracker(args)
    box = tracker.note(args.description, end=args.end)
    if args.end:
        console.print(f"[green]Ended the time box[/green] after {box.duration_in_hours():.2f}h")
    else:
        console.print("[green]Added a note[/green]")


def cmd_amend(args: argparse.Namespace) -> None:
    """Change the description of the last note."""
    tracker = _open_tracker(args)
    tracker.amend(args.description)
    console.print("[green]Amended the last note[/green]")


def cmd_end(args: argparse.Namespace) -> None:
    """End the active time box."""
    tracker = _open_tracker(args)
    box = tracker.end(args.description)
    console.print(f"[green]Ended the time box[/green] after {box.duration_in_hours():.2f}h")


def cmd_resume(args: argparse.Namespace) -> None:
    """Make the last finished time box active again."""
    tracker = _open_tracker(args)
    tracker.resume()
    console.print("[green]Resumed the last finished time box[/green]")


def cmd_cancel(args: argparse.Namespace) -> None:
    """Remove the active time box."""
    tracker = _open_tracker(args)
    tracker.cancel()
    console.print("[green]Canceled the active time box[/green]")


def cmd_clear(args: argparse.Namespace) -> None:
    """Remove all finished time boxes."""
    tracker = _open_tracker(args)

    if tracker.active() is None and not args.yes:
        total = tracker.finished().total
        if total == 0:
            console.print("[yellow]No finished time boxes to clear[/yellow]")
            return
        console.print(f"[yellow]This will delete {total} finished time boxes.[/yellow]")
        response = console.input("Continue? [y/N]: ").strip().lower()
        if response != "y":
            console.print("[dim]Aborted[/dim]")
            return

    count = tracker.clear()
    console.print(f"[green]Cleared {count} finished time boxes[/green]")


# Read-only commands
def cmd_status(args: argparse.Namespace) -> None:
    """Show the active time box."""
    tracker = _open_tracker(args)
    tz = tracker.timezone
    active = tracker.status()
    if active is None:
        raise NoActiveBoxError()
    console.print(render_active(active, tz))


def cmd_list(args: argparse.Namespace) -> None:
    """List finished time boxes."""
    config = _settings_from_args(args)
    tracker = _open_tracker(args)
    tz = tracker.timezone

    list_filter = parse_list_filter(args.date) if args.date else ListFilter()
    order = SortOrder(args.order) if args.order else config.list_order
    if args.all:
        options = ListOptions(filter=list_filter, order=order, page=0, limit=sys.maxsize)
    else:
        limit = args.limit if args.limit is not None else config.list_limit
        options = ListOptions(filter=list_filter, order=order, page=args.page, limit=limit)

    result = tracker.finished(options)
    if not result.items:
        console.print("[yellow]No finished time boxes.[/yellow]")
        _warn_if_active(tracker)
        return

    hours = sum(box.duration_in_hours() for box in result.items)
    caption = f"total {hours:.2f}h"
    if list_filter.is_none and len(result.items) < result.total:
        caption = f"{len(result.items)} of {result.total} time boxes, page {options.page}, {caption}"

    console.print(render_time_boxes(result.items, caption, tz))
    _warn_if_active(tracker)


def cmd_export(args: argparse.Namespace) -> None:
    """Export finished time boxes to stdout."""
    tracker = _open_tracker(args)
    tz = tracker.timezone
    boxes = tracker.finished(ListOptions(limit=sys.maxsize)).items

    if not boxes:
        logger.warning("Exporting did nothing because there are no finished time boxes")
    sys.stdout.write(export_boxes(boxes, ExportFormat(args.format), tz))
    sys.stdout.write("\n")
    _warn_if_active(tracker)


def cmd_version(args: argparse.Namespace) -> None:
    """Show version and configuration information."""
    config = _settings_from_args(args)
    console.print(f"[bold]tb[/bold] v{__version__}")
    console.print(f"Backend: {config.backend}")
    console.print(f"Storage: {config.get_storage_path()}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="tb",
        description="Personal time tracker keeping time boxes of timestamped notes",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    parser.add_argument(
        "-o", "--output", default=None,
        help=f"Storage directory (default: {settings.storage_dir})"
    )
    parser.add_argument(
        "-j", "--json-format", choices=[f.value for f in JsonFormat], default=None,
        help="Density of the JSON state file"
    )
    parser.add_argument(
        "--backend", choices=["json", "sqlite"], default=None,
        help="Persistence backend"
    )
    parser.add_argument(
        "--repair", action="store_true",
        help="Sort unsorted notes and time boxes on load instead of failing"
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    init_parser = subparsers.add_parser(
        "init",
        help="Create a new time tracker",
        description="Initialize the storage for time tracking. Does not overwrite "
                    "an existing time tracker."
    )
    init_parser.set_defaults(func=cmd_init)

    begin_parser = subparsers.add_parser("begin", help="Begin working on something")
    begin_parser.add_argument("description", help="What you are working on")
    begin_parser.set_defaults(func=cmd_begin)

    note_parser = subparsers.add_parser("note", help="Add a note to the active time box")
    note_parser.add_argument("description", help="Text of the note")
    note_parser.add_argument(
        "-e", "--end", action="store_true",
        help="End the time box after adding the note"
    )
    note_parser.set_defaults(func=cmd_note)

    amend_parser = subparsers.add_parser(
        "amend", help="Change the description of the active time box's last note"
    )
    amend_parser.add_argument("description", help="New text of the last note")
    amend_parser.set_defaults(func=cmd_amend)

    end_parser = subparsers.add_parser("end", help="End the active time box")
    end_parser.add_argument(
        "description", nargs="?", default=None,
        help="Optional closing note"
    )
    end_parser.set_defaults(func=cmd_end)

    resume_parser = subparsers.add_parser(
        "resume",
        help="Make the last finished time box active again",
        description="Useful if you ended a time box prematurely."
    )
    resume_parser.set_defaults(func=cmd_resume)

    cancel_parser = subparsers.add_parser("cancel", help="Remove the active time box")
    cancel_parser.set_defaults(func=cmd_cancel)

    clear_parser = subparsers.add_parser(
        "clear",
        help="Remove all finished time boxes",
        description="Fails while a time box is active."
    )
    clear_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    clear_parser.set_defaults(func=cmd_clear)

    status_parser = subparsers.add_parser("status", help="Show the active time box")
    status_parser.set_defaults(func=cmd_status)

    list_parser = subparsers.add_parser(
        "list",
        help="Show finished time boxes",
        description="Pagination only applies when no date filter is given."
    )
    list_parser.add_argument(
        "-a", "--all", action="store_true",
        help="List all finished time boxes"
    )
    list_parser.add_argument("-p", "--page", type=_non_negative_int, default=0, help="Zero-based page")
    list_parser.add_argument("-l", "--limit", type=int, default=None, help="Page size")
    list_parser.add_argument(
        "-d", "--date", default=None, metavar="DATE_OR_RANGE",
        help="today, yesterday, this-week, last-week, this-month, last-month, "
             "YYYY-MM-DD or YYYY-MM-DD..YYYY-MM-DD"
    )
    list_parser.add_argument(
        "-o", "--order", choices=[o.value for o in SortOrder], default=None,
        help="Descending lists the latest time boxes first"
    )
    list_parser.set_defaults(func=cmd_list)

    export_parser = subparsers.add_parser(
        "export", help="Print finished time boxes for other tools"
    )
    export_parser.add_argument(
        "format", nargs="?", choices=[f.value for f in ExportFormat],
        default=ExportFormat.CSV.value,
        help="Output format (default: csv)"
    )
    export_parser.set_defaults(func=cmd_export)

    version_parser = subparsers.add_parser("version", help="Show version information")
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the tb CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, settings.log_level)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        args.func(args)
    except StateNotFoundError as e:
        console.print(f"[red]No time tracker found:[/red] {e}")
        console.print("[dim]Run 'tb init' to create one.[/dim]")
        sys.exit(1)
    except TimeTrackingError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()
