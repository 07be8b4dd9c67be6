"""
Main CLI application using Typer.
"""

import json
import sys
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..adapters.json_store import JsonCalendarStore
from ..config import AppConfig, get_default_config_path
from ..domain.calendar import BlockedDate, CalendarSnapshot, to_calendar_date
from ..domain.exceptions import (
    EngineError,
    QueryValidationError,
    SlotQueryError,
    SnapshotUnavailable,
)
from ..domain.query import MeetingSuggestion, QueryIntent, QueryResult
from ..domain.query_engine import QueryEngine
from ..domain.time_slots import ALL_SLOTS, PERIOD_LABELS, TimePeriod, parse_slot, slots_for
from ..logging_config import configure_logging
from ..schemas import result_to_wire
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="slotquery",
    help="Find open time slots in a blocked-date calendar",
    add_completion=False
)

console = Console()

# Exit codes mirror the status classes a web layer would use
EXIT_ERROR = 1
EXIT_INVALID_QUERY = 2
EXIT_NO_DATA = 3

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
DataFileOption = Annotated[
    Optional[Path],
    typer.Option("--data-file", "-f", help="Calendar data file. Overrides the config value."),
]


def _fail(message: str, code: int = EXIT_ERROR) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(code)


def _load_config(config_file: Optional[Path]) -> tuple[AppConfig, Path]:
    """
    Load the configuration and the directory relative paths resolve against.

    An explicitly given config file must exist; without one, a missing
    default config falls back to built-in defaults.
    """
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file), config_file.parent

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path), default_path.parent

    return AppConfig(), Path.cwd()


def _setup(config_file: Optional[Path], data_file: Optional[Path]) -> tuple[AppConfig, JsonCalendarStore]:
    try:
        config, base_dir = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    configure_logging(config.log_level)
    store = JsonCalendarStore(data_file or config.resolve_data_file(base_dir))
    return config, store


def _build_service(config: AppConfig, store: JsonCalendarStore) -> AvailabilityService:
    engine = QueryEngine(
        max_range_days=config.defaults.max_range_days,
        default_count=config.defaults.count,
    )
    return AvailabilityService(store=store, engine=engine, timezone=config.timezone)


def _run_guarded(action):
    """Run ``action`` and map domain errors to exit codes."""
    try:
        return action()
    except (QueryValidationError, EngineError) as e:
        _fail(str(e), EXIT_INVALID_QUERY)
    except SnapshotUnavailable as e:
        _fail(str(e), EXIT_NO_DATA)
    except SlotQueryError as e:
        _fail(str(e))


def _determine_date_range(
    *,
    tz: str,
    this_week: bool,
    next_week: bool,
    start_option: Optional[str],
    end_option: Optional[str]
):
    """
    Resolve the requested window from shortcut flags or explicit dates.
    Returns (start, end) as ISO date strings.
    """
    if this_week and next_week:
        _fail("--this-week and --next-week cannot be used together.")

    today = pendulum.today(tz).date()

    if this_week:
        return today.to_date_string(), today.end_of("week").to_date_string()

    if next_week:
        next_monday = today.next(pendulum.MONDAY)
        return next_monday.to_date_string(), next_monday.add(days=6).to_date_string()

    start = start_option or today.to_date_string()
    end = end_option or _parse_day(start).add(days=7).to_date_string()
    return start, end


def _print_result(result: QueryResult) -> None:
    """Render a query result as a table."""
    if not result.items:
        console.print("[yellow]⚠ No matching availability found.[/yellow]")
        for hint in result.suggestions:
            console.print(f"  • {escape(hint)}")
        return

    if result.intent is QueryIntent.FIND_DAYS:
        console.print(f"[bold green]✓ {len(result.items)} fully open day(s):[/bold green]\n")
        for day in result.items:
            console.print(f"  {day.format('dddd, DD.MM.YYYY')}")
        return

    table = Table(
        title=f"{len(result.items)} open slot(s)",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Slot", style="bold yellow")

    ranked = result.intent is QueryIntent.SUGGEST_TIMES
    if ranked:
        table.add_column("Score", justify="right")
        table.add_column("Reason", style="dim")

    for item in result.items:
        row = [item.format_display()]
        if ranked and isinstance(item, MeetingSuggestion):
            row += [f"{item.score:.2f}", item.reason]
        table.add_row(*row)

    console.print()
    console.print(table)
    console.print()


@app.command()
def find(
    config_file: ConfigOption = None,
    data_file: DataFileOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    period: Annotated[Optional[str], typer.Option("--period", "-p", help="morning, afternoon, evening or any")] = None,
    count: Annotated[Optional[int], typer.Option("--count", "-n", help="Maximum number of results")] = None,
    intent: Annotated[str, typer.Option("--intent", help="find_slots, find_days or suggest_times")] = "find_slots",
    duration: Annotated[Optional[str], typer.Option("--duration", "-d", help="1hour, half-day or full-day")] = None,
    this_week: Annotated[bool, typer.Option("--this-week", help="Search from today to the end of this week.")] = False,
    next_week: Annotated[bool, typer.Option("--next-week", help="Search next week (Monday to Sunday).")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON.")] = False,
):
    """
    Find open slots in the calendar.

    Examples:

        slotquery find --start 2026-01-05 --end 2026-01-09 --period morning -n 5

        slotquery find --next-week --intent find_days

        slotquery find --this-week --intent suggest_times --json
    """
    config, store = _setup(config_file, data_file)

    range_start, range_end = _determine_date_range(
        tz=config.timezone,
        this_week=this_week,
        next_week=next_week,
        start_option=start,
        end_option=end,
    )

    payload = {
        "intent": intent,
        "dateRange": {"start": range_start, "end": range_end},
        "timePreference": period or config.defaults.time_preference.value,
    }
    if count is not None:
        payload["count"] = count
    if duration is not None:
        payload["slotDuration"] = duration

    service = _build_service(config, store)
    result = _run_guarded(lambda: service.run_payload(payload))

    if as_json:
        typer.echo(json.dumps(result_to_wire(result), indent=2))
    else:
        _print_result(result)


@app.command()
def execute(
    query_file: Annotated[Path, typer.Argument(help="JSON query file, or '-' for stdin")],
    config_file: ConfigOption = None,
    data_file: DataFileOption = None,
):
    """
    Execute a structured JSON query and print the JSON result.
    """
    config, store = _setup(config_file, data_file)

    try:
        if str(query_file) == "-":
            payload = json.load(sys.stdin)
        else:
            with open(query_file, "r", encoding="utf-8") as f:
                payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        _fail(f"Could not read query: {e}", EXIT_INVALID_QUERY)

    service = _build_service(config, store)
    result = _run_guarded(lambda: service.run_payload(payload))
    typer.echo(json.dumps(result_to_wire(result), indent=2))


def _parse_slots(values: Optional[List[str]]) -> List:
    try:
        return [parse_slot(value) for value in values or []]
    except ValueError as e:
        _fail(str(e), EXIT_INVALID_QUERY)


def _parse_day(value: str):
    try:
        return to_calendar_date(value)
    except ValueError as e:
        _fail(str(e), EXIT_INVALID_QUERY)


@app.command()
def block(
    day: Annotated[str, typer.Argument(help="Date to block (YYYY-MM-DD)")],
    slots: Annotated[Optional[List[str]], typer.Option("--slot", "-s", help="Slot to block (HH:00); repeatable")] = None,
    half: Annotated[Optional[str], typer.Option("--half", help="Block a half day: am or pm")] = None,
    event: Annotated[Optional[str], typer.Option("--event", "-e", help="Event name")] = None,
    config_file: ConfigOption = None,
    data_file: DataFileOption = None,
):
    """
    Block a whole date, a half day, or individual slots.
    """
    _, store = _setup(config_file, data_file)
    calendar_day = _parse_day(day)
    slot_list = _parse_slots(slots)

    if half is not None:
        try:
            slot_list += sorted(BlockedDate.from_half_day(half).slots)
        except ValueError as e:
            _fail(str(e), EXIT_INVALID_QUERY)

    def _update():
        snapshot = store.load_snapshot()
        snapshot = snapshot if snapshot is not None else CalendarSnapshot()
        updated = snapshot.with_blocked(
            calendar_day,
            slots=slot_list,
            full_day=not slot_list,
            event_name=event,
        )
        store.save_snapshot(updated)

    _run_guarded(_update)

    what = ", ".join(slot.label for slot in slot_list) if slot_list else "whole day"
    console.print(f"[green]✓ Blocked {calendar_day.to_date_string()} ({what})[/green]")


@app.command()
def unblock(
    day: Annotated[str, typer.Argument(help="Date to unblock (YYYY-MM-DD)")],
    slots: Annotated[Optional[List[str]], typer.Option("--slot", "-s", help="Slot to free (HH:00); repeatable")] = None,
    config_file: ConfigOption = None,
    data_file: DataFileOption = None,
):
    """
    Remove blocking from a date, or from individual slots on it.
    """
    _, store = _setup(config_file, data_file)
    calendar_day = _parse_day(day)
    slot_list = _parse_slots(slots)

    def _update():
        snapshot = store.load_snapshot()
        if snapshot is None:
            raise SnapshotUnavailable("No calendar data available")
        store.save_snapshot(snapshot.without(calendar_day, slots=slot_list or None))

    _run_guarded(_update)
    console.print(f"[green]✓ Updated {calendar_day.to_date_string()}[/green]")


@app.command()
def show(
    config_file: ConfigOption = None,
    data_file: DataFileOption = None,
):
    """
    List all blocked dates.
    """
    _, store = _setup(config_file, data_file)
    snapshot = _run_guarded(store.load_snapshot)

    if not snapshot:
        console.print("[yellow]No blocked dates.[/yellow]")
        return

    table = Table(
        title="Blocked dates",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Date", style="bold yellow")
    table.add_column("Blocked")
    table.add_column("Event", style="dim")

    for day, blocked in snapshot.items_sorted():
        if blocked.full_day or len(blocked.slots) == len(ALL_SLOTS):
            what = "whole day"
        else:
            what = ", ".join(slot.label for slot in sorted(blocked.slots)) or "-"
        table.add_row(day.format("ddd DD.MM.YYYY"), what, blocked.event_name or "")

    console.print()
    console.print(table)
    console.print()


@app.command()
def periods():
    """
    List the time periods and their slots.
    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Period", style="bold yellow")
    table.add_column("Label")
    table.add_column("Slots", style="dim")

    for period in TimePeriod:
        slots = slots_for(period)
        table.add_row(period.value, PERIOD_LABELS[period], f"{slots[0].label} - {slots[-1].label}")

    console.print(table)


@app.command("export")
def export_data(
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Write to file instead of stdout")] = None,
    config_file: ConfigOption = None,
    data_file: DataFileOption = None,
):
    """
    Export the calendar data as JSON.
    """
    _, store = _setup(config_file, data_file)
    exported = _run_guarded(store.export_data)

    if output is None:
        typer.echo(exported)
        return

    output.write_text(exported, encoding="utf-8")
    console.print(f"[green]✓ Exported to {output}[/green]")


@app.command("import")
def import_data(
    source: Annotated[Path, typer.Argument(help="Exported JSON file")],
    config_file: ConfigOption = None,
    data_file: DataFileOption = None,
):
    """
    Replace the calendar data with an exported file.
    """
    _, store = _setup(config_file, data_file)

    try:
        text = source.read_text(encoding="utf-8")
    except OSError as e:
        _fail(f"Could not read {source}: {e}")

    snapshot = _run_guarded(lambda: store.import_data(text))
    console.print(f"[green]✓ Imported {len(snapshot)} blocked date(s)[/green]")


@app.command()
def clear(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
    config_file: ConfigOption = None,
    data_file: DataFileOption = None,
):
    """
    Delete all stored calendar data.
    """
    _, store = _setup(config_file, data_file)

    if not yes:
        typer.confirm(f"Delete all calendar data in {store.path}?", abort=True)

    _run_guarded(store.clear)
    console.print("[green]✓ Calendar data cleared[/green]")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotquery[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
