"""
Main CLI application using Typer.
"""

import logging
import re
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..adapters.graph_client import GraphCalendarClient
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig, load_config
from ..domain.exceptions import ConfigurationError, MeetingSlotsError
from ..domain.models import BusyRecord, WorkingHours
from ..services.availability import AvailabilityResult, AvailabilityService

app = typer.Typer(
    name="meetingslots",
    help="Find open meeting slots across calendars using Microsoft Graph",
    add_completion=False
)

console = Console()

TOKEN_ENVVAR = "MEETINGSLOTS_GRAPH_TOKEN"
DATE_ONLY = re.compile(r"\d{4}-\d{2}-\d{2}")

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
TokenOption = Annotated[Optional[str], typer.Option("--token", envvar=TOKEN_ENVVAR, help="Microsoft Graph access token")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use mock calendar data instead of Microsoft Graph.")]
MockDataOption = Annotated[Optional[Path], typer.Option("--mock-data", help="JSON file with mock calendar events")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
):
    """
    Find open meeting slots across calendars.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _parse_moment(value: str, tz: str, *, is_end: bool = False) -> DateTime:
    """
    Parse a date (YYYY-MM-DD) or a full ISO-8601 timestamp.

    A plain end date is inclusive, so it resolves to the following midnight.
    """
    if DATE_ONLY.fullmatch(value):
        day = pendulum.from_format(value, "YYYY-MM-DD", tz=tz).start_of("day")
        return day.add(days=1) if is_end else day

    parsed = pendulum.parse(value, tz=tz)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Not a date or timestamp: {value}")
    return parsed


def _determine_time_range(
    *,
    tz: str,
    this_week: bool,
    next_week: bool,
    start_option: Optional[str],
    end_option: Optional[str]
):
    """
    Resolve the desired time window based on shortcut flags or explicit dates.
    Returns (start, end).
    """
    if this_week and next_week:
        console.print("[red]Error: --this-week and --next-week cannot be combined.[/red]")
        raise typer.Exit(1)

    now = pendulum.now(tz)

    if this_week:
        return now, now.end_of("week")

    if next_week:
        next_monday = now.next(pendulum.MONDAY).start_of("day")
        return next_monday, next_monday.add(days=7)

    try:
        start = _parse_moment(start_option, tz) if start_option else now.start_of("day")
    except ValueError as e:
        console.print(f"[red]Could not parse start: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    try:
        end = _parse_moment(end_option, tz, is_end=True) if end_option else start.add(days=7)
    except ValueError as e:
        console.print(f"[red]Could not parse end: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    return start, end


def _build_event_source(
    config: AppConfig,
    *,
    mock: bool,
    token: Optional[str],
    mock_data: Optional[Path] = None,
):
    """Create the calendar source the service will read from."""
    if mock:
        return MockCalendarClient(data_file=mock_data, timezone=config.timezone)

    if not token:
        raise ConfigurationError(
            f"No Microsoft Graph access token. Pass --token or set {TOKEN_ENVVAR}, "
            "or use --mock to try the tool with sample data."
        )

    return GraphCalendarClient(
        access_token=token,
        timezone=config.timezone,
        base_url=config.graph_base_url,
    )


def _print_failed_calendars(failed: List[str]) -> None:
    for calendar_id in failed:
        console.print(f"[yellow]⚠ Could not read calendar {calendar_id}, skipped.[/yellow]")


def _busy_table(title: str, records: List[BusyRecord], *, with_duration: bool = False) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Day", style="dim")
    table.add_column("Start")
    table.add_column("End")
    if with_duration:
        table.add_column("Min.", justify="right")
    table.add_column("Calendar", style="bold yellow")
    table.add_column("Summary")
    table.add_column("Organizer", style="dim")

    for record in records:
        interval = record.interval
        row = [
            interval.start.format("dddd"),
            interval.start.format("YYYY-MM-DD HH:mm"),
            interval.end.format("YYYY-MM-DD HH:mm"),
        ]
        if with_duration:
            row.append(str(interval.duration_minutes()))
        row.extend([record.calendar_label(), record.summary, record.organizer])
        table.add_row(*row)

    return table


def _print_availability(result: AvailabilityResult) -> None:
    request = result.request

    console.print()
    _print_failed_calendars(result.failed_calendars)

    if not result.slots:
        console.print(
            "[yellow]⚠ No available slots found.[/yellow]\n"
            "Try a longer period or a shorter duration."
        )
    else:
        table = Table(
            title=f"{len(result.slots)} available slot(s) of {request.duration_minutes} min",
            show_header=True,
            header_style="bold green"
        )
        table.add_column("Day", style="dim")
        table.add_column("Start", style="bold")
        table.add_column("End")

        for slot in result.slots:
            table.add_row(
                slot.start.format("dddd"),
                slot.start.format("YYYY-MM-DD HH:mm"),
                slot.end.format("YYYY-MM-DD HH:mm"),
            )
        console.print(table)

    if result.busy_details:
        console.print()
        console.print(_busy_table("Busy times", result.busy_details))

    console.print()


@app.command()
def find(
    guests: Annotated[Optional[List[str]], typer.Argument(help="Guest names or email addresses whose calendars are checked too.")] = None,
    config_file: ConfigOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD) or ISO timestamp")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD, inclusive) or ISO timestamp")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Meeting duration in minutes")] = None,
    max_results: Annotated[Optional[int], typer.Option("--max-results", "-n", help="Maximum number of slots")] = None,
    room: Annotated[Optional[str], typer.Option("--room", help="Only count events whose location contains this text")] = None,
    work_start: Annotated[Optional[str], typer.Option("--work-start", help="Start of working hours (HH:MM)")] = None,
    work_end: Annotated[Optional[str], typer.Option("--work-end", help="End of working hours (HH:MM)")] = None,
    this_week: Annotated[bool, typer.Option("--this-week", help="Search from now until the end of this week.")] = False,
    next_week: Annotated[bool, typer.Option("--next-week", help="Search next week (Monday to Sunday).")] = False,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
    token: TokenOption = None,
):
    """
    Find available meeting slots.

    Examples:

        # Your own calendar, next seven days
        meetingslots find --mock

        # Include colleagues, one hour, next week
        meetingslots find max anna@example.com --duration 60 --next-week

        # Only events booked in a given room block time
        meetingslots find --room Atlas --start 2024-11-25 --end 2024-11-29
    """
    try:
        config = load_config(config_file)
        tz = config.timezone

        time_start, time_end = _determine_time_range(
            tz=tz,
            this_week=this_week,
            next_week=next_week,
            start_option=start,
            end_option=end
        )

        guest_ids = config.resolve_participants(guests) if guests else []

        if work_start is None and work_end is None:
            working_hours = config.defaults.working_hours()
        else:
            working_hours = WorkingHours.parse(
                work_start or config.defaults.working_hours_start,
                work_end or config.defaults.working_hours_end,
            )

        min_duration = duration if duration is not None else config.defaults.duration_minutes
        limit = max_results if max_results is not None else config.defaults.max_results

        if mock:
            console.print("[yellow]⚠  MOCK MODE: using sample calendar data[/yellow]")

        console.print("[bold cyan]Search:[/bold cyan]")
        console.print(f"   Calendars: {', '.join(AvailabilityService.calendars_for_guests(guest_ids))}")
        console.print(f"   Period: {time_start.format('YYYY-MM-DD HH:mm')} - {time_end.format('YYYY-MM-DD HH:mm')}")
        console.print(f"   Duration: {min_duration} minutes")
        console.print(f"   Working hours: {working_hours}")
        if room:
            console.print(f"   Room filter: {room}")

        source = _build_event_source(config, mock=mock, token=token, mock_data=mock_data)
        service = AvailabilityService(event_source=source)

        result = service.find_slots(
            guests=guest_ids,
            start=time_start,
            end=time_end,
            duration_minutes=min_duration,
            working_hours=working_hours,
            max_results=limit,
            room=room,
        )

        _print_availability(result)

    except MeetingSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def busy(
    users: Annotated[Optional[List[str]], typer.Argument(help="Names or email addresses. Defaults to your own calendar.")] = None,
    config_file: ConfigOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD) or ISO timestamp")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD, inclusive) or ISO timestamp")] = None,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
    token: TokenOption = None,
):
    """
    List busy periods for one or more calendars.
    """
    try:
        config = load_config(config_file)
        time_start, time_end = _determine_time_range(
            tz=config.timezone,
            this_week=False,
            next_week=False,
            start_option=start,
            end_option=end
        )

        user_ids = config.resolve_participants(users) if users else []
        source = _build_event_source(config, mock=mock, token=token, mock_data=mock_data)
        service = AvailabilityService(event_source=source)

        collection = service.busy_times(users=user_ids, start=time_start, end=time_end)

        console.print()
        console.print(f"Period: {time_start.format('YYYY-MM-DD HH:mm')} - {time_end.format('YYYY-MM-DD HH:mm')}")
        console.print(f"Calendars checked: {', '.join(collection.calendars_checked)}")
        _print_failed_calendars(collection.failed_calendars)

        if not collection.details:
            console.print("[green]No busy times in this period.[/green]\n")
            return

        console.print(_busy_table(f"{len(collection.details)} busy period(s)", collection.details, with_duration=True))
        console.print()

    except MeetingSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def list_colleagues(config_file: ConfigOption = None):
    """
    List all configured colleagues.
    """
    try:
        config = load_config(config_file)
    except ConfigurationError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if not config.colleagues:
        console.print("[yellow]No colleagues defined in the config file.[/yellow]")
        return

    table = Table(
        title="Configured colleagues",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name (alias)", style="bold yellow")
    table.add_column("E-mail", style="dim")

    for colleague in config.colleagues:
        table.add_row(colleague.name, colleague.email)

    console.print()
    console.print(table)
    console.print()


@app.command()
def test_connection(
    config_file: ConfigOption = None,
    token: TokenOption = None,
):
    """
    Check that the Graph access token works.
    """
    try:
        config = load_config(config_file)
        client = _build_event_source(config, mock=False, token=token)
        user_info = client.test_connection()
    except MeetingSlotsError as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {escape(str(e))}\n")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]✓ Connected![/bold green]\n\n"
        f"[bold]User:[/bold] {user_info.get('displayName', 'N/A')}\n"
        f"[bold]E-mail:[/bold] {user_info.get('mail') or user_info.get('userPrincipalName', 'N/A')}",
        title="Connection test"
    ))


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]meetingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
