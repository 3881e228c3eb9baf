"""
Main CLI application using Typer.
"""

import logging
import uuid
from datetime import date
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.memory_store import InMemorySlotStore
from ..config import AppConfig, load_config
from ..domain.exceptions import SchedulingError
from ..domain.models import AvailabilityTemplate, BreakPeriod, ConflictResult, Slot, SlotStatus
from ..domain.presets import PRESET_TEMPLATES, build_preset
from ..domain.time_arithmetic import parse_time
from ..services.schedule_service import ScheduleService

app = typer.Typer(
    name="clinicslots",
    help="Generate doctor appointment slots and check bookings for conflicts",
    add_completion=False
)

console = Console()

DOCTOR_ID = "cli"

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
NowOption = Annotated[
    Optional[str],
    typer.Option("--now", help="Reference time 'YYYY-MM-DD HH:mm' (defaults to the current time)"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Doctor availability and slot scheduling.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


def _parse_date(value: str, tz: str) -> date:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        raise typer.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def _resolve_now(value: Optional[str], tz: str) -> DateTime:
    if not value:
        return pendulum.now(tz)
    try:
        return pendulum.from_format(value, "YYYY-MM-DD HH:mm", tz=tz)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid time '{value}', expected 'YYYY-MM-DD HH:mm'") from e


def _parse_range(value: str) -> tuple:
    """Parse 'HH:mm-HH:mm' into (start, end) strings."""
    start, sep, end = value.partition("-")
    if not sep:
        raise typer.BadParameter(f"Invalid range '{value}', expected HH:mm-HH:mm")
    parse_time(start)
    parse_time(end)
    return start, end


def _parse_breaks(values: Optional[List[str]]) -> List[BreakPeriod]:
    breaks = []
    for value in values or []:
        start, end = _parse_range(value)
        breaks.append(BreakPeriod(start=parse_time(start), end=parse_time(end)))
    return breaks


def _find_template(config: AppConfig, name: str) -> AvailabilityTemplate:
    configured = config.find_template(name)
    if configured:
        return configured.to_domain(doctor_id=DOCTOR_ID)
    return build_preset(name, doctor_id=DOCTOR_ID)


def _print_slots(title: str, slots: List[Slot]) -> None:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Start", style="bold")
    table.add_column("End")
    table.add_column("Status")

    styles = {
        SlotStatus.AVAILABLE: "green",
        SlotStatus.BLOCKED: "yellow",
        SlotStatus.BOOKED: "red",
    }
    for slot in slots:
        style = styles[slot.status]
        table.add_row(slot.start_time, slot.end_time, f"[{style}]{slot.status.value}[/{style}]")

    console.print(table)


def _print_result(result: ConflictResult) -> None:
    if result.has_conflict:
        console.print("[bold red]✗ Conflicts:[/bold red]")
        for message in result.conflicts:
            console.print(f"  • {message}")
    else:
        console.print("[bold green]✓ No conflicts[/bold green]")

    if result.warnings:
        console.print("[yellow]⚠ Warnings:[/yellow]")
        for message in result.warnings:
            console.print(f"  • {message}")


@app.command()
def slots(
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Opening time HH:mm")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Closing time HH:mm")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Slot duration in minutes")] = None,
    grace: Annotated[Optional[int], typer.Option("--grace", help="Grace period in minutes")] = None,
    break_ranges: Annotated[Optional[List[str]], typer.Option("--break", help="Break as HH:mm-HH:mm")] = None,
    now: NowOption = None,
):
    """
    Show the bookable slots of a date.

    Examples:

        clinicslots slots 2025-01-10

        clinicslots slots 2025-01-10 --start 08:00 --end 12:00 -d 20 --break 10:00-10:20
    """
    try:
        config = load_config(config_file)
        tz = config.timezone
        defaults = config.defaults

        target = _parse_date(day, tz)
        service = ScheduleService.from_config(config, InMemorySlotStore())

        found = service.available_slots(
            doctor_id=DOCTOR_ID,
            day=target,
            start_time=start or defaults.start_time,
            end_time=end or defaults.end_time,
            slot_duration=duration if duration is not None else defaults.slot_duration,
            grace_period=grace if grace is not None else defaults.grace_period,
            breaks=_parse_breaks(break_ranges),
            now=_resolve_now(now, tz),
        )

        if not found:
            console.print(f"[yellow]⚠ No available slots on {target.isoformat()}.[/yellow]")
            return

        _print_slots(f"Available slots on {target.isoformat()}", found)

    except (SchedulingError, ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def template(
    name: Annotated[str, typer.Argument(help="Preset or configured template name")],
    start_date: Annotated[str, typer.Argument(help="First date (YYYY-MM-DD)")],
    end_date: Annotated[Optional[str], typer.Argument(help="Last date (YYYY-MM-DD)")] = None,
    config_file: ConfigOption = None,
    now: NowOption = None,
):
    """
    Expand an availability template over a date range.
    """
    try:
        config = load_config(config_file)
        tz = config.timezone

        first = _parse_date(start_date, tz)
        last = _parse_date(end_date, tz) if end_date else None
        chosen = _find_template(config, name)

        store = InMemorySlotStore()
        service = ScheduleService.from_config(config, store)
        application = service.apply_template(
            doctor_id=DOCTOR_ID,
            template=chosen,
            start_date=first,
            end_date=last,
            now=_resolve_now(now, tz),
        )

        _print_result(application.result)
        if not application.applied:
            raise typer.Exit(1)

        if not application.slots_added:
            console.print(f"[yellow]⚠ '{chosen.name}' has no working days in this range.[/yellow]")
            return

        for target in application.slots_added:
            _print_slots(
                f"{chosen.name} · {target.isoformat()}",
                store.get_slots(DOCTOR_ID, target),
            )

    except (SchedulingError, ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def check(
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Proposed start HH:mm")],
    end: Annotated[str, typer.Argument(help="Proposed end HH:mm")],
    config_file: ConfigOption = None,
    booked: Annotated[Optional[List[str]], typer.Option("--booked", help="Booked range HH:mm-HH:mm")] = None,
    blocked: Annotated[Optional[List[str]], typer.Option("--blocked", help="Blocked range HH:mm-HH:mm")] = None,
    available: Annotated[Optional[List[str]], typer.Option("--available", help="Available range HH:mm-HH:mm")] = None,
    break_ranges: Annotated[Optional[List[str]], typer.Option("--break", help="Break as HH:mm-HH:mm")] = None,
    now: NowOption = None,
):
    """
    Check a proposed booking against existing slots and breaks.

    Exits with status 1 when there is a hard conflict.
    """
    try:
        config = load_config(config_file)
        tz = config.timezone
        target = _parse_date(day, tz)

        service = ScheduleService.from_config(config, InMemorySlotStore())

        for value in available or []:
            range_start, range_end = _parse_range(value)
            service.update_slot_status(
                doctor_id=DOCTOR_ID, date=target, start_time=range_start,
                end_time=range_end, status=SlotStatus.AVAILABLE,
            )
        for value in blocked or []:
            range_start, range_end = _parse_range(value)
            service.update_slot_status(
                doctor_id=DOCTOR_ID, date=target, start_time=range_start,
                end_time=range_end, status=SlotStatus.BLOCKED, reason="blocked from CLI",
            )
        for value in booked or []:
            range_start, range_end = _parse_range(value)
            service.update_slot_status(
                doctor_id=DOCTOR_ID, date=target, start_time=range_start,
                end_time=range_end, status=SlotStatus.BOOKED, appointment_id=str(uuid.uuid4()),
            )

        result = service.check_booking(
            doctor_id=DOCTOR_ID,
            date=target,
            start_time=start,
            end_time=end,
            breaks=_parse_breaks(break_ranges),
            now=_resolve_now(now, tz),
        )

        _print_result(result)
        if result.has_conflict:
            raise typer.Exit(1)

    except (SchedulingError, ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def presets(config_file: ConfigOption = None):
    """
    List preset and configured templates.
    """
    try:
        config = load_config(config_file)

        templates = list(PRESET_TEMPLATES.values())
        templates += [t.to_domain() for t in config.templates]

        day_names = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

        table = Table(title="Availability templates", show_header=True, header_style="bold cyan")
        table.add_column("Name", style="bold yellow")
        table.add_column("Days")
        table.add_column("Hours")
        table.add_column("Slot / Buffer")
        table.add_column("Breaks", style="dim")

        for tpl in templates:
            table.add_row(
                tpl.name + (" (default)" if tpl.is_default else ""),
                ", ".join(day_names[d] for d in sorted(tpl.working_days)),
                str(tpl.window),
                f"{tpl.slot_duration} / {tpl.buffer_minutes} min",
                ", ".join(str(b) for b in tpl.breaks) or "-",
            )

        console.print()
        console.print(table)
        console.print()

    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]clinicslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
