"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..adapters.booking_store import FileBookingStore
from ..adapters.directory import ConfigBusinessDirectory
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import BookingConflict, BookingSlotsError, InvalidInput
from ..domain.models import SlotRequest
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="bookingslots",
    help="Find bookable appointment slots for a business",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Availability engine for appointment booking.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _business_timezone(config: AppConfig, business_id: str) -> str:
    business = config.find_business(business_id)
    if business is None:
        return config.timezone
    return config.timezone_for(business)


def _build_service(config: AppConfig) -> AvailabilityService:
    return AvailabilityService(
        business_directory=ConfigBusinessDirectory(config),
        booking_store=FileBookingStore(config.bookings_file),
    )


def _parse_date(value: Optional[str], tz: str):
    if value is None:
        return pendulum.now(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as exc:
        raise InvalidInput(f"Date '{value}' is not in YYYY-MM-DD format") from exc


@app.command()
def slots(
    business_id: Annotated[str, typer.Argument(help="Business id as listed in the config file")],
    date: Annotated[Optional[str], typer.Option("--date", help="Date (YYYY-MM-DD). Defaults to today.")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    config_file: ConfigOption = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print slots as JSON.")] = False,
):
    """
    List the bookable slots of a business for one day.

    Examples:

        bookingslots slots salon --date 2025-03-03

        bookingslots slots salon --date 2025-03-03 --duration 90 --json
    """
    try:
        config = _load_config(config_file)
        day = _parse_date(date, _business_timezone(config, business_id))
        duration_minutes = duration if duration is not None else config.defaults.duration_minutes

        service = _build_service(config)
        found = asyncio.run(
            service.find_slots(
                SlotRequest(business_id=business_id, date=day, duration_minutes=duration_minutes)
            )
        )
    except (FileNotFoundError, ValueError, BookingSlotsError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps([slot.to_dict() for slot in found], indent=2))
        return

    if not found:
        console.print(
            f"[yellow]⚠ No bookable slots on {day.isoformat()}.[/yellow]\n"
            "The business is closed or fully booked that day."
        )
        return

    table = Table(
        title=f"Free slots for {business_id} on {day.isoformat()}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Start", style="bold green")
    table.add_column("End")
    table.add_column("Minutes", style="dim")

    for slot in found:
        table.add_row(
            slot.start.format("HH:mm"),
            slot.end.format("HH:mm"),
            str(slot.duration_minutes())
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def check(
    business_id: Annotated[str, typer.Argument(help="Business id as listed in the config file")],
    start: Annotated[str, typer.Option("--start", help="Requested start (YYYY-MM-DD HH:mm)")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    config_file: ConfigOption = None,
):
    """
    Check whether an appointment can still be booked at a given time.
    """
    try:
        config = _load_config(config_file)
        tz = _business_timezone(config, business_id)
        try:
            requested_start = pendulum.from_format(start, "YYYY-MM-DD HH:mm", tz=tz)
        except ValueError as exc:
            raise InvalidInput(f"Start '{start}' is not in 'YYYY-MM-DD HH:mm' format") from exc
        duration_minutes = duration if duration is not None else config.defaults.duration_minutes

        service = _build_service(config)
        requested = asyncio.run(
            service.check_booking(business_id, requested_start, duration_minutes)
        )
    except BookingConflict as e:
        console.print(f"[bold red]✗ Already booked:[/bold red] {e.requested}")
        for conflict in e.conflicts:
            console.print(f"  overlaps {conflict}")
        raise typer.Exit(1)
    except (FileNotFoundError, ValueError, BookingSlotsError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]✓ Free:[/green] {requested}")


@app.command()
def businesses(config_file: ConfigOption = None):
    """
    List all configured businesses.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if not config.businesses:
        console.print("[yellow]No businesses defined in the config file.[/yellow]")
        return

    table = Table(
        title="Configured businesses",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Id", style="bold yellow")
    table.add_column("Name")
    table.add_column("Timezone", style="dim")
    table.add_column("Hours")

    for business in config.businesses:
        table.add_row(
            business.id,
            business.display_name(),
            config.timezone_for(business),
            "configured" if business.working_hours is not None else "not configured"
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
