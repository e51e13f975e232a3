from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import typer
from rich.logging import RichHandler

from .config import ConfigError, load_settings
from .errors import PortaTimeError
from .moment import PortaMoment

app = typer.Typer(add_completion=False, help="Billing datetime conversions (UTC wire strings <-> local time)")

log = logging.getLogger("portadt")

_TZ_HELP = "Timezone name or offset; defaults to the configured default timezone, then UTC."


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_time=True, show_level=True)],
    )


def _timezone(tz: str | None, config: Path | None) -> Any:
    if tz is not None:
        return tz
    try:
        return load_settings(config)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


def _moment(expr: str, tz: str | None, config: Path | None) -> PortaMoment:
    try:
        return PortaMoment.create(expr, _timezone(tz, config))
    except PortaTimeError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.callback()
def _init(
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
) -> None:
    _setup_logging(verbose)


@app.command()
def local(
    value: str = typer.Argument(..., help="Wire datetime (UTC), YYYY-MM-DD HH:MM:SS"),
    tz: str | None = typer.Option(None, "--tz", help=_TZ_HELP),
    config: Path | None = typer.Option(None, "--config", exists=True, readable=True),
) -> None:
    """Show a billing datetime string in local time."""
    try:
        moment = PortaMoment.from_wire_string(value, _timezone(tz, config))
    except PortaTimeError as exc:
        raise typer.BadParameter(str(exc)) from exc
    log.debug("Zone %s", moment.timezone_name)
    typer.echo(moment.isoformat())


@app.command()
def wire(
    expr: str = typer.Argument(..., help="Local datetime expression, e.g. 'tomorrow noon'"),
    tz: str | None = typer.Option(None, "--tz", help=_TZ_HELP),
    config: Path | None = typer.Option(None, "--config", exists=True, readable=True),
) -> None:
    """Convert a local datetime expression to a billing datetime string."""
    typer.echo(_moment(expr, tz, config).to_wire_string())


@app.command()
def date(
    value: str = typer.Argument(..., help="Wire date (local), YYYY-MM-DD"),
    tz: str | None = typer.Option(None, "--tz", help=_TZ_HELP),
    config: Path | None = typer.Option(None, "--config", exists=True, readable=True),
) -> None:
    """Convert a billing date string to the wire datetime of its local midnight."""
    try:
        moment = PortaMoment.from_wire_date_string(value, _timezone(tz, config))
    except PortaTimeError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(moment.to_wire_string())


@app.command()
def bounds(
    expr: str = typer.Argument("now", help="Local datetime expression"),
    tz: str | None = typer.Option(None, "--tz", help=_TZ_HELP),
    config: Path | None = typer.Option(None, "--config", exists=True, readable=True),
) -> None:
    """Print day and month boundaries as billing datetime strings."""
    moment = _moment(expr, tz, config)
    rows = [
        ("moment", moment),
        ("first_moment_of_day", moment.first_moment_of_day()),
        ("last_moment_of_day", moment.last_moment_of_day()),
        ("next_day_start", moment.next_day().first_moment_of_day()),
        ("month_end", moment.last_day_of_this_month().last_moment_of_day()),
        ("next_month_start", moment.first_day_of_next_month().first_moment_of_day()),
    ]
    for name, value in rows:
        typer.echo(f"{name:<20} {value.to_wire_string()}  ({value.isoformat()})")


@app.command()
def prorate(
    fee: float = typer.Argument(..., help="Monthly fee"),
    expr: str = typer.Argument("now", help="Local datetime expression"),
    tz: str | None = typer.Option(None, "--tz", help=_TZ_HELP),
    config: Path | None = typer.Option(None, "--config", exists=True, readable=True),
    digits: int = typer.Option(2, "--digits", min=0, help="Decimal places to print"),
) -> None:
    """Prorate a monthly fee from the given day till the end of its month."""
    moment = _moment(expr, tz, config)
    amount = moment.prorate_till_end_of_month(fee)
    log.debug("Prorated %s from %s: %s", fee, moment.to_wire_date_string(), amount)
    typer.echo(f"{amount:.{digits}f}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
