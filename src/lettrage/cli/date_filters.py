"""Resolve the invoice period options shared by CLI commands."""

from datetime import date

import click

from lettrage.domain.entities import Period
from lettrage.utils.date_parser import get_date_range, parse_date

PERIOD_FLAGS = ("this-month", "this-year", "last-month", "last-year")


def _parse_bound(ctx, label: str, value: str) -> date:
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label} date '{value}': {e}", err=True)
        ctx.exit(1)


def resolve_period(
    ctx,
    current: Period,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
) -> Period | None:
    """Build the period requested on the command line.

    A named period flag replaces the whole window. Explicit dates replace
    only the bound they name; the other bound is taken from ``current``.
    Returns None when no option was given. Bound ordering is left to
    ``LettrageSession.update_period``.
    """
    chosen = [name for name, is_set in period_flags.items() if is_set]

    if len(chosen) > 1:
        click.echo(
            f"Error: Choose a single period option, got {', '.join('--' + name for name in chosen)}",
            err=True,
        )
        ctx.exit(1)

    if chosen:
        if start_date or end_date:
            click.echo(f"Error: --{chosen[0]} cannot be combined with --start-date or --end-date", err=True)
            ctx.exit(1)
        return Period(*get_date_range(chosen[0]))

    if not start_date and not end_date:
        return None

    return Period(
        _parse_bound(ctx, "start", start_date) if start_date else current.start_date,
        _parse_bound(ctx, "end", end_date) if end_date else current.end_date,
    )
