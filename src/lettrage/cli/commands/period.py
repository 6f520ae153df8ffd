"""Invoice period command."""

import click
from lettrage.cli.date_filters import PERIOD_FLAGS, resolve_period
from lettrage.cli.error_handling import handle_domain_error
from lettrage.domain.errors import DomainError


@click.command("period")
@click.option("--start-date", help="Start date (YYYY-MM-DD)")
@click.option("--end-date", help="End date (YYYY-MM-DD)")
@click.option("--this-month", is_flag=True, help="Current month")
@click.option("--this-year", is_flag=True, help="Current year (the default period)")
@click.option("--last-month", is_flag=True, help="Previous month")
@click.option("--last-year", is_flag=True, help="Previous year")
@click.pass_context
def set_period(
    ctx,
    start_date: str | None,
    end_date: str | None,
    this_month: bool,
    this_year: bool,
    last_month: bool,
    last_year: bool,
):
    """Show or change the invoice date window.

    Without options the current window is printed. Changing the window does
    not reload invoices; run 'lettrage invoice load' or 'lettrage match'.
    """
    session = ctx.obj["session"]
    requested = resolve_period(
        ctx,
        session.selected_period,
        start_date=start_date,
        end_date=end_date,
        period_flags=dict(zip(PERIOD_FLAGS, (this_month, this_year, last_month, last_year))),
    )

    if requested is not None:
        try:
            session.update_period(requested.start_date, requested.end_date)
        except DomainError as e:
            handle_domain_error(ctx, e)
        ctx.obj["store"].save(session)

    period = session.selected_period
    click.echo(f"Period: {period.start_date.isoformat()} to {period.end_date.isoformat()}")


def register_commands(cli):
    """Register period command with main CLI."""
    cli.add_command(set_period)
