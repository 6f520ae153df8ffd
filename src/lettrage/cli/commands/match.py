"""Matching commands."""

import click
from lettrage.cli.error_handling import handle_domain_error
from lettrage.domain.errors import DomainError
from lettrage.domain.matching import DEFAULT_TOLERANCE
from lettrage.utils.amount_parser import parse_amount


@click.command("match")
@click.option(
    "--tolerance",
    default=str(DEFAULT_TOLERANCE),
    show_default=True,
    envvar="LETTRAGE_TOLERANCE",
    help="Maximum amount difference for an automatic match",
)
@click.option("--no-reload", is_flag=True, help="Use the invoices already in the session")
@click.pass_context
def run_matching(ctx, tolerance: str, no_reload: bool):
    """Propose automatic matches between invoices and payments.

    Unreconciled invoices of the selected period are reloaded first. For each
    invoice, in order, the first free payment within the tolerance is taken.
    """
    session = ctx.obj["session"]

    try:
        tolerance_value = parse_amount(tolerance)
    except ValueError as e:
        click.echo(f"Error: Invalid tolerance: {e}", err=True)
        ctx.exit(1)
    if tolerance_value < 0:
        click.echo("Error: Tolerance must be non-negative", err=True)
        ctx.exit(1)

    try:
        if not no_reload:
            session.load_invoices(ctx.obj["db"], ctx.obj["company"])
        new_matches = session.run_automatic_matching(tolerance_value)
    except DomainError as e:
        handle_domain_error(ctx, e)

    ctx.obj["store"].save(session)

    if not new_matches:
        click.echo("No automatic match found")
        return

    click.echo(f"{len(new_matches)} automatic match(es) found:")
    for m in new_matches:
        click.echo(
            f"  {m.id}  invoice {m.invoice_id} <-> payment {m.payment_id}  "
            f"({m.invoice_amount:,.2f} / {m.payment_amount:,.2f}, diff {m.difference:,.2f})"
        )


@click.command("link")
@click.argument("invoice_id")
@click.argument("payment_id")
@click.pass_context
def link(ctx, invoice_id: str, payment_id: str):
    """Manually match an invoice with a payment."""
    session = ctx.obj["session"]

    try:
        m = session.add_manual_match(invoice_id, payment_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    ctx.obj["store"].save(session)
    click.echo(f"Manual match {m.id} created (difference {m.difference:,.2f})")


@click.command("unlink")
@click.argument("match_id")
@click.pass_context
def unlink(ctx, match_id: str):
    """Remove a proposed match and free its payment."""
    session = ctx.obj["session"]

    try:
        m = session.remove_match(match_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    ctx.obj["store"].save(session)
    click.echo(f"Match {m.id} removed; payment {m.payment_id} is free again")


def register_commands(cli):
    """Register matching commands with main CLI."""
    cli.add_command(run_matching)
    cli.add_command(link)
    cli.add_command(unlink)
