"""Invoice commands."""

import click
from lettrage.cli.error_handling import handle_domain_error
from lettrage.domain.errors import DomainError
from lettrage.utils.amount_parser import parse_amount
from lettrage.utils.date_parser import parse_date


@click.group()
def invoice_group():
    """Manage invoices awaiting reconciliation."""
    pass


@invoice_group.command("add")
@click.argument("name")
@click.argument("amount", required=False)
@click.option("--date", "document_date", help="Document date (YYYY-MM-DD or 'today')")
@click.option("--id", "invoice_id", help="Explicit invoice ID (generated if omitted)")
@click.pass_context
def add_invoice(ctx, name: str, amount: str | None, document_date: str | None, invoice_id: str | None):
    """Register an invoice.

    An invoice without AMOUNT is stored but never offered for matching.

    Examples:
        lettrage invoice add "Loyer mars" 150.00 --date 2024-03-01
        lettrage invoice add "Fournitures" 90,00 --date today --id i2
    """
    db = ctx.obj["db"]

    try:
        invoice_amount = parse_amount(amount) if amount is not None else None
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    try:
        invoice_date = parse_date(document_date) if document_date else parse_date("today")
    except ValueError as e:
        click.echo(f"Error: Invalid date: {e}", err=True)
        ctx.exit(1)

    try:
        new_id = db.create_invoice(
            company_id=ctx.obj["company"],
            name=name,
            amount=abs(invoice_amount) if invoice_amount is not None else None,
            document_date=invoice_date,
            invoice_id=invoice_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created invoice '{name}' (ID: {new_id})")


@invoice_group.command("list")
@click.option("--reconciled/--unreconciled", default=None, help="Filter on reconciliation status")
@click.pass_context
def list_invoices(ctx, reconciled: bool | None):
    """List invoices of the current company."""
    db = ctx.obj["db"]

    try:
        invoices = db.list_invoices(ctx.obj["company"], reconciled=reconciled)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not invoices:
        click.echo("No invoices found.")
        return

    click.echo(f"\nFound {len(invoices)} invoice(s):")
    click.echo("-" * 90)
    click.echo(f"{'ID':<38} {'Date':<12} {'Amount':>12}  {'Name':<26}")
    click.echo("-" * 90)
    for inv in invoices:
        amount_str = f"{inv.amount:,.2f}" if inv.amount is not None else "-"
        date_str = inv.document_date.isoformat() if inv.document_date else "-"
        click.echo(f"{inv.id:<38} {date_str:<12} {amount_str:>12}  {(inv.name or '')[:26]:<26}")


@invoice_group.command("load")
@click.pass_context
def load_invoices(ctx):
    """Load unreconciled invoices of the selected period into the session."""
    session = ctx.obj["session"]

    try:
        fetched = session.load_invoices(ctx.obj["db"], ctx.obj["company"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    ctx.obj["store"].save(session)
    period = session.selected_period
    click.echo(
        f"Loaded {len(fetched)} unmatched invoice(s) between "
        f"{period.start_date.isoformat()} and {period.end_date.isoformat()}"
    )


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
