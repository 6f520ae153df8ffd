"""Validation and committed match commands."""

import click
from lettrage.cli.error_handling import handle_domain_error
from lettrage.domain.errors import DomainError, NotFoundError


@click.command("validate")
@click.pass_context
def validate_matches(ctx):
    """Commit every proposed match and mark its invoice reconciled.

    Each match is committed on its own. If some commits fail, the others are
    kept and the command exits with an error listing the failures. When every
    commit succeeds the invoice pool is reloaded for the selected period.
    """
    session = ctx.obj["session"]

    if not any(not m.is_validated for m in session.matches):
        click.echo("Error: No matches to validate", err=True)
        ctx.exit(1)

    report = session.validate_all(ctx.obj["db"], ctx.obj["company"], ctx.obj["user"])
    ctx.obj["store"].save(session)

    click.echo(report.summary)
    if not report.is_complete:
        for m, message in report.failures:
            click.echo(f"  Match {m.id} (invoice {m.invoice_id}): {message}", err=True)
        click.echo(f"Error: {len(report.failures)} match(es) could not be validated", err=True)
        ctx.exit(1)

    try:
        invoices = session.load_invoices(ctx.obj["db"], ctx.obj["company"])
    except DomainError as e:
        handle_domain_error(ctx, e)
    ctx.obj["store"].save(session)
    click.echo(f"Reloaded {len(invoices)} invoice(s)")


@click.command("history")
@click.pass_context
def list_history(ctx):
    """List committed matches of the current company."""
    try:
        records = ctx.obj["db"].list_match_records(ctx.obj["company"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not records:
        click.echo("No validated matches.")
        return

    click.echo(f"\n{len(records)} validated match(es):")
    click.echo("-" * 100)
    for r in records:
        click.echo(
            f"{r.id}  invoice {r.invoice_id} <-> payment {r.payment_id}  "
            f"{r.invoice_amount:,.2f} / {r.payment_amount:,.2f}  {r.validated_at:%Y-%m-%d %H:%M}"
        )


@click.command("cancel")
@click.argument("record_id")
@click.pass_context
def cancel_match(ctx, record_id: str):
    """Cancel a committed match; its invoice becomes unreconciled again."""
    db = ctx.obj["db"]

    try:
        record = db.get_match_record(record_id)
        if record is None:
            raise NotFoundError(f"Match record '{record_id}' not found")
        db.cancel_match(record_id, record.invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Cancelled match {record_id}; invoice {record.invoice_id} is unreconciled")


def register_commands(cli):
    """Register validation commands with main CLI."""
    cli.add_command(validate_matches)
    cli.add_command(list_history)
    cli.add_command(cancel_match)
