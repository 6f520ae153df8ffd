"""Session listing commands."""

import click


@click.command("list")
@click.option("--matched", "which", flag_value="matched", help="Only matched payments")
@click.option("--unmatched", "which", flag_value="unmatched", help="Only unmatched payments")
@click.option("--search", help="Filter on amount, date or description")
@click.option("--matches", "show_matches", is_flag=True, help="List matches instead of payments")
@click.pass_context
def list_session(ctx, which: str | None, search: str | None, show_matches: bool):
    """List the payments of the current import.

    Use --matches to list proposed and validated matches instead.
    """
    session = ctx.obj["session"]

    if show_matches:
        if not session.matches:
            click.echo("No matches.")
            return
        click.echo(f"\n{len(session.matches)} match(es):")
        click.echo("-" * 110)
        click.echo(
            f"{'ID':<38} {'Invoice':<20} {'Payment':<10} {'Invoice amt':>12} {'Payment amt':>12} {'Diff':>8}  Status"
        )
        click.echo("-" * 110)
        for m in session.matches:
            status = "validated" if m.is_validated else ("auto" if m.is_automatic else "manual")
            click.echo(
                f"{m.id:<38} {m.invoice_id[:20]:<20} {m.payment_id:<10} "
                f"{m.invoice_amount:>12,.2f} {m.payment_amount:>12,.2f} {m.difference:>8,.2f}  {status}"
            )
        return

    payments = session.payment_rows(which or "all")
    if search:
        found = {p.id for p in session.search_payments(search)}
        payments = [p for p in payments if p.id in found]

    if not payments:
        click.echo("No payments found.")
        return

    invoice_by_payment = {m.payment_id: m.invoice_id for m in session.matches}

    click.echo(f"\nFound {len(payments)} payment(s):")
    click.echo("-" * 100)
    click.echo(f"{'ID':<10} {'Date':<12} {'Amount':>12}  {'Matched with':<24} {'Description':<36}")
    click.echo("-" * 100)
    for p in payments:
        matched_with = invoice_by_payment.get(p.id, "")
        description = (p.description or "")[:36]
        click.echo(
            f"{p.id:<10} {p.date.isoformat():<12} {p.amount:>12,.2f}  {matched_with[:24]:<24} {description:<36}"
        )


def register_commands(cli):
    """Register list command with main CLI."""
    cli.add_command(list_session)
