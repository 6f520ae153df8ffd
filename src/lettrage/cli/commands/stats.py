"""Statistics command."""

import click


@click.command("stats")
@click.pass_context
def show_stats(ctx):
    """Show reconciliation statistics for the current session."""
    stats = ctx.obj["session"].get_stats()

    click.echo("\nLettrage statistics:")
    click.echo("-" * 50)
    click.echo(f"  Invoices:  {stats.total_invoices} ({stats.matched_invoices} matched, {stats.unmatched_invoices} unmatched)")
    click.echo(f"  Payments:  {stats.total_payments} ({stats.matched_payments} matched, {stats.unmatched_payments} unmatched)")
    click.echo(f"  Invoice total:     {stats.total_invoice_amount:,.2f}")
    click.echo(f"  Payment total:     {stats.total_payment_amount:,.2f}")
    click.echo(f"  Matched amount:    {stats.matched_amount:,.2f}")
    click.echo(f"  Unmatched amount:  {stats.unmatched_invoice_amount:,.2f}")
    click.echo(f"  Matching rate:     {stats.matching_rate:.1f}%")


def register_commands(cli):
    """Register stats command with main CLI."""
    cli.add_command(show_stats)
