"""Session reset command."""

import click


@click.command("reset")
@click.pass_context
def reset_session(ctx):
    """Discard the current import, its matches and the loaded invoices.

    Validated matches stay committed in the database.
    """
    session = ctx.obj["session"]
    store = ctx.obj["store"]

    session.reset()
    store.clear()
    click.echo("Session reset")


def register_commands(cli):
    """Register reset command with main CLI."""
    cli.add_command(reset_session)
