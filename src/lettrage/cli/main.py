"""Main CLI entry point."""

import logging

import click
from lettrage.cli.error_handling import handle_domain_error
from lettrage.cli.session_store import SessionStore
from lettrage.database.factories import create_sqlite_database, default_data_dir
from lettrage.domain.errors import DomainError
from lettrage.domain.session import LettrageSession

# Import and register all commands at module level
from lettrage.cli.commands import (
    import_cmd,
    invoice,
    period,
    match,
    list_cmd,
    stats,
    validate,
    project,
    reset,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LETTRAGE_DB_PATH environment variable)",
    envvar="LETTRAGE_DB_PATH",
)
@click.option(
    "--session-path",
    type=click.Path(),
    help="Path to the working session file (default ~/.lettrage/session.json)",
    envvar="LETTRAGE_SESSION_PATH",
)
@click.option(
    "--company",
    default="default",
    show_default=True,
    help="Company (tenant) whose invoices are reconciled",
    envvar="LETTRAGE_COMPANY",
)
@click.option("--user", help="User recorded on validated matches", envvar="LETTRAGE_USER")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, session_path: str | None, company: str, user: str | None, verbose: bool):
    """Lettrage - Bank statement reconciliation.

    Import a bank statement CSV, match its payments against unreconciled
    invoices, validate the matches and save the work as projects.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)

        store = SessionStore(session_path or default_data_dir() / "session.json")
        try:
            session = store.load()
        except DomainError as e:
            if ctx.invoked_subcommand != "reset":
                handle_domain_error(ctx, e)
            session = LettrageSession()

        ctx.obj["db"] = db
        ctx.obj["store"] = store
        ctx.obj["session"] = session
        ctx.obj["company"] = company
        ctx.obj["user"] = user


# Register all commands
import_cmd.register_commands(cli)
invoice.register_commands(cli)
period.register_commands(cli)
match.register_commands(cli)
list_cmd.register_commands(cli)
stats.register_commands(cli)
validate.register_commands(cli)
project.register_commands(cli)
reset.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
