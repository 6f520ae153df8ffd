"""CSV import command."""

from pathlib import Path

import click
from lettrage.cli.error_handling import handle_domain_error
from lettrage.domain.csv_import import CSVImportService, read_csv_text, split_csv_text
from lettrage.domain.entities import ColumnMapping
from lettrage.domain.errors import DomainError


@click.command("import")
@click.argument("csv_file", type=click.Path(exists=True))
@click.argument("date_col", type=int, required=False)
@click.argument("amount_col", type=int, required=False)
@click.argument("desc_col", type=int, required=False)
@click.option(
    "--detect",
    is_flag=True,
    help="Detect the date and amount columns from the header row instead of passing indexes",
)
@click.pass_context
def import_csv(ctx, csv_file: str, date_col: int | None, amount_col: int | None, desc_col: int | None, detect: bool):
    """Import payments from a bank statement CSV.

    Columns are zero-based indexes. The previous import and its matches are
    replaced.

    Examples:
        lettrage import statement.csv 0 1 2
        lettrage import statement.csv --detect
    """
    session = ctx.obj["session"]
    store = ctx.obj["store"]
    service = CSVImportService()

    if not detect and (date_col is None or amount_col is None):
        click.echo("Error: DATE_COL and AMOUNT_COL are required unless --detect is given", err=True)
        ctx.exit(1)

    try:
        csv_data = read_csv_text(csv_file)
        headers, rows = split_csv_text(csv_data)
        if detect:
            mapping = service.detect_column_mapping(headers)
        else:
            mapping = ColumnMapping(date_col, amount_col, desc_col)
        result = session.import_csv(headers, rows, mapping)
    except (DomainError, OSError) as e:
        handle_domain_error(ctx, e)

    store.set_csv_source(
        file_name=Path(csv_file).name,
        csv_data=csv_data,
        headers=headers,
        mapping=mapping,
    )
    store.save(session)

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {len(result.payments)} payments")
    click.echo(f"  Skipped: {len(result.skipped)} rows")
    for skipped in result.skipped:
        click.echo(f"    Row {skipped.row}: {skipped.reason}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_csv)
