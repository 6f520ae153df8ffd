"""CSV project commands."""

import click
from lettrage.cli.error_handling import handle_domain_error
from lettrage.cli.project_resolution import find_project, resolve_project_or_exit
from lettrage.domain.csv_import import split_csv_text
from lettrage.domain.errors import DomainError
from lettrage.domain.projects import CsvProjectService


def _create_from_current_import(ctx, service: CsvProjectService, name: str, description: str | None) -> str:
    """Create a project holding the imported CSV and the session state."""
    store = ctx.obj["store"]
    source = store.csv_source
    if not source:
        click.echo("Error: No CSV imported; run 'lettrage import' first", err=True)
        ctx.exit(1)

    return service.create_project(
        company_id=ctx.obj["company"],
        name=name,
        csv_file_name=source["fileName"],
        csv_data=source["data"],
        csv_headers=source["headers"],
        column_mapping=store.csv_mapping(),
        description=description,
        lettrage_state=ctx.obj["session"].serialize(),
        created_by=ctx.obj["user"],
    )


@click.command("save")
@click.argument("project", metavar="PROJECT")
@click.option("--description", help="Project description (new projects only)")
@click.pass_context
def save_project(ctx, project: str, description: str | None):
    """Save the current session into a project.

    PROJECT can be a project name or ID. An existing project has its saved
    state replaced; otherwise a new project is created from the last import.

    Examples:
        lettrage save "Releve mars"
    """
    service = CsvProjectService(ctx.obj["db"])
    session = ctx.obj["session"]

    try:
        existing = find_project(service, ctx.obj["company"], project)
        if existing is not None:
            service.save_lettrage_state(existing.id, session)
            click.echo(f"Saved project '{existing.name}' (ID: {existing.id})")
            return
        project_id = _create_from_current_import(ctx, service, project, description)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created project '{project}' (ID: {project_id})")


@click.command("load")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def load_project(ctx, project: str):
    """Restore a saved project into the current session.

    The selected invoice period is kept. A project without saved state gets
    its payments parsed again from the stored CSV.
    """
    service = CsvProjectService(ctx.obj["db"])
    session = ctx.obj["session"]
    store = ctx.obj["store"]
    found = resolve_project_or_exit(ctx, service, ctx.obj["company"], project)

    try:
        restored = service.restore_into(found.id, session)
        if not restored:
            headers, rows = split_csv_text(found.csv_data)
            imported = session.import_csv(headers, rows, found.column_mapping)
    except DomainError as e:
        handle_domain_error(ctx, e)

    store.set_csv_source(
        file_name=found.csv_file_name,
        csv_data=found.csv_data,
        headers=found.csv_headers,
        mapping=found.column_mapping,
    )
    store.save(session)

    click.echo(f"Loaded project '{found.name}' (ID: {found.id})")
    click.echo(f"  Payments: {len(session.payments)}")
    if restored:
        click.echo(f"  Matches: {len(session.matches)}")
    else:
        click.echo("  No saved lettrage state, payments parsed from the stored CSV")
        if imported.skipped:
            click.echo(f"  Skipped: {len(imported.skipped)} rows")


@click.group()
def project_group():
    """Manage saved reconciliation projects."""
    pass


@project_group.command("create")
@click.argument("name", metavar="PROJECT_NAME")
@click.option("--description", help="Project description")
@click.pass_context
def create_project(ctx, name: str, description: str | None):
    """Create a new project from the current import and session.

    Examples:
        lettrage project create "Releve mars" --description "Compte courant"
    """
    service = CsvProjectService(ctx.obj["db"])

    try:
        project_id = _create_from_current_import(ctx, service, name, description)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created project '{name}' (ID: {project_id})")


def _echo_projects(projects) -> None:
    click.echo("-" * 100)
    click.echo(f"{'ID':<38} {'Name':<24} {'Date':<12} {'Payments':>8} {'Matched':>8}  Status")
    click.echo("-" * 100)
    for p in projects:
        status = "completed" if p.is_completed else "open"
        click.echo(
            f"{p.id:<38} {p.name[:24]:<24} {p.project_date.isoformat():<12} "
            f"{p.total_payments:>8} {p.matched_count:>8}  {status}"
        )


@project_group.command("list")
@click.pass_context
def list_projects(ctx):
    """List projects of the current company, most recently updated first."""
    service = CsvProjectService(ctx.obj["db"])

    projects = service.list_projects(ctx.obj["company"])
    if not projects:
        click.echo("No projects found.")
        return

    click.echo("\nProjects:")
    _echo_projects(projects)


@project_group.command("search")
@click.argument("term")
@click.pass_context
def search_projects(ctx, term: str):
    """Search projects by name or description."""
    service = CsvProjectService(ctx.obj["db"])

    projects = service.search_projects(ctx.obj["company"], term)
    if not projects:
        click.echo(f"No projects matching '{term}'.")
        return

    click.echo(f"\nFound {len(projects)} project(s):")
    _echo_projects(projects)


@project_group.command("show")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def show_project(ctx, project: str):
    """Show project details. PROJECT can be a project name or ID."""
    service = CsvProjectService(ctx.obj["db"])
    found = resolve_project_or_exit(ctx, service, ctx.obj["company"], project)

    try:
        state = service.load_lettrage_state(found.id) or {}
    except DomainError as e:
        handle_domain_error(ctx, e)
    payments = state.get("csvPayments", [])
    matches = state.get("matches", [])
    mapping = found.column_mapping

    click.echo(f"\nProject: {found.name}")
    click.echo(f"  ID:          {found.id}")
    if found.description:
        click.echo(f"  Description: {found.description}")
    click.echo(f"  Date:        {found.project_date.isoformat()}")
    click.echo(f"  CSV file:    {found.csv_file_name}")
    click.echo(
        f"  Columns:     date={mapping.date_column} amount={mapping.amount_column} "
        f"description={mapping.description_column if mapping.description_column is not None else '-'}"
    )
    click.echo(f"  Payments:    {len(payments)}")
    click.echo(f"  Matches:     {len(matches)} ({sum(1 for m in matches if m.get('isValidated'))} validated)")
    click.echo(f"  Status:      {'completed' if found.is_completed else 'open'}")
    click.echo(f"  Updated:     {found.updated_at:%Y-%m-%d %H:%M}")


@project_group.command("complete")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def complete_project(ctx, project: str):
    """Mark a project as completed."""
    service = CsvProjectService(ctx.obj["db"])
    found = resolve_project_or_exit(ctx, service, ctx.obj["company"], project)

    try:
        service.mark_completed(found.id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Project '{found.name}' marked as completed")


@project_group.command("duplicate")
@click.argument("project", metavar="PROJECT")
@click.argument("new_name", metavar="NEW_NAME")
@click.pass_context
def duplicate_project(ctx, project: str, new_name: str):
    """Copy a project and its saved state under a new name."""
    service = CsvProjectService(ctx.obj["db"])
    found = resolve_project_or_exit(ctx, service, ctx.obj["company"], project)

    try:
        project_id = service.duplicate_project(
            found.id, new_name, ctx.obj["company"], created_by=ctx.obj["user"]
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Duplicated '{found.name}' as '{new_name}' (ID: {project_id})")


@project_group.command("delete")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def delete_project(ctx, project: str):
    """Delete a project. Committed matches are not affected."""
    service = CsvProjectService(ctx.obj["db"])
    found = resolve_project_or_exit(ctx, service, ctx.obj["company"], project)

    if not click.confirm(f"Are you sure you want to delete project '{found.name}' (ID: {found.id})?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_project(found.id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Deleted project '{found.name}'")


def register_commands(cli):
    """Register project commands with main CLI."""
    cli.add_command(save_project)
    cli.add_command(load_project)
    cli.add_command(project_group, name="project")
