"""CLI helpers for project resolution."""

from __future__ import annotations

import click
from lettrage.domain.entities import CsvProject
from lettrage.domain.errors import NotFoundError, ValidationError
from lettrage.domain.projects import CsvProjectService


def find_project(service: CsvProjectService, company_id: str, project: str) -> CsvProject | None:
    """Find a project by ID, or by exact name within the company.

    Raises:
        ValidationError: If several projects of the company share the name
    """
    found = service.get_project(project)
    if found is not None and found.company_id == company_id:
        return found

    named = [p for p in service.list_projects(company_id) if p.name == project]
    if len(named) > 1:
        raise ValidationError(f"Several projects are named '{project}'; use the project ID")
    if named:
        return service.get_project(named[0].id)
    return None


def resolve_project_or_exit(
    ctx: click.Context, service: CsvProjectService, company_id: str, project: str
) -> CsvProject:
    """Resolve project name or ID, or exit with a CLI error."""
    try:
        found = find_project(service, company_id, project)
        if found is None:
            raise NotFoundError(f"Project '{project}' not found")
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
    return found
