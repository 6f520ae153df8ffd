"""CSV project domain service."""

import json
import logging
from datetime import date
from typing import TYPE_CHECKING, Optional

from lettrage.domain.entities import ColumnMapping, CsvProject, CsvProjectListItem
from lettrage.domain.errors import NotFoundError, ValidationError, project_not_found
from lettrage.domain.session import LettrageSession

if TYPE_CHECKING:
    from lettrage.database.base import Database

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"name", "description", "project_date", "lettrage_state", "is_completed"}


def _state_counts(lettrage_state: Optional[str]) -> tuple[int, int, int]:
    """Return (total payments, matched, unmatched) from a saved state."""
    if not lettrage_state:
        return (0, 0, 0)
    try:
        data = json.loads(lettrage_state)
    except ValueError:
        logger.warning("Ignoring unreadable lettrage state in project list")
        return (0, 0, 0)
    if not isinstance(data, dict):
        logger.warning("Ignoring lettrage state that is not a JSON object in project list")
        return (0, 0, 0)
    payments = data.get("csvPayments")
    matches = data.get("matches")
    total = len(payments) if isinstance(payments, list) else 0
    matched = len(matches) if isinstance(matches, list) else 0
    return (total, matched, max(total - matched, 0))


def _list_item(project: CsvProject) -> CsvProjectListItem:
    total, matched, unmatched = _state_counts(project.lettrage_state)
    return CsvProjectListItem(
        id=project.id,
        name=project.name,
        description=project.description,
        project_date=project.project_date,
        csv_file_name=project.csv_file_name,
        is_completed=project.is_completed,
        created_at=project.created_at,
        updated_at=project.updated_at,
        total_payments=total,
        matched_count=matched,
        unmatched_count=unmatched,
    )


class CsvProjectService:
    """Service for saving and restoring reconciliation projects."""

    def __init__(self, db: "Database"):
        """Initialize CSV project service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_project(
        self,
        company_id: str,
        name: str,
        csv_file_name: str,
        csv_data: str,
        csv_headers: list[str],
        column_mapping: ColumnMapping,
        project_date: Optional[date] = None,
        description: Optional[str] = None,
        lettrage_state: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> str:
        """Create a CSV project.

        Returns:
            Project ID

        Raises:
            ValidationError: If the name is empty
        """
        if not name or not name.strip():
            raise ValidationError("Project name cannot be empty")

        project_id = self.db.create_project(
            company_id=company_id,
            name=name.strip(),
            project_date=project_date or date.today(),
            csv_file_name=csv_file_name,
            csv_data=csv_data,
            csv_headers=list(csv_headers),
            column_mapping=column_mapping,
            description=description,
            lettrage_state=lettrage_state,
            created_by=created_by,
        )
        logger.info("Created CSV project %s (%s)", project_id, name)
        return project_id

    def get_project(self, project_id: str) -> Optional[CsvProject]:
        return self.db.get_project(project_id)

    def require_project(self, project_id: str) -> CsvProject:
        """Get a project or raise NotFoundError."""
        project = self.db.get_project(project_id)
        if project is None:
            raise NotFoundError(project_not_found(project_id))
        return project

    def list_projects(self, company_id: str) -> list[CsvProjectListItem]:
        """List projects with payment and match counts from their saved state."""
        return [_list_item(p) for p in self.db.list_projects(company_id)]

    def search_projects(self, company_id: str, search_term: str) -> list[CsvProjectListItem]:
        """Projects whose name or description contains the term (case-insensitive)."""
        term = search_term.strip().lower()
        if not term:
            return self.list_projects(company_id)
        return [
            _list_item(p)
            for p in self.db.list_projects(company_id)
            if term in p.name.lower() or (p.description and term in p.description.lower())
        ]

    def update_project(self, project_id: str, **fields) -> None:
        """Update project fields.

        Raises:
            NotFoundError: If the project does not exist
            ValidationError: If an unknown field is given
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update project fields: {', '.join(sorted(unknown))}")
        self.require_project(project_id)
        self.db.update_project(project_id, **fields)

    def delete_project(self, project_id: str) -> None:
        self.require_project(project_id)
        self.db.delete_project(project_id)
        logger.info("Deleted CSV project %s", project_id)

    def mark_completed(self, project_id: str) -> None:
        self.update_project(project_id, is_completed=True)

    def save_lettrage_state(self, project_id: str, session: LettrageSession) -> None:
        """Serialize a session into a project."""
        self.require_project(project_id)
        self.db.save_project_state(project_id, session.serialize())
        logger.info("Saved lettrage state of project %s", project_id)

    def load_lettrage_state(self, project_id: str) -> Optional[dict]:
        """Return the saved state of a project, or None if nothing was saved.

        Raises:
            NotFoundError: If the project does not exist
            ValidationError: If the saved state is not a JSON object
        """
        self.require_project(project_id)
        blob = self.db.load_project_state(project_id)
        if not blob:
            return None
        try:
            data = json.loads(blob)
        except ValueError as e:
            raise ValidationError(f"Saved lettrage state of project '{project_id}' is not valid JSON") from e
        if data is None:
            return None
        if not isinstance(data, dict):
            raise ValidationError(f"Saved lettrage state of project '{project_id}' is not a JSON object")
        return data

    def restore_into(self, project_id: str, session: LettrageSession) -> bool:
        """Restore a project's saved state into a live session.

        The session keeps its selected period.
        """
        return session.restore(self.load_lettrage_state(project_id))

    def duplicate_project(
        self, project_id: str, new_name: str, company_id: str, created_by: Optional[str] = None
    ) -> str:
        """Copy a project, including its saved state, under a new name."""
        original = self.require_project(project_id)
        return self.create_project(
            company_id=company_id,
            name=new_name,
            csv_file_name=original.csv_file_name,
            csv_data=original.csv_data,
            csv_headers=original.csv_headers,
            column_mapping=original.column_mapping,
            project_date=original.project_date,
            description=f'Copie de "{original.name}"',
            lettrage_state=original.lettrage_state,
            created_by=created_by,
        )
