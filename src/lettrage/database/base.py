"""Abstract collaborator interfaces."""

from abc import ABC, abstractmethod
from typing import Optional, Any
from datetime import date
from decimal import Decimal

from lettrage.domain.entities import (
    ColumnMapping,
    CsvProject,
    Invoice,
    Match,
    MatchRecord,
)


class InvoiceProvider(ABC):
    """Source of invoices awaiting reconciliation."""

    @abstractmethod
    def get_unmatched_invoices(
        self, company_id: str, start_date: date, end_date: date
    ) -> list[Invoice]:
        """Invoices of a company with a document date in [start_date, end_date].

        Only invoices with an amount and not linked to a committed match are
        returned. The order is stable across calls.
        """
        pass


class PersistenceGateway(ABC):
    """Durable storage for committed matches and saved project state."""

    @abstractmethod
    def commit_match(self, match: Match, company_id: str, user_id: Optional[str] = None) -> str:
        """Record a validated match and mark its invoice reconciled.

        Returns the match record ID. Raises ConflictError when the invoice is
        already reconciled.
        """
        pass

    @abstractmethod
    def cancel_match(self, match_record_id: str, invoice_id: str) -> None:
        """Delete a committed match and unmark its invoice."""
        pass

    @abstractmethod
    def save_project_state(self, project_id: str, serialized_state: str) -> None:
        """Store the serialized lettrage state of a project."""
        pass

    @abstractmethod
    def load_project_state(self, project_id: str) -> Optional[str]:
        """Return the serialized lettrage state of a project, if any."""
        pass


class Database(InvoiceProvider, PersistenceGateway):
    """Abstract database interface for lettrage."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Invoice operations
    @abstractmethod
    def create_invoice(
        self,
        company_id: str,
        name: str,
        amount: Optional[Decimal],
        document_date: Optional[date],
        invoice_id: Optional[str] = None,
    ) -> str:
        """Create an invoice. Returns invoice ID."""
        pass

    @abstractmethod
    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        """Get invoice by ID."""
        pass

    @abstractmethod
    def list_invoices(self, company_id: str, reconciled: Optional[bool] = None) -> list[Invoice]:
        """List invoices of a company, optionally filtered on reconciliation."""
        pass

    # Match record operations
    @abstractmethod
    def get_match_record(self, match_record_id: str) -> Optional[MatchRecord]:
        """Get a committed match by ID."""
        pass

    @abstractmethod
    def list_match_records(self, company_id: str) -> list[MatchRecord]:
        """List committed matches of a company."""
        pass

    # CSV project operations
    @abstractmethod
    def create_project(
        self,
        company_id: str,
        name: str,
        project_date: date,
        csv_file_name: str,
        csv_data: str,
        csv_headers: list[str],
        column_mapping: ColumnMapping,
        description: Optional[str] = None,
        lettrage_state: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> str:
        """Create a CSV project. Returns project ID."""
        pass

    @abstractmethod
    def get_project(self, project_id: str) -> Optional[CsvProject]:
        """Get CSV project by ID."""
        pass

    @abstractmethod
    def list_projects(self, company_id: str) -> list[CsvProject]:
        """List CSV projects of a company, most recently updated first."""
        pass

    @abstractmethod
    def update_project(self, project_id: str, **fields: Any) -> None:
        """Update name, description, project_date, lettrage_state or is_completed."""
        pass

    @abstractmethod
    def delete_project(self, project_id: str) -> None:
        """Delete a CSV project."""
        pass
