"""Domain model entities for lettrage.

These are pure data classes representing reconciliation concepts, independent
of the database schema. They are immutable: the reconciliation state that
changes over time (which payment is claimed, which match is validated) lives
in the session, never on the entities themselves.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Payment:
    """One parsed row of a bank statement CSV."""

    id: str
    date: date
    amount: Decimal
    original_row: int
    description: Optional[str] = None


@dataclass(frozen=True)
class Invoice:
    """Invoice awaiting reconciliation. Read-only to the engine."""

    id: str
    amount: Optional[Decimal]
    document_date: Optional[date] = None
    name: Optional[str] = None
    company_id: Optional[str] = None


@dataclass(frozen=True)
class Match:
    """Link between exactly one invoice and one payment.

    Amounts are snapshots taken when the match is created so that later edits
    to the invoice do not change historical match facts.
    """

    id: str
    invoice_id: str
    payment_id: str
    invoice_amount: Decimal
    payment_amount: Decimal
    difference: Decimal
    is_automatic: bool
    is_validated: bool
    created_at: datetime
    validated_at: Optional[datetime] = None


@dataclass(frozen=True)
class MatchRecord:
    """A committed match as stored by the persistence gateway."""

    id: str
    invoice_id: str
    payment_id: str
    invoice_amount: Decimal
    payment_amount: Decimal
    difference: Decimal
    is_automatic: bool
    validated_at: datetime
    company_id: str
    created_by: Optional[str]


@dataclass(frozen=True)
class Period:
    """Inclusive invoice query window."""

    start_date: date
    end_date: date


@dataclass(frozen=True)
class ColumnMapping:
    """Zero-based column indexes used to read payments from CSV rows."""

    date_column: int
    amount_column: int
    description_column: Optional[int] = None


@dataclass(frozen=True)
class SkippedRow:
    """A CSV row that did not produce a payment."""

    row: int
    reason: str


@dataclass(frozen=True)
class CsvImportResult:
    """Payments parsed from a CSV along with the rows that were skipped."""

    payments: list[Payment]
    skipped: list[SkippedRow] = field(default_factory=list)


@dataclass(frozen=True)
class LettrageStats:
    """Aggregate view over invoices, payments and matches."""

    total_invoices: int
    total_payments: int
    matched_invoices: int
    matched_payments: int
    unmatched_invoices: int
    unmatched_payments: int
    total_invoice_amount: Decimal
    total_payment_amount: Decimal
    matched_amount: Decimal
    unmatched_invoice_amount: Decimal
    matching_rate: float


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of committing every proposed match."""

    validated: list[Match]
    failures: list[tuple[Match, str]]
    total: int

    @property
    def is_complete(self) -> bool:
        """True when every proposed match was committed."""
        return not self.failures

    @property
    def summary(self) -> str:
        return f"{len(self.validated)} of {self.total} matches validated"


@dataclass(frozen=True)
class CsvProject:
    """Saved reconciliation project."""

    id: str
    name: str
    description: Optional[str]
    project_date: date
    csv_file_name: str
    csv_data: str
    csv_headers: list[str]
    column_mapping: ColumnMapping
    lettrage_state: Optional[str]
    is_completed: bool
    company_id: str
    created_by: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class CsvProjectListItem:
    """Project summary for list views."""

    id: str
    name: str
    description: Optional[str]
    project_date: date
    csv_file_name: str
    is_completed: bool
    created_at: datetime
    updated_at: datetime
    total_payments: int
    matched_count: int
    unmatched_count: int
