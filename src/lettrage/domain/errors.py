"""Shared domain error messages and error types."""

from typing import Optional, Sequence


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as an invoice already reconciled."""


class CsvImportError(DomainError):
    """The CSV payload cannot be turned into payments."""

    def __init__(self, message: str, available_headers: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.available_headers = list(available_headers or [])


class InvalidOperationError(DomainError):
    """A reconciliation operation references unknown or already claimed items.

    The session is always left unchanged when this is raised.
    """


class GatewayError(DomainError):
    """A collaborator (invoice provider or persistence gateway) failed."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


def empty_csv() -> str:
    """Return message for an empty CSV payload."""
    return "The CSV file is empty"


def csv_not_utf8(detail: str) -> str:
    """Return message for a CSV file that cannot be decoded."""
    return f"CSV file is not valid UTF-8 ({detail}). Re-save it as UTF-8 and import again"


def malformed_csv(detail: str) -> str:
    """Return message for CSV text the reader rejects."""
    return f"Malformed CSV file: {detail}"


def missing_csv_columns(available_headers: Sequence[str]) -> str:
    """Return message when date/amount columns cannot be detected."""
    return (
        'Missing required columns: "date" and "amount". '
        f"Available columns: {', '.join(available_headers)}"
    )


def invoice_not_available(invoice_id: str) -> str:
    """Return message for an invoice that is unknown or already matched."""
    return f"Invoice '{invoice_id}' is not among the unmatched invoices"


def payment_not_found(payment_id: str) -> str:
    """Return message for a missing payment."""
    return f"Payment '{payment_id}' not found"


def payment_already_matched(payment_id: str) -> str:
    """Return message for a payment claimed by another match."""
    return f"Payment '{payment_id}' is already matched"


def match_not_found(match_id: str) -> str:
    """Return message for a missing match."""
    return f"Match '{match_id}' not found"


def match_already_validated(match_id: str) -> str:
    """Return message when trying to remove a committed match."""
    return f"Match '{match_id}' is validated and cannot be removed; cancel it instead"


def invoice_already_reconciled(invoice_id: str) -> str:
    """Return message for a duplicate commit on the same invoice."""
    return f"Invoice '{invoice_id}' is already reconciled"


def project_not_found(project_id: str) -> str:
    """Return message for a missing CSV project."""
    return f"CSV project '{project_id}' not found"
