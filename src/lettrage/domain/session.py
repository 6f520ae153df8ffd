"""Reconciliation session state.

A session holds the payment pool of one imported statement, the invoice pool
loaded for the selected period and the active matches between them. Which
payments and invoices are claimed is always derived from the match list, so
there is no per-payment flag that could drift out of sync.
"""

import json
import logging
from dataclasses import replace
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional, Sequence

from lettrage.domain.entities import (
    ColumnMapping,
    CsvImportResult,
    Invoice,
    LettrageStats,
    Match,
    Payment,
    Period,
    ValidationReport,
)
from lettrage.domain.errors import (
    DomainError,
    GatewayError,
    InvalidOperationError,
    ValidationError,
    invoice_not_available,
    match_already_validated,
    match_not_found,
    payment_already_matched,
    payment_not_found,
)
from lettrage.domain.events import EventBus, LETTRAGE_CHANGED
from lettrage.domain.csv_import import CSVImportService
from lettrage.domain.matching import DEFAULT_TOLERANCE, create_match, find_automatic_matches
from lettrage.domain.stats import calculate_stats
from lettrage.utils.date_parser import default_period

if TYPE_CHECKING:
    # Runtime import would cycle through lettrage.database
    from lettrage.database.base import InvoiceProvider, PersistenceGateway

logger = logging.getLogger(__name__)

PAYMENT_FILTERS = ("all", "matched", "unmatched")


# Serialization of the saved state. Payments and matches use camelCase keys,
# invoices keep their storage row shape.

def _decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def _datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def _date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return date.fromisoformat(value[:10])


def payment_to_dict(payment: Payment, is_matched: bool = False) -> dict[str, Any]:
    return {
        "id": payment.id,
        "date": payment.date.isoformat(),
        "amount": str(payment.amount),
        "originalRow": payment.original_row,
        "description": payment.description,
        "isMatched": is_matched,
    }


def payment_from_dict(data: dict[str, Any]) -> Payment:
    return Payment(
        id=data["id"],
        date=_date(data["date"]),
        amount=_decimal(data["amount"]),
        original_row=int(data["originalRow"]),
        description=data.get("description"),
    )


def match_to_dict(match: Match) -> dict[str, Any]:
    return {
        "id": match.id,
        "invoiceId": match.invoice_id,
        "paymentId": match.payment_id,
        "invoiceAmount": str(match.invoice_amount),
        "paymentAmount": str(match.payment_amount),
        "difference": str(match.difference),
        "isAutomatic": match.is_automatic,
        "isValidated": match.is_validated,
        "createdAt": match.created_at.isoformat(),
        "validatedAt": match.validated_at.isoformat() if match.validated_at else None,
    }


def match_from_dict(data: dict[str, Any]) -> Match:
    return Match(
        id=data["id"],
        invoice_id=data["invoiceId"],
        payment_id=data["paymentId"],
        invoice_amount=_decimal(data["invoiceAmount"]),
        payment_amount=_decimal(data["paymentAmount"]),
        difference=_decimal(data["difference"]),
        is_automatic=bool(data["isAutomatic"]),
        is_validated=bool(data["isValidated"]),
        created_at=_datetime(data["createdAt"]),
        validated_at=_datetime(data.get("validatedAt")),
    )


def invoice_to_dict(invoice: Invoice) -> dict[str, Any]:
    return {
        "id": invoice.id,
        "amount": str(invoice.amount) if invoice.amount is not None else None,
        "document_date": invoice.document_date.isoformat() if invoice.document_date else None,
        "name": invoice.name,
        "company_id": invoice.company_id,
    }


def invoice_from_dict(data: dict[str, Any]) -> Invoice:
    return Invoice(
        id=str(data["id"]),
        amount=_decimal(data.get("amount")),
        document_date=_date(data.get("document_date")),
        name=data.get("name"),
        company_id=data.get("company_id"),
    )


class LettrageSession:
    """In-memory working set for one reconciliation."""

    def __init__(self, period: Optional[Period] = None, events: Optional[EventBus] = None):
        """Initialize an empty session.

        Args:
            period: Invoice query window; defaults to January 1st through today
            events: Optional bus notified with LETTRAGE_CHANGED after mutations
        """
        self.events = events
        self.payments: list[Payment] = []
        self.matches: list[Match] = []
        self.invoices: list[Invoice] = []
        self.selected_period = period or Period(*default_period())

    def _notify(self) -> None:
        if self.events is not None:
            self.events.publish(LETTRAGE_CHANGED, self)

    # Derived views
    def matched_payment_ids(self) -> set[str]:
        return {m.payment_id for m in self.matches}

    def matched_invoice_ids(self) -> set[str]:
        return {m.invoice_id for m in self.matches}

    def is_payment_matched(self, payment_id: str) -> bool:
        return payment_id in self.matched_payment_ids()

    def unmatched_payments(self) -> list[Payment]:
        claimed = self.matched_payment_ids()
        return [p for p in self.payments if p.id not in claimed]

    def unmatched_invoices(self) -> list[Invoice]:
        claimed = self.matched_invoice_ids()
        return [inv for inv in self.invoices if inv.id not in claimed]

    def get_payment(self, payment_id: str) -> Optional[Payment]:
        return next((p for p in self.payments if p.id == payment_id), None)

    def get_match(self, match_id: str) -> Optional[Match]:
        return next((m for m in self.matches if m.id == match_id), None)

    def payment_rows(self, which: str = "all") -> list[Payment]:
        """Payments filtered by match status ("all", "matched" or "unmatched")."""
        if which not in PAYMENT_FILTERS:
            raise ValidationError(f"Unknown payment filter '{which}'")
        if which == "matched":
            claimed = self.matched_payment_ids()
            return [p for p in self.payments if p.id in claimed]
        if which == "unmatched":
            return self.unmatched_payments()
        return list(self.payments)

    def search_payments(self, query: str) -> list[Payment]:
        """Payments whose amount, ISO date or description contains ``query``."""
        if not query.strip():
            return list(self.payments)
        term = query.lower()
        return [
            p
            for p in self.payments
            if term in str(p.amount)
            or term in p.date.isoformat()
            or (p.description is not None and term in p.description.lower())
        ]

    def get_stats(self) -> LettrageStats:
        return calculate_stats(self.invoices, self.payments, self.matches)

    # Population
    def import_payments(self, payments: Sequence[Payment]) -> None:
        """Replace the payment pool. Matches on the previous pool are dropped."""
        if self.matches:
            logger.warning("Dropping %d matches from the previous import", len(self.matches))
        self.payments = list(payments)
        self.matches = []
        self._notify()

    def import_csv(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        mapping: ColumnMapping,
    ) -> CsvImportResult:
        """Parse rows with an explicit mapping and load them as the payment pool."""
        result = CSVImportService().import_rows(headers, rows, mapping)
        self.import_payments(result.payments)
        return result

    def update_period(self, start_date: date, end_date: date) -> None:
        if start_date > end_date:
            raise ValidationError(
                f"Period start {start_date.isoformat()} is after end {end_date.isoformat()}"
            )
        self.selected_period = Period(start_date, end_date)
        self._notify()

    def load_invoices(self, provider: "InvoiceProvider", company_id: str) -> list[Invoice]:
        """Fetch unreconciled invoices for the selected period.

        Invoices already held by an active match stay in the pool even when
        the provider no longer returns them (validated invoices are marked
        reconciled at commit time).

        Raises:
            GatewayError: If the provider fails
        """
        period = self.selected_period
        try:
            fetched = provider.get_unmatched_invoices(company_id, period.start_date, period.end_date)
        except DomainError:
            raise
        except Exception as e:
            raise GatewayError(
                "Loading invoices", f"invoice provider unavailable for company '{company_id}'"
            ) from e

        claimed = self.matched_invoice_ids()
        kept = [inv for inv in self.invoices if inv.id in claimed]
        kept_ids = {inv.id for inv in kept}
        self.invoices = kept + [inv for inv in fetched if inv.id not in kept_ids]
        logger.info(
            "Loaded %d unmatched invoices for %s between %s and %s",
            len(fetched),
            company_id,
            period.start_date,
            period.end_date,
        )
        self._notify()
        return list(fetched)

    # Matching operations
    def run_automatic_matching(self, tolerance: Decimal = DEFAULT_TOLERANCE) -> list[Match]:
        """Propose matches between free invoices and free payments.

        Raises:
            InvalidOperationError: If there are no invoices or no payments
        """
        invoices = self.unmatched_invoices()
        if not invoices or not self.payments:
            raise InvalidOperationError("No invoices or payments to compare")

        new_matches = find_automatic_matches(
            invoices,
            self.payments,
            tolerance=tolerance,
            claimed_payment_ids=self.matched_payment_ids(),
        )
        self.matches.extend(new_matches)
        if new_matches:
            self._notify()
        return new_matches

    def add_manual_match(self, invoice_id: str, payment_id: str) -> Match:
        """Link an unmatched invoice to a free payment.

        Raises:
            InvalidOperationError: If the invoice is not unmatched, the
                payment is unknown or the payment is already matched
        """
        invoice = next((inv for inv in self.unmatched_invoices() if inv.id == invoice_id), None)
        if invoice is None:
            raise InvalidOperationError(invoice_not_available(invoice_id))

        payment = self.get_payment(payment_id)
        if payment is None:
            raise InvalidOperationError(payment_not_found(payment_id))
        if self.is_payment_matched(payment_id):
            raise InvalidOperationError(payment_already_matched(payment_id))

        match = create_match(invoice, payment, is_automatic=False)
        self.matches.append(match)
        logger.info("Manual match %s: invoice %s <-> payment %s", match.id, invoice_id, payment_id)
        self._notify()
        return match

    def remove_match(self, match_id: str) -> Match:
        """Remove a proposed match, freeing its payment and invoice.

        Raises:
            InvalidOperationError: If no such match exists or it is validated
        """
        match = self.get_match(match_id)
        if match is None:
            raise InvalidOperationError(match_not_found(match_id))
        if match.is_validated:
            raise InvalidOperationError(match_already_validated(match_id))

        self.matches = [m for m in self.matches if m.id != match_id]
        self._notify()
        return match

    def validate_all(
        self,
        gateway: "PersistenceGateway",
        company_id: str,
        user_id: Optional[str] = None,
    ) -> ValidationReport:
        """Commit every proposed match through the gateway.

        Each match is committed independently: a failure leaves that match
        proposed and is reported, the remaining matches are still committed.
        """
        pending = [m for m in self.matches if not m.is_validated]
        validated: dict[str, Match] = {}
        failures: list[tuple[Match, str]] = []

        for match in pending:
            try:
                gateway.commit_match(match, company_id, user_id)
            except DomainError as e:
                logger.warning("Could not validate match %s: %s", match.id, e)
                failures.append((match, str(e)))
                continue
            except Exception as e:
                logger.exception("Unexpected failure validating match %s", match.id)
                failures.append((match, f"Committing match failed: {type(e).__name__}"))
                continue
            validated[match.id] = replace(match, is_validated=True, validated_at=datetime.now(UTC))

        self.matches = [validated.get(m.id, m) for m in self.matches]
        if validated:
            self._notify()

        report = ValidationReport(
            validated=list(validated.values()), failures=failures, total=len(pending)
        )
        logger.info(report.summary)
        return report

    # Lifecycle
    def reset(self) -> None:
        """Clear everything and restore the default period."""
        self.payments = []
        self.matches = []
        self.invoices = []
        self.selected_period = Period(*default_period())
        self._notify()

    def to_dict(self) -> dict[str, Any]:
        claimed = self.matched_payment_ids()
        return {
            "csvPayments": [payment_to_dict(p, p.id in claimed) for p in self.payments],
            "matches": [match_to_dict(m) for m in self.matches],
            "unmatchedInvoices": [invoice_to_dict(inv) for inv in self.invoices],
            "unmatchedPayments": [payment_to_dict(p) for p in self.unmatched_payments()],
        }

    def serialize(self) -> str:
        return json.dumps(self.to_dict())

    def restore(self, state: str | dict[str, Any] | None) -> bool:
        """Replace payments, matches and invoices from a saved state.

        The selected period of the live session is kept. Matches pointing at
        a missing payment, or claiming an invoice or payment a previous match
        already claims, are dropped.

        Returns:
            False if there was nothing to restore, True otherwise

        Raises:
            ValidationError: If the saved state is malformed
        """
        if not state:
            return False

        try:
            data = json.loads(state) if isinstance(state, str) else state
            payments = [payment_from_dict(p) for p in data.get("csvPayments", data.get("payments", []))]
            matches = [match_from_dict(m) for m in data.get("matches", [])]
            invoices = [invoice_from_dict(inv) for inv in data.get("unmatchedInvoices", [])]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise ValidationError(f"Saved lettrage state is malformed: {e}") from e

        payment_ids = {p.id for p in payments}
        used_payments: set[str] = set()
        used_invoices: set[str] = set()
        kept: list[Match] = []
        for match in matches:
            if (
                match.payment_id not in payment_ids
                or match.payment_id in used_payments
                or match.invoice_id in used_invoices
            ):
                logger.warning("Dropping inconsistent saved match %s", match.id)
                continue
            used_payments.add(match.payment_id)
            used_invoices.add(match.invoice_id)
            kept.append(match)

        self.payments = payments
        self.matches = kept
        self.invoices = invoices
        logger.info("Restored %d payments and %d matches", len(payments), len(kept))
        self._notify()
        return True
