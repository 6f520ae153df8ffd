"""Reconciliation statistics."""

from decimal import Decimal
from typing import Sequence

from lettrage.domain.entities import Invoice, LettrageStats, Match, Payment


def calculate_stats(
    invoices: Sequence[Invoice],
    payments: Sequence[Payment],
    matches: Sequence[Match],
) -> LettrageStats:
    """Compute aggregate counts and amounts.

    One match claims exactly one invoice and one payment, so the match count
    is both the matched invoice and matched payment count. The matched amount
    uses the invoice-side snapshot of each match.
    """
    total_invoices = len(invoices)
    total_payments = len(payments)
    matched = len(matches)

    total_invoice_amount = sum(
        (inv.amount for inv in invoices if inv.amount is not None), Decimal("0")
    )
    total_payment_amount = sum((p.amount for p in payments), Decimal("0"))
    matched_amount = sum((m.invoice_amount for m in matches), Decimal("0"))

    return LettrageStats(
        total_invoices=total_invoices,
        total_payments=total_payments,
        matched_invoices=matched,
        matched_payments=matched,
        unmatched_invoices=total_invoices - matched,
        unmatched_payments=total_payments - matched,
        total_invoice_amount=total_invoice_amount,
        total_payment_amount=total_payment_amount,
        matched_amount=matched_amount,
        unmatched_invoice_amount=total_invoice_amount - matched_amount,
        matching_rate=(matched / total_invoices * 100) if total_invoices > 0 else 0.0,
    )
