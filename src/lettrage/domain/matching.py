"""Automatic and manual matching of invoices against payments."""

import logging
import uuid
from datetime import datetime, UTC
from decimal import Decimal
from typing import Iterable, Sequence

from lettrage.domain.entities import Invoice, Match, Payment

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = Decimal("0.01")


def create_match(invoice: Invoice, payment: Payment, is_automatic: bool) -> Match:
    """Build a proposed match snapshotting both amounts.

    A missing invoice amount is treated as zero.
    """
    invoice_amount = invoice.amount if invoice.amount is not None else Decimal("0")
    return Match(
        id=str(uuid.uuid4()),
        invoice_id=invoice.id,
        payment_id=payment.id,
        invoice_amount=invoice_amount,
        payment_amount=payment.amount,
        difference=abs(invoice_amount - payment.amount),
        is_automatic=is_automatic,
        is_validated=False,
        created_at=datetime.now(UTC),
    )


def find_automatic_matches(
    invoices: Sequence[Invoice],
    payments: Sequence[Payment],
    tolerance: Decimal = DEFAULT_TOLERANCE,
    claimed_payment_ids: Iterable[str] = (),
) -> list[Match]:
    """Propose matches with a greedy first-fit pass.

    Invoices are visited in the order given and, for each one, payments are
    scanned in the order given. The first unclaimed payment whose amount is
    within ``tolerance`` of the invoice amount wins, even when a later payment
    would be closer. Inputs are never mutated.

    Args:
        invoices: Candidate invoices, in provider order
        payments: Candidate payments, in CSV row order
        tolerance: Maximum absolute amount difference (inclusive)
        claimed_payment_ids: Payments already held by an active match

    Returns:
        Only the newly proposed matches
    """
    if tolerance < 0:
        raise ValueError(f"Tolerance must be non-negative, got {tolerance}")

    used_payments = set(claimed_payment_ids)
    used_invoices: set[str] = set()
    matches: list[Match] = []

    for invoice in invoices:
        if invoice.id in used_invoices or not invoice.amount:
            continue

        for payment in payments:
            if payment.id in used_payments:
                continue

            if abs(invoice.amount - payment.amount) <= tolerance:
                matches.append(create_match(invoice, payment, is_automatic=True))
                used_payments.add(payment.id)
                used_invoices.add(invoice.id)
                break

    logger.info("Found %d automatic matches (tolerance %s)", len(matches), tolerance)
    return matches
