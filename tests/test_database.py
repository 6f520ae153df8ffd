"""Tests for the SQLAlchemy invoice provider and persistence gateway."""

from datetime import date
from decimal import Decimal

import pytest
from conftest import make_payment
from lettrage.database.base import Database, InvoiceProvider, PersistenceGateway
from lettrage.domain.entities import ColumnMapping, Invoice
from lettrage.domain.errors import ConflictError, GatewayError, NotFoundError, ValidationError
from lettrage.domain.matching import create_match


def _match(invoice_id: str, amount: str = "150.00", payment_id: str = "csv_1"):
    invoice = Invoice(id=invoice_id, amount=Decimal(amount))
    return create_match(invoice, make_payment(payment_id, amount), is_automatic=True)


def test_database_implements_collaborator_interfaces(temp_db):
    assert isinstance(temp_db, Database)
    assert isinstance(temp_db, InvoiceProvider)
    assert isinstance(temp_db, PersistenceGateway)


def test_create_and_get_invoice(temp_db):
    invoice_id = temp_db.create_invoice("acme", "Facture A", Decimal("150.00"), date(2024, 3, 1))

    invoice = temp_db.get_invoice(invoice_id)
    assert invoice.id == invoice_id
    assert invoice.amount == Decimal("150.00")
    assert invoice.document_date == date(2024, 3, 1)
    assert invoice.company_id == "acme"
    assert temp_db.get_invoice("missing") is None


def test_create_invoice_duplicate_id(seeded_db):
    with pytest.raises(ConflictError):
        seeded_db.create_invoice("acme", "Again", Decimal("1"), None, invoice_id="I1")


def test_get_unmatched_invoices_filters_window_and_company(seeded_db):
    invoices = seeded_db.get_unmatched_invoices("acme", date(2024, 1, 1), date(2024, 12, 31))

    # Most recent first
    assert [inv.id for inv in invoices] == ["I1", "I2"]


def test_get_unmatched_invoices_window_is_inclusive(seeded_db):
    invoices = seeded_db.get_unmatched_invoices("acme", date(2023, 12, 31), date(2024, 2, 1))
    assert [inv.id for inv in invoices] == ["I2", "I3"]


def test_get_unmatched_invoices_excludes_null_amounts(temp_db):
    temp_db.create_invoice("acme", "Sans montant", None, date(2024, 3, 1), invoice_id="N1")

    assert temp_db.get_unmatched_invoices("acme", date(2024, 1, 1), date(2024, 12, 31)) == []


def test_commit_match_marks_invoice_reconciled(seeded_db):
    match = _match("I1")

    record_id = seeded_db.commit_match(match, "acme", "alice")

    record = seeded_db.get_match_record(record_id)
    assert record.invoice_id == "I1"
    assert record.payment_id == "csv_1"
    assert record.invoice_amount == Decimal("150.00")
    assert record.created_by == "alice"
    assert record.validated_at.tzinfo is not None
    unmatched = seeded_db.get_unmatched_invoices("acme", date(2024, 1, 1), date(2024, 12, 31))
    assert [inv.id for inv in unmatched] == ["I2"]
    assert [inv.id for inv in seeded_db.list_invoices("acme", reconciled=True)] == ["I1"]


def test_commit_match_twice_for_same_invoice(seeded_db):
    seeded_db.commit_match(_match("I1"), "acme")

    with pytest.raises(ConflictError, match="already reconciled"):
        seeded_db.commit_match(_match("I1", payment_id="csv_2"), "acme")
    assert len(seeded_db.list_match_records("acme")) == 1


def test_commit_match_unknown_invoice(seeded_db):
    with pytest.raises(NotFoundError):
        seeded_db.commit_match(_match("I404"), "acme")


def test_cancel_match_restores_invoice(seeded_db):
    record_id = seeded_db.commit_match(_match("I1"), "acme")

    seeded_db.cancel_match(record_id, "I1")

    assert seeded_db.get_match_record(record_id) is None
    unmatched = seeded_db.get_unmatched_invoices("acme", date(2024, 1, 1), date(2024, 12, 31))
    assert [inv.id for inv in unmatched] == ["I1", "I2"]


def test_cancel_match_errors(seeded_db):
    record_id = seeded_db.commit_match(_match("I1"), "acme")

    with pytest.raises(NotFoundError):
        seeded_db.cancel_match("missing", "I1")
    with pytest.raises(ValidationError):
        seeded_db.cancel_match(record_id, "I2")


def test_project_state_round_trip(temp_db):
    project_id = temp_db.create_project(
        company_id="acme",
        name="Mars",
        project_date=date(2024, 3, 31),
        csv_file_name="mars.csv",
        csv_data="Date;Montant\n",
        csv_headers=["Date", "Montant"],
        column_mapping=ColumnMapping(0, 1),
    )

    assert temp_db.load_project_state(project_id) is None
    temp_db.save_project_state(project_id, '{"matches": []}')

    assert temp_db.load_project_state(project_id) == '{"matches": []}'
    project = temp_db.get_project(project_id)
    assert project.column_mapping == ColumnMapping(0, 1)
    assert project.csv_headers == ["Date", "Montant"]


def test_project_state_missing_project(temp_db):
    with pytest.raises(NotFoundError):
        temp_db.load_project_state("missing")
    with pytest.raises(NotFoundError):
        temp_db.save_project_state("missing", "{}")


def test_storage_failure_becomes_gateway_error(temp_db):
    with pytest.raises(GatewayError, match="Creating project failed"):
        temp_db.create_project(
            company_id="acme",
            name=None,
            project_date=date(2024, 3, 31),
            csv_file_name="mars.csv",
            csv_data="",
            csv_headers=[],
            column_mapping=ColumnMapping(0, 1),
        )

    # The session is usable again after the rollback
    assert temp_db.list_projects("acme") == []
