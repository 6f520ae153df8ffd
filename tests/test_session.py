"""Tests for the reconciliation session."""

import json
from datetime import date
from decimal import Decimal

import pytest
from conftest import StubGateway, make_invoice, make_payment
from lettrage.domain.entities import ColumnMapping, Period
from lettrage.domain.errors import GatewayError, InvalidOperationError, ValidationError
from lettrage.domain.session import LettrageSession


def _assert_exclusive(session):
    invoice_ids = [m.invoice_id for m in session.matches]
    payment_ids = [m.payment_id for m in session.matches]
    assert len(invoice_ids) == len(set(invoice_ids))
    assert len(payment_ids) == len(set(payment_ids))


def test_new_session_defaults_to_year_to_date():
    session = LettrageSession()
    today = date.today()
    assert session.selected_period == Period(date(today.year, 1, 1), today)


def test_end_to_end_scenarios(session):
    # 1. Import
    headers = ["Date", "Montant", "Libelle"]
    rows = [headers, ["01/03/2024", "150,00", "Loyer"], ["02/03/2024", "89.90", "Fournitures"]]
    session.import_csv(headers, rows, ColumnMapping(0, 1, 2))

    assert [p.amount for p in session.payments] == [Decimal("150.00"), Decimal("89.90")]
    assert [p.date for p in session.payments] == [date(2024, 3, 1), date(2024, 3, 2)]

    # 2. Automatic matching
    session.invoices = [make_invoice("i1", "150.0"), make_invoice("i2", "90.0")]
    new_matches = session.run_automatic_matching(Decimal("0.01"))

    assert [(m.invoice_id, m.payment_id) for m in new_matches] == [("i1", "csv_1")]
    assert new_matches[0].difference == Decimal("0")
    assert session.get_stats().unmatched_payments == 1

    # 3. Manual match
    manual = session.add_manual_match("i2", "csv_2")

    assert manual.difference == Decimal("0.10")
    assert manual.is_automatic is False
    assert session.is_payment_matched("csv_2")

    # 4. Remove
    session.remove_match(manual.id)

    assert not session.is_payment_matched("csv_2")
    assert session.get_stats().unmatched_payments == 1
    assert [p.id for p in session.unmatched_payments()] == ["csv_2"]

    # 5. Validate
    session.add_manual_match("i2", "csv_2")
    gateway = StubGateway()
    report = session.validate_all(gateway, "acme", "alice")

    assert report.is_complete
    assert report.summary == "2 of 2 matches validated"
    assert all(m.is_validated and m.validated_at is not None for m in session.matches)
    assert len(gateway.committed) == 2
    assert gateway.committed[0][1:] == ("acme", "alice")


def test_unparseable_amount_is_skipped(session):
    headers = ["Date", "Montant"]
    rows = [headers, ["01/03/2024", "N/A"], ["02/03/2024", "10,00"]]

    result = session.import_csv(headers, rows, ColumnMapping(0, 1))

    assert len(session.payments) == 1
    assert len(result.skipped) == 1


def test_import_payments_replaces_pool_and_drops_matches(loaded_session):
    loaded_session.run_automatic_matching()
    assert loaded_session.matches

    loaded_session.import_payments([make_payment("csv_1", "1.00")])

    assert loaded_session.matches == []
    assert [p.id for p in loaded_session.payments] == ["csv_1"]


def test_run_automatic_matching_requires_both_pools(session, sample_payments):
    session.import_payments(sample_payments)

    with pytest.raises(InvalidOperationError, match="No invoices or payments"):
        session.run_automatic_matching()


def test_rerun_matching_only_adds_new_matches(loaded_session):
    first = loaded_session.run_automatic_matching()
    second = loaded_session.run_automatic_matching()

    assert len(first) == 2
    assert second == []
    assert len(loaded_session.matches) == 2
    _assert_exclusive(loaded_session)


def test_manual_match_rejects_claimed_payment(loaded_session):
    loaded_session.run_automatic_matching()

    with pytest.raises(InvalidOperationError, match="already matched"):
        loaded_session.add_manual_match("I3", "csv_1")
    _assert_exclusive(loaded_session)


def test_manual_match_rejects_claimed_invoice(loaded_session):
    loaded_session.run_automatic_matching()

    with pytest.raises(InvalidOperationError, match="not among the unmatched invoices"):
        loaded_session.add_manual_match("I1", "csv_2")


def test_manual_match_rejects_unknown_ids(loaded_session):
    with pytest.raises(InvalidOperationError):
        loaded_session.add_manual_match("nope", "csv_1")
    with pytest.raises(InvalidOperationError, match="not found"):
        loaded_session.add_manual_match("I1", "csv_99")
    assert loaded_session.matches == []


def test_remove_then_rematch(loaded_session):
    match = loaded_session.run_automatic_matching()[0]

    loaded_session.remove_match(match.id)
    rematched = loaded_session.add_manual_match("I3", match.payment_id)

    assert rematched.payment_id == match.payment_id
    _assert_exclusive(loaded_session)


def test_remove_unknown_match(loaded_session):
    with pytest.raises(InvalidOperationError, match="not found"):
        loaded_session.remove_match("missing")


def test_remove_validated_match_rejected(loaded_session):
    loaded_session.run_automatic_matching()
    loaded_session.validate_all(StubGateway(), "acme")
    match = loaded_session.matches[0]

    with pytest.raises(InvalidOperationError, match="cancel it instead"):
        loaded_session.remove_match(match.id)


def test_validate_all_continues_on_error(loaded_session):
    loaded_session.run_automatic_matching()

    report = loaded_session.validate_all(StubGateway(reject=("I1",)), "acme")

    assert not report.is_complete
    assert report.summary == "1 of 2 matches validated"
    assert [m.invoice_id for m, _ in report.failures] == ["I1"]
    by_invoice = {m.invoice_id: m for m in loaded_session.matches}
    assert by_invoice["I1"].is_validated is False
    assert by_invoice["I2"].is_validated is True


def test_validate_all_skips_already_validated(loaded_session):
    loaded_session.run_automatic_matching()
    loaded_session.validate_all(StubGateway(), "acme")

    gateway = StubGateway()
    report = loaded_session.validate_all(gateway, "acme")

    assert report.total == 0
    assert gateway.committed == []


def test_validate_all_reports_unexpected_gateway_failure(loaded_session):
    class BrokenGateway(StubGateway):
        def commit_match(self, match, company_id, user_id=None):
            raise ConnectionError("down")

    loaded_session.run_automatic_matching()
    report = loaded_session.validate_all(BrokenGateway(), "acme")

    assert len(report.failures) == 2
    assert "ConnectionError" in report.failures[0][1]


def test_update_period_rejects_inverted_window(session):
    with pytest.raises(ValidationError):
        session.update_period(date(2024, 5, 1), date(2024, 4, 1))


def test_load_invoices_keeps_matched_invoices(loaded_session):
    loaded_session.run_automatic_matching()

    class Provider:
        def get_unmatched_invoices(self, company_id, start_date, end_date):
            self.args = (company_id, start_date, end_date)
            return [make_invoice("I3", "42.00"), make_invoice("I9", "9.00")]

    provider = Provider()
    fetched = loaded_session.load_invoices(provider, "acme")

    assert [inv.id for inv in fetched] == ["I3", "I9"]
    assert provider.args == ("acme", date(2024, 1, 1), date(2024, 12, 31))
    assert [inv.id for inv in loaded_session.invoices] == ["I1", "I2", "I3", "I9"]
    assert [inv.id for inv in loaded_session.unmatched_invoices()] == ["I3", "I9"]


def test_load_invoices_wraps_provider_failure(session):
    class Provider:
        def get_unmatched_invoices(self, company_id, start_date, end_date):
            raise OSError("connection refused")

    with pytest.raises(GatewayError, match="Loading invoices failed"):
        session.load_invoices(Provider(), "acme")


def test_search_and_filters(loaded_session):
    loaded_session.run_automatic_matching()

    assert [p.id for p in loaded_session.search_payments("89.9")] == ["csv_2"]
    assert [p.id for p in loaded_session.search_payments("LIGNE 3")] == ["csv_3"]
    assert len(loaded_session.search_payments("  ")) == 3
    assert [p.id for p in loaded_session.payment_rows("matched")] == ["csv_1", "csv_3"]
    assert [p.id for p in loaded_session.payment_rows("unmatched")] == ["csv_2"]
    with pytest.raises(ValidationError):
        loaded_session.payment_rows("half")


def test_serialized_blob_shape(loaded_session):
    loaded_session.run_automatic_matching()

    data = json.loads(loaded_session.serialize())

    assert set(data) == {"csvPayments", "matches", "unmatchedInvoices", "unmatchedPayments"}
    assert data["csvPayments"][0] == {
        "id": "csv_1",
        "date": "2024-03-15",
        "amount": "150.00",
        "originalRow": 1,
        "description": "Paiement ligne 1",
        "isMatched": True,
    }
    assert [p["id"] for p in data["unmatchedPayments"]] == ["csv_2"]
    assert data["matches"][0]["invoiceId"] == "I1"
    assert data["unmatchedInvoices"][0]["document_date"] == "2024-03-01"


def test_restore_round_trip_keeps_period(loaded_session):
    loaded_session.run_automatic_matching()
    loaded_session.validate_all(StubGateway(reject=("I2",)), "acme")
    blob = loaded_session.serialize()

    restored = LettrageSession(period=Period(date(2023, 1, 1), date(2023, 6, 30)))
    assert restored.restore(blob) is True

    assert restored.payments == loaded_session.payments
    assert restored.matches == loaded_session.matches
    assert restored.invoices == loaded_session.invoices
    assert restored.selected_period == Period(date(2023, 1, 1), date(2023, 6, 30))


def test_restore_nothing(session):
    assert session.restore(None) is False
    assert session.restore("") is False


def test_restore_malformed(session):
    with pytest.raises(ValidationError, match="malformed"):
        session.restore('{"csvPayments": [{"id": "csv_1"}]}')
    with pytest.raises(ValidationError):
        session.restore("not json")


def test_restore_drops_inconsistent_matches(loaded_session):
    loaded_session.run_automatic_matching()
    data = loaded_session.to_dict()
    duplicate = dict(data["matches"][0], id="dup", invoiceId="I3")
    orphan = dict(data["matches"][1], id="orphan", paymentId="csv_404", invoiceId="I9")
    data["matches"] += [duplicate, orphan]

    session = LettrageSession()
    session.restore(data)

    assert [m.id for m in session.matches] == [m.id for m in loaded_session.matches]
    _assert_exclusive(session)


def test_reset(loaded_session):
    loaded_session.run_automatic_matching()
    loaded_session.update_period(date(2020, 1, 1), date(2020, 2, 1))

    loaded_session.reset()

    assert loaded_session.payments == []
    assert loaded_session.matches == []
    assert loaded_session.invoices == []
    assert loaded_session.selected_period.end_date == date.today()
