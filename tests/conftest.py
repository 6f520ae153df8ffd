"""Shared pytest fixtures for lettrage tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
from pathlib import Path
import pytest

from lettrage.database.factories import create_sqlite_database
from lettrage.domain.entities import Invoice, Payment, Period
from lettrage.domain.projects import CsvProjectService
from lettrage.domain.session import LettrageSession


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def project_service(temp_db):
    """Create a CsvProjectService with a temporary database."""
    return CsvProjectService(temp_db)


@pytest.fixture
def period():
    """Invoice window covering the sample invoices."""
    return Period(date(2024, 1, 1), date(2024, 12, 31))


@pytest.fixture
def session(period):
    """Empty session on the sample period."""
    return LettrageSession(period=period)


def make_payment(payment_id: str, amount: str, row: int = 1, on: date = date(2024, 3, 15)) -> Payment:
    return Payment(
        id=payment_id,
        date=on,
        amount=Decimal(amount),
        original_row=row,
        description=f"Paiement ligne {row}",
    )


def make_invoice(invoice_id: str, amount: str | None, on: date = date(2024, 3, 1)) -> Invoice:
    return Invoice(
        id=invoice_id,
        amount=Decimal(amount) if amount is not None else None,
        document_date=on,
        name=f"Facture {invoice_id}",
        company_id="acme",
    )


@pytest.fixture
def sample_payments():
    """Payments P1=150.00, P2=89.90, P3=300.00."""
    return [
        make_payment("csv_1", "150.00", row=1),
        make_payment("csv_2", "89.90", row=2),
        make_payment("csv_3", "300.00", row=3),
    ]


@pytest.fixture
def sample_invoices():
    """Invoices I1=150.00, I2=300.00, I3=42.00."""
    return [
        make_invoice("I1", "150.00"),
        make_invoice("I2", "300.00"),
        make_invoice("I3", "42.00"),
    ]


@pytest.fixture
def loaded_session(session, sample_invoices, sample_payments):
    """Session holding the sample invoice and payment pools."""
    session.invoices = list(sample_invoices)
    session.import_payments(sample_payments)
    return session


class StubGateway:
    """In-memory persistence gateway that can be told to reject invoices."""

    def __init__(self, reject: tuple[str, ...] = ()):
        self.reject = set(reject)
        self.committed = []

    def commit_match(self, match, company_id, user_id=None):
        from lettrage.domain.errors import ConflictError

        if match.invoice_id in self.reject:
            raise ConflictError(f"Invoice '{match.invoice_id}' is already reconciled")
        self.committed.append((match, company_id, user_id))
        return f"record-{len(self.committed)}"

    def cancel_match(self, match_record_id, invoice_id):
        pass

    def save_project_state(self, project_id, serialized_state):
        pass

    def load_project_state(self, project_id):
        return None


@pytest.fixture
def stub_gateway():
    return StubGateway()


@pytest.fixture
def seeded_db(temp_db):
    """Database with three invoices for company 'acme' and one for another company."""
    temp_db.create_invoice("acme", "Facture A", Decimal("150.00"), date(2024, 3, 1), invoice_id="I1")
    temp_db.create_invoice("acme", "Facture B", Decimal("300.00"), date(2024, 2, 1), invoice_id="I2")
    temp_db.create_invoice("acme", "Facture C", Decimal("42.00"), date(2023, 12, 31), invoice_id="I3")
    temp_db.create_invoice("other", "Facture D", Decimal("150.00"), date(2024, 3, 1), invoice_id="I4")
    return temp_db


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
