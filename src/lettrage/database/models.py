"""SQLAlchemy models for lettrage database."""

import uuid
from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Column,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


class Invoice(Base):
    """Company document carrying an amount to reconcile."""

    __tablename__ = "files"

    id = Column(String, primary_key=True, default=_new_id)
    company_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=True)
    document_date = Column(Date, nullable=True)
    # Plain column: files and lettrage_matches reference each other
    lettrage_match_id = Column(String, nullable=True)
    is_lettree = Column(Boolean, default=False, nullable=False)
    lettrage_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    match_records = relationship("LettrageMatchRecord", back_populates="invoice")


class LettrageMatchRecord(Base):
    """Validated match between an invoice and a statement payment."""

    __tablename__ = "lettrage_matches"

    id = Column(String, primary_key=True, default=_new_id)
    invoice_id = Column(String, ForeignKey("files.id"), nullable=False)
    payment_id = Column(String, nullable=False)
    session_match_id = Column(String, nullable=False)
    invoice_amount = Column(Numeric(12, 2), nullable=False)
    payment_amount = Column(Numeric(12, 2), nullable=False)
    difference = Column(Numeric(12, 2), nullable=False)
    is_automatic = Column(Boolean, default=False, nullable=False)
    is_validated = Column(Boolean, default=True, nullable=False)
    validated_at = Column(DateTime, default=_now, nullable=False)
    company_id = Column(String, nullable=False, index=True)
    created_by = Column(String, nullable=True)

    # Relationships
    invoice = relationship("Invoice", back_populates="match_records")


class CsvProject(Base):
    """Saved reconciliation project."""

    __tablename__ = "csv_projects"

    id = Column(String, primary_key=True, default=_new_id)
    company_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    project_date = Column(Date, nullable=False)
    csv_file_name = Column(String, nullable=False)
    csv_data = Column(Text, nullable=False)
    csv_headers = Column(JSON, nullable=False)
    column_mapping = Column(JSON, nullable=False)
    lettrage_state = Column(Text, nullable=True)
    is_completed = Column(Boolean, default=False, nullable=False)
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
