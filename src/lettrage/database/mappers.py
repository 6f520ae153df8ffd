"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, making it easy to change when
the database schema changes.
"""

from datetime import datetime, UTC
from typing import Any, Optional

from lettrage.domain import entities as domain
from lettrage.database.models import (
    Invoice as ORMInvoice,
    LettrageMatchRecord as ORMLettrageMatchRecord,
    CsvProject as ORMCsvProject,
)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo; stored datetimes are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def column_mapping_to_json(mapping: domain.ColumnMapping) -> dict[str, Any]:
    return {
        "dateColumn": mapping.date_column,
        "amountColumn": mapping.amount_column,
        "descriptionColumn": mapping.description_column,
    }


def column_mapping_from_json(data: dict[str, Any]) -> domain.ColumnMapping:
    return domain.ColumnMapping(
        date_column=int(data["dateColumn"]),
        amount_column=int(data["amountColumn"]),
        description_column=(
            int(data["descriptionColumn"]) if data.get("descriptionColumn") is not None else None
        ),
    )


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model to domain Invoice entity."""
    return domain.Invoice(
        id=orm_invoice.id,
        amount=orm_invoice.amount,
        document_date=orm_invoice.document_date,
        name=orm_invoice.name,
        company_id=orm_invoice.company_id,
    )


def match_record_to_domain(orm_record: ORMLettrageMatchRecord) -> domain.MatchRecord:
    """Convert SQLAlchemy LettrageMatchRecord model to domain MatchRecord entity."""
    return domain.MatchRecord(
        id=orm_record.id,
        invoice_id=orm_record.invoice_id,
        payment_id=orm_record.payment_id,
        invoice_amount=orm_record.invoice_amount,
        payment_amount=orm_record.payment_amount,
        difference=orm_record.difference,
        is_automatic=orm_record.is_automatic,
        validated_at=_aware(orm_record.validated_at),
        company_id=orm_record.company_id,
        created_by=orm_record.created_by,
    )


def csv_project_to_domain(orm_project: ORMCsvProject) -> domain.CsvProject:
    """Convert SQLAlchemy CsvProject model to domain CsvProject entity."""
    return domain.CsvProject(
        id=orm_project.id,
        name=orm_project.name,
        description=orm_project.description,
        project_date=orm_project.project_date,
        csv_file_name=orm_project.csv_file_name,
        csv_data=orm_project.csv_data,
        csv_headers=list(orm_project.csv_headers or []),
        column_mapping=column_mapping_from_json(orm_project.column_mapping),
        lettrage_state=orm_project.lettrage_state,
        is_completed=orm_project.is_completed,
        company_id=orm_project.company_id,
        created_by=orm_project.created_by,
        created_at=_aware(orm_project.created_at),
        updated_at=_aware(orm_project.updated_at),
    )
