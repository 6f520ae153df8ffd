"""CSV import domain service.

Turns tokenized bank statement rows into payments. File reading is a thin
host helper; the parsing entry points only consume already split rows plus
a column mapping.
"""

import csv
import io
import logging
import re
from pathlib import Path
from typing import Optional, Sequence

from lettrage.domain.entities import ColumnMapping, CsvImportResult, Payment, SkippedRow
from lettrage.domain.errors import (
    CsvImportError,
    ValidationError,
    csv_not_utf8,
    empty_csv,
    malformed_csv,
    missing_csv_columns,
)
from lettrage.utils.amount_parser import clean_statement_amount
from lettrage.utils.date_parser import parse_statement_date

logger = logging.getLogger(__name__)

DATE_HEADER_KEYWORDS = ("date", "datum", "jour")
AMOUNT_HEADER_KEYWORDS = ("montant", "amount", "prix", "valeur", "somme")


def default_description(row_index: int) -> str:
    return f"Paiement ligne {row_index}"


def _cell(row: Sequence[str], index: Optional[int]) -> str:
    if index is None or index >= len(row) or row[index] is None:
        return ""
    return row[index].strip()


class CSVImportService:
    """Service for parsing bank statement CSV rows into payments."""

    def import_rows(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        mapping: ColumnMapping,
    ) -> CsvImportResult:
        """Parse rows using an explicit column mapping.

        Row 0 is the header row and is skipped. Malformed rows never fail the
        import; they are reported in ``CsvImportResult.skipped``.

        Args:
            headers: Header cells (kept for symmetry with the stored project)
            rows: All rows, header row included
            mapping: Column indexes for date, amount and optional description

        Returns:
            CsvImportResult with payments in row order and skipped rows

        Raises:
            ValidationError: If a column index is negative
        """
        columns = [mapping.date_column, mapping.amount_column, mapping.description_column]
        if any(c is not None and c < 0 for c in columns):
            raise ValidationError("Column indexes must be zero or greater")

        payments: list[Payment] = []
        skipped: list[SkippedRow] = []
        min_columns = max(mapping.date_column, mapping.amount_column) + 1

        for row_index in range(1, len(rows)):
            row = rows[row_index]

            if len(row) < min_columns:
                skipped.append(
                    SkippedRow(row_index, f"expected at least {min_columns} columns, got {len(row)}")
                )
                continue

            date_str = _cell(row, mapping.date_column)
            amount_str = _cell(row, mapping.amount_column)
            if not date_str or not amount_str:
                skipped.append(SkippedRow(row_index, "missing date or amount"))
                continue

            try:
                amount = clean_statement_amount(amount_str)
                payment_date = parse_statement_date(date_str)
            except ValueError as e:
                skipped.append(SkippedRow(row_index, str(e)))
                continue

            description = _cell(row, mapping.description_column)
            payments.append(
                Payment(
                    id=f"csv_{row_index}",
                    date=payment_date,
                    amount=amount,
                    original_row=row_index,
                    description=description or default_description(row_index),
                )
            )

        for skipped_row in skipped:
            logger.warning("Skipped CSV row %d: %s", skipped_row.row, skipped_row.reason)
        logger.info("Parsed %d payments from %d rows", len(payments), max(len(rows) - 1, 0))
        return CsvImportResult(payments=payments, skipped=skipped)

    def parse_with_mapping(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        mapping: ColumnMapping,
    ) -> list[Payment]:
        """Parse rows using an explicit column mapping and return payments only."""
        return self.import_rows(headers, rows, mapping).payments

    def detect_column_mapping(self, headers: Sequence[str]) -> ColumnMapping:
        """Infer date and amount columns from header keywords.

        Args:
            headers: Header cells

        Returns:
            ColumnMapping without a description column

        Raises:
            CsvImportError: If either column cannot be found
        """
        normalized = [re.sub(r"['\"]", "", h).strip().lower() for h in headers]

        date_index = next(
            (i for i, h in enumerate(normalized) if any(k in h for k in DATE_HEADER_KEYWORDS)),
            None,
        )
        amount_index = next(
            (i for i, h in enumerate(normalized) if any(k in h for k in AMOUNT_HEADER_KEYWORDS)),
            None,
        )

        if date_index is None or amount_index is None:
            raise CsvImportError(missing_csv_columns(normalized), available_headers=normalized)

        return ColumnMapping(date_column=date_index, amount_column=amount_index)

    def parse_legacy_text(self, text: str) -> CsvImportResult:
        """Parse raw CSV text, auto-detecting the date and amount columns.

        Cells are split on "," or ";" and stripped of quotes. Every cell from
        the third column on is joined into the description.

        Raises:
            CsvImportError: If the text is empty or the columns cannot be found
        """
        lines = [line for line in text.splitlines() if line.strip()]
        if not lines:
            raise CsvImportError(empty_csv())

        rows = [[re.sub(r"['\"]", "", v).strip() for v in re.split(r"[,;]", line)] for line in lines]
        mapping = self.detect_column_mapping(rows[0])
        result = self.import_rows(rows[0], rows, mapping)

        payments = []
        for payment in result.payments:
            extra = " ".join(rows[payment.original_row][2:]).strip()
            payments.append(
                Payment(
                    id=payment.id,
                    date=payment.date,
                    amount=payment.amount,
                    original_row=payment.original_row,
                    description=extra or default_description(payment.original_row),
                )
            )
        return CsvImportResult(payments=payments, skipped=result.skipped)


def read_csv_text(csv_file_path: str) -> str:
    """Read a CSV file from disk as text.

    Raises:
        FileNotFoundError: If the file does not exist
        CsvImportError: If the file is not UTF-8
    """
    csv_path = Path(csv_file_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

    try:
        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise CsvImportError(csv_not_utf8(f"byte {e.start}: {e.reason}")) from e


def split_csv_text(csv_data: str) -> tuple[list[str], list[list[str]]]:
    """Split CSV text into header cells and all non-blank rows.

    The delimiter is sniffed among comma, semicolon and tab, falling back
    to comma. Quoted cells may contain delimiters and line breaks.

    Returns:
        Tuple of (headers, rows) where rows still includes the header row

    Raises:
        CsvImportError: If the text is empty or the reader rejects it
    """
    if not csv_data.strip():
        raise CsvImportError(empty_csv())

    try:
        dialect = csv.Sniffer().sniff(csv_data[:1024], delimiters=",;\t")
        delimiter = dialect.delimiter
    except csv.Error:
        delimiter = ","

    reader = csv.reader(io.StringIO(csv_data, newline=""), delimiter=delimiter)
    try:
        rows = [row for row in reader if any(cell.strip() for cell in row)]
    except csv.Error as e:
        raise CsvImportError(malformed_csv(f"line {reader.line_num}: {e}")) from e

    if not rows:
        raise CsvImportError(empty_csv())
    return rows[0], rows


def read_csv_file(csv_file_path: str) -> tuple[list[str], list[list[str]]]:
    """Read a CSV file from disk into header cells and all rows."""
    return split_csv_text(read_csv_text(csv_file_path))
