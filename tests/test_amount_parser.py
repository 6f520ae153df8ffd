"""Tests for amount parsing."""

from decimal import Decimal

import pytest
from lettrage.utils.amount_parser import clean_statement_amount, parse_amount


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("150,00", Decimal("150.00")),
        ("150.00", Decimal("150.00")),
        ("-89,90", Decimal("89.90")),
        ("89.90 EUR", Decimal("89.90")),
        ("1 234,56 €", Decimal("1234.56")),
        ("12", Decimal("12")),
    ],
)
def test_clean_statement_amount(raw, expected):
    assert clean_statement_amount(raw) == expected


def test_clean_statement_amount_is_never_negative():
    assert clean_statement_amount("-300,00") == Decimal("300.00")


def test_clean_statement_amount_ignores_trailing_garbage():
    """Only the leading number is kept after the first comma becomes a point."""
    assert clean_statement_amount("1,234.56") == Decimal("1.234")


@pytest.mark.parametrize("raw", ["", "abc", "-", "EUR"])
def test_clean_statement_amount_rejects_non_numbers(raw):
    with pytest.raises(ValueError):
        clean_statement_amount(raw)


def test_parse_amount_formats():
    assert parse_amount("123.45") == Decimal("123.45")
    assert parse_amount("€123.45") == Decimal("123.45")
    assert parse_amount("-123.45") == Decimal("-123.45")
    assert parse_amount("123,45") == Decimal("123.45")
    assert parse_amount("1,234.56") == Decimal("1234.56")
    assert parse_amount("1 234.56") == Decimal("1234.56")


@pytest.mark.parametrize("raw", ["", "   ", "abc", "NaN", "Infinity"])
def test_parse_amount_rejects_invalid(raw):
    with pytest.raises(ValueError):
        parse_amount(raw)
