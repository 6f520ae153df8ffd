"""Utility functions for lettrage."""

from lettrage.utils.date_parser import parse_date, parse_statement_date
from lettrage.utils.amount_parser import parse_amount, clean_statement_amount

__all__ = ["parse_date", "parse_statement_date", "parse_amount", "clean_statement_amount"]
