"""Utility functions for ledgerflow."""

from ledgerflow.utils.date_parser import parse_date, parse_statement_date, get_date_range
from ledgerflow.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_statement_date", "get_date_range", "parse_amount"]
