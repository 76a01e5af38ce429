"""Utility functions for chobo."""

from chobo.utils.date_parser import parse_date
from chobo.utils.amount_parser import parse_amount
from chobo.utils.sanitize import sanitize_cell

__all__ = ["parse_date", "parse_amount", "sanitize_cell"]
