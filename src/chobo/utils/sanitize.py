"""Formula-injection sanitization for spreadsheet-bound cell values."""

import re

DANGEROUS_PREFIXES = ("=", "+", "-", "@", "|", "%")
ESCAPE_PREFIX = "'"

# Anchored and free of nested quantifiers, so matching stays linear.
_NEGATIVE_NUMBER = re.compile(r"-\d+(?:\.\d+)?")


def is_negative_number(value: str) -> bool:
    """Return True for plain negative numbers such as "-123" or "-12.50"."""
    return _NEGATIVE_NUMBER.fullmatch(value) is not None


def sanitize_cell(value: str) -> str:
    """Neutralize a cell that a spreadsheet would evaluate as a formula.

    A value whose first non-whitespace character is one of ``= + - @ | %``
    is prefixed with a single quote, except for plain negative numbers.
    Escaped values start with the quote, so sanitizing twice is a no-op.
    """
    if not isinstance(value, str):
        return value

    stripped = value.lstrip()
    if not stripped.startswith(DANGEROUS_PREFIXES):
        return value
    if is_negative_number(stripped):
        return value
    return f"{ESCAPE_PREFIX}{value}"


def unescape_cell(value: str) -> str:
    """Strip the neutralizing prefix added by sanitize_cell."""
    if value.startswith(ESCAPE_PREFIX):
        return value[len(ESCAPE_PREFIX):]
    return value


def sanitize_row(row: dict[str, str]) -> dict[str, str]:
    """Sanitize every cell of a row."""
    return {key: sanitize_cell(value) for key, value in row.items()}
