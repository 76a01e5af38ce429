"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re
import unicodedata

from chobo.utils.sanitize import unescape_cell

ZERO = Decimal("0")

_NOISE = re.compile(r"[￥¥$€£,，、円\s]")


def parse_amount(amount_str: str | None) -> Decimal:
    """Parse a statement amount into a Decimal.

    Handles various formats:
    - "1234", "1,234", "¥1,234", "￥１，２３４", "1,234円"
    - "-1234", "(1,234)" (negative in parentheses)
    - "▲1,234" / "△1,234" (Japanese negative markers)
    - "'-1,234" (a cell escaped by the sanitizer)

    Empty strings, a lone "-" and anything unparseable become zero; a bad
    amount never fails the row.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount
    """
    if amount_str is None:
        return ZERO

    # Full-width digits and signs become ASCII
    cleaned = unicodedata.normalize("NFKC", unescape_cell(str(amount_str).strip()))
    cleaned = _NOISE.sub("", cleaned)

    if not cleaned or cleaned == "-":
        return ZERO

    is_negative = False
    if cleaned.startswith("(") and cleaned.endswith(")"):
        is_negative = True
        cleaned = cleaned[1:-1]
    elif cleaned[0] in "▲△":
        is_negative = True
        cleaned = cleaned[1:]

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return ZERO
    if not amount.is_finite():
        return ZERO
    return -amount if is_negative else amount
