"""Statement row normalization into canonical transactions."""

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from chobo.domain.entities import (
    Direction,
    NormalizationResult,
    NormalizedTransaction,
    RowFailure,
)
from chobo.utils.amount_parser import parse_amount
from chobo.utils.date_parser import parse_date
from chobo.utils.sanitize import sanitize_cell, unescape_cell

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Column names tried when a field is not mapped
DATE_COLUMNS = ("date", "Date", "日付", "取引日", "利用日")
DESCRIPTION_COLUMNS = ("description", "Description", "摘要", "内容", "お取引内容", "利用店名・商品名")
AMOUNT_COLUMNS = ("amount", "Amount", "金額", "利用金額")

INCOME_TYPES = {"入金", "入", "収入", "deposit", "credit", "incoming", "+"}
EXPENSE_TYPES = {"出金", "出", "支出", "引落", "引き落とし", "withdrawal", "debit", "outgoing", "-"}


def _cell(row: Mapping[str, str], column_map: Mapping[str, str], field: str, fallbacks=()) -> Optional[str]:
    column = column_map.get(field)
    if column is not None:
        return row.get(column)
    for name in fallbacks:
        if name in row:
            return row[name]
    return None


def _type_direction(value: Optional[str]) -> Optional[Direction]:
    if value is None:
        return None
    text = unescape_cell(value.strip()).lower()
    if text in INCOME_TYPES:
        return Direction.INCOME
    if text in EXPENSE_TYPES:
        return Direction.EXPENSE
    return None


def _amount_and_direction(
    row: Mapping[str, str], column_map: Mapping[str, str]
) -> tuple[Decimal, Direction]:
    if "deposit" in column_map or "withdrawal" in column_map:
        deposit = parse_amount(_cell(row, column_map, "deposit"))
        withdrawal = parse_amount(_cell(row, column_map, "withdrawal"))
        if deposit > 0:
            return deposit, Direction.INCOME
        if withdrawal > 0:
            return withdrawal, Direction.EXPENSE
        return ZERO, Direction.UNKNOWN

    amount = parse_amount(_cell(row, column_map, "amount", AMOUNT_COLUMNS))
    direction = Direction.EXPENSE if amount < 0 else Direction.INCOME
    if "type" in column_map:
        direction = _type_direction(row.get(column_map["type"])) or direction
    return abs(amount), direction


def normalize_row(
    row: Mapping[str, str],
    row_number: int,
    column_map: Mapping[str, str],
    date_format: Optional[str] = None,
) -> NormalizedTransaction | RowFailure:
    """Turn one decoded row into a transaction, or a failure describing why not.

    Args:
        row: Column → cell mapping
        row_number: 1-based data row number
        column_map: Field name → column name
        date_format: Date hint from the template

    Returns:
        NormalizedTransaction, or RowFailure when the date is missing or
        invalid or the description is empty
    """
    source_row = MappingProxyType(dict(row))

    date_text = _cell(row, column_map, "date", DATE_COLUMNS)
    if not date_text or not date_text.strip():
        return RowFailure(row_number, "Missing date", source_row)
    try:
        tx_date = parse_date(date_text, date_format)
    except ValueError as e:
        return RowFailure(row_number, str(e), source_row)

    description = sanitize_cell((_cell(row, column_map, "description", DESCRIPTION_COLUMNS) or "").strip())
    if not description:
        return RowFailure(row_number, "Missing description", source_row)

    amount, direction = _amount_and_direction(row, column_map)

    balance = None
    if "balance" in column_map and (row.get(column_map["balance"]) or "").strip():
        balance = parse_amount(row[column_map["balance"]])

    return NormalizedTransaction(
        row_number=row_number,
        date=tx_date,
        description=description,
        amount=amount,
        direction=direction,
        balance=balance,
        source_row=source_row,
    )


def normalize_rows(
    rows: Sequence[Mapping[str, str]],
    column_map: Mapping[str, str],
    date_format: Optional[str] = None,
    max_workers: Optional[int] = None,
) -> NormalizationResult:
    """Normalize a batch of rows, collecting failures instead of stopping.

    With ``max_workers`` above one the rows are normalized on a thread
    pool; results keep the input order either way.
    """

    def normalize(indexed):
        index, row = indexed
        return normalize_row(row, index, column_map, date_format)

    indexed_rows = list(enumerate(rows, start=1))
    if max_workers and max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(normalize, indexed_rows))
    else:
        results = [normalize(item) for item in indexed_rows]

    transactions = []
    failures = []
    for result in results:
        if isinstance(result, RowFailure):
            logger.debug("Row %d skipped: %s", result.row_number, result.reason)
            failures.append(result)
        else:
            transactions.append(result)
    return NormalizationResult(transactions=transactions, failures=failures)
