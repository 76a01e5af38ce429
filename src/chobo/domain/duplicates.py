"""Duplicate detection for statement rows."""

from decimal import Decimal
from typing import Optional, Sequence

from chobo.domain.entities import (
    DuplicateMatch,
    JournalEntry,
    JournalStatus,
    NormalizedTransaction,
)

EXISTING = "existing"
WITHIN_IMPORT = "within-import"


def detect_duplicates(
    transactions: Sequence[NormalizedTransaction],
    existing_entries: Sequence[JournalEntry],
    tolerance: Decimal = Decimal("0"),
) -> list[Optional[DuplicateMatch]]:
    """Flag rows that look already booked, aligned with ``transactions``.

    A row matches an existing entry on the same date whose total is within
    ``tolerance`` of the row amount; descriptions are not compared, so a
    reworded statement line is still caught. A row that matches no entry
    but repeats the date, amount and description of an earlier row of the
    same batch is flagged as a within-import duplicate.
    """
    if tolerance < 0:
        raise ValueError("tolerance cannot be negative")

    by_date: dict = {}
    for entry in existing_entries:
        if entry.status == JournalStatus.CANCELLED:
            continue
        by_date.setdefault(entry.date, []).append(entry)

    seen: dict[tuple, int] = {}
    matches: list[Optional[DuplicateMatch]] = []
    for index, tx in enumerate(transactions):
        match = None
        for entry in by_date.get(tx.date, ()):
            if abs(entry.total_debit - tx.amount) <= tolerance:
                match = DuplicateMatch(row_index=index, kind=EXISTING, journal_entry_id=entry.id)
                break

        key = (tx.date, tx.amount, tx.description)
        if match is None and key in seen:
            match = DuplicateMatch(row_index=index, kind=WITHIN_IMPORT, duplicate_of_row=seen[key])
        seen.setdefault(key, index)
        matches.append(match)
    return matches
