"""Tests for duplicate detection."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from chobo.domain.duplicates import EXISTING, WITHIN_IMPORT, detect_duplicates
from chobo.domain.entities import Direction, JournalEntry, JournalLine, JournalStatus, NormalizedTransaction


def _tx(day, amount, description="Shop", row_number=1):
    return NormalizedTransaction(
        row_number=row_number,
        date=date(2024, 4, day),
        description=description,
        amount=Decimal(amount),
        direction=Direction.EXPENSE,
    )


def _entry(entry_id, day, amount, status=JournalStatus.APPROVED, description="booked"):
    amount = Decimal(amount)
    return JournalEntry(
        id=entry_id,
        entry_number=f"20240400{entry_id:02d}",
        date=date(2024, 4, day),
        description=description,
        status=status,
        partner_id=None,
        lines=(
            JournalLine(1, 1, 12, amount, Decimal("0"), None),
            JournalLine(2, 2, 1, Decimal("0"), amount, None),
        ),
        created_at=datetime.now(),
    )


def test_matches_existing_entry_by_date_and_amount():
    matches = detect_duplicates([_tx(1, "500", "コンビニ")], [_entry(7, 1, "500", description="Convenience store")])
    assert matches[0].kind == EXISTING
    assert matches[0].journal_entry_id == 7
    assert matches[0].row_index == 0


def test_different_date_or_amount_is_not_duplicate():
    existing = [_entry(1, 1, "500")]
    assert detect_duplicates([_tx(2, "500"), _tx(1, "501")], existing) == [None, None]


def test_tolerance():
    existing = [_entry(1, 1, "500")]
    assert detect_duplicates([_tx(1, "505")], existing, tolerance=Decimal("10"))[0].kind == EXISTING
    assert detect_duplicates([_tx(1, "511")], existing, tolerance=Decimal("10"))[0] is None


def test_cancelled_entries_ignored():
    existing = [_entry(1, 1, "500", status=JournalStatus.CANCELLED)]
    assert detect_duplicates([_tx(1, "500")], existing) == [None]


def test_drafts_count_as_existing():
    existing = [_entry(1, 1, "500", status=JournalStatus.DRAFT)]
    assert detect_duplicates([_tx(1, "500")], existing)[0].kind == EXISTING


def test_within_import_duplicate():
    txs = [_tx(1, "500", "Coffee", 1), _tx(1, "500", "Tea", 2), _tx(1, "500", "Coffee", 3)]
    matches = detect_duplicates(txs, [])
    assert matches[0] is None
    assert matches[1] is None
    assert matches[2].kind == WITHIN_IMPORT
    assert matches[2].duplicate_of_row == 0
    assert matches[2].row_index == 2


def test_existing_match_takes_precedence():
    txs = [_tx(1, "500"), _tx(1, "500")]
    matches = detect_duplicates(txs, [_entry(3, 1, "500")])
    assert [m.kind for m in matches] == [EXISTING, EXISTING]


def test_negative_tolerance_rejected():
    with pytest.raises(ValueError):
        detect_duplicates([], [], tolerance=Decimal("-1"))
