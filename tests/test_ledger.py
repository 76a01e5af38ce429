"""Tests for ledgers, open items, aging and payment schedules."""

import csv
import io
from datetime import date
from decimal import Decimal

import pytest

from chobo.domain.entities import LedgerPosting, OpenItem
from chobo.domain.errors import ValidationError
from chobo.domain.ledger import (
    CREDIT,
    DEBIT,
    EXPORT_HEADER,
    build_ledger,
    compute_aging,
    compute_payment_schedule,
    export_ledger_csv,
    open_items,
)


def _posting(day, debit="0", credit="0", number=None, line=1, description="x", month=4, partner_id=None):
    return LedgerPosting(
        entry_id=day,
        entry_number=number or f"2024{month:02d}{day:04d}",
        date=date(2024, month, day),
        line_number=line,
        account_id=1,
        debit_amount=Decimal(debit),
        credit_amount=Decimal(credit),
        description=description,
        partner_id=partner_id,
    )


def _item(day, remaining, month=4):
    return OpenItem(
        date=date(2024, month, day),
        entry_number="n",
        description="d",
        original_amount=Decimal(remaining),
        remaining=Decimal(remaining),
    )


class TestBuildLedger:
    def test_running_balance(self):
        view = build_ledger(
            [_posting(1, debit="1000"), _posting(2, credit="300"), _posting(3, debit="50")],
            opening_balance=Decimal("100"),
        )
        assert [row.running_balance for row in view.rows] == [Decimal("1100"), Decimal("800"), Decimal("850")]
        assert view.opening_balance == Decimal("100")
        assert view.closing_balance == Decimal("850")

    def test_credit_normal_side(self):
        view = build_ledger([_posting(1, credit="500"), _posting(2, debit="200")], normal_side=CREDIT)
        assert [row.amount for row in view.rows] == [Decimal("500"), Decimal("-200")]
        assert view.closing_balance == Decimal("300")

    def test_postings_are_ordered(self):
        postings = [
            _posting(5, debit="1", number="2024040002"),
            _posting(5, debit="2", number="2024040001", line=2),
            _posting(5, debit="3", number="2024040001", line=1),
            _posting(1, debit="4"),
        ]
        view = build_ledger(postings)
        assert [row.debit_amount for row in view.rows] == [Decimal("4"), Decimal("3"), Decimal("2"), Decimal("1")]

    def test_empty(self):
        view = build_ledger([], opening_balance=Decimal("10"))
        assert view.rows == ()
        assert view.closing_balance == Decimal("10")

    def test_invalid_side(self):
        with pytest.raises(ValueError):
            build_ledger([], normal_side="sideways")


class TestOpenItems:
    def test_fifo_settlement(self):
        postings = [
            _posting(1, debit="100"),
            _posting(2, debit="50"),
            _posting(3, credit="120"),
        ]
        items = open_items(postings, DEBIT)
        assert len(items) == 1
        assert items[0].date == date(2024, 4, 2)
        assert items[0].original_amount == Decimal("50")
        assert items[0].remaining == Decimal("30")

    def test_overpayment_is_not_carried(self):
        items = open_items([_posting(1, debit="100"), _posting(2, credit="150"), _posting(3, debit="40")])
        assert [item.remaining for item in items] == [Decimal("40")]

    def test_payables_use_credit_side(self):
        items = open_items([_posting(1, credit="200"), _posting(2, debit="50")], CREDIT)
        assert items[0].remaining == Decimal("150")

    def test_payment_settles_same_partner_only(self):
        postings = [
            _posting(1, debit="1000", month=1, partner_id=1),
            _posting(1, debit="1000", partner_id=2),
            _posting(10, credit="1000", partner_id=2),
        ]
        items = open_items(postings, DEBIT)
        assert [(item.date, item.remaining) for item in items] == [(date(2024, 1, 1), Decimal("1000"))]

        buckets = compute_aging(items, date(2024, 5, 4))
        assert buckets.days_over_90 == Decimal("1000")
        assert buckets.days_31_60 == Decimal("0")

    def test_payment_without_partner_leaves_partner_charges(self):
        items = open_items([_posting(1, debit="300", partner_id=1), _posting(2, credit="300")])
        assert [item.remaining for item in items] == [Decimal("300")]


class TestAging:
    def test_buckets(self):
        today = date(2024, 6, 30)
        items = [
            _item(20, "10", month=6),
            _item(20, "20", month=5),
            _item(15, "40", month=4),
            _item(1, "80", month=3),
        ]
        buckets = compute_aging(items, today)
        assert buckets.current == Decimal("10")
        assert buckets.days_31_60 == Decimal("20")
        assert buckets.days_61_90 == Decimal("40")
        assert buckets.days_over_90 == Decimal("80")
        assert buckets.total == Decimal("150")

    def test_45_days_is_31_60(self):
        buckets = compute_aging([_item(20, "30000", month=3)], date(2024, 5, 4))
        assert buckets.days_31_60 == Decimal("30000")
        assert buckets.current == Decimal("0")

    def test_boundaries(self):
        today = date(2024, 6, 30)
        assert compute_aging([_item(31, "1", month=5)], today).current == Decimal("1")
        assert compute_aging([_item(30, "1", month=5)], today).days_31_60 == Decimal("1")

    def test_future_item_is_current(self):
        assert compute_aging([_item(30, "5", month=6)], date(2024, 6, 1)).current == Decimal("5")


class TestPaymentSchedule:
    def test_buckets(self):
        # 2024-04-17 is a Wednesday; the week ends Sunday 04-21
        today = date(2024, 4, 17)
        items = [
            _item(10, "1", month=3),  # due 04-09, overdue
            _item(25, "2", month=3),  # due 04-24
            _item(31, "4", month=3),  # due 04-30
            _item(15, "8", month=4),  # due 05-15
            _item(10, "16", month=5),  # due 06-09
        ]
        schedule = compute_payment_schedule(items, today, term_days=30)
        assert schedule.this_week == Decimal("1")
        assert schedule.next_week == Decimal("2")
        assert schedule.this_month == Decimal("4")
        assert schedule.next_month == Decimal("8")
        assert schedule.later == Decimal("16")

    def test_term_days(self):
        schedule = compute_payment_schedule([_item(17, "5")], date(2024, 4, 17), term_days=0)
        assert schedule.this_week == Decimal("5")


def test_export_ledger_csv_sanitizes_text():
    view = build_ledger(
        [_posting(1, debit="1000", description="=HYPERLINK()"), _posting(2, credit="300", description="Shop")],
        opening_balance=Decimal("500"),
    )
    stream = io.StringIO()
    export_ledger_csv(view, stream)
    rows = list(csv.reader(io.StringIO(stream.getvalue())))
    assert rows[0] == EXPORT_HEADER
    assert rows[1][2] == "Opening balance"
    assert rows[1][6] == "500"
    assert rows[2][2] == "'=HYPERLINK()"
    assert rows[2][4] == "1000"
    assert rows[2][5] == ""
    assert rows[3][6] == "1200"


class TestLedgerService:
    @pytest.fixture
    def books(self, journal_service, accounts):
        """March sale on credit, April cash sale, collection and an unapproved draft."""
        cash, receivable, sales = accounts["1110"].id, accounts["1140"].id, accounts["4110"].id
        ids = {
            "march_cash": journal_service.create_simple_entry(date(2024, 3, 5), "Opening sale", cash, sales, Decimal("10000")),
            "credit_sale_1": journal_service.create_simple_entry(date(2024, 2, 1), "Invoice 1", receivable, sales, Decimal("100000")),
            "credit_sale_2": journal_service.create_simple_entry(date(2024, 3, 20), "Invoice 2", receivable, sales, Decimal("50000")),
            "collection": journal_service.create_simple_entry(date(2024, 3, 25), "Collected", cash, receivable, Decimal("120000")),
            "april_cash": journal_service.create_simple_entry(date(2024, 4, 15), "Cash sale", cash, sales, Decimal("2000")),
        }
        for entry_id in ids.values():
            journal_service.approve(entry_id)
        ids["draft"] = journal_service.create_simple_entry(date(2024, 4, 16), "Draft", cash, sales, Decimal("999"))
        return ids

    def test_cash_book_opening_balance_from_earlier_postings(self, ledger_service, books):
        view = ledger_service.cash_book(date(2024, 4, 1), date(2024, 4, 30))
        assert view.opening_balance == Decimal("130000")
        assert [row.description for row in view.rows] == ["Cash sale"]
        assert view.rows[0].counter_account == "売上高"
        assert view.closing_balance == Decimal("132000")

    def test_drafts_included_on_request(self, ledger_service, accounts, books):
        view = ledger_service.cash_book(
            date(2024, 4, 1), date(2024, 4, 30), statuses=("draft", "approved")
        )
        assert view.closing_balance == Decimal("132999")

    def test_cancelled_entries_drop_out(self, ledger_service, journal_service, books):
        journal_service.cancel(books["april_cash"])
        view = ledger_service.cash_book(date(2024, 4, 1), date(2024, 4, 30))
        assert view.rows == ()

    def test_receivables_aging(self, ledger_service, books):
        buckets = ledger_service.receivables_aging(today=date(2024, 5, 4))
        assert buckets.days_31_60 == Decimal("30000")
        assert buckets.total == Decimal("30000")

    def test_receivables_ledger_is_debit_normal(self, ledger_service, books):
        view = ledger_service.receivables_ledger()
        assert view.closing_balance == Decimal("30000")

    def test_bank_book_covers_deposit_accounts(self, ledger_service, journal_service, accounts):
        entry_id = journal_service.create_simple_entry(
            date(2024, 4, 1), "Transfer", accounts["1130"].id, accounts["1120"].id, Decimal("500")
        )
        journal_service.approve(entry_id)
        assert set(ledger_service.bank_account_ids()) == {accounts["1120"].id, accounts["1130"].id}
        view = ledger_service.bank_book()
        assert len(view.rows) == 2
        assert view.closing_balance == Decimal("0")

    def test_payment_schedule(self, ledger_service, journal_service, accounts):
        payable, expense = accounts["2110"].id, accounts["7190"].id
        entry_id = journal_service.create_simple_entry(date(2024, 3, 30), "Supplies", expense, payable, Decimal("8000"))
        journal_service.approve(entry_id)

        schedule = ledger_service.payment_schedule(today=date(2024, 4, 17))
        assert schedule.this_month == Decimal("8000")
        assert ledger_service.payables_aging(today=date(2024, 4, 17)).current == Decimal("8000")

    def test_partner_filter(self, ledger_service, journal_service, partner_service, accounts):
        partner_id = partner_service.create_partner("C001", "Yamada Shoten", "customer")
        receivable, sales = accounts["1140"].id, accounts["4110"].id
        for partner in (partner_id, None):
            entry_id = journal_service.create_simple_entry(
                date(2024, 4, 1), "Invoice", receivable, sales, Decimal("700"), partner_id=partner
            )
            journal_service.approve(entry_id)

        assert ledger_service.receivables_ledger(partner_id=partner_id).closing_balance == Decimal("700")
        assert ledger_service.receivables_ledger().closing_balance == Decimal("1400")

    def test_reversed_dates_rejected(self, ledger_service, accounts):
        with pytest.raises(ValidationError):
            ledger_service.cash_book(date(2024, 5, 1), date(2024, 4, 1))

    def test_no_accounts_rejected(self, ledger_service):
        with pytest.raises(ValidationError):
            ledger_service.get_ledger([])
