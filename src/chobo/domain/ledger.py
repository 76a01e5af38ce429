"""Ledger aggregation: running balances, open items, aging and payment schedules."""

import calendar
import csv
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence, TextIO

from dateutil.relativedelta import relativedelta

from chobo.database.base import Database
from chobo.domain.account import CASH_CODE, BANK_CODES, PAYABLE_CODE, RECEIVABLE_CODE
from chobo.domain.entities import (
    Account,
    AgingBuckets,
    JournalStatus,
    LedgerPosting,
    LedgerRow,
    LedgerView,
    OpenItem,
    PaymentSchedule,
)
from chobo.domain.errors import NotFoundError, ValidationError
from chobo.utils.sanitize import sanitize_cell

ZERO = Decimal("0")

DEBIT = "debit"
CREDIT = "credit"

DEFAULT_TERM_DAYS = 30


def _signed(posting: LedgerPosting, normal_side: str) -> Decimal:
    if normal_side == DEBIT:
        return posting.debit_amount - posting.credit_amount
    return posting.credit_amount - posting.debit_amount


def _ordered(postings: Iterable[LedgerPosting]) -> list[LedgerPosting]:
    return sorted(postings, key=lambda p: (p.date, p.entry_number, p.line_number))


def build_ledger(
    postings: Iterable[LedgerPosting], opening_balance: Decimal = ZERO, normal_side: str = DEBIT
) -> LedgerView:
    """Compute running balances over postings ordered by (date, entry number, line).

    Amounts are signed so that the account's normal side is positive.
    """
    if normal_side not in (DEBIT, CREDIT):
        raise ValueError(f"normal_side must be '{DEBIT}' or '{CREDIT}'")

    balance = opening_balance
    rows = []
    for posting in _ordered(postings):
        amount = _signed(posting, normal_side)
        balance += amount
        rows.append(
            LedgerRow(
                date=posting.date,
                entry_number=posting.entry_number,
                description=posting.description,
                debit_amount=posting.debit_amount,
                credit_amount=posting.credit_amount,
                amount=amount,
                running_balance=balance,
                counter_account=posting.counter_account,
            )
        )
    return LedgerView(opening_balance=opening_balance, rows=tuple(rows), closing_balance=balance)


def open_items(postings: Iterable[LedgerPosting], normal_side: str = DEBIT) -> list[OpenItem]:
    """Charges not yet settled, oldest first.

    Postings on the normal side are charges; postings on the other side
    settle the oldest outstanding charges of the same partner first.
    Settlement beyond all charges is not carried as an item.
    """
    items: list[list] = []
    by_partner: dict[Optional[int], list[list]] = {}
    for posting in _ordered(postings):
        amount = _signed(posting, normal_side)
        if amount > 0:
            item = [posting, amount, amount]
            items.append(item)
            by_partner.setdefault(posting.partner_id, []).append(item)
            continue
        payment = -amount
        for item in by_partner.get(posting.partner_id, []):
            if payment <= 0:
                break
            settled = min(item[2], payment)
            item[2] -= settled
            payment -= settled

    return [
        OpenItem(
            date=posting.date,
            entry_number=posting.entry_number,
            description=posting.description,
            original_amount=original,
            remaining=remaining,
        )
        for posting, original, remaining in items
        if remaining > 0
    ]


def compute_aging(items: Iterable[OpenItem], today: date) -> AgingBuckets:
    """Bucket open items by age: 0-30, 31-60, 61-90 and over 90 days.

    Items dated after ``today`` count as current.
    """
    buckets = {"current": ZERO, "days_31_60": ZERO, "days_61_90": ZERO, "days_over_90": ZERO}
    for item in items:
        age = (today - item.date).days
        if age <= 30:
            buckets["current"] += item.remaining
        elif age <= 60:
            buckets["days_31_60"] += item.remaining
        elif age <= 90:
            buckets["days_61_90"] += item.remaining
        else:
            buckets["days_over_90"] += item.remaining
    return AgingBuckets(**buckets)


def _end_of_month(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def compute_payment_schedule(
    items: Iterable[OpenItem], today: date, term_days: int = DEFAULT_TERM_DAYS
) -> PaymentSchedule:
    """Group open items by due date (item date + ``term_days``).

    Weeks end on Sunday. Overdue items fall in this week.
    """
    end_of_week = today + timedelta(days=6 - today.weekday())
    end_of_next_week = end_of_week + timedelta(days=7)
    end_of_month = _end_of_month(today)
    end_of_next_month = _end_of_month(today + relativedelta(months=1))

    buckets = {"this_week": ZERO, "next_week": ZERO, "this_month": ZERO, "next_month": ZERO, "later": ZERO}
    for item in items:
        due = item.date + timedelta(days=term_days)
        if due <= end_of_week:
            buckets["this_week"] += item.remaining
        elif due <= end_of_next_week:
            buckets["next_week"] += item.remaining
        elif due <= end_of_month:
            buckets["this_month"] += item.remaining
        elif due <= end_of_next_month:
            buckets["next_month"] += item.remaining
        else:
            buckets["later"] += item.remaining
    return PaymentSchedule(**buckets)


EXPORT_HEADER = ["date", "entry_number", "description", "counter_account", "debit", "credit", "balance"]


def export_ledger_csv(view: LedgerView, stream: TextIO) -> None:
    """Write a ledger as a flat table, text cells neutralized against formula injection."""
    writer = csv.writer(stream)
    writer.writerow(EXPORT_HEADER)
    writer.writerow(["", "", sanitize_cell("Opening balance"), "", "", "", str(view.opening_balance)])
    for row in view.rows:
        writer.writerow(
            [
                row.date.isoformat(),
                row.entry_number,
                sanitize_cell(row.description or ""),
                sanitize_cell(row.counter_account or ""),
                str(row.debit_amount) if row.debit_amount else "",
                str(row.credit_amount) if row.credit_amount else "",
                str(row.running_balance),
            ]
        )


class LedgerService:
    """Service building ledgers from committed journal lines.

    Every call reads the store afresh; nothing is cached between calls.
    """

    def __init__(self, db: Database):
        self.db = db

    def _accounts(self) -> list[Account]:
        return self.db.list_accounts(include_inactive=True)

    def _normal_side(self, account_ids: Sequence[int]) -> str:
        account = self.db.get_account(account_ids[0])
        if account is None:
            raise NotFoundError(f"Account {account_ids[0]} not found")
        return DEBIT if account.account_type.is_debit_normal else CREDIT

    def _single(self, code: str, name: str) -> list[int]:
        for account in self._accounts():
            if account.code == code:
                return [account.id]
        for account in self._accounts():
            if account.name == name:
                return [account.id]
        raise NotFoundError(f"No {name} account (code {code}) in the chart of accounts")

    def get_ledger(
        self,
        account_ids: Sequence[int],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        opening_balance: Optional[Decimal] = None,
        statuses: Sequence[JournalStatus] = (JournalStatus.APPROVED,),
        partner_id: Optional[int] = None,
    ) -> LedgerView:
        """Build a running-balance view over one or more accounts.

        Args:
            account_ids: Accounts in scope; their first account decides the sign convention
            start_date: First day included
            end_date: Last day included
            opening_balance: Balance before start_date; computed from earlier postings if None
            statuses: Entry statuses included (approved only by default)
            partner_id: Restrict to one trading partner

        Returns:
            LedgerView with opening balance, rows and closing balance
        """
        if not account_ids:
            raise ValidationError("At least one account is required")
        if start_date and end_date and start_date > end_date:
            raise ValidationError("start_date must not be after end_date")

        normal_side = self._normal_side(account_ids)
        if opening_balance is None:
            opening_balance = ZERO
            if start_date is not None:
                debit, credit = self.db.get_totals_before(
                    account_ids, start_date, statuses=statuses, partner_id=partner_id
                )
                opening_balance = debit - credit if normal_side == DEBIT else credit - debit

        postings = self.db.list_ledger_postings(
            account_ids,
            start_date=start_date,
            end_date=end_date,
            statuses=statuses,
            partner_id=partner_id,
        )
        return build_ledger(postings, opening_balance, normal_side)

    def cash_account_ids(self) -> list[int]:
        return self._single(CASH_CODE, "現金")

    def bank_account_ids(self) -> list[int]:
        ids = [a.id for a in self._accounts() if a.code in BANK_CODES or "預金" in a.name]
        if not ids:
            raise NotFoundError("No bank accounts in the chart of accounts")
        return ids

    def receivable_account_ids(self) -> list[int]:
        return self._single(RECEIVABLE_CODE, "売掛金")

    def payable_account_ids(self) -> list[int]:
        return self._single(PAYABLE_CODE, "買掛金")

    def cash_book(self, start_date=None, end_date=None, partner_id=None, **kwargs) -> LedgerView:
        return self.get_ledger(self.cash_account_ids(), start_date, end_date, partner_id=partner_id, **kwargs)

    def bank_book(self, start_date=None, end_date=None, partner_id=None, **kwargs) -> LedgerView:
        return self.get_ledger(self.bank_account_ids(), start_date, end_date, partner_id=partner_id, **kwargs)

    def receivables_ledger(self, start_date=None, end_date=None, partner_id=None, **kwargs) -> LedgerView:
        return self.get_ledger(
            self.receivable_account_ids(), start_date, end_date, partner_id=partner_id, **kwargs
        )

    def payables_ledger(self, start_date=None, end_date=None, partner_id=None, **kwargs) -> LedgerView:
        return self.get_ledger(self.payable_account_ids(), start_date, end_date, partner_id=partner_id, **kwargs)

    def _open_items(self, account_ids: list[int], today: date, partner_id: Optional[int]) -> list[OpenItem]:
        postings = self.db.list_ledger_postings(
            account_ids,
            end_date=today,
            statuses=(JournalStatus.APPROVED,),
            partner_id=partner_id,
        )
        return open_items(postings, self._normal_side(account_ids))

    def receivables_aging(self, today: Optional[date] = None, partner_id: Optional[int] = None) -> AgingBuckets:
        today = today or date.today()
        return compute_aging(self._open_items(self.receivable_account_ids(), today, partner_id), today)

    def payables_aging(self, today: Optional[date] = None, partner_id: Optional[int] = None) -> AgingBuckets:
        today = today or date.today()
        return compute_aging(self._open_items(self.payable_account_ids(), today, partner_id), today)

    def payment_schedule(
        self,
        today: Optional[date] = None,
        term_days: int = DEFAULT_TERM_DAYS,
        partner_id: Optional[int] = None,
    ) -> PaymentSchedule:
        """Upcoming payments on open payables, bucketed by due date."""
        today = today or date.today()
        items = self._open_items(self.payable_account_ids(), today, partner_id)
        return compute_payment_schedule(items, today, term_days)
