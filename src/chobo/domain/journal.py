"""Journal entry domain service and double-entry validation."""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from chobo.database.base import Database
from chobo.domain.accounting_period import AccountingPeriodService
from chobo.domain.entities import (
    JournalEntry,
    JournalLineInput,
    JournalStatus,
)
from chobo.domain.errors import (
    InvalidStateError,
    InvariantViolationError,
    NotFoundError,
    ValidationError,
    account_not_found,
    entry_not_editable,
    entry_not_found,
    partner_not_found,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


def validate_lines(lines: Sequence[JournalLineInput]) -> list[str]:
    """Check a set of lines against the double-entry rules.

    Returns every problem found; an empty list means the lines are valid.
    """
    problems = []
    if len(lines) < 2:
        problems.append("An entry needs at least two lines")

    for position, line in enumerate(lines, start=1):
        label = f"Line {line.line_number if line.line_number is not None else position}"
        debit, credit = line.debit_amount, line.credit_amount
        if not isinstance(debit, (Decimal, int)) or not isinstance(credit, (Decimal, int)):
            problems.append(f"{label}: amounts must be Decimal")
            continue
        debit, credit = Decimal(debit), Decimal(credit)
        if not debit.is_finite() or not credit.is_finite():
            problems.append(f"{label}: amounts must be finite")
            continue
        if debit < 0 or credit < 0:
            problems.append(f"{label}: amounts cannot be negative")
        if debit == 0 and credit == 0:
            problems.append(f"{label}: a debit or credit amount is required")
        elif debit != 0 and credit != 0:
            problems.append(f"{label}: only one of debit or credit may be set")
        if debit != debit.quantize(CENT) or credit != credit.quantize(CENT):
            problems.append(f"{label}: amounts may have at most two decimal places")

    numbers = [line.line_number for line in lines]
    if any(number is None for number in numbers):
        problems.append("Every line needs a line number")
    elif sorted(numbers) != list(range(1, len(lines) + 1)):
        problems.append("Line numbers must be unique and run from 1 to the number of lines")

    if not problems:
        total_debit = sum((Decimal(line.debit_amount) for line in lines), ZERO)
        total_credit = sum((Decimal(line.credit_amount) for line in lines), ZERO)
        if total_debit != total_credit:
            problems.append(f"Debits ({total_debit}) do not equal credits ({total_credit})")

    return problems


def number_lines(lines: Sequence[JournalLineInput]) -> list[JournalLineInput]:
    """Assign line numbers 1..n when none of the lines carries one."""
    if all(line.line_number is None for line in lines):
        return [replace(line, line_number=number) for number, line in enumerate(lines, start=1)]
    return list(lines)


class JournalEntryService:
    """Service for creating and moving journal entries through their lifecycle."""

    def __init__(self, db: Database):
        """Initialize journal entry service.

        Args:
            db: Database instance
        """
        self.db = db
        self.periods = AccountingPeriodService(db)

    def _validated(self, lines: Sequence[JournalLineInput]) -> list[JournalLineInput]:
        numbered = number_lines(lines)
        problems = validate_lines(numbered)
        if problems:
            raise InvariantViolationError(problems)
        for line in numbered:
            account = self.db.get_account(line.account_id)
            if account is None:
                raise NotFoundError(account_not_found(line.account_id))
            if not account.is_active:
                raise ValidationError(f"Account {account.code} is inactive")
        return numbered

    def _require_entry(self, entry_id: int) -> JournalEntry:
        entry = self.db.get_journal_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id))
        return entry

    def _require_draft(self, entry_id: int) -> JournalEntry:
        entry = self._require_entry(entry_id)
        if entry.status != JournalStatus.DRAFT:
            raise InvalidStateError(entry_not_editable(entry_id, entry.status.value))
        return entry

    def create_entry(
        self,
        entry_date: date,
        description: str,
        lines: Sequence[JournalLineInput],
        partner_id: Optional[int] = None,
    ) -> int:
        """Create a draft entry.

        Args:
            entry_date: Accounting date
            description: Entry description
            lines: Entry lines; numbered 1..n when none has a number
            partner_id: Optional trading partner

        Returns:
            Entry ID

        Raises:
            InvariantViolationError: If the lines break the double-entry rules
            ValidationError: If no accounting period covers the date
            InvalidStateError: If the covering period is closed
            NotFoundError: If an account or the partner does not exist
            PersistenceError: If the store rejects the write (nothing is saved)
        """
        self.periods.require_open_period(entry_date)
        numbered = self._validated(lines)
        if partner_id is not None and self.db.get_partner(partner_id) is None:
            raise NotFoundError(partner_not_found(partner_id))

        entry_id = self.db.create_journal_entry(
            entry_date=entry_date,
            description=description,
            lines=numbered,
            partner_id=partner_id,
        )
        logger.info("Created journal entry %d dated %s", entry_id, entry_date)
        return entry_id

    def create_simple_entry(
        self,
        entry_date: date,
        description: str,
        debit_account_id: int,
        credit_account_id: int,
        amount: Decimal,
        partner_id: Optional[int] = None,
    ) -> int:
        """Create a two-line draft entry moving ``amount`` from credit to debit account."""
        if debit_account_id == credit_account_id:
            raise ValidationError("Debit and credit accounts must differ")
        lines = [
            JournalLineInput(account_id=debit_account_id, debit_amount=amount, description=description),
            JournalLineInput(account_id=credit_account_id, credit_amount=amount, description=description),
        ]
        return self.create_entry(entry_date, description, lines, partner_id=partner_id)

    def get_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get entry by ID, or None if not found."""
        return self.db.get_journal_entry(entry_id)

    def list_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[JournalStatus | str] = None,
        account_id: Optional[int] = None,
        partner_id: Optional[int] = None,
    ) -> list[JournalEntry]:
        """List entries ordered by (date, entry_number)."""
        statuses = [JournalStatus(status)] if status is not None else None
        return self.db.list_journal_entries(
            start_date=start_date,
            end_date=end_date,
            statuses=statuses,
            account_id=account_id,
            partner_id=partner_id,
        )

    def update_entry(
        self, entry_id: int, entry_date: Optional[date] = None, description: Optional[str] = None
    ) -> None:
        """Change the date or description of a draft entry."""
        entry = self._require_draft(entry_id)
        self.periods.require_open_period(entry.date)
        if entry_date is not None:
            self.periods.require_open_period(entry_date)
        self.db.update_journal_entry(entry_id, entry_date=entry_date, description=description)

    def replace_lines(self, entry_id: int, lines: Sequence[JournalLineInput]) -> None:
        """Replace every line of a draft entry.

        The new lines are validated as a whole; on any failure the stored
        lines are left untouched.
        """
        entry = self._require_draft(entry_id)
        self.periods.require_open_period(entry.date)
        numbered = self._validated(lines)
        self.db.replace_journal_lines(entry_id, numbered)

    def approve(self, entry_id: int) -> None:
        """Move a draft entry to approved after re-checking its lines."""
        entry = self._require_draft(entry_id)
        self.periods.require_open_period(entry.date)
        lines = [
            JournalLineInput(
                account_id=line.account_id,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                description=line.description,
                line_number=line.line_number,
            )
            for line in entry.lines
        ]
        problems = validate_lines(lines)
        if problems:
            raise InvariantViolationError(problems)
        self.db.set_journal_status(entry_id, JournalStatus.APPROVED)
        logger.info("Approved journal entry %s", entry.entry_number)

    def cancel(self, entry_id: int) -> None:
        """Cancel a draft or approved entry. Cancelled entries stay cancelled."""
        entry = self._require_entry(entry_id)
        if entry.status == JournalStatus.CANCELLED:
            raise InvalidStateError(f"Journal entry {entry_id} is already cancelled")
        self.periods.require_open_period(entry.date)
        self.db.set_journal_status(entry_id, JournalStatus.CANCELLED)
        logger.info("Cancelled journal entry %s", entry.entry_number)
