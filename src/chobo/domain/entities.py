"""Domain model entities for chobo.

These are pure data classes representing bookkeeping concepts, independent
of the database schema. Money is always Decimal.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class AccountType(str, Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def is_debit_normal(self) -> bool:
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class PartnerType(str, Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    BOTH = "both"


class Direction(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    UNKNOWN = "unknown"


class JournalStatus(str, Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Account:
    """Chart-of-accounts entry."""

    id: int
    code: str
    name: str
    account_type: AccountType
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class Partner:
    """Trading partner (customer or vendor)."""

    id: int
    code: str
    name: str
    partner_type: PartnerType
    created_at: datetime


@dataclass(frozen=True)
class CSVTemplate:
    """Statement layout template."""

    id: int
    name: str
    bank_name: str
    encoding: str
    delimiter: str
    skip_rows: int
    date_format: str
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class CSVTemplateMapping:
    """One logical field → source column mapping of a template."""

    id: int
    template_id: int
    csv_column_name: str
    field_name: str


@dataclass(frozen=True)
class AccountingPeriod:
    """Fiscal period; entries may only be posted into open periods."""

    id: int
    name: str
    start_date: date
    end_date: date
    is_closed: bool
    created_at: datetime

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class ImportRule:
    """User-authored classification rule."""

    id: int
    pattern: str
    debit_account_id: int
    credit_account_id: int
    confidence: Optional[float]
    priority: int
    is_active: bool
    usage_count: int
    created_at: datetime


@dataclass(frozen=True)
class NormalizedTransaction:
    """Canonical statement row produced by the row normalizer."""

    row_number: int
    date: date
    description: str
    amount: Decimal
    direction: Direction
    balance: Optional[Decimal] = None
    source_row: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, repr=False
    )


@dataclass(frozen=True)
class RowFailure:
    """A statement row that could not be normalized."""

    row_number: int
    reason: str
    source_row: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}), compare=False, repr=False
    )


@dataclass(frozen=True)
class NormalizationResult:
    transactions: list[NormalizedTransaction]
    failures: list[RowFailure]


@dataclass(frozen=True)
class AccountSuggestion:
    """Candidate debit/credit pair for a transaction."""

    debit_account_id: int
    credit_account_id: int
    confidence: float
    origin: str
    reason: str = ""


@dataclass(frozen=True)
class JournalLineInput:
    """Line data supplied when creating or editing an entry."""

    account_id: int
    debit_amount: Decimal = Decimal("0")
    credit_amount: Decimal = Decimal("0")
    description: Optional[str] = None
    line_number: Optional[int] = None


@dataclass(frozen=True)
class JournalLine:
    id: int
    line_number: int
    account_id: int
    debit_amount: Decimal
    credit_amount: Decimal
    description: Optional[str]


@dataclass(frozen=True)
class JournalEntry:
    """Journal entry with its ordered lines."""

    id: int
    entry_number: str
    date: date
    description: str
    status: JournalStatus
    partner_id: Optional[int]
    lines: tuple[JournalLine, ...]
    created_at: datetime

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit_amount for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit_amount for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class LedgerPosting:
    """A journal line touching a ledger's accounts, with entry context."""

    entry_id: int
    entry_number: str
    date: date
    line_number: int
    account_id: int
    debit_amount: Decimal
    credit_amount: Decimal
    description: str
    partner_id: Optional[int] = None
    counter_account: Optional[str] = None


@dataclass(frozen=True)
class LedgerRow:
    date: date
    entry_number: str
    description: str
    debit_amount: Decimal
    credit_amount: Decimal
    amount: Decimal
    running_balance: Decimal
    counter_account: Optional[str] = None


@dataclass(frozen=True)
class LedgerView:
    """Running-balance view over one or more accounts."""

    opening_balance: Decimal
    rows: tuple[LedgerRow, ...]
    closing_balance: Decimal


@dataclass(frozen=True)
class OpenItem:
    """Unsettled remainder of a receivable or payable charge."""

    date: date
    entry_number: str
    description: str
    original_amount: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class AgingBuckets:
    current: Decimal = Decimal("0")
    days_31_60: Decimal = Decimal("0")
    days_61_90: Decimal = Decimal("0")
    days_over_90: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.current + self.days_31_60 + self.days_61_90 + self.days_over_90


@dataclass(frozen=True)
class PaymentSchedule:
    this_week: Decimal = Decimal("0")
    next_week: Decimal = Decimal("0")
    this_month: Decimal = Decimal("0")
    next_month: Decimal = Decimal("0")
    later: Decimal = Decimal("0")


@dataclass(frozen=True)
class DuplicateMatch:
    """Why a statement row is considered a duplicate."""

    row_index: int
    kind: str
    journal_entry_id: Optional[int] = None
    duplicate_of_row: Optional[int] = None
