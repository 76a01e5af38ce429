"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Iterable
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from chobo.domain.entities import (
    Account,
    AccountingPeriod,
    Partner,
    CSVTemplate,
    CSVTemplateMapping,
    ImportRule,
    JournalEntry,
    JournalLineInput,
    JournalStatus,
    LedgerPosting,
)


class Database(ABC):
    """Abstract database interface for chobo."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(self, code: str, name: str, account_type: str) -> int:
        """Create a chart-of-accounts entry. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_code(self, code: str) -> Optional[Account]:
        """Get account by code."""
        pass

    @abstractmethod
    def list_accounts(self, include_inactive: bool = False) -> list[Account]:
        """List accounts ordered by code."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, is_active: bool) -> None:
        """Activate or deactivate an account."""
        pass

    # Partner operations
    @abstractmethod
    def create_partner(self, code: str, name: str, partner_type: str) -> int:
        """Create a trading partner. Returns partner ID."""
        pass

    @abstractmethod
    def get_partner(self, partner_id: int) -> Optional[Partner]:
        """Get partner by ID."""
        pass

    @abstractmethod
    def get_partner_by_code(self, code: str) -> Optional[Partner]:
        """Get partner by code."""
        pass

    @abstractmethod
    def list_partners(self) -> list[Partner]:
        """List partners ordered by code."""
        pass

    # CSV template operations
    @abstractmethod
    def create_csv_template(
        self,
        name: str,
        bank_name: str,
        encoding: str = "UTF-8",
        delimiter: str = ",",
        skip_rows: int = 0,
        date_format: str = "YYYY-MM-DD",
    ) -> int:
        """Create a statement template. Returns template ID."""
        pass

    @abstractmethod
    def get_csv_template(self, template_id: int) -> Optional[CSVTemplate]:
        """Get template by ID."""
        pass

    @abstractmethod
    def get_csv_template_by_name(self, name: str) -> Optional[CSVTemplate]:
        """Get template by name."""
        pass

    @abstractmethod
    def list_csv_templates(self, include_inactive: bool = False) -> list[CSVTemplate]:
        """List templates in creation order."""
        pass

    @abstractmethod
    def delete_csv_template(self, template_id: int) -> None:
        """Delete a template and its mappings."""
        pass

    @abstractmethod
    def add_template_mapping(self, template_id: int, csv_column_name: str, field_name: str) -> int:
        """Map a logical field to a statement column. Returns mapping ID."""
        pass

    @abstractmethod
    def get_template_mappings(self, template_id: int) -> list[CSVTemplateMapping]:
        """Get all column mappings for a template."""
        pass

    # Import rule operations
    @abstractmethod
    def create_import_rule(
        self,
        pattern: str,
        debit_account_id: int,
        credit_account_id: int,
        confidence: Optional[float] = None,
        priority: int = 100,
    ) -> int:
        """Create a classification rule. Returns rule ID."""
        pass

    @abstractmethod
    def get_import_rule(self, rule_id: int) -> Optional[ImportRule]:
        """Get rule by ID."""
        pass

    @abstractmethod
    def list_import_rules(self, active_only: bool = True) -> list[ImportRule]:
        """List rules ordered by (priority, id)."""
        pass

    @abstractmethod
    def set_import_rule_active(self, rule_id: int, is_active: bool) -> None:
        """Enable or disable a rule."""
        pass

    @abstractmethod
    def increment_rule_usage(self, rule_id: int) -> None:
        """Record one more use of a rule."""
        pass

    # Accounting period operations
    @abstractmethod
    def create_accounting_period(self, name: str, start_date: date, end_date: date) -> int:
        """Create an open accounting period. Returns period ID."""
        pass

    @abstractmethod
    def get_accounting_period(self, period_id: int) -> Optional[AccountingPeriod]:
        """Get period by ID."""
        pass

    @abstractmethod
    def list_accounting_periods(self) -> list[AccountingPeriod]:
        """List periods ordered by start date."""
        pass

    @abstractmethod
    def set_accounting_period_closed(self, period_id: int, is_closed: bool) -> None:
        """Close or reopen a period."""
        pass

    # Journal operations
    @abstractmethod
    def create_journal_entry(
        self,
        entry_date: date,
        description: str,
        lines: list[JournalLineInput],
        partner_id: Optional[int] = None,
        status: JournalStatus = JournalStatus.DRAFT,
    ) -> int:
        """Persist an entry and its lines in one transaction. Returns entry ID.

        Lines must carry line numbers. Implementations assign the entry
        number and must commit all or nothing.
        """
        pass

    @abstractmethod
    def get_journal_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get entry (with lines) by ID."""
        pass

    @abstractmethod
    def list_journal_entries(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        statuses: Optional[Iterable[JournalStatus]] = None,
        account_id: Optional[int] = None,
        partner_id: Optional[int] = None,
    ) -> list[JournalEntry]:
        """List entries ordered by (date, entry_number) with optional filters."""
        pass

    @abstractmethod
    def update_journal_entry(
        self, entry_id: int, entry_date: Optional[date] = None, description: Optional[str] = None
    ) -> None:
        """Update entry header fields."""
        pass

    @abstractmethod
    def replace_journal_lines(self, entry_id: int, lines: list[JournalLineInput]) -> None:
        """Replace all lines of an entry in one transaction."""
        pass

    @abstractmethod
    def set_journal_status(self, entry_id: int, status: JournalStatus) -> None:
        """Change entry status."""
        pass

    # Ledger queries
    @abstractmethod
    def list_ledger_postings(
        self,
        account_ids: Iterable[int],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        statuses: Optional[Iterable[JournalStatus]] = None,
        partner_id: Optional[int] = None,
    ) -> list[LedgerPosting]:
        """List lines touching the accounts, ordered by (date, entry_number, line_number)."""
        pass

    @abstractmethod
    def get_totals_before(
        self,
        account_ids: Iterable[int],
        before_date: date,
        statuses: Optional[Iterable[JournalStatus]] = None,
        partner_id: Optional[int] = None,
    ) -> tuple[Decimal, Decimal]:
        """Sum (debit, credit) of lines touching the accounts dated before a day."""
        pass
