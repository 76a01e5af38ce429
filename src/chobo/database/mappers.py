"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so domain entities stay stable
when the database schema changes.
"""

from decimal import Decimal

from chobo.domain import entities as domain
from chobo.database.models import (
    Account as ORMAccount,
    Partner as ORMPartner,
    CSVTemplate as ORMCSVTemplate,
    CSVTemplateMapping as ORMCSVTemplateMapping,
    AccountingPeriod as ORMAccountingPeriod,
    ImportRule as ORMImportRule,
    JournalEntry as ORMJournalEntry,
    JournalLine as ORMJournalLine,
)


def _money(value) -> Decimal:
    return Decimal(value if value is not None else 0)


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        code=orm_account.code,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        is_active=orm_account.is_active,
        created_at=orm_account.created_at,
    )


def partner_to_domain(orm_partner: ORMPartner) -> domain.Partner:
    """Convert SQLAlchemy Partner model to domain Partner entity."""
    return domain.Partner(
        id=orm_partner.id,
        code=orm_partner.code,
        name=orm_partner.name,
        partner_type=domain.PartnerType(orm_partner.partner_type),
        created_at=orm_partner.created_at,
    )


def csv_template_to_domain(orm_template: ORMCSVTemplate) -> domain.CSVTemplate:
    """Convert SQLAlchemy CSVTemplate model to domain CSVTemplate entity."""
    return domain.CSVTemplate(
        id=orm_template.id,
        name=orm_template.name,
        bank_name=orm_template.bank_name,
        encoding=orm_template.encoding,
        delimiter=orm_template.delimiter,
        skip_rows=orm_template.skip_rows,
        date_format=orm_template.date_format,
        is_active=orm_template.is_active,
        created_at=orm_template.created_at,
    )


def csv_template_mapping_to_domain(orm_mapping: ORMCSVTemplateMapping) -> domain.CSVTemplateMapping:
    """Convert SQLAlchemy CSVTemplateMapping model to domain entity."""
    return domain.CSVTemplateMapping(
        id=orm_mapping.id,
        template_id=orm_mapping.template_id,
        csv_column_name=orm_mapping.csv_column_name,
        field_name=orm_mapping.field_name,
    )


def import_rule_to_domain(orm_rule: ORMImportRule) -> domain.ImportRule:
    """Convert SQLAlchemy ImportRule model to domain ImportRule entity."""
    return domain.ImportRule(
        id=orm_rule.id,
        pattern=orm_rule.pattern,
        debit_account_id=orm_rule.debit_account_id,
        credit_account_id=orm_rule.credit_account_id,
        confidence=orm_rule.confidence,
        priority=orm_rule.priority,
        is_active=orm_rule.is_active,
        usage_count=orm_rule.usage_count,
        created_at=orm_rule.created_at,
    )


def accounting_period_to_domain(orm_period: ORMAccountingPeriod) -> domain.AccountingPeriod:
    """Convert SQLAlchemy AccountingPeriod model to domain AccountingPeriod entity."""
    return domain.AccountingPeriod(
        id=orm_period.id,
        name=orm_period.name,
        start_date=orm_period.start_date,
        end_date=orm_period.end_date,
        is_closed=orm_period.is_closed,
        created_at=orm_period.created_at,
    )


def journal_line_to_domain(orm_line: ORMJournalLine) -> domain.JournalLine:
    """Convert SQLAlchemy JournalLine model to domain JournalLine entity."""
    return domain.JournalLine(
        id=orm_line.id,
        line_number=orm_line.line_number,
        account_id=orm_line.account_id,
        debit_amount=_money(orm_line.debit_amount),
        credit_amount=_money(orm_line.credit_amount),
        description=orm_line.description,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model (with lines) to domain entity."""
    lines = sorted(orm_entry.lines, key=lambda line: line.line_number)
    return domain.JournalEntry(
        id=orm_entry.id,
        entry_number=orm_entry.entry_number,
        date=orm_entry.date,
        description=orm_entry.description,
        status=domain.JournalStatus(orm_entry.status),
        partner_id=orm_entry.partner_id,
        lines=tuple(journal_line_to_domain(line) for line in lines),
        created_at=orm_entry.created_at,
    )


def journal_line_to_posting(orm_line: ORMJournalLine, scoped_account_ids: set[int]) -> domain.LedgerPosting:
    """Convert a journal line into a ledger posting with counter-account context.

    The counter account is the single other line's account name, or "諸口"
    (sundries) when the entry has several other lines.
    """
    entry = orm_line.journal_entry
    others = [line for line in entry.lines if line.account_id not in scoped_account_ids]
    if len(others) == 1:
        counter_account = others[0].account.name
    elif len(others) > 1:
        counter_account = "諸口"
    else:
        counter_account = None

    return domain.LedgerPosting(
        entry_id=entry.id,
        entry_number=entry.entry_number,
        date=entry.date,
        line_number=orm_line.line_number,
        account_id=orm_line.account_id,
        debit_amount=_money(orm_line.debit_amount),
        credit_amount=_money(orm_line.credit_amount),
        description=orm_line.description or entry.description,
        partner_id=entry.partner_id,
        counter_account=counter_account,
    )
