"""Tests for mapper functions converting between domain and ORM models."""

from datetime import date, datetime, UTC
from decimal import Decimal

from chobo.database.mappers import (
    account_to_domain,
    csv_template_to_domain,
    import_rule_to_domain,
    journal_entry_to_domain,
    journal_line_to_posting,
    partner_to_domain,
)
from chobo.database.models import (
    Account as ORMAccount,
    CSVTemplate as ORMCSVTemplate,
    ImportRule as ORMImportRule,
    JournalEntry as ORMJournalEntry,
    JournalLine as ORMJournalLine,
    Partner as ORMPartner,
)
from chobo.domain.entities import AccountType, JournalStatus, PartnerType

NOW = datetime(2024, 4, 1, 9, 0, tzinfo=UTC)


def _account(account_id, code, name):
    return ORMAccount(id=account_id, code=code, name=name, account_type="asset", is_active=True, created_at=NOW)


def _entry(lines):
    entry = ORMJournalEntry(
        id=10,
        entry_number="2024040001",
        date=date(2024, 4, 15),
        description="ATM入金",
        status="approved",
        partner_id=None,
        created_at=NOW,
    )
    entry.lines = lines
    return entry


class TestAccountMapper:
    """Test Account mapper functions."""

    def test_account_to_domain(self):
        orm_account = ORMAccount(
            id=1, code="1110", name="現金", account_type="asset", is_active=True, created_at=NOW
        )
        account = account_to_domain(orm_account)
        assert account.id == 1
        assert account.code == "1110"
        assert account.name == "現金"
        assert account.account_type == AccountType.ASSET
        assert account.account_type.is_debit_normal
        assert account.created_at == NOW


class TestPartnerMapper:
    def test_partner_to_domain(self):
        orm_partner = ORMPartner(id=3, code="V001", name="Supplier", partner_type="vendor", created_at=NOW)
        partner = partner_to_domain(orm_partner)
        assert partner.partner_type == PartnerType.VENDOR
        assert partner.code == "V001"


class TestTemplateAndRuleMappers:
    def test_csv_template_to_domain(self):
        orm_template = ORMCSVTemplate(
            id=2,
            name="mufg",
            bank_name="三菱UFJ銀行",
            encoding="Shift-JIS",
            delimiter=",",
            skip_rows=0,
            date_format="YYYY/MM/DD",
            is_active=True,
            created_at=NOW,
        )
        template = csv_template_to_domain(orm_template)
        assert template.name == "mufg"
        assert template.encoding == "Shift-JIS"
        assert template.date_format == "YYYY/MM/DD"

    def test_import_rule_to_domain(self):
        orm_rule = ORMImportRule(
            id=4,
            pattern="電気",
            debit_account_id=10,
            credit_account_id=1,
            confidence=None,
            priority=100,
            is_active=True,
            usage_count=3,
            created_at=NOW,
        )
        rule = import_rule_to_domain(orm_rule)
        assert rule.pattern == "電気"
        assert rule.confidence is None
        assert rule.usage_count == 3


class TestJournalMappers:
    def test_entry_lines_sorted_and_decimal(self):
        cash, sales = _account(1, "1110", "現金"), _account(7, "4110", "売上高")
        lines = [
            ORMJournalLine(id=2, line_number=2, account_id=7, account=sales, debit_amount=0, credit_amount=Decimal("200000.00")),
            ORMJournalLine(id=1, line_number=1, account_id=1, account=cash, debit_amount=Decimal("200000.00"), credit_amount=0),
        ]
        entry = journal_entry_to_domain(_entry(lines))
        assert entry.status == JournalStatus.APPROVED
        assert [line.line_number for line in entry.lines] == [1, 2]
        assert isinstance(entry.lines[1].debit_amount, Decimal)
        assert entry.total_debit == entry.total_credit == Decimal("200000")

    def test_posting_counter_account(self):
        cash, sales = _account(1, "1110", "現金"), _account(7, "4110", "売上高")
        cash_line = ORMJournalLine(id=1, line_number=1, account_id=1, account=cash, debit_amount=Decimal("500"), credit_amount=0)
        sales_line = ORMJournalLine(id=2, line_number=2, account_id=7, account=sales, debit_amount=0, credit_amount=Decimal("500"))
        _entry([cash_line, sales_line])

        posting = journal_line_to_posting(cash_line, {1})
        assert posting.counter_account == "売上高"
        assert posting.entry_number == "2024040001"
        assert posting.date == date(2024, 4, 15)
        assert posting.description == "ATM入金"
        assert posting.debit_amount == Decimal("500")

    def test_posting_counter_account_with_several_lines(self):
        bank = _account(2, "1120", "普通預金")
        utilities = _account(10, "7130", "水道光熱費")
        phone = _account(11, "7140", "通信費")
        bank_line = ORMJournalLine(id=3, line_number=3, account_id=2, account=bank, debit_amount=0, credit_amount=Decimal("5000"))
        lines = [
            ORMJournalLine(id=1, line_number=1, account_id=10, account=utilities, debit_amount=Decimal("3000"), credit_amount=0),
            ORMJournalLine(id=2, line_number=2, account_id=11, account=phone, debit_amount=Decimal("2000"), credit_amount=0, description="Mobile"),
            bank_line,
        ]
        _entry(lines)

        assert journal_line_to_posting(bank_line, {2}).counter_account == "諸口"
        assert journal_line_to_posting(lines[1], {11}).description == "Mobile"
