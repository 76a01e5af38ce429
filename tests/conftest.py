"""Shared pytest fixtures for chobo tests."""

import tempfile
import os
import pytest

from chobo.cli.commands.init_data import seed_accounts, seed_templates
from chobo.database.factories import create_sqlite_database
from chobo.domain.accounting_period import AccountingPeriodService
from chobo.domain.account import AccountService, PartnerService
from chobo.domain.csv_template import CSVTemplateService
from chobo.domain.import_rule import ImportRuleService
from chobo.domain.journal import JournalEntryService
from chobo.domain.ledger import LedgerService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    return AccountService(temp_db)


@pytest.fixture
def partner_service(temp_db):
    return PartnerService(temp_db)


@pytest.fixture
def template_service(temp_db):
    return CSVTemplateService(temp_db)


@pytest.fixture
def rule_service(temp_db):
    return ImportRuleService(temp_db)


@pytest.fixture
def journal_service(temp_db):
    return JournalEntryService(temp_db)


@pytest.fixture
def ledger_service(temp_db):
    return LedgerService(temp_db)


@pytest.fixture
def period_service(temp_db):
    return AccountingPeriodService(temp_db)


@pytest.fixture
def fiscal_2024(period_service):
    """An open accounting period covering 2024."""
    return period_service.get_period(period_service.create_fiscal_year(2024))


@pytest.fixture
def accounts(account_service, fiscal_2024):
    """Seed the default chart of accounts and return accounts by code.

    Entries dated in 2024 can be posted, since the 2024 period is open.
    """
    seed_accounts(account_service)
    return {acc.code: acc for acc in account_service.list_accounts()}


@pytest.fixture
def templates(template_service):
    """Seed the default statement templates and return them by name."""
    seed_templates(template_service)
    return {t.name: t for t in template_service.list_templates()}


@pytest.fixture
def sample_template(template_service):
    """A UTF-8 template with a single signed amount column."""
    template_id = template_service.create_template(
        name="sample", bank_name="Sample Bank", encoding="UTF-8", date_format="YYYY/MM/DD"
    )
    template_service.add_mapping(template_id, "date", "date")
    template_service.add_mapping(template_id, "desc", "description")
    template_service.add_mapping(template_id, "amount", "amount")
    return template_service.get_template(template_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
