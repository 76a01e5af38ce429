"""Initialize the chart of accounts and bank statement templates."""

from datetime import date

import click
from chobo.domain.account import AccountService
from chobo.domain.accounting_period import AccountingPeriodService, find_period
from chobo.domain.csv_template import CSVTemplateService
from chobo.domain.errors import DomainError


# (code, name, type)
INITIAL_ACCOUNTS = [
    ("1110", "現金", "asset"),
    ("1120", "普通預金", "asset"),
    ("1130", "当座預金", "asset"),
    ("1140", "売掛金", "asset"),
    ("2110", "買掛金", "liability"),
    ("3110", "資本金", "equity"),
    ("4110", "売上高", "revenue"),
    ("4190", "雑収入", "revenue"),
    ("7110", "旅費交通費", "expense"),
    ("7130", "水道光熱費", "expense"),
    ("7140", "通信費", "expense"),
    ("7190", "その他経費", "expense"),
]

# name → (bank name, encoding, date format, {field: column})
INITIAL_TEMPLATES = {
    "mufg": (
        "三菱UFJ銀行",
        "Shift-JIS",
        "YYYY/MM/DD",
        {
            "date": "日付",
            "description": "摘要",
            "withdrawal": "お支払金額",
            "deposit": "お預り金額",
            "balance": "差引残高",
        },
    ),
    "card": (
        "クレジットカード",
        "UTF-8",
        "YYYY/MM/DD",
        {"date": "利用日", "description": "利用店名・商品名", "amount": "利用金額"},
    ),
    "generic": (
        "Generic",
        "UTF-8",
        "YYYY/MM/DD",
        {"date": "日付", "description": "摘要", "amount": "金額"},
    ),
}


def seed_accounts(service: AccountService) -> int:
    """Create missing seed accounts. Returns how many were created."""
    created = 0
    for code, name, account_type in INITIAL_ACCOUNTS:
        if service.get_account_by_code(code) is None:
            service.create_account(code=code, name=name, account_type=account_type)
            created += 1
    return created


def seed_templates(service: CSVTemplateService) -> int:
    """Create missing seed templates with their mappings. Returns how many were created."""
    created = 0
    for name, (bank_name, encoding, date_format, mapping) in INITIAL_TEMPLATES.items():
        if service.get_template_by_name(name) is not None:
            continue
        template_id = service.create_template(
            name=name, bank_name=bank_name, encoding=encoding, date_format=date_format
        )
        for field_name, column in mapping.items():
            service.add_mapping(template_id, column, field_name)
        created += 1
    return created


def seed_fiscal_year(service: AccountingPeriodService, year: int) -> bool:
    """Create the calendar-year period unless a period already covers its first day."""
    if find_period(service.list_periods(), date(year, 1, 1)) is not None:
        return False
    service.create_fiscal_year(year)
    return True


@click.command("init")
@click.option("--no-templates", is_flag=True, help="Only create the chart of accounts")
@click.option("--fiscal-year", type=int, help="Year of the accounting period to open (default: this year)")
@click.pass_context
def init(ctx, no_templates: bool, fiscal_year: int | None):
    """Initialize database with a default chart of accounts and statement templates.

    Also opens a calendar-year accounting period, since entries can only
    be posted into an open period.

    Existing accounts and templates are kept; only missing ones are created.
    """
    db = ctx.obj["db"]

    try:
        accounts = seed_accounts(AccountService(db))
        templates = 0 if no_templates else seed_templates(CSVTemplateService(db))
        year = fiscal_year or date.today().year
        period_created = seed_fiscal_year(AccountingPeriodService(db), year)
    except DomainError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    click.echo(f"Created {accounts} accounts and {templates} templates.")
    if period_created:
        click.echo(f"Opened accounting period {year}年度.")


def register_commands(cli):
    """Register init command with main CLI."""
    cli.add_command(init)
