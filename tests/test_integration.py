"""Command line integration tests."""

import csv

import pytest

from chobo.cli.main import cli


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "books.db")


@pytest.fixture
def run(cli_runner, db_path):
    """Invoke the CLI against a fresh database file."""

    def invoke(*args, input=None):
        return cli_runner.invoke(cli, ["--db-path", db_path, *args], input=input)

    return invoke


@pytest.fixture
def initialized(run):
    result = run("init", "--fiscal-year", "2024")
    assert result.exit_code == 0, result.output
    return run


def _write_statement(tmp_path, text, encoding="utf-8", name="statement.csv"):
    path = tmp_path / name
    path.write_bytes(text.encode(encoding))
    return str(path)


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "journal" in result.output
    assert "ledger" in result.output


def test_init_is_idempotent(run):
    first = run("init")
    assert first.exit_code == 0
    assert "Created 12 accounts and 3 templates." in first.output

    second = run("init")
    assert "Created 0 accounts and 0 templates." in second.output


def test_init_without_templates(run):
    result = run("init", "--no-templates")
    assert "Created 12 accounts and 0 templates." in result.output


def test_init_opens_fiscal_year(run):
    result = run("init", "--fiscal-year", "2024")
    assert "Opened accounting period 2024年度." in result.output
    assert "Opened accounting period" not in run("init", "--fiscal-year", "2024").output
    assert "2024-01-01 - 2024-12-31 | open" in run("period", "list").output


class TestPeriodCommands:
    def test_create_and_list(self, initialized):
        result = initialized("period", "create", "2025年度", "2025-01-01", "2025-12-31")
        assert result.exit_code == 0, result.output
        assert "Created accounting period '2025年度' (ID: 2)" in result.output
        listing = initialized("period", "list").output
        assert listing.index("2024年度") < listing.index("2025年度")

    def test_overlap_rejected(self, initialized):
        result = initialized("period", "create", "FY2024", "2024-04-01", "2025-03-31")
        assert result.exit_code == 1
        assert "overlaps" in result.output

    def test_invalid_date(self, initialized):
        result = initialized("period", "create", "bad", "someday", "2025-03-31")
        assert result.exit_code == 1
        assert "Invalid start date" in result.output

    def test_posting_follows_period_state(self, initialized):
        add = ("journal", "add", "2024-04-15", "Sale", "--debit", "1110", "--credit", "4110", "--amount", "500")
        outside = initialized("journal", "add", "2025-04-15", "Sale", "--debit", "1110", "--credit", "4110", "--amount", "500")
        assert outside.exit_code == 1
        assert "No accounting period covers 2025-04-15" in outside.output

        assert "Closed accounting period 1" in initialized("period", "close", "1").output
        closed = initialized(*add)
        assert closed.exit_code == 1
        assert "is closed" in closed.output

        assert "Reopened accounting period 1" in initialized("period", "reopen", "1").output
        assert initialized(*add).exit_code == 0

    def test_close_missing(self, initialized):
        result = initialized("period", "close", "99")
        assert result.exit_code == 1
        assert "Accounting period 99 not found" in result.output


class TestAccountCommands:
    def test_create_and_list(self, initialized):
        result = initialized("account", "create", "7150", "消耗品費", "--type", "expense")
        assert result.exit_code == 0
        assert "Created account 7150 '消耗品費'" in result.output

        listing = initialized("account", "list")
        assert "7150" in listing.output
        assert "現金" in listing.output

    def test_duplicate_code(self, initialized):
        result = initialized("account", "create", "1110", "Cash", "--type", "asset")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_partner_commands(self, initialized):
        result = initialized("partner", "create", "C001", "ヤマダ商店", "--type", "customer")
        assert result.exit_code == 0
        listing = initialized("partner", "list")
        assert "C001" in listing.output
        assert "customer" in listing.output


class TestTemplateCommands:
    def test_create_map_show_delete(self, initialized):
        assert initialized("template", "create", "smbc", "--bank", "三井住友銀行", "--encoding", "Shift-JIS").exit_code == 0
        assert initialized("template", "map", "smbc", "date", "年月日").exit_code == 0
        assert initialized("template", "map", "smbc", "description", "お取り扱い内容").exit_code == 0

        listing = initialized("template", "list")
        assert "smbc" in listing.output
        assert "Missing required fields: amount|deposit|withdrawal" in listing.output

        shown = initialized("template", "show", "smbc")
        assert "Encoding:    Shift-JIS" in shown.output
        assert "年月日" in shown.output

        deleted = initialized("template", "delete", "smbc", "--yes")
        assert "Deleted CSV template 'smbc'" in deleted.output
        assert initialized("template", "show", "smbc").exit_code == 1

    def test_invalid_field(self, initialized):
        result = initialized("template", "map", "generic", "memo", "メモ")
        assert result.exit_code == 2

    def test_delete_asks_for_confirmation(self, initialized):
        result = initialized("template", "delete", "generic", input="n\n")
        assert result.exit_code == 1
        assert "generic" in initialized("template", "list").output


class TestRuleCommands:
    def test_create_list_disable(self, initialized):
        result = initialized("rule", "create", "電気", "--debit", "7130", "--credit", "1120", "--confidence", "0.9")
        assert result.exit_code == 0
        assert "Created rule 1 for '電気'" in result.output

        listing = initialized("rule", "list")
        assert "7130/1120" in listing.output
        assert "0.90" in listing.output

        assert initialized("rule", "disable", "1").exit_code == 0
        assert "No rules found." in initialized("rule", "list").output
        assert "(disabled)" in initialized("rule", "list", "--all").output

    def test_unknown_account(self, initialized):
        result = initialized("rule", "create", "x", "--debit", "9999", "--credit", "1110")
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestImportCommand:
    STATEMENT = "日付,摘要,金額\n2024/04/15,ATM depositー200000,\"200,000\"\n2024/04/16,東京電力 電気料金,-8000\n"

    def test_dry_run_shows_preview(self, initialized, tmp_path):
        path = _write_statement(tmp_path, self.STATEMENT)
        result = initialized("import", path, "--dry-run")
        assert result.exit_code == 0, result.output
        assert "Template: generic (detected)" in result.output
        assert "unmapped" in result.output
        assert "suggested" in result.output
        assert "Dry run: nothing was posted." in result.output
        assert "No journal entries found." in initialized("journal", "list").output

    def test_nothing_posted_without_confirmation(self, initialized, tmp_path):
        path = _write_statement(tmp_path, self.STATEMENT)
        result = initialized("import", path)
        assert "Nothing posted." in result.output

    def test_confirm_and_approve_updates_cash_book(self, initialized, tmp_path):
        path = _write_statement(tmp_path, self.STATEMENT)
        result = initialized("import", path, "--map", "1=1110:4110", "--approve")
        assert result.exit_code == 0, result.output
        assert "Imported: 1 entries" in result.output
        assert "Skipped: 1 rows" in result.output

        ledger = initialized("ledger", "cash", "--start-date", "2024-04-01", "--end-date", "2024-04-30")
        assert ledger.exit_code == 0, ledger.output
        assert "ATM depositー200000" in ledger.output
        assert "200,000" in ledger.output
        assert "売上高" in ledger.output

    def test_min_confidence_and_duplicates(self, initialized, tmp_path):
        path = _write_statement(tmp_path, self.STATEMENT)
        first = initialized("import", path, "--min-confidence", "0.7")
        assert "Imported: 1 entries" in first.output

        again = initialized("import", path, "--dry-run")
        assert "duplicate" in again.output

    def test_invalid_map(self, initialized, tmp_path):
        path = _write_statement(tmp_path, self.STATEMENT)
        result = initialized("import", path, "--map", "one=1110")
        assert result.exit_code == 1
        assert "Invalid --map" in result.output

    def test_unknown_account_in_map(self, initialized, tmp_path):
        path = _write_statement(tmp_path, self.STATEMENT)
        result = initialized("import", path, "--map", "1=9999:4110")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_shift_jis_statement(self, initialized, tmp_path):
        text = "日付,摘要,お支払金額,お預り金額,差引残高\n2024/04/10,ATM入金,,50000,150000\n"
        path = _write_statement(tmp_path, text, encoding="cp932")
        result = initialized("import", path, "--dry-run")
        assert result.exit_code == 0, result.output
        assert "Template: mufg (detected), encoding Shift-JIS" in result.output
        assert "ATM入金" in result.output

    def test_no_template_matches(self, initialized, tmp_path):
        path = _write_statement(tmp_path, "when,what\n2024/04/01,x\n")
        result = initialized("import", path)
        assert result.exit_code == 1
        assert "No template matches" in result.output

    def test_ai_requires_configuration(self, initialized, tmp_path, monkeypatch):
        monkeypatch.delenv("CHOBO_AI_URL", raising=False)
        path = _write_statement(tmp_path, self.STATEMENT)
        result = initialized("import", path, "--ai", "--dry-run")
        assert result.exit_code == 1
        assert "CHOBO_AI_URL" in result.output


class TestJournalCommands:
    def test_add_show_approve_cancel(self, initialized):
        result = initialized(
            "journal", "add", "2024-04-15", "事務用品", "--debit", "7190", "--credit", "現金", "--amount", "1,200"
        )
        assert result.exit_code == 0, result.output
        assert "Created journal entry 2024040001 (ID: 1, draft)" in result.output

        shown = initialized("journal", "show", "1")
        assert "7190 その他経費" in shown.output
        assert "1,200" in shown.output

        assert "Approved journal entry 1" in initialized("journal", "approve", "1").output
        assert "approved" in initialized("journal", "list", "--status", "approved").output

        assert "Cancelled journal entry 1" in initialized("journal", "cancel", "1").output
        again = initialized("journal", "cancel", "1")
        assert again.exit_code == 1
        assert "already cancelled" in again.output

    def test_compound_entry(self, initialized):
        result = initialized(
            "journal",
            "add",
            "2024-04-20",
            "Split bill",
            "--line", "7130:debit:3000",
            "--line", "7140:debit:2000",
            "--line", "1120:credit:5000",
        )
        assert result.exit_code == 0, result.output
        listing = initialized("journal", "list", "--account", "7140")
        assert "Split bill" in listing.output
        assert "5,000" in listing.output

    def test_unbalanced_lines_rejected(self, initialized):
        result = initialized(
            "journal", "add", "2024-04-20", "Broken", "--line", "7130:debit:3000", "--line", "1120:credit:2000"
        )
        assert result.exit_code == 1
        assert "Debits (3000) do not equal credits (2000)" in result.output
        assert "No journal entries found." in initialized("journal", "list").output

    def test_missing_amount_options(self, initialized):
        result = initialized("journal", "add", "2024-04-20", "x", "--debit", "7130")
        assert result.exit_code == 1

    def test_invalid_line_syntax(self, initialized):
        result = initialized("journal", "add", "2024-04-20", "x", "--line", "7130-3000", "--line", "1120:credit:1")
        assert result.exit_code == 1
        assert "Invalid --line" in result.output

    def test_unknown_partner(self, initialized):
        result = initialized(
            "journal", "add", "2024-04-20", "x", "--debit", "1140", "--credit", "4110", "--amount", "1", "--partner", "NOPE"
        )
        assert result.exit_code == 1
        assert "Partner 'NOPE' not found" in result.output

    def test_list_period_conflict(self, initialized):
        result = initialized("journal", "list", "--this-month", "--start-date", "2024-01-01")
        assert result.exit_code == 1
        assert "Period options cannot be combined" in result.output


class TestLedgerCommands:
    @pytest.fixture
    def books(self, initialized):
        initialized("partner", "create", "C001", "ヤマダ商店", "--type", "customer")
        initialized("partner", "create", "V001", "Supplier", "--type", "vendor")
        entries = [
            ("2024-03-20", "Invoice", "1140", "4110", "50000", "C001"),
            ("2024-03-30", "Supplies", "7190", "2110", "8000", "V001"),
        ]
        for entry_date, description, debit, credit, amount, partner in entries:
            result = initialized(
                "journal", "add", entry_date, description,
                "--debit", debit, "--credit", credit, "--amount", amount, "--partner", partner,
            )
            assert result.exit_code == 0, result.output
        assert initialized("journal", "approve", "1", "2").exit_code == 0
        return initialized

    def test_receivable_ledger_by_partner(self, books):
        result = books("ledger", "receivable", "--partner", "C001")
        assert result.exit_code == 0, result.output
        assert "Invoice" in result.output
        assert "50,000" in result.output

    def test_aging(self, books):
        result = books("ledger", "aging", "--as-of", "2024-05-04")
        assert result.exit_code == 0, result.output
        assert "Receivables aging:" in result.output
        assert "31-60 days:" in result.output
        lines = [line for line in result.output.splitlines() if "31-60 days" in line]
        assert "50,000" in lines[0]

    def test_payables_aging(self, books):
        result = books("ledger", "aging", "--payables", "--as-of", "2024-04-17")
        assert "Payables aging:" in result.output
        assert "8,000" in result.output

    def test_schedule(self, books):
        result = books("ledger", "schedule", "--as-of", "2024-04-17")
        assert result.exit_code == 0, result.output
        lines = [line for line in result.output.splitlines() if "This month" in line]
        assert "8,000" in lines[0]

    def test_drafts_only_with_flag(self, books):
        books("journal", "add", "2024-04-01", "Draft sale", "--debit", "1110", "--credit", "4110", "--amount", "999")
        assert "Draft sale" not in books("ledger", "cash").output
        assert "Draft sale" in books("ledger", "cash", "--include-drafts").output

    def test_export(self, books, tmp_path):
        target = tmp_path / "receivable.csv"
        result = books("ledger", "receivable", "--export", str(target))
        assert result.exit_code == 0, result.output
        assert f"Exported 1 rows to {target}" in result.output

        with open(target, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0][0] == "date"
        assert rows[1][2] == "Opening balance"
        assert rows[2][1] == "2024030001"
        assert rows[2][3] == "売上高"
