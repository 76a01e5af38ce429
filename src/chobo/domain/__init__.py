"""Domain layer for chobo application."""

# Services are imported lazily: the database layer imports domain entities,
# and services import the database layer.
_SERVICES = {
    "AccountService": "chobo.domain.account",
    "PartnerService": "chobo.domain.account",
    "CSVTemplateService": "chobo.domain.csv_template",
    "CSVImportService": "chobo.domain.csv_import",
    "ImportRuleService": "chobo.domain.import_rule",
    "JournalEntryService": "chobo.domain.journal",
    "LedgerService": "chobo.domain.ledger",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
