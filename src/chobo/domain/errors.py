"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class CSVDecodeError(ValidationError):
    """A statement file could not be decoded; the whole buffer is rejected."""

    def __init__(self, message: str, row: Optional[int] = None, offset: Optional[int] = None):
        self.row = row
        self.offset = offset
        location = []
        if row is not None:
            location.append(f"row {row}")
        if offset is not None:
            location.append(f"byte {offset}")
        if location:
            message = f"{message} ({', '.join(location)})"
        super().__init__(message)


class InvariantViolationError(ValidationError):
    """A journal entry failed the double-entry checks."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("Journal entry rejected: " + "; ".join(self.problems))


class InvalidStateError(DomainError):
    """Operation not allowed in the entry's current status."""


class PersistenceError(DomainError):
    """The store rejected a write; nothing was committed."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def account_code_not_found(code: str) -> str:
    """Return message for missing account by code."""
    return f"Account with code '{code}' not found"


def partner_not_found(partner_id: int) -> str:
    """Return message for missing partner."""
    return f"Partner {partner_id} not found"


def template_not_found(name: str) -> str:
    """Return message for missing CSV template by name."""
    return f"CSV template '{name}' not found"


def rule_not_found(rule_id: int) -> str:
    """Return message for missing import rule."""
    return f"Import rule {rule_id} not found"


def entry_not_found(entry_id: int) -> str:
    """Return message for missing journal entry."""
    return f"Journal entry {entry_id} not found"


def entry_not_editable(entry_id: int, status: str) -> str:
    """Return message when a non-draft entry is edited."""
    return f"Journal entry {entry_id} is {status}; only draft entries can be edited"


def period_not_found(period_id: int) -> str:
    """Return message for missing accounting period."""
    return f"Accounting period {period_id} not found"
