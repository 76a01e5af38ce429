"""Chart-of-accounts and trading partner domain services."""

import logging
from typing import Optional
from chobo.database.base import Database
from chobo.domain.entities import (
    Account as AccountEntity,
    AccountType,
    Partner as PartnerEntity,
    PartnerType,
)
from chobo.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_code_not_found,
    account_not_found,
)

logger = logging.getLogger(__name__)

# Codes looked up when a default cash or bank account is needed
CASH_CODE = "1110"
BANK_CODES = ("1120", "1130")
RECEIVABLE_CODE = "1140"
PAYABLE_CODE = "2110"
SALES_CODE = "4110"
OTHER_EXPENSE_CODE = "7190"


def find_cash_account(accounts: list[AccountEntity]) -> Optional[AccountEntity]:
    """Locate the default cash/bank account.

    Tried in order: code 1110, a name containing 普通預金, a name
    containing 現金.
    """
    for account in accounts:
        if account.code == CASH_CODE:
            return account
    for marker in ("普通預金", "現金"):
        for account in accounts:
            if marker in account.name:
                return account
    return None


def find_account(
    accounts: list[AccountEntity], code: str, name: Optional[str] = None
) -> Optional[AccountEntity]:
    """Find an account by code, falling back to an exact name."""
    for account in accounts:
        if account.code == code:
            return account
    if name is not None:
        for account in accounts:
            if account.name == name:
                return account
    return None


class AccountService:
    """Service for managing the chart of accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_account(self, code: str, name: str, account_type: str | AccountType) -> int:
        """Create a new account.

        Args:
            code: Unique account code (e.g. "1110")
            name: Account name (e.g. "現金")
            account_type: asset, liability, equity, revenue or expense

        Returns:
            Account ID

        Raises:
            ValidationError: If code or name is empty, or type is unknown
            ConflictError: If account code already exists
        """
        code = code.strip()
        name = name.strip()
        if not code or not name:
            raise ValidationError("Account code and name are required")
        try:
            account_type = AccountType(account_type)
        except ValueError:
            valid = ", ".join(t.value for t in AccountType)
            raise ValidationError(f"Invalid account type '{account_type}'. Must be one of: {valid}")

        if self.db.get_account_by_code(code) is not None:
            raise ConflictError(f"Account with code '{code}' already exists")

        account_id = self.db.create_account(code=code, name=name, account_type=account_type.value)
        logger.info("Created account %s %s", code, name)
        return account_id

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def get_account_by_code(self, code: str) -> Optional[AccountEntity]:
        """Get account by code."""
        return self.db.get_account_by_code(code)

    def require_account_by_code(self, code: str) -> AccountEntity:
        """Get account by code or raise NotFoundError."""
        account = self.db.get_account_by_code(code)
        if account is None:
            raise NotFoundError(account_code_not_found(code))
        return account

    def list_accounts(self, include_inactive: bool = False) -> list[AccountEntity]:
        """List accounts ordered by code."""
        return self.db.list_accounts(include_inactive=include_inactive)

    def deactivate_account(self, account_id: int) -> None:
        """Hide an account from classification and account lists.

        Raises:
            NotFoundError: If account not found
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        self.db.set_account_active(account_id, False)

    def get_cash_account(self) -> Optional[AccountEntity]:
        """Return the default cash/bank account, if the chart has one."""
        return find_cash_account(self.db.list_accounts())


class PartnerService:
    """Service for managing trading partners."""

    def __init__(self, db: Database):
        self.db = db

    def create_partner(self, code: str, name: str, partner_type: str | PartnerType = PartnerType.BOTH) -> int:
        """Create a new trading partner.

        Raises:
            ValidationError: If code or name is empty, or type is unknown
            ConflictError: If partner code already exists
        """
        code = code.strip()
        name = name.strip()
        if not code or not name:
            raise ValidationError("Partner code and name are required")
        try:
            partner_type = PartnerType(partner_type)
        except ValueError:
            valid = ", ".join(t.value for t in PartnerType)
            raise ValidationError(f"Invalid partner type '{partner_type}'. Must be one of: {valid}")

        if self.db.get_partner_by_code(code) is not None:
            raise ConflictError(f"Partner with code '{code}' already exists")

        return self.db.create_partner(code=code, name=name, partner_type=partner_type.value)

    def get_partner(self, partner_id: int) -> Optional[PartnerEntity]:
        return self.db.get_partner(partner_id)

    def get_partner_by_code(self, code: str) -> Optional[PartnerEntity]:
        return self.db.get_partner_by_code(code)

    def list_partners(self) -> list[PartnerEntity]:
        return self.db.list_partners()
