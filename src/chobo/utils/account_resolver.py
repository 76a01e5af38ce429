"""Utility for resolving account codes to IDs."""

from chobo.domain.account import AccountService
from chobo.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve an account code, name or ID to an account ID.

    Codes win over IDs, since chart-of-accounts codes are numeric too:
    "1110" is looked up as a code first, then as an ID.

    Args:
        account_service: AccountService instance
        account: Account code, exact name, or ID

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    if isinstance(account, int):
        if account_service.get_account(account) is None:
            raise NotFoundError(f"Account ID {account} not found")
        return account

    text = account.strip()
    by_code = account_service.get_account_by_code(text)
    if by_code is not None:
        return by_code.id

    try:
        account_id = int(text)
    except ValueError:
        pass
    else:
        if account_service.get_account(account_id) is not None:
            return account_id

    for acc in account_service.list_accounts(include_inactive=True):
        if acc.name == text:
            return acc.id

    raise NotFoundError(f"Account '{account}' not found")
