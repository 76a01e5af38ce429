"""Import rule domain service."""

import re
from typing import Optional

from chobo.database.base import Database
from chobo.domain.classifier import MAX_REGEX_LENGTH, regex_body
from chobo.domain.entities import ImportRule as ImportRuleEntity
from chobo.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    rule_not_found,
)

MAX_PATTERN_LENGTH = 200


class ImportRuleService:
    """Service for managing user-authored classification rules."""

    def __init__(self, db: Database):
        """Initialize import rule service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_rule(
        self,
        pattern: str,
        debit_account_id: int,
        credit_account_id: int,
        confidence: Optional[float] = None,
        priority: int = 100,
    ) -> int:
        """Create a rule.

        Args:
            pattern: Case-insensitive substring, or "/regex/"
            debit_account_id: Account debited when the rule matches
            credit_account_id: Account credited when the rule matches
            confidence: Suggestion confidence in [0, 1]; 0.8 is used if None
            priority: Lower runs first

        Returns:
            Rule ID

        Raises:
            ValidationError: If the pattern is empty, too long or an invalid
                expression, or confidence is out of range
            NotFoundError: If either account does not exist
        """
        pattern = pattern.strip()
        if not pattern:
            raise ValidationError("Rule pattern is required")
        if len(pattern) > MAX_PATTERN_LENGTH:
            raise ValidationError(f"Rule pattern cannot exceed {MAX_PATTERN_LENGTH} characters")
        body = regex_body(pattern)
        if body is not None:
            if len(body) > MAX_REGEX_LENGTH:
                raise ValidationError(f"Regular expression patterns cannot exceed {MAX_REGEX_LENGTH} characters")
            try:
                re.compile(body)
            except re.error as e:
                raise ValidationError(f"Invalid regular expression '{body}': {e}")
        if confidence is not None and not 0 <= confidence <= 1:
            raise ValidationError("Confidence must be between 0 and 1")
        if debit_account_id == credit_account_id:
            raise ValidationError("Debit and credit accounts must differ")

        for account_id in (debit_account_id, credit_account_id):
            if self.db.get_account(account_id) is None:
                raise NotFoundError(account_not_found(account_id))

        return self.db.create_import_rule(
            pattern=pattern,
            debit_account_id=debit_account_id,
            credit_account_id=credit_account_id,
            confidence=confidence,
            priority=priority,
        )

    def get_rule(self, rule_id: int) -> Optional[ImportRuleEntity]:
        return self.db.get_import_rule(rule_id)

    def list_rules(self, include_disabled: bool = False) -> list[ImportRuleEntity]:
        """List rules in evaluation order, (priority, id)."""
        return self.db.list_import_rules(active_only=not include_disabled)

    def disable_rule(self, rule_id: int) -> None:
        """Stop a rule from matching without deleting it.

        Raises:
            NotFoundError: If rule not found
        """
        if self.db.get_import_rule(rule_id) is None:
            raise NotFoundError(rule_not_found(rule_id))
        self.db.set_import_rule_active(rule_id, False)

    def record_use(self, rule_id: int) -> None:
        self.db.increment_rule_usage(rule_id)
