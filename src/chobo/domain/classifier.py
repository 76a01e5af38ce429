"""Account suggestion for normalized transactions.

Each strategy is a plain function ``(transaction, context) ->
Optional[AccountSuggestion]``. ``classify`` tries them in order and the
first suggestion wins; ``None`` from every strategy means the row stays
unmapped.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from chobo.clients.ai_classifier import AIClassifierClient, AIClassifierError
from chobo.domain.account import (
    OTHER_EXPENSE_CODE,
    SALES_CODE,
    find_account,
    find_cash_account,
)
from chobo.domain.entities import (
    Account,
    AccountSuggestion,
    Direction,
    ImportRule,
    NormalizedTransaction,
)
from chobo.domain.rate_limit import RateLimiter

logger = logging.getLogger(__name__)

RULE_DEFAULT_CONFIDENCE = 0.8
AI_MIN_CONFIDENCE = 0.7
INCOME_KEYWORD_CONFIDENCE = 0.6
EXPENSE_KEYWORD_CONFIDENCE = 0.7
DEFAULT_CONFIDENCE = 0.3
MAX_REGEX_LENGTH = 100

INCOME_KEYWORDS = ("入金", "振込", "給与", "salary", "payroll")

# category → (account code, account name, keywords)
EXPENSE_KEYWORDS = {
    "utilities": ("7130", "水道光熱費", ("電気", "ガス", "水道", "electric", "gas", "water")),
    "communications": ("7140", "通信費", ("電話", "携帯", "インターネット", "phone", "mobile", "internet")),
    "travel": ("7110", "旅費交通費", ("jr", "電車", "交通", "タクシー", "suica", "pasmo", "taxi", "train")),
}


@dataclass
class ClassificationContext:
    """Everything classification reads, loaded once per import.

    The cash/bank account is derived from ``accounts`` unless given.
    """

    accounts: list[Account]
    rules: list[ImportRule] = field(default_factory=list)
    ai_client: Optional[AIClassifierClient] = None
    rate_limiter: Optional[RateLimiter] = None
    use_ai: bool = False
    ai_min_confidence: float = AI_MIN_CONFIDENCE
    cash_account: Optional[Account] = None

    def __post_init__(self):
        if self.cash_account is None:
            self.cash_account = find_cash_account(self.accounts)
        self.rules = sorted((r for r in self.rules if r.is_active), key=lambda r: (r.priority, r.id))
        self._by_code = {account.code: account for account in self.accounts}

    @property
    def ai_enabled(self) -> bool:
        return self.use_ai and self.ai_client is not None

    def account_by_code(self, code: str) -> Optional[Account]:
        return self._by_code.get(code)


Strategy = Callable[[NormalizedTransaction, ClassificationContext], Optional[AccountSuggestion]]


def regex_body(pattern: str) -> Optional[str]:
    """The expression inside a ``/.../`` rule pattern, or None for a plain substring."""
    if len(pattern) > 2 and pattern.startswith("/") and pattern.endswith("/"):
        return pattern[1:-1]
    return None


def _rule_matches(pattern: str, description: str) -> bool:
    body = regex_body(pattern)
    if body is None:
        return pattern.lower() in description.lower()
    if len(body) <= MAX_REGEX_LENGTH:
        try:
            return re.search(body, description, re.IGNORECASE) is not None
        except re.error:
            pass
    return body.lower() in description.lower()


def match_rule(tx: NormalizedTransaction, context: ClassificationContext) -> Optional[AccountSuggestion]:
    """First active rule, in (priority, id) order, whose pattern matches.

    ``/.../`` patterns are case-insensitive regular expressions (an invalid
    expression, or one longer than MAX_REGEX_LENGTH, is matched literally);
    other patterns are case-insensitive substrings.
    """
    for rule in context.rules:
        if _rule_matches(rule.pattern, tx.description):
            confidence = rule.confidence if rule.confidence is not None else RULE_DEFAULT_CONFIDENCE
            return AccountSuggestion(
                debit_account_id=rule.debit_account_id,
                credit_account_id=rule.credit_account_id,
                confidence=confidence,
                origin=f"rule:{rule.id}",
                reason=f"Matched rule '{rule.pattern}'",
            )
    return None


def suggest_with_ai(tx: NormalizedTransaction, context: ClassificationContext) -> Optional[AccountSuggestion]:
    """Ask the external classifier; any failure falls through to the next strategy."""
    if not context.ai_enabled:
        return None

    if context.rate_limiter is not None:
        decision = context.rate_limiter.check("ai")
        if not decision.allowed:
            logger.warning("AI rate limit reached for row %d; retry in %.1fs", tx.row_number, decision.retry_after)
            return None

    try:
        answer = context.ai_client.classify(tx.description, context.accounts)
    except AIClassifierError as e:
        logger.warning("AI classification failed for row %d: %s", tx.row_number, e)
        return None

    if answer.confidence < context.ai_min_confidence:
        logger.debug("AI suggestion for row %d below threshold (%.2f)", tx.row_number, answer.confidence)
        return None

    debit = context.account_by_code(answer.debit_account_code)
    credit = context.account_by_code(answer.credit_account_code)
    if debit is None or credit is None:
        logger.warning(
            "AI suggested unknown account codes %s/%s for row %d",
            answer.debit_account_code,
            answer.credit_account_code,
            tx.row_number,
        )
        return None

    return AccountSuggestion(
        debit_account_id=debit.id,
        credit_account_id=credit.id,
        confidence=answer.confidence,
        origin="ai",
        reason=answer.reason,
    )


def _sales_account(context: ClassificationContext) -> Optional[Account]:
    return find_account(context.accounts, SALES_CODE, "売上高")


def suggest_by_keywords(tx: NormalizedTransaction, context: ClassificationContext) -> Optional[AccountSuggestion]:
    """Match the description against the built-in Japanese/English keyword table."""
    cash = context.cash_account
    if cash is None:
        return None
    text = tx.description.lower()

    if tx.direction != Direction.EXPENSE:
        keyword = next((k for k in INCOME_KEYWORDS if k in text), None)
        sales = _sales_account(context)
        if keyword is not None and sales is not None:
            return AccountSuggestion(
                debit_account_id=cash.id,
                credit_account_id=sales.id,
                confidence=INCOME_KEYWORD_CONFIDENCE,
                origin="keyword:income",
                reason=f"Description contains '{keyword}'",
            )
        return None

    for category, (code, name, keywords) in EXPENSE_KEYWORDS.items():
        keyword = next((k for k in keywords if k in text), None)
        if keyword is None:
            continue
        account = find_account(context.accounts, code, name)
        if account is None:
            continue
        return AccountSuggestion(
            debit_account_id=account.id,
            credit_account_id=cash.id,
            confidence=EXPENSE_KEYWORD_CONFIDENCE,
            origin=f"keyword:{category}",
            reason=f"Description contains '{keyword}'",
        )
    return None


def default_suggestion(tx: NormalizedTransaction, context: ClassificationContext) -> Optional[AccountSuggestion]:
    """Low-confidence fallback by direction: sales for income, other expenses for expense."""
    cash = context.cash_account
    if cash is None:
        return None

    if tx.direction == Direction.INCOME:
        sales = _sales_account(context)
        if sales is None:
            return None
        return AccountSuggestion(cash.id, sales.id, DEFAULT_CONFIDENCE, "default:income")

    if tx.direction == Direction.EXPENSE:
        other = find_account(context.accounts, OTHER_EXPENSE_CODE, "その他経費")
        if other is None:
            return None
        return AccountSuggestion(other.id, cash.id, DEFAULT_CONFIDENCE, "default:expense")

    return None


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    match_rule,
    suggest_with_ai,
    suggest_by_keywords,
    default_suggestion,
)


def classify(
    tx: NormalizedTransaction,
    context: ClassificationContext,
    strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
) -> Optional[AccountSuggestion]:
    """Return the first strategy's suggestion, or None when nothing applies."""
    for strategy in strategies:
        suggestion = strategy(tx, context)
        if suggestion is not None:
            return suggestion
    return None


def classify_transactions(
    transactions: Sequence[NormalizedTransaction],
    context: ClassificationContext,
    max_workers: int = 4,
    strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
) -> list[Optional[AccountSuggestion]]:
    """Classify a batch, aligned with the input.

    When AI is active the rows run on a thread pool so one slow call does
    not hold up the rest.
    """
    if context.ai_enabled and max_workers > 1 and len(transactions) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(lambda tx: classify(tx, context, strategies), transactions))
    return [classify(tx, context, strategies) for tx in transactions]
