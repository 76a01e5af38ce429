"""Statement import domain service.

An import runs in two steps. ``preview_import`` decodes a statement,
normalizes and classifies its rows and flags duplicates without writing
anything. ``execute_import`` then posts the rows a human confirmed (or
whose suggestion is confident enough), one balanced entry per row.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Mapping, Optional

from chobo.clients.ai_classifier import AIClassifierClient
from chobo.database.base import Database
from chobo.domain.classifier import ClassificationContext, classify_transactions
from chobo.domain.csv_template import CSVTemplateService, TemplateMatch
from chobo.domain.duplicates import detect_duplicates
from chobo.domain.entities import (
    AccountSuggestion,
    CSVTemplate,
    DuplicateMatch,
    JournalStatus,
    NormalizedTransaction,
    RowFailure,
)
from chobo.domain.errors import DomainError, ValidationError
from chobo.domain.import_rule import ImportRuleService
from chobo.domain.journal import JournalEntryService
from chobo.domain.normalizer import normalize_rows
from chobo.domain.rate_limit import RateLimiter
from chobo.utils.csv_decoder import DEFAULT_MAX_ROWS, CSVDecodeOptions, decode_csv

logger = logging.getLogger(__name__)

REVIEW_THRESHOLD = 0.5
RULE_WORTHY_BELOW = 0.8
LEARNED_RULE_CONFIDENCE = 0.7
LEARNED_PATTERN_LENGTH = 50

STATUS_DUPLICATE = "duplicate"
STATUS_UNMAPPED = "unmapped"
STATUS_SUGGESTED = "suggested"


@dataclass(frozen=True)
class PreviewRow:
    """One normalized statement row awaiting confirmation.

    ``index`` is the 1-based data row number in the statement.
    """

    index: int
    transaction: NormalizedTransaction
    suggestion: Optional[AccountSuggestion]
    duplicate: Optional[DuplicateMatch]
    status: str


@dataclass(frozen=True)
class ImportPreview:
    template: CSVTemplate
    template_match: Optional[TemplateMatch]
    encoding: str
    rows: list[PreviewRow]
    failures: list[RowFailure]
    truncated: bool = False


@dataclass
class ImportSummary:
    imported: int = 0
    skipped: int = 0
    failed: int = 0
    entry_ids: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    rules_created: int = 0


def row_status(suggestion: Optional[AccountSuggestion], duplicate: Optional[DuplicateMatch]) -> str:
    if duplicate is not None:
        return STATUS_DUPLICATE
    if suggestion is None or suggestion.confidence < REVIEW_THRESHOLD:
        return STATUS_UNMAPPED
    return STATUS_SUGGESTED


class CSVImportService:
    """Service for importing bank and card statements."""

    def __init__(
        self,
        db: Database,
        ai_client: Optional[AIClassifierClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """Initialize CSV import service.

        Args:
            db: Database instance
            ai_client: Optional external classifier, used only when a preview asks for AI
            rate_limiter: Optional limiter bounding classifier calls
        """
        self.db = db
        self.ai_client = ai_client
        self.rate_limiter = rate_limiter
        self.template_service = CSVTemplateService(db)
        self.journal_service = JournalEntryService(db)
        self.rule_service = ImportRuleService(db)

    def _resolve_template(
        self, buffer: bytes, template_name: Optional[str]
    ) -> tuple[CSVTemplate, Optional[TemplateMatch]]:
        if template_name is not None:
            template = self.template_service.require_template(template_name)
            return template, None

        match = self.template_service.detect_template(buffer)
        if match is None:
            raise ValidationError("No template matches this file; pass a template name")
        return match.template, match

    def preview_import(
        self,
        buffer: bytes,
        template_name: Optional[str] = None,
        options: Optional[CSVDecodeOptions] = None,
        use_ai: bool = False,
        duplicate_tolerance: Decimal = Decimal("0"),
        normalize_workers: Optional[int] = None,
        encoding: Optional[str] = None,
        max_rows: int = DEFAULT_MAX_ROWS,
    ) -> ImportPreview:
        """Decode, normalize, classify and flag duplicates without writing.

        Args:
            buffer: Raw statement bytes
            template_name: Template to use; detected from the header if None
            options: Decoding options; built from the template if None
            use_ai: Consult the external classifier (requires an AI client)
            duplicate_tolerance: Amount tolerance for duplicate detection
            normalize_workers: Thread count for normalization (sequential if None)
            encoding: Override the template or detected encoding
            max_rows: Row cap when options are built from the template

        Returns:
            ImportPreview

        Raises:
            CSVDecodeError: If the file cannot be decoded
            NotFoundError: If the named template does not exist
            ValidationError: If no template applies or the template is incomplete
        """
        template, match = self._resolve_template(buffer, template_name)

        is_valid, missing = self.template_service.validate_template(template.id)
        if not is_valid:
            raise ValidationError(
                f"CSV template '{template.name}' is missing required mappings: {', '.join(missing)}"
            )

        if options is None:
            options = CSVDecodeOptions(
                encoding=encoding or (match.encoding if match else template.encoding),
                delimiter=template.delimiter,
                skip_rows=template.skip_rows,
                max_rows=max_rows,
            )
        decoded = decode_csv(buffer, options)

        column_map = self.template_service.get_column_map(template.id)
        result = normalize_rows(decoded.rows, column_map, template.date_format, max_workers=normalize_workers)
        transactions = result.transactions

        # Chart of accounts and rules are read once for the whole batch
        context = ClassificationContext(
            accounts=self.db.list_accounts(),
            rules=self.db.list_import_rules(),
            ai_client=self.ai_client,
            rate_limiter=self.rate_limiter,
            use_ai=use_ai,
        )
        if use_ai and self.ai_client is None:
            logger.warning("AI classification requested but no classifier is configured")
        suggestions = classify_transactions(transactions, context)

        existing = []
        if transactions:
            existing = self.db.list_journal_entries(
                start_date=min(tx.date for tx in transactions),
                end_date=max(tx.date for tx in transactions),
                statuses=[JournalStatus.DRAFT, JournalStatus.APPROVED],
            )
        duplicates = detect_duplicates(transactions, existing, tolerance=duplicate_tolerance)

        rows = [
            PreviewRow(
                index=tx.row_number,
                transaction=tx,
                suggestion=suggestion,
                duplicate=duplicate,
                status=row_status(suggestion, duplicate),
            )
            for tx, suggestion, duplicate in zip(transactions, suggestions, duplicates)
        ]
        logger.info(
            "Previewed %d rows with template '%s' (%s): %d failed",
            len(rows),
            template.name,
            options.encoding,
            len(result.failures),
        )
        return ImportPreview(
            template=template,
            template_match=match,
            encoding=options.encoding,
            rows=rows,
            failures=result.failures,
            truncated=decoded.truncated,
        )

    def execute_import(
        self,
        preview: ImportPreview,
        confirmations: Optional[Mapping[int, tuple[int, int]]] = None,
        accept_min_confidence: Optional[float] = None,
        skip_duplicates: bool = True,
        create_rules: bool = False,
        approve: bool = False,
    ) -> ImportSummary:
        """Post confirmed rows as journal entries.

        A row is posted when ``confirmations`` maps its index to a (debit
        account ID, credit account ID) pair, or when its suggestion reaches
        ``accept_min_confidence``. Every other row is skipped. Each row is
        committed on its own, so one failure never blocks the others.

        Args:
            preview: Result of preview_import
            confirmations: Row index → (debit account ID, credit account ID)
            accept_min_confidence: Accept suggestions at or above this confidence
            skip_duplicates: Leave rows flagged as duplicates out
            create_rules: Learn a rule from each posted row whose suggestion was weak
            approve: Approve entries right after creating them

        Returns:
            ImportSummary
        """
        confirmations = confirmations or {}
        summary = ImportSummary()
        learned_patterns = {rule.pattern for rule in self.db.list_import_rules(active_only=False)}

        for row in preview.rows:
            tx = row.transaction
            if row.duplicate is not None and skip_duplicates:
                summary.skipped += 1
                continue

            if row.index in confirmations:
                debit_account_id, credit_account_id = confirmations[row.index]
            elif (
                accept_min_confidence is not None
                and row.suggestion is not None
                and row.suggestion.confidence >= accept_min_confidence
            ):
                debit_account_id = row.suggestion.debit_account_id
                credit_account_id = row.suggestion.credit_account_id
            else:
                summary.skipped += 1
                continue

            if tx.amount == 0:
                summary.failed += 1
                summary.errors.append(f"Row {row.index}: amount is zero")
                continue

            try:
                entry_id = self.journal_service.create_simple_entry(
                    entry_date=tx.date,
                    description=tx.description,
                    debit_account_id=debit_account_id,
                    credit_account_id=credit_account_id,
                    amount=tx.amount,
                )
                if approve:
                    self.journal_service.approve(entry_id)
            except DomainError as e:
                logger.warning("Row %d not posted: %s", row.index, e)
                summary.failed += 1
                summary.errors.append(f"Row {row.index}: {e}")
                continue

            summary.imported += 1
            summary.entry_ids.append(entry_id)

            suggestion = row.suggestion
            if (
                suggestion is not None
                and suggestion.origin.startswith("rule:")
                and (suggestion.debit_account_id, suggestion.credit_account_id)
                == (debit_account_id, credit_account_id)
            ):
                self.rule_service.record_use(int(suggestion.origin.split(":", 1)[1]))

            weak = row.suggestion is None or row.suggestion.confidence < RULE_WORTHY_BELOW
            pattern = tx.description[:LEARNED_PATTERN_LENGTH].strip()
            if create_rules and weak and pattern and pattern not in learned_patterns:
                try:
                    self.rule_service.create_rule(
                        pattern=pattern,
                        debit_account_id=debit_account_id,
                        credit_account_id=credit_account_id,
                        confidence=LEARNED_RULE_CONFIDENCE,
                    )
                except DomainError as e:
                    summary.errors.append(f"Row {row.index}: rule not created: {e}")
                else:
                    learned_patterns.add(pattern)
                    summary.rules_created += 1

        logger.info(
            "Import finished: %d imported, %d skipped, %d failed",
            summary.imported,
            summary.skipped,
            summary.failed,
        )
        return summary

    def import_file(
        self,
        path: str,
        template_name: Optional[str] = None,
        encoding: Optional[str] = None,
        use_ai: bool = False,
        dry_run: bool = False,
        **execute_options,
    ) -> tuple[ImportPreview, Optional[ImportSummary]]:
        """Preview a statement file and, unless ``dry_run``, post it.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        statement = Path(path)
        if not statement.exists():
            raise FileNotFoundError(f"CSV file not found: {path}")

        preview = self.preview_import(
            statement.read_bytes(), template_name=template_name, encoding=encoding, use_ai=use_ai
        )
        if dry_run:
            return preview, None
        return preview, self.execute_import(preview, **execute_options)
