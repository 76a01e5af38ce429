"""Statement template domain service and template matching."""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence
from chobo.database.base import Database
from chobo.domain.entities import (
    CSVTemplate as CSVTemplateEntity,
    CSVTemplateMapping as CSVTemplateMappingEntity,
)
from chobo.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    template_not_found,
)
from chobo.utils.csv_decoder import ENCODINGS, read_headers

logger = logging.getLogger(__name__)

FIELD_NAMES = {"date", "description", "amount", "deposit", "withdrawal", "type", "balance"}
AMOUNT_FIELDS = ("amount", "deposit", "withdrawal")

# Encodings probed, in order, when no template is named
DETECTION_ENCODINGS = ("UTF-8", "Shift-JIS")

# Accepted date format hints; anything else is parsed by dateutil
DATE_FORMATS = (
    "YYYY/MM/DD",
    "YYYY-MM-DD",
    "YYYY.MM.DD",
    "YYYYMMDD",
    "DD/MM/YYYY",
    "DD-MM-YYYY",
    "MM/DD/YYYY",
    "MM-DD-YYYY",
)


@dataclass(frozen=True)
class TemplateMatch:
    """A detected template and the encoding whose headers matched it."""

    template: CSVTemplateEntity
    encoding: str


def column_map(mappings: Sequence[CSVTemplateMappingEntity]) -> dict[str, str]:
    """Turn mapping rows into field name → statement column."""
    return {m.field_name: m.csv_column_name for m in mappings}


def required_columns(mapping: Mapping[str, str]) -> Optional[list[str]]:
    """Columns a statement must have for the template to apply.

    These are the date and description columns plus the first mapped of
    amount, deposit and withdrawal. Returns None when the template cannot
    match anything because one of those is unmapped.
    """
    amount_column = next((mapping[f] for f in AMOUNT_FIELDS if f in mapping), None)
    if "date" not in mapping or "description" not in mapping or amount_column is None:
        return None
    return [mapping["date"], mapping["description"], amount_column]


def match_template(
    header_sets: Mapping[str, Sequence[str]],
    templates: Sequence[tuple[CSVTemplateEntity, Mapping[str, str]]],
) -> Optional[TemplateMatch]:
    """Return the first template whose required columns all appear in one header set.

    Args:
        header_sets: Encoding → header row decoded with that encoding
        templates: (template, column map) pairs in priority order

    Returns:
        TemplateMatch for the first hit, or None
    """
    for template, mapping in templates:
        required = required_columns(mapping)
        if required is None:
            continue
        for encoding, headers in header_sets.items():
            present = set(headers)
            if all(column in present for column in required):
                return TemplateMatch(template=template, encoding=encoding)
    return None


class CSVTemplateService:
    """Service for managing statement templates."""

    def __init__(self, db: Database):
        """Initialize CSV template service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_template(
        self,
        name: str,
        bank_name: str,
        encoding: str = "UTF-8",
        delimiter: str = ",",
        skip_rows: int = 0,
        date_format: str = "YYYY-MM-DD",
    ) -> int:
        """Create a new statement template.

        Args:
            name: Template name
            bank_name: Issuing bank or card company
            encoding: One of UTF-8, Shift-JIS, EUC-JP, ISO-2022-JP
            delimiter: Single-character field separator
            skip_rows: Leading records before the header row
            date_format: Date hint such as "YYYY/MM/DD"

        Returns:
            Template ID

        Raises:
            ValidationError: If options are invalid
            ConflictError: If template name already exists
        """
        if not name.strip():
            raise ValidationError("Template name is required")
        if encoding not in ENCODINGS:
            raise ValidationError(
                f"Unsupported encoding '{encoding}'. Must be one of: {', '.join(ENCODINGS)}"
            )
        if len(delimiter) != 1:
            raise ValidationError("Delimiter must be a single character")
        if skip_rows < 0:
            raise ValidationError("skip_rows cannot be negative")

        existing = self.db.get_csv_template_by_name(name)
        if existing is not None:
            raise ConflictError(f"CSV template with name '{name}' already exists")

        return self.db.create_csv_template(
            name=name,
            bank_name=bank_name,
            encoding=encoding,
            delimiter=delimiter,
            skip_rows=skip_rows,
            date_format=date_format,
        )

    def get_template(self, template_id: int) -> Optional[CSVTemplateEntity]:
        """Get template by ID."""
        return self.db.get_csv_template(template_id)

    def get_template_by_name(self, name: str) -> Optional[CSVTemplateEntity]:
        """Get template by name.

        Args:
            name: Template name

        Returns:
            Template entity or None if not found
        """
        return self.db.get_csv_template_by_name(name)

    def require_template(self, name: str) -> CSVTemplateEntity:
        """Get template by name or raise NotFoundError."""
        template = self.db.get_csv_template_by_name(name)
        if template is None:
            raise NotFoundError(template_not_found(name))
        return template

    def list_templates(self) -> list[CSVTemplateEntity]:
        """List active templates in creation order."""
        return self.db.list_csv_templates()

    def add_mapping(self, template_id: int, csv_column_name: str, field_name: str) -> int:
        """Map a logical field to a statement column.

        Args:
            template_id: Template ID
            csv_column_name: Column name in the statement header
            field_name: date, description, amount, deposit, withdrawal, type or balance

        Returns:
            Mapping ID

        Raises:
            NotFoundError: If template doesn't exist
            ValidationError: If field name is invalid
            ConflictError: If the field is already mapped
        """
        template = self.db.get_csv_template(template_id)
        if template is None:
            raise NotFoundError(f"CSV template {template_id} not found")

        if field_name not in FIELD_NAMES:
            raise ValidationError(
                f"Invalid field name '{field_name}'. "
                f"Must be one of: {', '.join(sorted(FIELD_NAMES))}"
            )
        if not csv_column_name.strip():
            raise ValidationError("Column name is required")

        if field_name in self.get_column_map(template_id):
            raise ConflictError(f"Field '{field_name}' is already mapped in template '{template.name}'")

        return self.db.add_template_mapping(
            template_id=template_id,
            csv_column_name=csv_column_name.strip(),
            field_name=field_name,
        )

    def get_mappings(self, template_id: int) -> list[CSVTemplateMappingEntity]:
        """Get all column mappings for a template."""
        return self.db.get_template_mappings(template_id)

    def get_column_map(self, template_id: int) -> dict[str, str]:
        """Get field name → statement column for a template."""
        return column_map(self.get_mappings(template_id))

    def validate_template(self, template_id: int) -> tuple[bool, list[str]]:
        """Validate that a template maps everything needed to import.

        Returns:
            Tuple of (is_valid, list of missing fields). An amount source is
            reported as "amount|deposit|withdrawal" when none is mapped.
        """
        mapping = self.get_column_map(template_id)
        missing = [field for field in ("date", "description") if field not in mapping]
        if not any(field in mapping for field in AMOUNT_FIELDS):
            missing.append("|".join(AMOUNT_FIELDS))
        return (len(missing) == 0, missing)

    def delete_template(self, template_id: int) -> None:
        """Delete a template and its mappings.

        Raises:
            NotFoundError: If template doesn't exist
        """
        template = self.db.get_csv_template(template_id)
        if template is None:
            raise NotFoundError(f"CSV template {template_id} not found")

        self.db.delete_csv_template(template_id)

    def detect_template(self, buffer: bytes) -> Optional[TemplateMatch]:
        """Find the template matching a statement's header row.

        The header is decoded as UTF-8 and as Shift-JIS; an encoding that
        cannot decode the file contributes an empty header set.
        """
        header_cache: dict[tuple[str, str, int], list[str]] = {}
        for template in self.list_templates():
            header_sets = {}
            for encoding in DETECTION_ENCODINGS:
                key = (encoding, template.delimiter, template.skip_rows)
                if key not in header_cache:
                    header_cache[key] = read_headers(
                        buffer, encoding, delimiter=template.delimiter, skip_rows=template.skip_rows
                    )
                header_sets[encoding] = header_cache[key]

            match = match_template(header_sets, [(template, self.get_column_map(template.id))])
            if match is not None:
                logger.info("Detected template '%s' (%s)", template.name, match.encoding)
                return match

        logger.info("No template matched the statement header")
        return None
