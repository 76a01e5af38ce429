"""Accounting period domain service."""

import logging
from datetime import date
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from chobo.database.base import Database
from chobo.domain.entities import AccountingPeriod
from chobo.domain.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    period_not_found,
)

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
MAX_PERIOD_YEARS = 2


def find_period(periods: Iterable[AccountingPeriod], day: date) -> Optional[AccountingPeriod]:
    """Return the period containing ``day``, open or closed."""
    for period in periods:
        if period.contains(day):
            return period
    return None


class AccountingPeriodService:
    """Service for managing accounting periods and the posting guard."""

    def __init__(self, db: Database):
        """Initialize accounting period service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_period(self, name: str, start_date: date, end_date: date) -> int:
        """Create an open accounting period.

        Args:
            name: Unique period name (e.g. "2024年度")
            start_date: First day of the period
            end_date: Last day of the period

        Returns:
            Period ID

        Raises:
            ValidationError: If the name is empty or too long, the start is not
                before the end, or the period spans more than two years
            ConflictError: If the name is taken or the dates overlap another period
        """
        name = name.strip()
        if not name:
            raise ValidationError("Accounting period name is required")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f"Accounting period name cannot exceed {MAX_NAME_LENGTH} characters")
        if start_date >= end_date:
            raise ValidationError("Accounting period start date must be before its end date")
        if end_date > start_date + relativedelta(years=MAX_PERIOD_YEARS):
            raise ValidationError(f"Accounting period cannot exceed {MAX_PERIOD_YEARS} years")

        for period in self.db.list_accounting_periods():
            if period.name == name:
                raise ConflictError(f"Accounting period '{name}' already exists")
            if period.start_date <= end_date and start_date <= period.end_date:
                raise ConflictError(f"Accounting period overlaps '{period.name}'")

        period_id = self.db.create_accounting_period(name=name, start_date=start_date, end_date=end_date)
        logger.info("Created accounting period %s (%s to %s)", name, start_date, end_date)
        return period_id

    def create_fiscal_year(self, year: int) -> int:
        """Create the calendar-year period named like "2024年度"."""
        return self.create_period(f"{year}年度", date(year, 1, 1), date(year, 12, 31))

    def get_period(self, period_id: int) -> Optional[AccountingPeriod]:
        return self.db.get_accounting_period(period_id)

    def list_periods(self) -> list[AccountingPeriod]:
        return self.db.list_accounting_periods()

    def close_period(self, period_id: int) -> None:
        """Close a period; entries dated in it can no longer change."""
        self._require(period_id)
        self.db.set_accounting_period_closed(period_id, True)
        logger.info("Closed accounting period %d", period_id)

    def reopen_period(self, period_id: int) -> None:
        self._require(period_id)
        self.db.set_accounting_period_closed(period_id, False)
        logger.info("Reopened accounting period %d", period_id)

    def _require(self, period_id: int) -> AccountingPeriod:
        period = self.db.get_accounting_period(period_id)
        if period is None:
            raise NotFoundError(period_not_found(period_id))
        return period

    def require_open_period(self, day: date) -> AccountingPeriod:
        """Return the open period containing ``day``.

        Raises:
            ValidationError: If no period covers the date
            InvalidStateError: If the covering period is closed
        """
        period = find_period(self.db.list_accounting_periods(), day)
        if period is None:
            raise ValidationError(f"No accounting period covers {day.isoformat()}")
        if period.is_closed:
            raise InvalidStateError(f"Accounting period '{period.name}' is closed")
        return period
