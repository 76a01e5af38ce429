"""Date parsing utilities."""

from datetime import date, timedelta
import re
import unicodedata
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from chobo.utils.sanitize import unescape_cell

# Hint → order of (year, month, day) components in the split string
_COMPONENT_ORDER = {
    "YYYY/MM/DD": ("y", "m", "d"),
    "YYYY-MM-DD": ("y", "m", "d"),
    "YYYY.MM.DD": ("y", "m", "d"),
    "DD/MM/YYYY": ("d", "m", "y"),
    "DD-MM-YYYY": ("d", "m", "y"),
    "MM/DD/YYYY": ("m", "d", "y"),
    "MM-DD-YYYY": ("m", "d", "y"),
}

_SEPARATORS = re.compile(r"[/\-.]")
_JP_DATE_MARKERS = str.maketrans({"年": "/", "月": "/", "日": None})


def window_year(year: int) -> int:
    """Expand a two-digit year: < 50 → 2000s, otherwise 1900s."""
    if year < 100:
        return year + (2000 if year < 50 else 1900)
    return year


def normalize_date_text(date_str: str) -> str:
    """Fold full-width characters and Japanese date markers into "Y/M/D" form."""
    text = unicodedata.normalize("NFKC", unescape_cell(date_str.strip()))
    return text.translate(_JP_DATE_MARKERS).strip().rstrip("/")


def parse_date(date_str: str, date_format: Optional[str] = None) -> date:
    """Parse a date string into a date object.

    With a format hint (statement import) the string is split on ``/``,
    ``-`` or ``.`` and the components are read in hint order. Undelimited
    digits follow the hint too ("15042024" under "DD/MM/YYYY"), and "YYYYMMDD" is
    also accepted. The resulting date must exist on the calendar, so
    "2024/02/30" is rejected. Unknown hints fall back to dateutil.

    Without a hint (command line) relative words are accepted as well:
    "today", "yesterday", "tomorrow", "this month", "last month",
    "this year", "last year", "this week", "last week".

    Args:
        date_str: Date string
        date_format: Optional hint such as "YYYY/MM/DD"

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed or is not a real date
    """
    if date_str is None or not date_str.strip():
        raise ValueError("Empty date string")

    if date_format is None:
        relative = _parse_relative(date_str.strip().lower())
        if relative is not None:
            return relative

    text = normalize_date_text(date_str)
    hint = (date_format or "").upper()

    if hint == "YYYYMMDD" and not re.fullmatch(r"\d{8}", text):
        raise ValueError(f"Could not parse date '{date_str}' as {date_format}")

    order = ("y", "m", "d") if hint == "YYYYMMDD" else _COMPONENT_ORDER.get(hint)
    if order is None:
        try:
            return date_parser.parse(text).date()
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Could not parse date '{date_str}': {e}")

    if re.fullmatch(r"\d{8}", text):
        # Undelimited digits are read in hint order with a four-digit year
        widths = {"y": 4, "m": 2, "d": 2}
        parts, start = [], 0
        for component in order:
            parts.append(text[start : start + widths[component]])
            start += widths[component]
    else:
        parts = _SEPARATORS.split(text)

    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Could not parse date '{date_str}' as {date_format}")

    values = dict(zip(order, (int(part) for part in parts)))
    return _build_date(date_str, window_year(values["y"]), values["m"], values["d"])


def _build_date(date_str: str, year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except ValueError:
        raise ValueError(f"Invalid calendar date '{date_str}'")


def _parse_relative(text: str) -> Optional[date]:
    today = date.today()
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this week": today - timedelta(days=today.weekday()),
        "last week": today - timedelta(days=today.weekday() + 7),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }
    return relative_dates.get(text)


def get_date_range(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Get start and end dates for a specified period.

    Args:
        period: Period string (this-month, this-year, this-week, last-month, last-year, last-week)
        today: Reference date (defaults to date.today())

    Returns:
        Tuple of (start_date, end_date) for the specified period

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()

    if period == "this-month":
        return (today.replace(day=1), today)

    elif period == "this-year":
        return (today.replace(month=1, day=1), today)

    elif period == "this-week":
        return (today - timedelta(days=today.weekday()), today)

    elif period == "last-month":
        start_date = (today - relativedelta(months=1)).replace(day=1)
        end_date = today.replace(day=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "last-year":
        start_date = today.replace(month=1, day=1) - relativedelta(years=1)
        end_date = today.replace(month=1, day=1) - timedelta(days=1)
        return (start_date, end_date)

    elif period == "last-week":
        start_date = today - timedelta(days=today.weekday() + 7)
        return (start_date, start_date + timedelta(days=6))

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, this-year, "
        "this-week, last-month, last-year, last-week"
    )
