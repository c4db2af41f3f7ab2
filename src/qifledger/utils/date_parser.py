"""Date parsing utilities for QIF files and CLI input."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser

# Quicken writes dates as " 3/15'97", "3/15'24", "03/15/1997" or "3/15/97".
# Two digit years below the pivot land in the 2000s.
QIF_DATE_PATTERN = re.compile(
    r"^\s*(\d{1,2})\s*[/.-]\s*(\d{1,2})\s*(['/.-])\s*(\d{1,4})\s*$"
)

TWO_DIGIT_YEAR_PIVOT = 50


def _expand_year(year_str: str) -> int:
    year = int(year_str)
    if len(year_str) > 2:
        return year
    return 2000 + year if year < TWO_DIGIT_YEAR_PIVOT else 1900 + year


def parse_qif_date(date_str: str) -> date:
    """Parse a QIF date field into a date object.

    Supports:
    - Quicken month/day'year: " 3/15'97", "1/2'24"
    - Month/day/year with 2 or 4 digit years: "3/15/97", "03/15/2024"
    - ISO dates: "2024-03-15"

    Args:
        date_str: Raw date text from a D line or a price row

    Returns:
        Date object

    Raises:
        ValueError: If the date string cannot be parsed
    """
    if date_str is None or not date_str.strip():
        raise ValueError("Empty date string")

    match = QIF_DATE_PATTERN.match(date_str)
    if match:
        month, day, _, year_str = match.groups()
        try:
            return date(_expand_year(year_str), int(month), int(day))
        except ValueError as e:
            raise ValueError(f"Could not parse date '{date_str.strip()}': {e}")

    try:
        return date_parser.isoparse(date_str.strip()).date()
    except (ValueError, TypeError) as e:
        raise ValueError(f"Could not parse date '{date_str.strip()}': {e}")


def parse_date(date_str: str) -> date:
    """Parse a user-supplied date (CLI option) into a date object.

    Accepts "today", "yesterday" and any absolute format dateutil understands.

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, TypeError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
