import re
from datetime import date, datetime
from typing import Any, Optional

from dateutil import parser as dateparser

# Placeholders the normalizers write into missing date fields
MISSING_MARKERS = {"", "N/A", "-"}

MRF_PATTERN = re.compile(r"MRF-\d+")


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Lenient date/time parsing for backend values.

    Accepts datetime/date objects and strings in any format dateutil
    understands. Placeholders and unparseable input give None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text in MISSING_MARKERS:
        return None
    try:
        return dateparser.parse(text)
    except (ValueError, OverflowError):
        return None


def calendar_date(value: Any) -> Optional[date]:
    """The calendar day of a value, time-of-day and offset dropped."""
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def normalize_date_string(value: Any) -> str:
    """YYYY-MM-DD for a date-like value, '' when there is none."""
    day = calendar_date(value)
    return day.isoformat() if day else ""


def format_display_date(value: Any) -> str:
    """
    DD/MM/YYYY for a strict YYYY-MM-DD string:
    anything else renders as '-'.
    """
    if not isinstance(value, str) or not re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        return "-"
    try:
        day = datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return "-"
    return day.strftime("%d/%m/%Y")


def is_mrf_format(mrf_no: Any) -> bool:
    """True for plain MRF numbers like MRF-12 (direct POs carry other formats)."""
    return isinstance(mrf_no, str) and bool(MRF_PATTERN.fullmatch(mrf_no))
