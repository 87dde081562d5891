"""
Amount and Date Parsing

Turns the raw text fields of a statement export into numbers and calendar
dates. Parsing is forgiving: bad amounts become 0 and bad dates become None.
"""
import calendar
import re
from datetime import date, datetime
from typing import Optional

ALL_MONTHS_LABEL = 'All months'

# Tried first, against the whole (stripped) text
GENERIC_DATE_FORMATS = [
    '%Y-%m-%d',             # 2024-03-15
    '%Y/%m/%d',             # 2024/03/15
    '%Y-%m-%dT%H:%M:%S',    # 2024-03-15T09:30:00
    '%Y-%m-%dT%H:%M',       # 2024-03-15T09:30
    '%Y-%m-%d %H:%M:%S',    # 2024-03-15 09:30:00
    '%Y-%m-%d %H:%M',       # 2024-03-15 09:30
    '%B %d, %Y',            # March 15, 2024
    '%B %d %Y',             # March 15 2024
    '%b %d, %Y',            # Mar 15, 2024
    '%b %d %Y',             # Mar 15 2024
    '%d %B %Y',             # 15 March 2024
    '%d %B, %Y',            # 15 March, 2024
    '%d %b %Y',             # 15 Mar 2024
    '%d-%b-%Y',             # 15-Mar-2024
    '%a, %d %b %Y',         # Fri, 15 Mar 2024
]

NUMERIC_DATE_RE = re.compile(r'^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$')
CLOCK_PREFIX_RE = re.compile(r'^\d{1,2}:\d{2}\s*(am|pm)\s*', re.IGNORECASE)
TEXTUAL_DATE_RE = re.compile(
    r'^(?:(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun)[a-z]*,?\s*)?'
    r'(\d{1,2})\s+'
    r'(January|February|March|April|May|June|July|August|September|October|November|December),?\s+'
    r'(\d{4})',
    re.IGNORECASE,
)
MONTH_INDEX = {name.lower(): i for i, name in enumerate(calendar.month_name) if name}

YEAR_MONTH_RE = re.compile(r'^\d{4}-\d{2}$')


def parse_amount(value) -> float:
    """
    Parse an amount field into a signed float.

    Keeps digits, minus signs, commas and periods, drops commas as thousands
    separators and returns 0.0 for anything that still is not a number.
    """
    if value is None:
        return 0.0
    cleaned = re.sub(r'[^\d\-,.]', '', str(value)).replace(',', '')
    if not cleaned:
        return 0.0
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def is_numeric_amount(value) -> bool:
    """True when the cleaned field is a well-formed number (used for header detection)"""
    if value is None:
        return False
    cleaned = re.sub(r'[^\d\-,.]', '', str(value)).replace(',', '')
    if not cleaned:
        return False
    try:
        float(cleaned)
    except ValueError:
        return False
    return True


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_generic(text: str) -> Optional[date]:
    for fmt in GENERIC_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _parse_numeric(text: str) -> Optional[date]:
    match = NUMERIC_DATE_RE.match(text)
    if not match:
        return None
    a, b, year = int(match.group(1)), int(match.group(2)), int(match.group(3))
    if a > 12:
        day, month = a, b
    elif b > 12:
        day, month = b, a
    else:
        # Ambiguous: prefer AU day-first
        day, month = a, b
    return _safe_date(year, month, day)


def _parse_textual(text: str) -> Optional[date]:
    match = TEXTUAL_DATE_RE.match(CLOCK_PREFIX_RE.sub('', text))
    if not match:
        return None
    month = MONTH_INDEX.get(match.group(2).lower())
    if month is None:
        return None
    return _safe_date(int(match.group(3)), month, int(match.group(1)))


def parse_date_smart(value) -> Optional[date]:
    """
    Resolve a raw date field to a calendar date.

    Tries, in order:
      1. common ISO and textual formats
      2. D/M/YYYY (or D-M-YYYY), day-first unless only the second field can be a day
      3. "[10:30 am] [Fri] 15 March[,] 2024"

    Returns:
        datetime.date or None when nothing matches
    """
    if not value:
        return None
    text = str(value).strip()
    if not text:
        return None

    return _parse_generic(text) or _parse_numeric(text) or _parse_textual(text)


def year_month_key(d: date) -> str:
    """2024-03-03 -> '2024-03'"""
    return f"{d.year:04d}-{d.month:02d}"


def format_month_label(key: Optional[str]) -> str:
    """'2024-03' -> 'March 2024'; empty -> 'All months'"""
    if not key:
        return ALL_MONTHS_LABEL
    if not YEAR_MONTH_RE.match(key):
        return key
    year, month = (int(part) for part in key.split('-'))
    if not 1 <= month <= 12:
        return key
    return f"{calendar.month_name[month]} {year}"


def friendly_month_or_all(label) -> str:
    if not label:
        return ALL_MONTHS_LABEL
    if YEAR_MONTH_RE.match(str(label)):
        return format_month_label(str(label))
    return str(label)


def to_title_case(text: Optional[str]) -> str:
    """'OFFICE_SUPPLIES' -> 'Office Supplies'"""
    if not text:
        return ''
    text = str(text).lower()
    text = re.sub(r'[_-]+', ' ', text)
    text = re.sub(r'\s+', ' ', text).strip()
    return re.sub(r'\b([a-z])', lambda m: m.group(1).upper(), text)


def for_filename(label: str) -> str:
    return re.sub(r'\s+', '_', str(label))
