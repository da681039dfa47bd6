"""
Date normalization for jobs.ge listing dates.

The listing table renders dates in two shapes depending on the locale of the
page: a numeric form ("05.03.2025") and an English month form ("5 March").
The month form carries no year, so it is resolved to its nearest future
occurrence.
"""

import re
from datetime import datetime, timedelta
from typing import Optional

# Offset applied to month-name dates and to unparseable input (Tbilisi is UTC+4)
GEORGIA_OFFSET = timedelta(hours=4)

NUMERIC_DATE_RE = re.compile(r'(\d{1,2})\.(\d{1,2})\.(\d{4})')
MONTH_NAME_DATE_RE = re.compile(r'(\d{1,2})\s+([A-Za-z]+)')

MONTHS = {
    'january': 1,
    'february': 2,
    'march': 3,
    'april': 4,
    'may': 5,
    'june': 6,
    'july': 7,
    'august': 8,
    'september': 9,
    'october': 10,
    'november': 11,
    'december': 12,
}
MONTHS.update({name[:3]: number for name, number in list(MONTHS.items())})


def _month_number(name: str) -> Optional[int]:
    return MONTHS.get(name.lower())


def _parse_numeric(text: str) -> Optional[datetime]:
    match = NUMERIC_DATE_RE.search(text)
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    try:
        return datetime(year, month, day)
    except ValueError:
        return None


def _parse_month_name(text: str, now: datetime) -> Optional[datetime]:
    for match in MONTH_NAME_DATE_RE.finditer(text):
        month = _month_number(match.group(2))
        if month is None:
            continue
        day = int(match.group(1))
        try:
            date = datetime(now.year, month, day)
        except ValueError:
            return None
        if date < now:
            # No year on the page: roll forward to the next occurrence
            try:
                date = date.replace(year=now.year + 1)
            except ValueError:
                # 29 February rolled into a non-leap year
                return None
        return date + GEORGIA_OFFSET
    return None


def normalize_date(raw: Optional[str], now: Optional[datetime] = None) -> datetime:
    """
    Convert a raw listing date into an absolute timestamp.

    Rules, tried in order:
    1. empty input -> now
    2. "DD.MM.YYYY" -> that date at local midnight
    3. "D MonthName" -> current year, or next year if that is already past,
       plus GEORGIA_OFFSET
    4. anything else -> now + GEORGIA_OFFSET
    """
    now = now or datetime.now()
    text = (raw or '').strip()
    if not text:
        return now

    date = _parse_numeric(text)
    if date is not None:
        return date

    date = _parse_month_name(text, now)
    if date is not None:
        return date

    return now + GEORGIA_OFFSET
