"""Calendar date parsing for front-matter date fields"""

import datetime


DATE_FORMATS = ('%Y-%m-%d', '%d-%m-%Y', '%Y/%m/%d', '%B %d, %Y', '%d %B %Y')


def parse_date(value) -> datetime.date | None:
    """Parse a front-matter date string into a date, or None when unparseable."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    # ISO datetimes ('2020-12-07T10:00:00', '2020-12-07 10:00') keep only the date part.
    try:
        return datetime.datetime.fromisoformat(text).date()
    except ValueError:
        return None


def format_date(value, fmt: str) -> str | None:
    """Format a front-matter date string with fmt; None when it does not parse."""
    parsed = parse_date(value)
    return parsed.strftime(fmt) if parsed else None
