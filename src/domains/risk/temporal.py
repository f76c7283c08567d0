"""Date parsing and calendar-month arithmetic shared by the detectors."""

import math
from datetime import UTC, date, datetime

from dateutil import parser as date_parser

from .exceptions import PreconditionError

# Fills in components a partial date string leaves out, so parsing never
# depends on the wall clock.
_PARSE_DEFAULT = datetime(2000, 1, 1)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def parse_date(value: object) -> datetime | None:
    """Parse a date-like value, returning None when it is not a date.

    Slashes are treated as dashes (``2024/03/05`` == ``2024-03-05``).
    Aware timestamps are converted to naive UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    text = str(value).strip().replace("/", "-")
    if not text:
        return None
    try:
        # Offsets of a day or more parse but fail on conversion.
        return _naive_utc(date_parser.parse(text, default=_PARSE_DEFAULT))
    except (ValueError, OverflowError):
        return None


def months_ago(earlier: object, later: object) -> float:
    """Whole calendar months from ``earlier`` to ``later``.

    Day-of-month is ignored: 2024-01-31 -> 2024-02-01 is one month.
    Returns ``math.inf`` when either side is not a valid date, so invalid
    dates never fall inside a lookback window.
    """
    a = parse_date(earlier)
    b = parse_date(later)
    if a is None or b is None:
        return math.inf
    return (b.year - a.year) * 12 + (b.month - a.month)


def within_lookback(value: object, now: datetime, months: int) -> bool:
    return months_ago(value, now) <= months


def to_reference_time(value: object = None) -> datetime:
    """Resolve the reference "now" for a batch.

    ``None`` means the current UTC time. Anything else must be a valid date.
    """
    if value is None:
        return datetime.now(UTC).replace(tzinfo=None)
    parsed = parse_date(value)
    if parsed is None:
        raise PreconditionError(f"Invalid reference time: {value!r}")
    return parsed
