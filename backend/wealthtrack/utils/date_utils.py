# backend/wealthtrack/utils/date_utils.py
"""
Calendar helpers shared by the history, refresh and valuation services.

All dates are UTC calendar days. Prices are daily, so there is no
time-of-day component anywhere in the history pipeline; "today" is the
UTC date at the moment of the call.

Usage:
    from wealthtrack.utils.date_utils import date_range, yesterday

    days = date_range(anchor, today())
"""

from datetime import date, datetime, timedelta, timezone


class InvalidRangeError(ValueError):
    """Raised when a date range is inverted or its bounds cannot be parsed."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def today() -> date:
    """Current UTC calendar date."""
    return datetime.now(timezone.utc).date()


def yesterday() -> date:
    return today() - timedelta(days=1)


def to_iso(d: date) -> str:
    """Format as YYYY-MM-DD."""
    return d.isoformat()


def parse_date(value: date | datetime | str) -> date:
    """
    Coerce a date-like value to a date.

    Accepts date, datetime (UTC date taken for aware values) or an ISO
    string ("2025-01-02" or a full ISO timestamp).

    Raises:
        InvalidRangeError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return parse_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            raise InvalidRangeError(f"Invalid date: '{value}'")
    raise InvalidRangeError(f"Invalid date: {value!r}")


def is_weekend(d: date) -> bool:
    """Saturday or Sunday. No holiday calendar is applied."""
    return d.weekday() >= 5


def date_range(start: date | datetime | str, end: date | datetime | str) -> list[date]:
    """
    Every calendar date from start to end, both inclusive, ascending.

    Example:
        >>> date_range(date(2025, 1, 30), date(2025, 2, 2))
        [date(2025, 1, 30), date(2025, 1, 31), date(2025, 2, 1), date(2025, 2, 2)]

    Raises:
        InvalidRangeError: If start is after end or a bound is unparseable
    """
    start_date = parse_date(start)
    end_date = parse_date(end)

    if start_date > end_date:
        raise InvalidRangeError(
            f"Invalid range: start {to_iso(start_date)} is after end {to_iso(end_date)}"
        )

    span = (end_date - start_date).days
    return [start_date + timedelta(days=offset) for offset in range(span + 1)]
