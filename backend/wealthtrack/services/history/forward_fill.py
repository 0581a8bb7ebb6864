# backend/wealthtrack/services/history/forward_fill.py
"""
Forward-fill of sparse daily price series.

Market data only exists for trading days. Charts and valuations need a
price for every calendar day, so each missing day takes the most recent
known price. Values are never interpolated and never taken from a later
date.
"""

from datetime import date

from wealthtrack.services.market_data.base import HistoricalDataPoint
from wealthtrack.utils.date_utils import date_range


def forward_fill(
        points: list[HistoricalDataPoint],
        fill_to: date | None = None,
) -> list[HistoricalDataPoint]:
    """
    Densify a series to one point per calendar day.

    The output starts at the first input date and ends at the later of the
    last input date and fill_to. Input must be sorted ascending with unique
    dates (what providers return). Running it on its own output returns
    the same series.

    Example:
        Fri 100, Mon 102 -> Fri 100, Sat 100, Sun 100, Mon 102

    Args:
        points: Known prices
        fill_to: Extend the series with the last price up to this date

    Returns:
        Dense series; empty when points is empty
    """
    if not points:
        return []

    known = {p.date: p for p in points}
    end = points[-1].date
    if fill_to is not None and fill_to > end:
        end = fill_to

    filled: list[HistoricalDataPoint] = []
    last = points[0]
    for day in date_range(points[0].date, end):
        if day in known:
            last = known[day]
            filled.append(last)
        else:
            filled.append(HistoricalDataPoint(date=day, price=last.price))

    return filled
