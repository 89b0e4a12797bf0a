from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class Period:
    start: date
    end: date


def month_start(year: int, month: int) -> date:
    return date(year, month, 1)


def month_end(year: int, month: int) -> date:
    if month == 12:
        return date(year + 1, 1, 1) - date.resolution
    return date(year, month + 1, 1) - date.resolution


def month_period(year: int, month: int) -> Period:
    """Inclusive first and last day of ``year``/``month``.

    Raises ``ValueError`` from ``datetime.date`` when the month is out of range;
    callers are expected to reject such input first.
    """
    return Period(month_start(year, month), month_end(year, month))


def date_range(start: date, end: date) -> Period:
    if start > end:
        raise ValueError("Start date must be before end date")
    return Period(start, end)
