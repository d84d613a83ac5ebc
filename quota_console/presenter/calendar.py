"""
Check-in calendar grid.
Builds the month view shown on the check-in page from a set of check-in dates.
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Set

from quota_console.services.date_service import DateService


@dataclass(frozen=True)
class CalendarDay:
    day: int
    date_str: str        # YYYY-MM-DD
    is_checked_in: bool
    is_today: bool


def build_calendar(
    year: int,
    month: int,
    checkin_dates: Iterable[str],
    today: Optional[date] = None
) -> List[Optional[CalendarDay]]:
    """
    Cells for one month, weeks starting on Sunday.

    The list starts with one None placeholder per weekday column before the
    1st, followed by a CalendarDay for every day of the month.

    Args:
        year: Displayed year
        month: Displayed month (1-12)
        checkin_dates: YYYY-MM-DD strings the user checked in on
        today: Local date to highlight (defaults to the current date)
    """
    dates = checkin_dates if isinstance(checkin_dates, (set, frozenset)) else set(checkin_dates)
    today = today or DateService.today()

    cells: List[Optional[CalendarDay]] = [None] * DateService.first_weekday(year, month)
    for day in range(1, DateService.days_in_month(year, month) + 1):
        current = date(year, month, day)
        date_str = DateService.format_date(current)
        cells.append(CalendarDay(
            day=day,
            date_str=date_str,
            is_checked_in=date_str in dates,
            is_today=current == today,
        ))
    return cells


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """Previous/next month navigation; unbounded in both directions"""
    return DateService.shift_month(year, month, offset)


def checkin_dates_from_history(records: Iterable[dict]) -> Set[str]:
    """
    Date set for the calendar from history records.

    Uses checkin_date when the record carries one, otherwise the local date
    of created_at. Records with neither are skipped.
    """
    dates = set()
    for record in records:
        date_str = record.get("checkin_date")
        if date_str and DateService.parse_date(date_str):
            dates.add(date_str)
            continue
        local_day = DateService.local_date_from_timestamp(record.get("created_at"))
        if local_day is not None:
            dates.add(DateService.format_date(local_day))
    return dates
