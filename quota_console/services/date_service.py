"""
Date calculation service.
Handles check-in date strings, month arithmetic and streak counting.
All dates are local calendar dates formatted as YYYY-MM-DD.
"""
from datetime import datetime, timedelta, date
from typing import Iterable, Optional

DATE_FORMAT = "%Y-%m-%d"


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def today() -> date:
        """Current local calendar date"""
        return datetime.now().date()

    @staticmethod
    def format_date(target_date: date) -> str:
        return target_date.strftime(DATE_FORMAT)

    @staticmethod
    def parse_date(date_str: str) -> Optional[date]:
        """
        Parse a YYYY-MM-DD string.

        Returns:
            The date, or None if the string is malformed
        """
        try:
            return datetime.strptime(date_str, DATE_FORMAT).date()
        except (TypeError, ValueError):
            return None

    @staticmethod
    def month_prefix(target_date: date) -> str:
        """YYYY-MM prefix shared by every date string of the month"""
        return target_date.strftime("%Y-%m")

    @staticmethod
    def days_in_month(year: int, month: int) -> int:
        """
        Number of days in a month.

        Computed as the day before the first of the next month, so leap
        years need no special casing.
        """
        next_year, next_month = DateService.shift_month(year, month, 1)
        return (date(next_year, next_month, 1) - timedelta(days=1)).day

    @staticmethod
    def first_weekday(year: int, month: int) -> int:
        """Weekday column of the 1st of the month, Sunday = 0 ... Saturday = 6"""
        return (date(year, month, 1).weekday() + 1) % 7

    @staticmethod
    def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
        """
        Move a (year, month) pair by offset months in either direction.

        Args:
            year: Reference year
            month: Reference month (1-12)
            offset: Months to move, negative for the past

        Returns:
            Tuple of (year, month)
        """
        index = year * 12 + (month - 1) + offset
        return index // 12, index % 12 + 1

    @staticmethod
    def count_consecutive_days(
        checkin_dates: Iterable[str],
        end_date: date,
        max_days: int
    ) -> int:
        """
        Count consecutive checked-in days walking back from end_date.

        Args:
            checkin_dates: Date strings the user checked in on
            end_date: Last day of the run (inclusive)
            max_days: Upper bound on the walk

        Returns:
            Length of the unbroken run ending at end_date (0 if end_date missing)
        """
        dates = checkin_dates if isinstance(checkin_dates, (set, frozenset)) else set(checkin_dates)
        count = 0
        for offset in range(max_days):
            day = end_date - timedelta(days=offset)
            if DateService.format_date(day) not in dates:
                break
            count += 1
        return count

    @staticmethod
    def current_streak(checkin_dates: Iterable[str], today: date, max_days: int) -> int:
        """
        Streak ending today, or ending yesterday when today is not checked in yet.
        """
        dates = set(checkin_dates)
        if DateService.format_date(today) in dates:
            return DateService.count_consecutive_days(dates, today, max_days)
        return DateService.count_consecutive_days(dates, today - timedelta(days=1), max_days)

    @staticmethod
    def local_date_from_timestamp(value) -> Optional[date]:
        """
        Local date of a unix timestamp (seconds) or an ISO-8601 string.

        Returns:
            The local calendar date, or None if the value cannot be read
        """
        if value is None or value == "":
            return None
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value).date()
        if isinstance(value, datetime):
            return value.date()
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone()
        return parsed.date()

    @staticmethod
    def unix_now() -> int:
        return int(datetime.now().timestamp())
