"""
Check-in page view-model.

Holds the state behind the check-in page (summary cards, check-in button,
code-entry dialog, history table and calendar) and drives it through the
console API. Counters come from the server; the only values computed here
are the progress-bar fractions.
"""
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Protocol

from quota_console.quota import render_quota
from quota_console.services.date_service import DateService
from .calendar import CalendarDay, build_calendar, checkin_dates_from_history, shift_month
from .client import ApiError, AlreadyCheckedIn, ConsoleClient, TransportError, ValidationError

logger = logging.getLogger("quota_console.presenter")

DEFAULT_HISTORY_PAGE_SIZE = 10
PROGRESS_DAYS = 30


class ViewState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class Notifier(Protocol):
    """Toast sink for user-visible messages"""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier that only writes to the log, for headless use"""

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.warning(message)


@dataclass
class CheckinSummary:
    enabled: bool = False
    checked_today: bool = False
    consecutive_days: int = 0
    month_count: int = 0
    total_quota: float = 0
    code_enabled: bool = False
    calendar_enabled: bool = True
    today_checkin: Optional[dict] = None

    @classmethod
    def from_status(cls, status: dict) -> "CheckinSummary":
        """Build from the /api/checkin/status payload"""
        config = status.get("config") or {}
        stat = status.get("stat") or {}
        return cls(
            enabled=bool(config.get("enabled")),
            checked_today=bool(status.get("has_checked_in")),
            consecutive_days=stat.get("consecutive_days") or 0,
            month_count=stat.get("this_month_checkins") or 0,
            total_quota=stat.get("total_quota") or 0,
            code_enabled=bool(config.get("checkin_code_enabled")),
            calendar_enabled=config.get("calendar_enabled", True) is not False,
            today_checkin=status.get("today_checkin"),
        )


class CheckinPageModel:
    """View-model for the check-in page"""

    def __init__(
        self,
        client: ConsoleClient,
        notifier: Optional[Notifier] = None,
        page_size: int = DEFAULT_HISTORY_PAGE_SIZE,
        today: Optional[date] = None
    ):
        self.client = client
        self.notifier = notifier or LoggingNotifier()
        self.state = ViewState.IDLE

        self.summary: Optional[CheckinSummary] = None
        self.balance: Optional[float] = None

        self.history: List[dict] = []
        self.total = 0
        self.page = 1
        self.page_size = page_size

        # Busy flags; each guards one action against re-entry
        self.history_loading = False
        self.checkin_loading = False
        self.code_submitting = False
        self.show_code_modal = False

        current = today or DateService.today()
        self.year, self.month = current.year, current.month

    # ===== LOADING =====

    def load(self) -> ViewState:
        """Fetch balance, summary and the first history page"""
        self.state = ViewState.LOADING
        ok = self.refresh_balance()
        ok = self.refresh_summary() and ok
        ok = self.refresh_history(1, self.page_size) and ok
        self.state = ViewState.LOADED if ok else ViewState.ERROR
        return self.state

    def refresh_balance(self) -> bool:
        try:
            self.balance = self.client.get_self()["quota"]
        except TransportError:
            self.notifier.error("Failed to load account information")
            return False
        except ApiError as e:
            self.notifier.error(e.message)
            return False
        return True

    def refresh_summary(self) -> bool:
        try:
            status = self.client.get_checkin_status()
        except TransportError:
            self.notifier.error("Failed to load check-in information")
            return False
        except ApiError as e:
            self.notifier.error(e.message)
            return False
        self.summary = CheckinSummary.from_status(status)
        return True

    def refresh_history(self, page: Optional[int] = None, page_size: Optional[int] = None) -> bool:
        if self.history_loading:
            return False
        page = page or self.page
        page_size = page_size or self.page_size

        self.history_loading = True
        try:
            data = self.client.get_checkin_history(page, page_size)
        except TransportError:
            self.notifier.error("Failed to load check-in history")
            return False
        except ApiError as e:
            self.notifier.error(e.message)
            return False
        finally:
            self.history_loading = False

        self.history = data.get("items") or []
        self.total = data.get("total") or 0
        self.page = page
        self.page_size = page_size
        return True

    def change_page(self, page: int, page_size: Optional[int] = None) -> bool:
        """Pager callback; the size changer's last value sticks for later pages"""
        return self.refresh_history(page, page_size or self.page_size)

    # ===== CHECK-IN =====

    @property
    def can_checkin(self) -> bool:
        if self.summary is None or not self.summary.enabled:
            return False
        if self.summary.checked_today:
            return False
        return not (self.checkin_loading or self.code_submitting)

    def perform_checkin(self) -> Optional[dict]:
        """
        Check-in button handler.

        Opens the code dialog when codes are required, otherwise checks in
        directly.

        Returns:
            The server result on success, else None
        """
        if not self.can_checkin:
            return None
        if self.summary.code_enabled:
            self.show_code_modal = True
            return None

        self.checkin_loading = True
        try:
            return self._checkin(None)
        finally:
            self.checkin_loading = False

    def submit_code(self, code: str) -> Optional[dict]:
        """Code dialog submit; a blank code is rejected without a request"""
        if not self.show_code_modal or not self.can_checkin:
            return None
        try:
            code = self._require_code(code)
        except ValidationError as e:
            self.notifier.error(e.message)
            return None

        self.code_submitting = True
        try:
            return self._checkin(code)
        finally:
            self.code_submitting = False

    def cancel_code(self):
        self.show_code_modal = False

    @staticmethod
    def _require_code(code: Optional[str]) -> str:
        code = (code or "").strip()
        if not code:
            raise ValidationError("Please enter the check-in code")
        return code

    def _checkin(self, code: Optional[str]) -> Optional[dict]:
        try:
            result = self.client.perform_checkin(code)
        except TransportError:
            self.notifier.error("Check-in failed")
            return None
        except AlreadyCheckedIn as e:
            if self.summary is not None:
                self.summary.checked_today = True
            self.notifier.error(e.message)
            return None
        except ApiError as e:
            self.notifier.error(e.message)
            return None

        quota = result.get("quota") or 0
        if self.balance is not None:
            self.balance += quota
        if self.summary is not None:
            self.summary.checked_today = True
            self.summary.consecutive_days = result.get("consecutive_days") or 0
        self.show_code_modal = False
        self.notifier.success(f"Check-in successful! Received {render_quota(quota)}")

        # Re-query instead of building the new record locally
        self.refresh_summary()
        self.refresh_history(self.page, self.page_size)
        return result

    # ===== DISPLAY =====

    @property
    def month_progress(self) -> float:
        """Monthly bar fill; may exceed 1.0"""
        if self.summary is None:
            return 0.0
        return self.summary.month_count / PROGRESS_DAYS

    @property
    def streak_progress(self) -> float:
        if self.summary is None:
            return 0.0
        return min(self.summary.consecutive_days / PROGRESS_DAYS, 1.0)

    @property
    def checkin_dates(self) -> set:
        return checkin_dates_from_history(self.history)

    def calendar(self, today: Optional[date] = None) -> List[Optional[CalendarDay]]:
        return build_calendar(self.year, self.month, self.checkin_dates, today)

    def previous_month(self):
        self.year, self.month = shift_month(self.year, self.month, -1)

    def next_month(self):
        self.year, self.month = shift_month(self.year, self.month, 1)
