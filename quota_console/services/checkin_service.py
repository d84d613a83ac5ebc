"""
Check-in service - daily check-in rewards, statistics and history.

A user may check in once per local calendar day. The reward is min_quota,
or a random amount in [min_quota, max_quota] when max_quota is larger,
plus consecutive_reward_quota when the user also checked in yesterday.
"""
import logging
import random
from datetime import timedelta
from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from quota_console.constants import (
    CHECKIN_STREAK_LOOKBACK_DAYS, CHECKIN_HISTORY_STREAK_MAX_DAYS, LOG_TYPE_SYSTEM
)
from quota_console.exceptions import (
    AlreadyCheckedInException, CheckinDisabledException,
    InvalidCheckinCodeException, ValidationException
)
from quota_console.models import CheckinRecord, CheckinConfig, User
from quota_console.quota import render_quota
from quota_console.repositories.checkin_repository import (
    CheckinRecordRepository, CheckinConfigRepository
)
from quota_console.repositories.user_repository import UserRepository
from quota_console.schemas import CheckinConfigUpdate
from quota_console.services.date_service import DateService
from quota_console.services.log_service import LogService
from quota_console.services.user_service import UserService

logger = logging.getLogger("quota_console.checkin")


class CheckinService:
    """Service for daily check-in"""

    def __init__(self, db: Session):
        self.db = db
        self.record_repo = CheckinRecordRepository()
        self.config_repo = CheckinConfigRepository()
        self.log_service = LogService(db)

    # ===== CONFIG =====

    def get_config(self) -> CheckinConfig:
        return self.config_repo.get(self.db)

    def update_config(self, update: CheckinConfigUpdate) -> CheckinConfig:
        """
        Validate and save check-in config.

        Raises:
            ValidationException: negative quotas, or max_quota below min_quota
        """
        if update.min_quota < 0:
            raise ValidationException("min_quota", "must not be negative")
        if update.max_quota < 0:
            raise ValidationException("max_quota", "must not be negative")
        if update.max_quota > 0 and update.max_quota < update.min_quota:
            raise ValidationException("max_quota", "must not be less than min_quota")
        if update.consecutive_reward_quota < 0:
            raise ValidationException("consecutive_reward_quota", "must not be negative")
        if update.checkin_code_enabled and not (update.checkin_code or "").strip():
            raise ValidationException("checkin_code", "must be set when check-in codes are enabled")

        config = self.get_config()
        for field, value in update.model_dump().items():
            setattr(config, field, value)
        config = self.config_repo.update(self.db, config)
        logger.info(
            f"Check-in config updated: enabled={config.enabled}, "
            f"quota={config.min_quota}..{config.max_quota}, code={config.checkin_code_enabled}"
        )
        return config

    # ===== STATUS =====

    def get_today_checkin(self, user_id: int) -> Optional[CheckinRecord]:
        today = DateService.format_date(DateService.today())
        return self.record_repo.get_by_date(self.db, user_id, today)

    def get_stat(self, user_id: int) -> dict:
        """
        Aggregate check-in statistics for a user.

        Returns:
            Dict with total_checkins, consecutive_days, this_month_checkins, total_quota
        """
        today = DateService.today()
        total_checkins, total_quota = self.record_repo.get_totals(self.db, user_id)
        recent = self.record_repo.get_recent_dates(self.db, user_id, CHECKIN_STREAK_LOOKBACK_DAYS)
        return {
            "total_checkins": total_checkins,
            "consecutive_days": DateService.current_streak(recent, today, CHECKIN_STREAK_LOOKBACK_DAYS),
            "this_month_checkins": self.record_repo.count_in_month(
                self.db, user_id, DateService.month_prefix(today)
            ),
            "total_quota": total_quota,
        }

    def get_status(self, user: User) -> dict:
        """Summary for the check-in page: config toggles, today's state and stats"""
        config = self.get_config()
        today_checkin = self.get_today_checkin(user.id)
        stat = self.get_stat(user.id)
        stat["total_quota_display"] = render_quota(stat["total_quota"])
        return {
            "config": {
                "enabled": config.enabled,
                "checkin_code_enabled": config.checkin_code_enabled,
                "calendar_enabled": config.calendar_enabled,
            },
            "has_checked_in": today_checkin is not None,
            "stat": stat,
            "today_checkin": self.serialize_record(today_checkin, stat["consecutive_days"]) if today_checkin else None,
        }

    # ===== CHECK-IN =====

    def calculate_reward(self, config: CheckinConfig, checked_in_yesterday: bool) -> int:
        base_quota = config.min_quota
        if config.max_quota > config.min_quota:
            base_quota = random.randint(config.min_quota, config.max_quota)

        if config.consecutive_reward_enabled and checked_in_yesterday:
            return base_quota + config.consecutive_reward_quota
        return base_quota

    def checkin(self, user: User, checkin_code: Optional[str] = None) -> dict:
        """
        Check the user in for today and credit the reward.

        Args:
            user: The user checking in
            checkin_code: Code submitted by the user (required when codes are enabled)

        Returns:
            Dict with quota, quota_display and consecutive_days (including today)

        Raises:
            AlreadyCheckedInException: a record for today exists
            CheckinDisabledException: the feature is switched off
            InvalidCheckinCodeException: code required and not matching
        """
        today = DateService.today()
        today_str = DateService.format_date(today)

        if self.record_repo.get_by_date(self.db, user.id, today_str):
            raise AlreadyCheckedInException(user.id, today_str)

        config = self.get_config()
        if not config.enabled:
            raise CheckinDisabledException()

        code = (checkin_code or "").strip()
        if config.checkin_code_enabled and code != (config.checkin_code or ""):
            logger.info(f"User {user.id} submitted an invalid check-in code")
            raise InvalidCheckinCodeException()

        recent = self.record_repo.get_recent_dates(self.db, user.id, CHECKIN_STREAK_LOOKBACK_DAYS)
        yesterday_str = DateService.format_date(today - timedelta(days=1))
        quota = self.calculate_reward(config, yesterday_str in recent)

        record = CheckinRecord(
            user_id=user.id,
            quota=quota,
            checkin_date=today_str,
            checkin_code=code or None,
        )
        try:
            self.record_repo.add(self.db, record)
            UserService.increase_quota(user, quota)
            self.log_service.record_log(
                user, LOG_TYPE_SYSTEM,
                f"Check-in reward: {render_quota(quota)}",
                commit=False
            )
            self.db.commit()
        except IntegrityError:
            # Unique (user_id, checkin_date) lost a race with a concurrent request
            self.db.rollback()
            raise AlreadyCheckedInException(user.id, today_str)

        consecutive_days = DateService.count_consecutive_days(
            set(recent) | {today_str}, today, CHECKIN_STREAK_LOOKBACK_DAYS
        )
        logger.info(f"User {user.id} checked in: +{quota} quota, streak {consecutive_days}")
        return {
            "quota": quota,
            "quota_display": render_quota(quota),
            "consecutive_days": consecutive_days,
        }

    # ===== HISTORY =====

    @staticmethod
    def serialize_record(record: CheckinRecord, consecutive_days: Optional[int] = None) -> dict:
        data = {
            "id": record.id,
            "user_id": record.user_id,
            "quota": record.quota,
            "quota_display": render_quota(record.quota),
            "checkin_date": record.checkin_date,
            "checkin_code": record.checkin_code,
            "created_at": record.created_at,
        }
        if consecutive_days is not None:
            data["consecutive_days"] = consecutive_days
        return data

    def get_history(self, user_id: int, page: int, page_size: int) -> Tuple[List[dict], int]:
        """
        One page of a user's history. Each item carries the streak length as
        of that record's date, computed from the user's full date set.
        """
        records, total = self.record_repo.get_user_history(self.db, user_id, page, page_size)
        all_dates = self.record_repo.get_user_dates(self.db, user_id)

        items = []
        for record in records:
            base_day = DateService.parse_date(record.checkin_date)
            consecutive = 0
            if base_day is not None:
                consecutive = DateService.count_consecutive_days(
                    all_dates, base_day, CHECKIN_HISTORY_STREAK_MAX_DAYS
                )
            items.append(self.serialize_record(record, consecutive))
        return items, total

    def get_all_history(
        self, page: int, page_size: int, user_id: Optional[int] = None
    ) -> Tuple[List[dict], int]:
        """Admin view over every user's records (or one user's), with usernames"""
        if user_id:
            records, total = self.record_repo.get_user_history(self.db, user_id, page, page_size)
        else:
            records, total = self.record_repo.get_all_history(self.db, page, page_size)

        users = UserRepository.get_by_ids(self.db, [record.user_id for record in records])
        items = []
        for record in records:
            data = self.serialize_record(record)
            owner = users.get(record.user_id)
            data["username"] = owner.username if owner else f"user{record.user_id}"
            items.append(data)
        return items, total
