"""
Log service - records system/usage logs and pages through them.
"""
import json
import logging
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from quota_console.models import Log, User
from quota_console.repositories.log_repository import LogRepository
from quota_console.services.date_service import DateService

logger = logging.getLogger("quota_console.logs")

LOG_FIELDS = (
    "token_name", "model_name", "quota", "prompt_tokens", "completion_tokens",
    "use_time", "is_stream", "channel_id", "group", "ip"
)


class LogService:
    """Service for usage and system logs"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = LogRepository()

    def record_log(
        self,
        user: User,
        log_type: int,
        content: str,
        other: Optional[dict] = None,
        commit: bool = True,
        **fields
    ) -> Log:
        """
        Record a log entry for a user.

        Args:
            user: Owner of the entry
            log_type: One of the LOG_TYPE_* constants
            content: Human readable message
            other: Extra JSON details (frt, group, model_ratio, ...)
            commit: False when the caller commits as part of a larger transaction
            **fields: Any of token_name, model_name, quota, prompt_tokens,
                completion_tokens, use_time, is_stream, channel_id, group, ip

        Returns:
            The staged or committed Log
        """
        unknown = set(fields) - set(LOG_FIELDS)
        if unknown:
            raise TypeError(f"Unknown log fields: {sorted(unknown)}")

        log = Log(
            user_id=user.id,
            username=user.username,
            created_at=DateService.unix_now(),
            type=log_type,
            content=content,
            other=json.dumps(other, ensure_ascii=False) if other else "",
            **fields
        )
        self.repo.add(self.db, log)
        if commit:
            self.db.commit()
            self.db.refresh(log)
        logger.debug(f"Log recorded for user {user.id}: type={log_type}")
        return log

    def get_logs(
        self,
        start_idx: int,
        page_size: int,
        user_id: Optional[int] = None,
        log_type: Optional[int] = None,
        model_name: Optional[str] = None,
        start_timestamp: Optional[int] = None,
        end_timestamp: Optional[int] = None
    ) -> Tuple[List[Log], int]:
        return self.repo.search(
            self.db, start_idx, page_size,
            user_id=user_id, log_type=log_type, model_name=model_name,
            start_timestamp=start_timestamp, end_timestamp=end_timestamp
        )
