"""
Option service - generic key/value settings and sign-up group auto assignment.
"""
import json
import logging
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from quota_console.constants import DEFAULT_USER_GROUP, SIGNUP_METHODS, OPTION_GROUP_RATIO
from quota_console.exceptions import ValidationException
from quota_console.repositories.user_repository import OptionRepository

logger = logging.getLogger("quota_console.options")


class OptionService:
    """Service for the key/value option store"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OptionRepository()

    def get_all(self) -> List[Dict[str, str]]:
        return [{"key": option.key, "value": option.value} for option in self.repo.get_all(self.db)]

    def get_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        option = self.repo.get(self.db, key)
        if option is None:
            return default
        return option.value

    def update(self, key: str, value) -> Dict[str, str]:
        """
        Upsert one option. Non-string values are stored as their string form
        (booleans as "true"/"false").
        """
        key = (key or "").strip()
        if not key:
            raise ValidationException("key", "must not be empty")

        if isinstance(value, bool):
            value = "true" if value else "false"
        elif value is None:
            value = ""
        elif not isinstance(value, str):
            value = str(value)

        if key == OPTION_GROUP_RATIO and value:
            self._validate_group_ratio(value)

        option = self.repo.upsert(self.db, key, value)
        logger.info(f"Option '{key}' updated")
        return {"key": option.key, "value": option.value}

    @staticmethod
    def _validate_group_ratio(value: str):
        try:
            parsed = json.loads(value)
        except ValueError:
            raise ValidationException(OPTION_GROUP_RATIO, "must be a JSON object")
        if not isinstance(parsed, dict):
            raise ValidationException(OPTION_GROUP_RATIO, "must be a JSON object")

    def get_group_ratio(self) -> Dict[str, float]:
        """Group name -> ratio map from the GroupRatio option ({} when unset or broken)"""
        raw = self.get_value(OPTION_GROUP_RATIO, "")
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.warning("GroupRatio option is not valid JSON, ignoring")
            return {}
        return parsed if isinstance(parsed, dict) else {}

    def resolve_signup_group(self, signup_method: Optional[str]) -> str:
        """
        User group a newly registered user gets for a login method.

        Args:
            signup_method: github, email, password, discord, telegram,
                wechat, oidc or linuxdo (case-insensitive)

        Returns:
            Configured group name, or "default" when unset
        """
        key = SIGNUP_METHODS.get((signup_method or "").lower())
        if key is None:
            return DEFAULT_USER_GROUP
        value = (self.get_value(key, "") or "").strip()
        return value or DEFAULT_USER_GROUP
