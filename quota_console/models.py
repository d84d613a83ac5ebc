from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, BigInteger, UniqueConstraint
from datetime import datetime
import json

from quota_console.database import Base
from quota_console.constants import (
    ROLE_COMMON_USER, STATUS_ENABLED, DEFAULT_USER_GROUP,
    CHECKIN_DEFAULT_MIN_QUOTA, CHECKIN_DEFAULT_MAX_QUOTA,
    CHECKIN_DEFAULT_CONSECUTIVE_REWARD_QUOTA, LOG_TYPE_UNKNOWN
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    display_name = Column(String(128), default="")
    role = Column(Integer, default=ROLE_COMMON_USER)
    status = Column(Integer, default=STATUS_ENABLED)
    quota = Column(BigInteger, default=0)       # Remaining balance in quota units
    used_quota = Column(BigInteger, default=0)
    group = Column(String(64), default=DEFAULT_USER_GROUP)  # User group name
    access_token = Column(String(64), unique=True, index=True, nullable=True)
    signup_method = Column(String(32), default="password")
    created_at = Column(DateTime, default=datetime.now)


class Option(Base):
    __tablename__ = "options"

    key = Column(String(128), primary_key=True)
    value = Column(Text, default="")


class CheckinRecord(Base):
    __tablename__ = "checkin_records"
    __table_args__ = (
        UniqueConstraint("user_id", "checkin_date", name="uq_checkin_user_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    quota = Column(Integer, nullable=False, default=0)       # Reward granted
    checkin_date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    checkin_code = Column(String(20), nullable=True)         # Code used, if any
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class CheckinConfig(Base):
    __tablename__ = "checkin_config"

    id = Column(Integer, primary_key=True, index=True)
    enabled = Column(Boolean, default=False)
    min_quota = Column(Integer, default=CHECKIN_DEFAULT_MIN_QUOTA)
    max_quota = Column(Integer, default=CHECKIN_DEFAULT_MAX_QUOTA)  # 0 = fixed reward
    checkin_code_enabled = Column(Boolean, default=False)
    checkin_code = Column(String(20), default="")
    consecutive_reward_enabled = Column(Boolean, default=False)
    consecutive_reward_quota = Column(Integer, default=CHECKIN_DEFAULT_CONSECUTIVE_REWARD_QUOTA)
    calendar_enabled = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class UserGroup(Base):
    __tablename__ = "user_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(64), nullable=False, index=True)  # Not unique
    display_name = Column(String(128), nullable=False, default="")
    description = Column(Text, default="")
    config = Column(Text, default="")   # JSON: auto_assign_rules, permissions, extra
    status = Column(Integer, default=STATUS_ENABLED)
    created_time = Column(BigInteger, default=0)
    updated_time = Column(BigInteger, default=0)
    deleted_at = Column(DateTime, nullable=True, index=True)

    def get_config(self) -> dict:
        """Parsed config JSON; malformed or empty config reads as {}"""
        if not self.config:
            return {}
        try:
            config = json.loads(self.config)
        except ValueError:
            return {}
        return config if isinstance(config, dict) else {}


class UserGroupEnableGroup(Base):
    __tablename__ = "user_group_enable_groups"

    id = Column(Integer, primary_key=True, index=True)
    user_group_id = Column(Integer, nullable=False, index=True)
    enable_group = Column(String(64), nullable=False, index=True)  # Model group name
    created_time = Column(BigInteger, default=0)
    updated_time = Column(BigInteger, default=0)


class ModelGroup(Base):
    __tablename__ = "model_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(64), nullable=False, unique=True, index=True)
    display_name = Column(String(128), default="")
    description = Column(Text, default="")
    model_list = Column(Text, default="[]")  # JSON array of model names
    status = Column(Integer, default=STATUS_ENABLED)
    created_time = Column(BigInteger, default=0)
    updated_time = Column(BigInteger, default=0)

    def get_models(self) -> list:
        try:
            models = json.loads(self.model_list or "[]")
        except ValueError:
            return []
        return models if isinstance(models, list) else []

    def set_models(self, models: list):
        self.model_list = json.dumps(list(models or []), ensure_ascii=False)


class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, index=True)
    created_at = Column(BigInteger, index=True)  # Unix seconds
    type = Column(Integer, default=LOG_TYPE_UNKNOWN, index=True)
    content = Column(Text, default="")
    username = Column(String(64), default="")
    token_name = Column(String(64), default="")
    model_name = Column(String(128), default="", index=True)
    quota = Column(Integer, default=0)
    prompt_tokens = Column(Integer, default=0)
    completion_tokens = Column(Integer, default=0)
    use_time = Column(Integer, default=0)  # Seconds
    is_stream = Column(Boolean, default=False)
    channel_id = Column(Integer, default=0)
    group = Column(String(64), default="")
    ip = Column(String(64), default="")
    other = Column(Text, default="")  # JSON: frt, group, model_ratio, ...
