from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
import json

from quota_console.constants import STATUS_ENABLED, CHECKIN_CODE_MAX_LENGTH


def _parse_json(value, default):
    if value is None or value == "":
        return default
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return default
    return value


# Check-in schemas
class CheckinRequest(BaseModel):
    checkin_code: Optional[str] = Field(None, max_length=CHECKIN_CODE_MAX_LENGTH)


class CheckinConfigUpdate(BaseModel):
    enabled: bool = False
    min_quota: int = 0
    max_quota: int = 0  # 0 = fixed reward of min_quota
    checkin_code_enabled: bool = False
    checkin_code: str = Field(default="", max_length=CHECKIN_CODE_MAX_LENGTH)
    consecutive_reward_enabled: bool = False
    consecutive_reward_quota: int = 0
    calendar_enabled: bool = True


class CheckinConfigResponse(CheckinConfigUpdate):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# User group schemas
class UserGroupBase(BaseModel):
    name: str = Field(..., max_length=64)
    display_name: str = Field(default="", max_length=128)
    description: str = ""
    config: Optional[Union[Dict[str, Any], str]] = None  # auto_assign_rules, permissions, extra
    status: int = Field(default=STATUS_ENABLED, ge=1, le=2)


class UserGroupCreate(UserGroupBase):
    pass


class UserGroupUpdate(BaseModel):
    id: int
    name: Optional[str] = Field(None, max_length=64)
    display_name: Optional[str] = Field(None, max_length=128)
    description: Optional[str] = None
    config: Optional[Union[Dict[str, Any], str]] = None
    status: Optional[int] = Field(None, ge=1, le=2)


class UserGroupResponse(BaseModel):
    id: int
    name: str
    display_name: str = ""
    description: Optional[str] = ""
    config: Dict[str, Any] = {}
    status: int
    created_time: int = 0
    updated_time: int = 0

    @field_validator("config", mode="before")
    @classmethod
    def parse_config(cls, value):
        parsed = _parse_json(value, {})
        return parsed if isinstance(parsed, dict) else {}

    class Config:
        from_attributes = True


class EnableGroupsUpdate(BaseModel):
    enable_groups: List[str] = []


class PermissionsUpdate(BaseModel):
    model_group_ids: List[int] = []

    class Config:
        protected_namespaces = ()


# Model group schemas
class ModelGroupBase(BaseModel):
    name: str = Field(..., max_length=64)
    display_name: str = Field(default="", max_length=128)
    description: str = ""
    model_list: Any = None  # JSON array of model names (list or JSON text)
    status: int = Field(default=STATUS_ENABLED, ge=1, le=2)

    class Config:
        protected_namespaces = ()


class ModelGroupCreate(ModelGroupBase):
    pass


class ModelGroupUpdate(BaseModel):
    id: int
    name: Optional[str] = Field(None, max_length=64)
    display_name: Optional[str] = Field(None, max_length=128)
    description: Optional[str] = None
    model_list: Any = None
    status: Optional[int] = Field(None, ge=1, le=2)

    class Config:
        protected_namespaces = ()


class ModelGroupResponse(BaseModel):
    id: int
    name: str
    display_name: str = ""
    description: Optional[str] = ""
    model_list: List[str] = []
    status: int
    created_time: int = 0
    updated_time: int = 0

    @field_validator("model_list", mode="before")
    @classmethod
    def parse_model_list(cls, value):
        parsed = _parse_json(value, [])
        return parsed if isinstance(parsed, list) else []

    class Config:
        from_attributes = True
        protected_namespaces = ()


# Option schemas
class OptionUpdate(BaseModel):
    key: str
    value: Union[bool, int, float, str, None] = ""


# User schemas
class UserSelfResponse(BaseModel):
    id: int
    username: str
    display_name: Optional[str] = ""
    role: int
    quota: int
    used_quota: int = 0
    group: str

    class Config:
        from_attributes = True


# Log schemas
class LogResponse(BaseModel):
    id: int
    user_id: int
    created_at: int
    type: int
    content: Optional[str] = ""
    username: Optional[str] = ""
    token_name: Optional[str] = ""
    model_name: Optional[str] = ""
    quota: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    use_time: int = 0
    is_stream: bool = False
    channel_id: Optional[int] = 0
    group: Optional[str] = ""
    ip: Optional[str] = ""
    other: Optional[str] = ""

    class Config:
        from_attributes = True
        protected_namespaces = ()
