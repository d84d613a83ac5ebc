"""
Usage-log table columns.

Each column renders one log record (as returned by /api/log) into a cell:
None for an empty cell, a string, a Tag, or a list of Tags shown side by side.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional

from quota_console.constants import (
    LOG_TYPE_UNKNOWN, LOG_TYPE_TOPUP, LOG_TYPE_CONSUME, LOG_TYPE_MANAGE,
    LOG_TYPE_SYSTEM, LOG_TYPE_ERROR
)
from quota_console.quota import render_quota

logger = logging.getLogger("quota_console.presenter")

# Types that carry token, group, model and cost information
USAGE_TYPES = (LOG_TYPE_UNKNOWN, LOG_TYPE_CONSUME, LOG_TYPE_ERROR)
# Types that carry timing information
TIMED_TYPES = (LOG_TYPE_CONSUME, LOG_TYPE_ERROR)

TYPE_TAGS = {
    LOG_TYPE_TOPUP: ("Top-up", "cyan"),
    LOG_TYPE_CONSUME: ("Consume", "lime"),
    LOG_TYPE_MANAGE: ("Manage", "orange"),
    LOG_TYPE_SYSTEM: ("System", "purple"),
    LOG_TYPE_ERROR: ("Error", "red"),
}


@dataclass(frozen=True)
class Tag:
    text: str
    color: str


@dataclass(frozen=True)
class Column:
    key: str
    title: str
    data_index: str
    render: Callable[[Any, dict], Any]

    def render_cell(self, record: dict):
        return self.render(record.get(self.data_index), record)


def parse_other(value) -> Optional[dict]:
    """The record's other JSON as a dict, or None when missing or unparsable"""
    if isinstance(value, dict):
        return value
    if not value:
        return None
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        logger.debug(f"Failed to parse log other field: {value!r}")
        return None
    return parsed if isinstance(parsed, dict) else None


def render_type(log_type) -> Tag:
    text, color = TYPE_TAGS.get(log_type, ("Unknown", "grey"))
    return Tag(text, color)


def render_is_stream(is_stream) -> Tag:
    if is_stream:
        return Tag("Stream", "blue")
    return Tag("Non-stream", "purple")


def render_use_time(use_time) -> Tag:
    seconds = int(use_time or 0)
    if seconds < 101:
        color = "green"
    elif seconds < 300:
        color = "orange"
    else:
        color = "red"
    return Tag(f"{seconds} s", color)


def render_first_response_time(frt_ms) -> Tag:
    """First-response time, given in milliseconds, shown in seconds"""
    try:
        seconds = round(float(frt_ms) / 1000.0, 1)
    except (TypeError, ValueError):
        seconds = 0.0
    if seconds < 3:
        color = "green"
    elif seconds < 10:
        color = "orange"
    else:
        color = "red"
    return Tag(f"{seconds:.1f} s", color)


def render_timestamp(created_at) -> str:
    if not created_at:
        return ""
    return datetime.fromtimestamp(created_at).strftime("%Y-%m-%d %H:%M:%S")


def render_price_summary(other: dict) -> str:
    """One-line pricing breakdown for a consume log"""
    group_ratio = other.get("group_ratio", 1)
    user_group_ratio = other.get("user_group_ratio")
    if user_group_ratio is not None and user_group_ratio != -1:
        group_part = f"User group ratio: {user_group_ratio}"
    else:
        group_part = f"Group ratio: {group_ratio}"

    model_price = other.get("model_price")
    if model_price is not None and model_price != -1:
        parts = [f"Model price: ${model_price}", group_part]
    else:
        parts = [f"Model ratio: {other.get('model_ratio', 1)}", group_part]

    cache_tokens = other.get("cache_tokens") or 0
    if cache_tokens > 0:
        parts.append(f"Cache tokens: {cache_tokens} * {other.get('cache_ratio') or 1.0}")
    return ", ".join(parts)


def _is_usage(record: dict) -> bool:
    return record.get("type") in USAGE_TYPES


def get_logs_columns(is_admin: bool) -> List[Column]:
    """
    Column definitions for the usage-log table.

    Args:
        is_admin: Whether the viewer is an admin; only admins see usernames
    """

    def username(value, record):
        return value if is_admin else None

    def token(value, record):
        return Tag(value or "", "grey") if _is_usage(record) else None

    def group(value, record):
        if not _is_usage(record):
            return None
        if value:
            return value
        other = parse_other(record.get("other"))
        if other is None:
            return None
        return other.get("group")

    def model(value, record):
        return value if _is_usage(record) else None

    def use_time(value, record):
        if record.get("type") not in TIMED_TYPES:
            return None
        tags = [render_use_time(value)]
        if record.get("is_stream"):
            other = parse_other(record.get("other")) or {}
            tags.append(render_first_response_time(other.get("frt")))
        tags.append(render_is_stream(record.get("is_stream")))
        return tags

    def prompt(value, record):
        return value if _is_usage(record) else None

    def completion(value, record):
        if not _is_usage(record) or int(value or 0) <= 0:
            return None
        return value

    def cost(value, record):
        return render_quota(value, 6) if _is_usage(record) else None

    def ip(value, record):
        if record.get("type") not in TIMED_TYPES or not value:
            return None
        return Tag(value, "orange")

    def details(value, record):
        other = parse_other(record.get("other"))
        if other is None or record.get("type") != LOG_TYPE_CONSUME:
            return value
        return render_price_summary(other)

    return [
        Column("time", "Time", "created_at", lambda value, record: render_timestamp(value)),
        Column("username", "User", "username", username),
        Column("token", "Token", "token_name", token),
        Column("group", "Group", "group", group),
        Column("type", "Type", "type", lambda value, record: render_type(value)),
        Column("model", "Model", "model_name", model),
        Column("use_time", "Time / first token", "use_time", use_time),
        Column("prompt", "Prompt", "prompt_tokens", prompt),
        Column("completion", "Completion", "completion_tokens", completion),
        Column("cost", "Cost", "quota", cost),
        Column("ip", "IP", "ip", ip),
        Column("details", "Details", "content", details),
    ]


def render_row(columns: List[Column], record: dict) -> dict:
    """Column key -> rendered cell for one record"""
    return {column.key: column.render_cell(record) for column in columns}
