"""
Tests for usage-log table rendering.
"""
import json
import pytest
from datetime import datetime

from quota_console.presenter.usage_log_columns import (
    Tag, get_logs_columns, parse_other, render_first_response_time,
    render_row, render_type, render_use_time
)


def consume_log(**overrides):
    record = {
        "id": 1,
        "user_id": 7,
        "created_at": int(datetime(2025, 3, 18, 14, 5, 9).timestamp()),
        "type": 2,
        "content": "",
        "username": "alice",
        "token_name": "default-token",
        "model_name": "gpt-4o",
        "quota": 1500,
        "prompt_tokens": 120,
        "completion_tokens": 0,
        "use_time": 4,
        "is_stream": False,
        "group": "",
        "ip": "10.0.0.1",
        "other": json.dumps({"group": "vip", "model_ratio": 2.5, "group_ratio": 0.8, "frt": 1234}),
    }
    record.update(overrides)
    return record


class TestTypeTags:
    """Tests for the type column"""

    @pytest.mark.parametrize("log_type,expected", [
        (1, Tag("Top-up", "cyan")),
        (2, Tag("Consume", "lime")),
        (3, Tag("Manage", "orange")),
        (4, Tag("System", "purple")),
        (5, Tag("Error", "red")),
        (0, Tag("Unknown", "grey")),
        (42, Tag("Unknown", "grey")),
    ])
    def test_type_tag(self, log_type, expected):
        assert render_type(log_type) == expected


class TestTimings:
    """Tests for use time and first-response time colors"""

    @pytest.mark.parametrize("seconds,color", [(0, "green"), (100, "green"), (101, "orange"), (299, "orange"), (300, "red")])
    def test_use_time(self, seconds, color):
        assert render_use_time(seconds) == Tag(f"{seconds} s", color)

    @pytest.mark.parametrize("frt,text,color", [
        (1234, "1.2 s", "green"),
        (2990, "3.0 s", "orange"),
        (9000, "9.0 s", "orange"),
        (12500, "12.5 s", "red"),
        (None, "0.0 s", "green"),
    ])
    def test_first_response_time(self, frt, text, color):
        assert render_first_response_time(frt) == Tag(text, color)


class TestRows:
    """Tests for whole-row rendering"""

    def test_consume_row(self):
        row = render_row(get_logs_columns(is_admin=True), consume_log())

        assert row["time"] == "2025-03-18 14:05:09"
        assert row["username"] == "alice"
        assert row["token"] == Tag("default-token", "grey")
        assert row["group"] == "vip"
        assert row["type"] == Tag("Consume", "lime")
        assert row["model"] == "gpt-4o"
        assert row["use_time"] == [Tag("4 s", "green"), Tag("Non-stream", "purple")]
        assert row["prompt"] == 120
        assert row["completion"] is None
        assert row["cost"] == "$0.003"
        assert row["ip"] == Tag("10.0.0.1", "orange")
        assert row["details"] == "Model ratio: 2.5, Group ratio: 0.8"

    def test_username_hidden_for_users(self):
        row = render_row(get_logs_columns(is_admin=False), consume_log())

        assert row["username"] is None

    def test_stream_shows_first_response_time(self):
        row = render_row(get_logs_columns(True), consume_log(is_stream=True))

        assert row["use_time"] == [Tag("4 s", "green"), Tag("1.2 s", "green"), Tag("Stream", "blue")]

    def test_completion_shown_when_positive(self):
        row = render_row(get_logs_columns(True), consume_log(completion_tokens=80))

        assert row["completion"] == 80

    def test_record_group_wins_over_other(self):
        row = render_row(get_logs_columns(True), consume_log(group="default"))

        assert row["group"] == "default"

    def test_unparsable_other_renders_empty(self):
        row = render_row(get_logs_columns(True), consume_log(other="{not json"))

        assert row["group"] is None
        assert row["details"] == ""

    def test_system_log_hides_usage_columns(self):
        record = consume_log(type=4, content="Check-in reward: $0.0002")

        row = render_row(get_logs_columns(True), record)

        for key in ("token", "group", "model", "use_time", "prompt", "completion", "cost", "ip"):
            assert row[key] is None
        assert row["type"] == Tag("System", "purple")
        assert row["details"] == "Check-in reward: $0.0002"

    def test_unknown_type_keeps_usage_but_no_timing(self):
        row = render_row(get_logs_columns(True), consume_log(type=0))

        assert row["model"] == "gpt-4o"
        assert row["use_time"] is None
        assert row["ip"] is None

    def test_error_log_shows_timing(self):
        row = render_row(get_logs_columns(True), consume_log(type=5, content="upstream error"))

        assert row["use_time"][0] == Tag("4 s", "green")
        assert row["details"] == "upstream error"


class TestPriceSummary:
    """Tests for the details column of consume logs"""

    def test_fixed_price(self):
        other = {"model_price": 0.02, "group_ratio": 1}
        row = render_row(get_logs_columns(True), consume_log(other=json.dumps(other)))

        assert row["details"] == "Model price: $0.02, Group ratio: 1"

    def test_user_group_ratio_and_cache(self):
        other = {"model_ratio": 1, "group_ratio": 1, "user_group_ratio": 0.5, "cache_tokens": 64, "cache_ratio": 0.1}
        row = render_row(get_logs_columns(True), consume_log(other=json.dumps(other)))

        assert row["details"] == "Model ratio: 1, User group ratio: 0.5, Cache tokens: 64 * 0.1"


class TestParseOther:
    @pytest.mark.parametrize("value", [None, "", "{oops", "[1]"])
    def test_unusable(self, value):
        assert parse_other(value) is None

    def test_dict_passthrough(self):
        assert parse_other({"frt": 1}) == {"frt": 1}
