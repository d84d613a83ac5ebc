"""
Tests for the check-in page view-model and the API client.

The console API is replaced by an httpx.MockTransport; one test runs the
client against the real app through the TestClient.
"""
import json
import pytest
from datetime import date

import httpx

from quota_console.presenter.checkin_page import CheckinPageModel, CheckinSummary, ViewState
from quota_console.presenter.client import (
    AlreadyCheckedIn, BusinessError, ConsoleClient, FeatureDisabled,
    InvalidCode, TransportError
)


class RecordingNotifier:
    def __init__(self):
        self.successes = []
        self.errors = []

    def success(self, message):
        self.successes.append(message)

    def error(self, message):
        self.errors.append(message)


class FakeConsole:
    """In-memory stand-in for the console API"""

    def __init__(self):
        self.requests = []
        self.balance = 1000
        self.status = {
            "config": {"enabled": True, "checkin_code_enabled": False, "calendar_enabled": True},
            "has_checked_in": False,
            "stat": {"total_checkins": 3, "consecutive_days": 3, "this_month_checkins": 45, "total_quota": 300},
            "today_checkin": None,
        }
        self.history = [
            {"id": 1, "checkin_date": "2025-03-05", "quota": 100},
            {"id": 2, "checkin_date": "2025-03-17", "quota": 100},
        ]
        self.checkin_envelope = {
            "success": True,
            "message": "Check-in successful",
            "data": {"quota": 0.05, "consecutive_days": 4},
        }
        self.fail_with = None
        # path -> envelope answered instead of the default
        self.overrides = {}

    def posts(self):
        return [request for request in self.requests if request.method == "POST"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with

        path = request.url.path
        if path in self.overrides:
            return httpx.Response(200, json=self.overrides[path])
        if path == "/api/user/self":
            return self._ok({"id": 1, "username": "alice", "quota": self.balance})
        if path == "/api/checkin/status":
            return self._ok(self.status)
        if path == "/api/checkin/history":
            return self._ok({
                "page": int(request.url.params["page"]),
                "page_size": int(request.url.params["page_size"]),
                "total": len(self.history),
                "items": self.history,
            })
        if path == "/api/checkin/" and request.method == "POST":
            envelope = self.checkin_envelope
            if envelope["success"]:
                self.status = dict(self.status, has_checked_in=True)
                self.status["stat"] = dict(
                    self.status["stat"], consecutive_days=envelope["data"]["consecutive_days"]
                )
            return httpx.Response(200, json=envelope)
        return httpx.Response(404, json={"detail": "Not Found"})

    @staticmethod
    def _ok(data):
        return httpx.Response(200, json={"success": True, "message": "", "data": data})


@pytest.fixture
def console():
    return FakeConsole()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def page(console, notifier):
    http = httpx.Client(transport=httpx.MockTransport(console.handler), base_url="http://console.test")
    return CheckinPageModel(ConsoleClient(http_client=http), notifier, today=date(2025, 3, 18))


class TestLoad:
    """Tests for the initial load"""

    def test_load_fills_summary_and_history(self, page, console):
        assert page.state == ViewState.IDLE

        assert page.load() == ViewState.LOADED
        assert page.balance == 1000
        assert page.summary == CheckinSummary(
            enabled=True, checked_today=False, consecutive_days=3, month_count=45,
            total_quota=300, code_enabled=False, calendar_enabled=True, today_checkin=None,
        )
        assert page.total == 2
        assert page.history_loading is False

    def test_first_history_request(self, page, console):
        page.load()

        history = [r for r in console.requests if r.url.path == "/api/checkin/history"][0]
        assert history.url.params["page"] == "1"
        assert history.url.params["page_size"] == "10"

    def test_transport_failure_sets_error_state(self, page, console, notifier):
        console.fail_with = httpx.ConnectError("connection refused")

        assert page.load() == ViewState.ERROR
        assert "Failed to load check-in information" in notifier.errors
        assert page.history_loading is False

    def test_business_failure_shown_verbatim(self, page, console, notifier):
        console.overrides["/api/checkin/status"] = {"success": False, "message": "Maintenance window"}

        page.refresh_summary()

        assert notifier.errors == ["Maintenance window"]


class TestCheckinAction:
    """Tests for the check-in button"""

    def test_success_updates_counter_and_disables(self, page, console, notifier):
        page.load()

        result = page.perform_checkin()

        assert result == {"quota": 0.05, "consecutive_days": 4}
        assert page.summary.consecutive_days == 4
        assert page.summary.checked_today is True
        assert page.can_checkin is False
        assert page.balance == pytest.approx(1000.05)
        assert len(notifier.successes) == 1
        assert notifier.successes[0].startswith("Check-in successful! Received $")

    def test_success_requeries_summary_and_history(self, page, console):
        page.load()
        console.requests.clear()

        page.perform_checkin()

        assert [r.url.path for r in console.requests] == [
            "/api/checkin/", "/api/checkin/status", "/api/checkin/history"
        ]

    def test_no_second_request_once_checked_in(self, page, console):
        page.load()
        page.perform_checkin()

        assert page.perform_checkin() is None
        assert len(console.posts()) == 1

    def test_busy_flag_blocks_reentry(self, page, console):
        page.load()
        page.checkin_loading = True

        assert page.perform_checkin() is None
        assert console.posts() == []

    def test_disabled_feature_blocks_action(self, page, console):
        console.status["config"]["enabled"] = False
        page.load()

        assert page.can_checkin is False
        assert page.perform_checkin() is None
        assert console.posts() == []

    def test_already_checked_in_error(self, page, console, notifier):
        console.checkin_envelope = {"success": False, "message": "Already checked in today", "data": None}
        page.load()

        assert page.perform_checkin() is None
        assert notifier.errors == ["Already checked in today"]
        assert page.summary.checked_today is True
        assert page.checkin_loading is False

    def test_network_error_clears_busy_flag(self, page, console, notifier):
        page.load()
        console.fail_with = httpx.ConnectError("down")

        assert page.perform_checkin() is None
        assert notifier.errors == ["Check-in failed"]
        assert page.checkin_loading is False
        assert page.can_checkin is True


class TestCodeFlow:
    """Tests for the code-entry dialog"""

    @pytest.fixture(autouse=True)
    def require_code(self, console, page):
        console.status["config"]["checkin_code_enabled"] = True
        page.load()

    def test_button_opens_dialog(self, page, console):
        assert page.perform_checkin() is None
        assert page.show_code_modal is True
        assert console.posts() == []

    @pytest.mark.parametrize("code", ["", "   ", None])
    def test_blank_code_never_sent(self, page, console, notifier, code):
        page.perform_checkin()

        assert page.submit_code(code) is None
        assert console.posts() == []
        assert notifier.errors == ["Please enter the check-in code"]
        assert page.show_code_modal is True

    def test_code_submitted_trimmed(self, page, console):
        page.perform_checkin()

        page.submit_code("  SPRING ")

        body = json.loads(console.posts()[0].content)
        assert body == {"checkin_code": "SPRING"}
        assert page.show_code_modal is False
        assert page.code_submitting is False

    def test_invalid_code_keeps_dialog_open(self, page, console, notifier):
        console.checkin_envelope = {"success": False, "message": "Invalid check-in code", "data": None}
        page.perform_checkin()

        assert page.submit_code("WRONG") is None
        assert notifier.errors == ["Invalid check-in code"]
        assert page.show_code_modal is True

    def test_submit_ignored_when_already_checked_in(self, page, console):
        page.perform_checkin()
        console.status = dict(console.status, has_checked_in=True)
        page.refresh_summary()

        assert page.can_checkin is False
        assert page.submit_code("SPRING") is None
        assert console.posts() == []

    def test_submit_ignored_without_dialog(self, page, console):
        assert page.show_code_modal is False

        assert page.submit_code("SPRING") is None
        assert console.posts() == []

    def test_submit_ignored_while_submitting(self, page, console):
        page.perform_checkin()
        page.code_submitting = True

        assert page.submit_code("SPRING") is None
        assert console.posts() == []


class TestPagination:
    """Tests for history paging"""

    def test_requests_last_page_and_size(self, page, console):
        page.load()

        page.change_page(2, 20)

        request = console.requests[-1]
        assert request.url.params["page"] == "2"
        assert request.url.params["page_size"] == "20"
        assert (page.page, page.page_size) == (2, 20)

    def test_size_sticks_for_later_pages(self, page, console):
        page.load()
        page.change_page(1, 20)

        page.change_page(3)

        assert console.requests[-1].url.params["page_size"] == "20"

    def test_failed_page_keeps_previous(self, page, console):
        page.load()
        console.fail_with = httpx.ReadTimeout("slow")

        assert page.change_page(2, 50) is False
        assert (page.page, page.page_size) == (1, 10)


class TestDisplay:
    """Tests for progress bars and the calendar"""

    def test_progress_fractions(self, page):
        page.load()

        assert page.month_progress == pytest.approx(1.5)
        assert page.streak_progress == pytest.approx(0.1)

    def test_streak_progress_capped(self, page, console):
        console.status["stat"]["consecutive_days"] = 45
        page.load()

        assert page.streak_progress == 1.0

    def test_progress_without_summary(self, page):
        assert page.month_progress == 0.0
        assert page.streak_progress == 0.0

    def test_calendar_marks_history(self, page):
        page.load()

        cells = page.calendar(today=date(2025, 3, 18))

        assert [cell.date_str for cell in cells if cell and cell.is_checked_in] == ["2025-03-05", "2025-03-17"]

    def test_month_navigation(self, page):
        page.previous_month()
        page.previous_month()
        page.previous_month()
        assert (page.year, page.month) == (2024, 12)

        page.next_month()
        assert (page.year, page.month) == (2025, 1)


class TestClientErrors:
    """Tests for error mapping in ConsoleClient"""

    @staticmethod
    def make_client(response):
        http = httpx.Client(transport=httpx.MockTransport(lambda request: response), base_url="http://console.test")
        return ConsoleClient(http_client=http)

    @pytest.mark.parametrize("message,error_class", [
        ("Already checked in today", AlreadyCheckedIn),
        ("Invalid check-in code", InvalidCode),
        ("Check-in is disabled", FeatureDisabled),
        ("Something else", BusinessError),
    ])
    def test_business_errors_by_message(self, message, error_class):
        client = self.make_client(httpx.Response(200, json={"success": False, "message": message}))

        with pytest.raises(error_class) as exc_info:
            client.perform_checkin()

        assert type(exc_info.value) is error_class
        assert exc_info.value.message == message

    def test_auth_failure(self):
        client = self.make_client(httpx.Response(401, json={"detail": "Invalid or missing API Key"}))

        with pytest.raises(BusinessError, match="Invalid or missing API Key"):
            client.get_self()

    def test_non_json_body(self):
        client = self.make_client(httpx.Response(200, text="<html>"))

        with pytest.raises(TransportError):
            client.get_checkin_status()

    def test_body_not_an_envelope(self):
        client = self.make_client(httpx.Response(200, json=[1, 2, 3]))

        with pytest.raises(TransportError, match="Invalid response from server"):
            client.get_checkin_status()

    def test_error_body_not_an_object(self):
        client = self.make_client(httpx.Response(502, json=["bad gateway"]))

        with pytest.raises(BusinessError, match="HTTP 502"):
            client.get_self()

    def test_slashed_model_name_in_path(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            return httpx.Response(200, json={"success": True, "data": {"allowed": True}})

        http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://console.test")

        assert ConsoleClient(http_client=http).can_use_model("openai/gpt-4o") is True
        assert seen["path"] == "/api/user/models/openai/gpt-4o"

    def test_api_key_header_sent(self):
        seen = {}

        def handler(request):
            seen["key"] = request.headers.get("X-API-Key")
            return httpx.Response(200, json={"success": True, "data": {}})

        http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://console.test")
        ConsoleClient(api_key="secret", http_client=http).get_checkin_status()

        assert seen["key"] == "secret"


class TestAgainstApp:
    """The client and view-model against the real routes"""

    def test_full_checkin_flow(self, client, db_session, user, admin, today):
        admin_api = ConsoleClient(api_key=admin.access_token, http_client=client)
        admin_api.update_checkin_config({"enabled": True, "min_quota": 100, "max_quota": 100})

        client.headers.pop("X-API-Key", None)
        user_api = ConsoleClient(api_key=user.access_token, http_client=client)
        notifier = RecordingNotifier()
        view = CheckinPageModel(user_api, notifier, today=today)

        view.load()
        result = view.perform_checkin()

        assert result["quota"] == 100
        assert view.balance == 1100
        assert view.summary.checked_today is True
        assert view.summary.consecutive_days == 1
        assert view.total == 1
        assert [cell.day for cell in view.calendar(today) if cell and cell.is_checked_in] == [18]
        with pytest.raises(AlreadyCheckedIn):
            user_api.perform_checkin()
