"""
HTTP client for the quota console API.

Every route answers with a {success, message, data} envelope. A transport
failure raises TransportError, a success:false envelope raises BusinessError
(or one of its check-in subclasses) carrying the server message verbatim.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger("quota_console.presenter")

API_KEY_HEADER = "X-API-Key"


class ApiError(Exception):
    """Base exception for console API calls"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TransportError(ApiError):
    """Raised when the server could not be reached or answered garbage"""
    pass


class BusinessError(ApiError):
    """Raised when the server answered success: false"""
    pass


class AlreadyCheckedIn(BusinessError):
    pass


class InvalidCode(BusinessError):
    pass


class FeatureDisabled(BusinessError):
    pass


class ValidationError(ApiError):
    """Raised before any request when the input is unusable"""
    pass


# Server messages that select a more specific error type
BUSINESS_ERRORS = {
    "Already checked in today": AlreadyCheckedIn,
    "Invalid check-in code": InvalidCode,
    "Check-in is disabled": FeatureDisabled,
}


def business_error(message: Optional[str]) -> BusinessError:
    message = message or "Request failed"
    error_class = BUSINESS_ERRORS.get(message, BusinessError)
    return error_class(message)


class ConsoleClient:
    """
    Synchronous client for the console routes.

    Pass base_url/api_key to talk to a server, or an already configured
    httpx.Client (a FastAPI TestClient works too).
    """

    def __init__(
        self,
        base_url: str = "",
        api_key: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 10.0
    ):
        headers = {API_KEY_HEADER: api_key} if api_key else {}
        if http_client is None:
            http_client = httpx.Client(base_url=base_url, headers=headers, timeout=timeout)
        elif headers:
            http_client.headers.update(headers)
        self.http = http_client

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None
    ) -> Any:
        if params:
            params = {key: value for key, value in params.items() if value is not None}
        try:
            response = self.http.request(method, path, params=params, json=json)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportError(f"Could not reach the server: {e}") from e

        if response.status_code >= 400:
            detail = None
            try:
                error_body = response.json()
            except ValueError:
                error_body = None
            if isinstance(error_body, dict):
                detail = error_body.get("detail")
            if not isinstance(detail, str):
                detail = f"HTTP {response.status_code}"
            logger.warning(f"{method} {path} returned {response.status_code}: {detail}")
            raise BusinessError(detail)

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"{method} {path} returned a non-JSON body")
            raise TransportError("Invalid response from server") from e
        if not isinstance(body, dict):
            logger.error(f"{method} {path} returned {type(body).__name__} instead of an envelope")
            raise TransportError("Invalid response from server")

        if not body.get("success"):
            raise business_error(body.get("message"))
        return body.get("data")

    # ===== CHECK-IN =====

    def get_checkin_status(self) -> dict:
        return self._request("GET", "/api/checkin/status")

    def get_checkin_history(self, page: int = 1, page_size: int = 10) -> dict:
        """One page of history: {page, page_size, total, items}"""
        return self._request("GET", "/api/checkin/history", params={"page": page, "page_size": page_size})

    def perform_checkin(self, code: Optional[str] = None) -> dict:
        """
        Check in for today.

        Returns:
            {quota, quota_display, consecutive_days}

        Raises:
            AlreadyCheckedIn, InvalidCode, FeatureDisabled: check-in refused
        """
        body = {"checkin_code": code} if code is not None else {}
        return self._request("POST", "/api/checkin/", json=body)

    def get_checkin_config(self) -> dict:
        return self._request("GET", "/api/checkin/config")

    def update_checkin_config(self, config: dict) -> dict:
        return self._request("PUT", "/api/checkin/config", json=config)

    def get_all_checkin_history(
        self, page: int = 1, page_size: int = 10, user_id: Optional[int] = None
    ) -> dict:
        return self._request(
            "GET", "/api/checkin/admin/history",
            params={"page": page, "page_size": page_size, "user_id": user_id}
        )

    # ===== USERS =====

    def get_self(self) -> dict:
        return self._request("GET", "/api/user/self")

    def can_use_model(self, model_name: str) -> bool:
        return self._request("GET", f"/api/user/models/{model_name}")["allowed"]

    # ===== USER GROUPS =====

    def list_user_groups(self, page: int = 1, page_size: int = 10) -> dict:
        return self._request("GET", "/api/user_group", params={"p": page, "page_size": page_size})

    def search_user_groups(self, keyword: str, page: int = 1, page_size: int = 10) -> dict:
        return self._request(
            "GET", "/api/user_group/search",
            params={"keyword": keyword, "p": page, "page_size": page_size}
        )

    def get_active_user_groups(self) -> List[dict]:
        return self._request("GET", "/api/user_group/active")

    def get_user_group(self, user_group_id: int) -> dict:
        return self._request("GET", f"/api/user_group/{user_group_id}")

    def create_user_group(self, data: dict) -> dict:
        return self._request("POST", "/api/user_group", json=data)

    def update_user_group(self, data: dict) -> dict:
        return self._request("PUT", "/api/user_group", json=data)

    def delete_user_group(self, user_group_id: int):
        self._request("DELETE", f"/api/user_group/{user_group_id}")

    def get_enable_groups(self, user_group_id: int) -> List[str]:
        return self._request("GET", f"/api/user_group/{user_group_id}/enable_groups")

    def set_enable_groups(self, user_group_id: int, enable_groups: List[str]) -> List[str]:
        return self._request(
            "PUT", f"/api/user_group/{user_group_id}/enable_groups",
            json={"enable_groups": enable_groups}
        )

    def list_available_enable_groups(self) -> List[str]:
        return self._request("GET", "/api/enable_group")

    def get_permissions(self, user_group_id: int) -> List[dict]:
        return self._request("GET", f"/api/user_group/{user_group_id}/permissions")["permissions"]

    def set_permissions(self, user_group_id: int, model_group_ids: List[int]) -> List[dict]:
        data = self._request(
            "PUT", f"/api/user_group/{user_group_id}/permissions",
            json={"model_group_ids": model_group_ids}
        )
        return data["permissions"]

    # ===== MODEL GROUPS =====

    def list_model_groups(self, page: int = 1, page_size: int = 10) -> dict:
        return self._request("GET", "/api/model_group", params={"p": page, "page_size": page_size})

    def search_model_groups(self, keyword: str, page: int = 1, page_size: int = 10) -> dict:
        return self._request(
            "GET", "/api/model_group/search",
            params={"keyword": keyword, "p": page, "page_size": page_size}
        )

    def create_model_group(self, data: dict) -> dict:
        return self._request("POST", "/api/model_group", json=data)

    def update_model_group(self, data: dict) -> dict:
        return self._request("PUT", "/api/model_group", json=data)

    def delete_model_group(self, model_group_id: int):
        self._request("DELETE", f"/api/model_group/{model_group_id}")

    # ===== OPTIONS & LOGS =====

    def get_options(self) -> Dict[str, str]:
        return {option["key"]: option["value"] for option in self._request("GET", "/api/option/")}

    def update_option(self, key: str, value: Any) -> dict:
        return self._request("PUT", "/api/option/", json={"key": key, "value": value})

    def get_own_logs(self, page: int = 1, page_size: int = 10, **filters) -> dict:
        return self._request("GET", "/api/log/self", params={"p": page, "page_size": page_size, **filters})

    def get_logs(self, page: int = 1, page_size: int = 10, **filters) -> dict:
        return self._request("GET", "/api/log/", params={"p": page, "page_size": page_size, **filters})
