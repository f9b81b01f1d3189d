"""
HTTP wrapper around the Datebook REST API.

Every response is either {"ok": true, ...} or {"ok": false, "error": str,
"details"?: any}. ApiClient returns the first shape as a dict and raises
ApiError for the second, for non-2xx statuses and for transport failures.
"""

import json
import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

DETAILS_PREVIEW_LIMIT = 800

# Extra context some error bodies carry next to "error"
CONTEXT_KEYS = ("relationshipId", "inviteRelationshipId", "currentMemberCount")


class ApiError(Exception):
    """A failed API call.

    status_code is None when the request never got a response.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


def _error_message(status_code: int, data: Any) -> str:
    base = None
    if isinstance(data, dict) and isinstance(data.get("error"), str) and data["error"]:
        base = data["error"]
    base = base or f"Request failed ({status_code})"

    extras = []
    if isinstance(data, dict):
        for key in CONTEXT_KEYS:
            if key in data and data[key] is not None:
                extras.append(f"{key}={data[key]}")
        if "details" in data:
            raw = json.dumps(data["details"], default=str)
            if len(raw) > DETAILS_PREVIEW_LIMIT:
                raw = raw[:DETAILS_PREVIEW_LIMIT] + "…"
            extras.append(f"details={raw}")

    return f"{base} ({', '.join(extras)})" if extras else base


class ApiClient:
    """
    Thin JSON client with bearer auth.

    Args:
        base_url: API root, e.g. "http://localhost:8000"
        token: Session JWT from POST /auth/verify (optional)
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests pass a MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self, has_body: bool) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        json_body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded {"ok": true, ...} body."""
        query = {k: v for k, v in (params or {}).items() if v is not None}
        try:
            response = self._http.request(
                method,
                path,
                json=json_body,
                params=query or None,
                headers=self._headers(json_body is not None),
            )
        except httpx.HTTPError as e:
            hint = (
                f"Network request failed. baseUrl={self.base_url} path={path}. "
                "Check that the API is running and reachable from this machine."
            )
            logger.warning(f"{hint} ({e})")
            raise ApiError(f"{hint} Original error: {e}") from e

        data: Any = None
        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = None

        if response.is_error:
            details = data.get("details") if isinstance(data, dict) else None
            raise ApiError(_error_message(response.status_code, data), response.status_code, details)

        if not isinstance(data, dict):
            raise ApiError("Unexpected response body", response.status_code)
        if data.get("ok") is not True:
            raise ApiError(data.get("error") or "Request failed", response.status_code, data.get("details"))
        return data

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return self.request("GET", path, params=params)

    def post(self, path: str, json_body: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return self.request("POST", path, json_body=json_body if json_body is not None else {})

    def patch(self, path: str, json_body: dict[str, Any]) -> dict[str, Any]:
        return self.request("PATCH", path, json_body=json_body)

    def delete(self, path: str) -> dict[str, Any]:
        return self.request("DELETE", path)
