"""
Expo push notification client.

Sends to the Expo push API over httpx. Push is best-effort: every failure
comes back as a PushResult instead of an exception so callers never fail a
request because a notification did not go out.
"""

import logging
import re
from typing import Any, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

EXPO_TOKEN_PATTERN = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[.+\]$")
DEFAULT_TITLE = "Datebook"


class PushResult:
    def __init__(self, ok: bool, error: Optional[str] = None):
        self.ok = ok
        self.error = error

    def __repr__(self) -> str:
        return f"PushResult(ok={self.ok}, error={self.error!r})"


def is_expo_push_token(token: str | None) -> bool:
    return bool(token) and bool(EXPO_TOKEN_PATTERN.match(token))


def send_push(
    to: str | None,
    body: str,
    title: Optional[str] = None,
    data: Optional[dict[str, Any]] = None,
    client: Optional[httpx.Client] = None,
) -> PushResult:
    """
    Send one push notification.

    Args:
        to: Expo push token of the device
        body: Notification text
        title: Notification title (defaults to the app name)
        data: Extra payload delivered to the app
        client: Optional httpx client (tests inject a MockTransport)

    Returns:
        PushResult with ok=False and a reason when nothing was delivered
    """
    if not to:
        return PushResult(False, "Missing push token")
    if not is_expo_push_token(to):
        return PushResult(False, "Invalid Expo push token")

    message: dict[str, Any] = {
        "to": to,
        "sound": "default",
        "title": title or DEFAULT_TITLE,
        "body": body,
    }
    if data:
        message["data"] = data

    try:
        if client is not None:
            response = client.post(settings.expo_push_url, json=[message])
        else:
            with httpx.Client(timeout=10.0) as http:
                response = http.post(settings.expo_push_url, json=[message])
        response.raise_for_status()
        tickets = response.json().get("data", [])
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Expo push request failed: {e}")
        return PushResult(False, str(e))

    if isinstance(tickets, dict):
        tickets = [tickets]
    for ticket in tickets:
        if ticket.get("status") == "error":
            return PushResult(False, ticket.get("message") or "Expo push error")
    return PushResult(True)
