"""
Fan-out of push notifications to the members of a relationship.
"""

import logging
import threading
import time
from typing import Any, Optional

from app.repositories.relationship import RelationshipRepository
from app.repositories.user import UserRepository
from app.services.expo_push import send_push

logger = logging.getLogger(__name__)

_recent_pushes: dict[str, float] = {}
_recent_lock = threading.Lock()


def should_send_with_cooldown(key: str, cooldown_seconds: float, now: float | None = None) -> bool:
    """True at most once per key within the cooldown window."""
    now = time.monotonic() if now is None else now
    with _recent_lock:
        last = _recent_pushes.get(key)
        if last is not None and now - last < cooldown_seconds:
            return False
        _recent_pushes[key] = now
        return True


def reset_cooldowns() -> None:
    with _recent_lock:
        _recent_pushes.clear()


def send_push_to_user(user_id: str, body: str, title: Optional[str] = None, data: Optional[dict[str, Any]] = None) -> None:
    """Best-effort push to one user; logs instead of raising."""
    try:
        token = UserRepository.get_push_tokens([user_id]).get(user_id)
        if not token:
            return
        result = send_push(token, body, title=title, data=data)
        if not result.ok:
            logger.warning(f"Push to user {user_id} failed: {result.error}")
    except Exception as e:
        logger.warning(f"Push to user {user_id} errored: {e}")


def send_push_to_relationship(
    relationship_id: str,
    body: str,
    exclude_user_id: Optional[str] = None,
    title: Optional[str] = None,
    data: Optional[dict[str, Any]] = None,
    cooldown_key: Optional[str] = None,
    cooldown_seconds: float = 0,
) -> None:
    """
    Best-effort push to every non-pending member of a relationship.

    When cooldown_key is given, each recipient gets at most one push per
    key within cooldown_seconds.
    """
    try:
        member_ids = RelationshipRepository.list_active_member_ids(relationship_id, exclude_user_id)
        tokens = UserRepository.get_push_tokens(member_ids)
    except Exception as e:
        logger.warning(f"Relationship push recipient lookup errored: {e}")
        return

    for user_id, token in tokens.items():
        if cooldown_key and not should_send_with_cooldown(f"{cooldown_key}:{user_id}", cooldown_seconds):
            continue
        result = send_push(token, body, title=title, data=data)
        if not result.ok:
            logger.warning(f"Relationship push to {user_id} failed: {result.error}")
