"""
Notification repository (persistence).
"""

from __future__ import annotations

from typing import Any, List

from domain.notification import Notification
from domain.time import to_iso_utc
from repositories.client import get_supabase

_NOTIFICATIONS_TABLE: str = "notifications"


def _notification_to_row(notification: Notification) -> dict[str, Any]:
    return {
        "user_id": str(notification.user_id),
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "link": notification.link,
        "is_read": False,
        "created_at_utc": to_iso_utc(notification.created_at),
    }


def insert_notifications(notifications: List[Notification]) -> None:
    """
    Insert notifications in a single request.

    Empty list is a no-op.

    Raises:
        RuntimeError: If Supabase returns an error response
    """

    if not notifications:
        return

    payloads = [_notification_to_row(n) for n in notifications]
    response = get_supabase().table(_NOTIFICATIONS_TABLE).insert(payloads).execute()
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to insert {len(notifications)} notifications: {error}")


__all__ = ["insert_notifications"]
