"""
Notification service.

Every function here is best-effort: a failure to notify is logged and never
propagated, so it cannot undo or fail the operation that triggered it.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from domain.agent import AgentRole
from domain.notification import Notification, NotificationType
from domain.time import utc_now
from repositories.agent_repository import list_active_user_ids_by_role
from repositories.notification_repository import insert_notifications

logger = logging.getLogger(__name__)


def notify(
    user_id: UUID,
    type: NotificationType,
    title: str,
    message: str,
    link: Optional[str] = None,
) -> bool:
    """Create a notification for a single user. Returns False on failure."""

    try:
        insert_notifications(
            [
                Notification(
                    user_id=user_id,
                    type=type,
                    title=title,
                    message=message,
                    link=link,
                    created_at=utc_now(),
                )
            ]
        )
        return True
    except Exception:
        logger.exception(
            "Failed to create notification",
            extra={"user_id": str(user_id), "notification_type": type.value},
        )
        return False


def notify_super_admins(
    type: NotificationType,
    title: str,
    message: str,
    link: Optional[str] = None,
) -> int:
    """
    Send a notification to every active SUPER_ADMIN.

    Returns:
        Number of notifications written (0 on failure or when there are no admins).
    """

    try:
        admin_ids = list_active_user_ids_by_role(AgentRole.SUPER_ADMIN)
        if not admin_ids:
            return 0

        now = utc_now()
        insert_notifications(
            [
                Notification(
                    user_id=admin_id,
                    type=type,
                    title=title,
                    message=message,
                    link=link,
                    created_at=now,
                )
                for admin_id in admin_ids
            ]
        )
        return len(admin_ids)
    except Exception:
        logger.exception(
            "Failed to notify super admins",
            extra={"notification_type": type.value, "title": title},
        )
        return 0


__all__ = ["notify", "notify_super_admins"]
