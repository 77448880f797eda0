"""
Domain: in-app notifications.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from .time import require_utc_timestamp


class NotificationType(str, Enum):
    SYSTEM_ALERT = "SYSTEM_ALERT"
    LEAD_ASSIGNED = "LEAD_ASSIGNED"


ENQUIRIES_LINK: str = "/clients/enquiries"


@dataclass(frozen=True, slots=True)
class Notification:
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    created_at: datetime
    link: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
