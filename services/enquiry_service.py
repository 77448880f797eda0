"""
Manual enquiry creation (staff entering a call, email or referral by hand).
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from domain.context import RequestContext
from domain.enquiry import Enquiry, EnquirySource, EnquiryStatus
from domain.notification import ENQUIRIES_LINK, NotificationType
from domain.time import utc_now
from repositories.enquiry_repository import insert_enquiry
from services.lead_routing_service import try_auto_assign_enquiry
from services.notification_service import notify, notify_super_admins

logger = logging.getLogger(__name__)


class InvalidEnquiryError(ValueError):
    """Raised when a manually entered enquiry lacks required fields."""


@dataclass(frozen=True, slots=True)
class CreateEnquiryData:
    first_name: str
    last_name: str
    email: str
    phone: str
    message: Optional[str] = None
    source: EnquirySource = EnquirySource.WEBSITE_FORM
    source_url: Optional[str] = None
    country: Optional[str] = None
    segment: str = "Buyer"
    priority: str = "Medium"
    assigned_agent_id: Optional[UUID] = None


def create_enquiry(
    data: CreateEnquiryData,
    context: RequestContext,
    now: Optional[datetime] = None,
) -> Enquiry:
    """
    Create an enquiry entered by a staff member.

    If no agent is given the enquiry is auto-assigned (capacity routing,
    with the enquiry's country passed along). Super admins are notified, and
    so is a manually chosen agent unless they created the enquiry themselves.

    Raises:
        InvalidEnquiryError: first name or email missing.
        RuntimeError: persistence failure.
    """

    first_name = data.first_name.strip()
    email = data.email.strip().lower()
    if not first_name or not email:
        raise InvalidEnquiryError("Missing required fields: first name and email are required")

    now = now or utc_now()
    enquiry = insert_enquiry(
        Enquiry(
            enquiry_id=uuid4(),
            first_name=first_name,
            last_name=data.last_name.strip(),
            email=email,
            phone=data.phone.strip(),
            message=(data.message or "").strip() or None,
            source=data.source,
            source_url=(data.source_url or "").strip() or None,
            status=EnquiryStatus.ASSIGNED if data.assigned_agent_id else EnquiryStatus.NEW,
            assigned_agent_id=data.assigned_agent_id,
            country=(data.country or "").strip() or None,
            segment=data.segment,
            priority=data.priority,
            created_at=now,
            updated_at=now,
        )
    )

    if data.assigned_agent_id is None:
        agent_id = try_auto_assign_enquiry(enquiry.enquiry_id, country=enquiry.country, context=context)
        if agent_id is not None:
            enquiry = dataclasses.replace(enquiry, assigned_agent_id=agent_id, status=EnquiryStatus.ASSIGNED)
    elif not context.is_actor(data.assigned_agent_id):
        notify(
            data.assigned_agent_id,
            NotificationType.LEAD_ASSIGNED,
            "Enquiry Assigned to You",
            f"New enquiry from {first_name} {enquiry.last_name}".strip(),
            ENQUIRIES_LINK,
        )

    notify_super_admins(
        NotificationType.SYSTEM_ALERT,
        "New Enquiry Received",
        f"{first_name} {enquiry.last_name} ({email}) submitted an enquiry",
        ENQUIRIES_LINK,
    )

    logger.info(
        "Enquiry created",
        extra={
            "enquiry_id": str(enquiry.enquiry_id),
            "actor_id": str(context.actor_id) if context.actor_id else None,
        },
    )
    return enquiry


__all__ = ["CreateEnquiryData", "InvalidEnquiryError", "create_enquiry"]
