"""
Domain: Enquiry (inbound contact captured from a web form, call or referral).

Rules implemented here:
- An enquiry moves NEW -> ASSIGNED -> CONTACTED -> CONVERTED | SPAM.
- CONVERTED and SPAM are terminal.
- created_at / updated_at are UTC timestamps.
- An enquiry created from an external form submission carries the
  `submission:<id>` marker in its source reference so later sync passes can
  recognise it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from .time import require_utc_timestamp


class EnquiryStatus(str, Enum):
    NEW = "NEW"
    ASSIGNED = "ASSIGNED"
    CONTACTED = "CONTACTED"
    CONVERTED = "CONVERTED"
    SPAM = "SPAM"

    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[EnquiryStatus] = frozenset({EnquiryStatus.CONVERTED, EnquiryStatus.SPAM})

# Statuses that count towards an agent's open workload.
OPEN_STATUSES: tuple[EnquiryStatus, ...] = (
    EnquiryStatus.NEW,
    EnquiryStatus.ASSIGNED,
    EnquiryStatus.CONTACTED,
)


class EnquirySource(str, Enum):
    WEBSITE_FORM = "WEBSITE_FORM"
    PHONE_CALL = "PHONE_CALL"
    EMAIL = "EMAIL"
    WHATSAPP = "WHATSAPP"
    LIVE_CHAT = "LIVE_CHAT"
    PARTNER_REFERRAL = "PARTNER_REFERRAL"


# Stored in place of an empty last name / phone.
PLACEHOLDER_VALUE: str = "-"

SUBMISSION_MARKER_PREFIX: str = "submission:"

SOURCE_REFERENCE_SEPARATOR: str = " | "

# The marker is always the last component, so the id runs to the end of the string.
_MARKER_RE = re.compile(r"(?:^|\s\|\s)submission:(.+)$")


def submission_marker(submission_id: str | int) -> str:
    """Return the source reference marker for an external submission id."""
    return f"{SUBMISSION_MARKER_PREFIX}{submission_id}"


def build_source_reference(source_url: str | None, submission_id: str | int | None) -> str | None:
    """
    Build the stored source reference string.

    - url and id:  "<url> | submission:<id>"
    - id only:     "submission:<id>"
    - url only:    "<url>"
    - neither:     None
    """

    url = (source_url or "").strip()
    has_id = submission_id is not None and str(submission_id).strip() != ""

    if url and has_id:
        return f"{url}{SOURCE_REFERENCE_SEPARATOR}{submission_marker(str(submission_id).strip())}"
    if has_id:
        return submission_marker(str(submission_id).strip())
    if url:
        return url
    return None


def parse_submission_id(source_reference: str | None) -> str | None:
    """Extract the external submission id from a stored source reference."""

    if not source_reference:
        return None
    match = _MARKER_RE.search(source_reference.strip())
    return match.group(1) if match else None


@dataclass(frozen=True, slots=True)
class Enquiry:
    """
    Enquiry record as persisted by the CRM.

    Notes:
    - `source_url` holds the source reference string (page URL and/or
      submission marker), not necessarily a URL.
    """

    enquiry_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str
    source: EnquirySource
    status: EnquiryStatus
    created_at: datetime
    message: Optional[str] = None
    source_url: Optional[str] = None
    assigned_agent_id: Optional[UUID] = None
    country: Optional[str] = None
    segment: str = "Buyer"
    priority: str = "Medium"
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    @property
    def submission_id(self) -> str | None:
        return parse_submission_id(self.source_url)
