"""
Enquiry repository (persistence).

This module provides *only* persistence operations for the Enquiry domain
entity. Normalization, duplicate policy and routing live in the services.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional
from uuid import UUID

from domain.enquiry import (
    TERMINAL_STATUSES,
    Enquiry,
    EnquirySource,
    EnquiryStatus,
    submission_marker,
)
from domain.time import parse_utc_datetime, to_iso_utc, utc_now
from repositories.client import get_supabase

# Supabase table name for Enquiry records.
# Keep this aligned with your database schema.
_ENQUIRIES_TABLE: str = "enquiries"


def _enquiry_to_row(enquiry: Enquiry) -> dict[str, Any]:
    """Convert a domain Enquiry to a Supabase row payload."""

    return {
        "enquiry_id": str(enquiry.enquiry_id),
        "first_name": enquiry.first_name,
        "last_name": enquiry.last_name,
        "email": enquiry.email,
        "phone": enquiry.phone,
        "message": enquiry.message,
        "source": enquiry.source.value,
        "source_url": enquiry.source_url,
        "status": enquiry.status.value,
        "assigned_agent_id": str(enquiry.assigned_agent_id) if enquiry.assigned_agent_id else None,
        "country": enquiry.country,
        "segment": enquiry.segment,
        "priority": enquiry.priority,
        "created_at_utc": to_iso_utc(enquiry.created_at),
        "updated_at_utc": to_iso_utc(enquiry.updated_at or enquiry.created_at),
    }


def _row_to_enquiry(row: Mapping[str, Any]) -> Enquiry:
    """Convert a Supabase row into a domain Enquiry."""

    assigned = row.get("assigned_agent_id")
    updated = row.get("updated_at_utc")

    return Enquiry(
        enquiry_id=UUID(str(row["enquiry_id"])),
        first_name=str(row.get("first_name") or ""),
        last_name=str(row.get("last_name") or ""),
        email=str(row.get("email") or ""),
        phone=str(row.get("phone") or ""),
        message=row.get("message") or None,
        source=EnquirySource(str(row["source"])),
        source_url=row.get("source_url") or None,
        status=EnquiryStatus(str(row["status"])),
        assigned_agent_id=UUID(str(assigned)) if assigned else None,
        country=row.get("country") or None,
        segment=row.get("segment") or "Buyer",
        priority=row.get("priority") or "Medium",
        created_at=parse_utc_datetime(row["created_at_utc"]),
        updated_at=parse_utc_datetime(updated) if updated else None,
    )


def _rows(response: Any, action: str) -> List[Mapping[str, Any]]:
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")
    return getattr(response, "data", None) or []


def insert_enquiry(enquiry: Enquiry) -> Enquiry:
    """
    Insert an Enquiry into Supabase.

    Raises:
    - RuntimeError if Supabase returns an error response.
    - ValueError/TypeError for invalid domain values (e.g., timestamps).
    """

    payload = _enquiry_to_row(enquiry)
    response = get_supabase().table(_ENQUIRIES_TABLE).insert(payload).execute()
    _rows(response, "insert enquiry")
    return enquiry


def get_enquiry_by_id(enquiry_id: UUID) -> Enquiry | None:
    """
    Fetch an Enquiry by ID.

    Returns:
    - Enquiry if found
    - None if no record exists for the given ID
    """

    response = (
        get_supabase()
        .table(_ENQUIRIES_TABLE)
        .select("*")
        .eq("enquiry_id", str(enquiry_id))
        .limit(1)
        .execute()
    )
    rows = _rows(response, "fetch enquiry")
    if not rows:
        return None
    return _row_to_enquiry(rows[0])


def find_by_submission_id(submission_id: str) -> Enquiry | None:
    """
    Find the enquiry created from an external form submission.

    Matches on the `submission:<id>` marker that ends source_url. The match
    is confirmed against the parsed id so that `submission:1` does not match
    `submission:12`. Ids may contain spaces or `|`.
    """

    wanted = str(submission_id).strip()
    marker = submission_marker(wanted)
    response = (
        get_supabase()
        .table(_ENQUIRIES_TABLE)
        .select("*")
        .like("source_url", f"%{marker}")
        .execute()
    )
    for row in _rows(response, "search enquiries by submission marker"):
        enquiry = _row_to_enquiry(row)
        if enquiry.submission_id == wanted:
            return enquiry
    return None


def find_by_email_in_window(
    email: str,
    source: EnquirySource,
    window_start: datetime,
    window_end: datetime,
) -> Enquiry | None:
    """Find the newest enquiry with this email and source created inside the window."""

    response = (
        get_supabase()
        .table(_ENQUIRIES_TABLE)
        .select("*")
        .eq("email", email)
        .eq("source", source.value)
        .gte("created_at_utc", to_iso_utc(window_start))
        .lte("created_at_utc", to_iso_utc(window_end))
        .order("created_at_utc", desc=True)
        .limit(1)
        .execute()
    )
    rows = _rows(response, "search enquiries by email")
    if not rows:
        return None
    return _row_to_enquiry(rows[0])


def get_last_assigned_agent_id() -> Optional[UUID]:
    """Return the assignee of the most recently updated assigned enquiry."""

    response = (
        get_supabase()
        .table(_ENQUIRIES_TABLE)
        .select("assigned_agent_id")
        .not_.is_("assigned_agent_id", "null")
        .order("updated_at_utc", desc=True)
        .limit(1)
        .execute()
    )
    rows = _rows(response, "fetch last assignment")
    if not rows or not rows[0].get("assigned_agent_id"):
        return None
    return UUID(str(rows[0]["assigned_agent_id"]))


def assign_enquiry_to_agent(enquiry_id: UUID, agent_id: UUID) -> bool:
    """
    Set the assignee and move the enquiry to ASSIGNED.

    The update only applies to enquiries that are not CONVERTED or SPAM.

    Returns:
        True if a row was updated, False if the enquiry does not exist or is
        in a terminal status.
    """

    response = (
        get_supabase()
        .table(_ENQUIRIES_TABLE)
        .update(
            {
                "assigned_agent_id": str(agent_id),
                "status": EnquiryStatus.ASSIGNED.value,
                "updated_at_utc": to_iso_utc(utc_now()),
            }
        )
        .eq("enquiry_id", str(enquiry_id))
        .not_.in_("status", [status.value for status in TERMINAL_STATUSES])
        .execute()
    )
    return bool(_rows(response, "assign enquiry"))


__all__ = [
    "insert_enquiry",
    "get_enquiry_by_id",
    "find_by_submission_id",
    "find_by_email_in_window",
    "get_last_assigned_agent_id",
    "assign_enquiry_to_agent",
]
