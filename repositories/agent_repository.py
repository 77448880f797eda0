"""
Agent repository (persistence).

Reads CRM users who can own enquiries, together with their open workload.
No routing rules belong here.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Callable, List, Mapping, Optional
from uuid import UUID

from domain.agent import CLOSED_LEAD_STAGES, ROUTABLE_ROLES, Agent, AgentRole
from domain.enquiry import OPEN_STATUSES
from repositories.client import get_supabase

_USERS_TABLE: str = "users"
_LEADS_TABLE: str = "leads"
_ENQUIRIES_TABLE: str = "enquiries"

# Rows requested per page; matches the PostgREST default response cap.
_PAGE_SIZE: int = 1000


def _row_to_agent(row: Mapping[str, Any], open_leads: int = 0, open_enquiries: int = 0) -> Agent:
    return Agent(
        agent_id=UUID(str(row["user_id"])),
        role=AgentRole(str(row["role"])),
        is_active=bool(row.get("is_active", False)),
        first_name=row.get("first_name") or "",
        last_name=row.get("last_name") or "",
        office=row.get("office") or None,
        open_lead_count=open_leads,
        open_enquiry_count=open_enquiries,
    )


def _fetch_all_rows(build_query: Callable[[], Any], action: str) -> List[Mapping[str, Any]]:
    """
    Read every row matching a query, one page at a time.

    PostgREST caps each response (1000 rows by default), so a single request
    can silently truncate. `build_query` must return a fresh, ordered query
    selected with count="exact"; the exact count says when to stop.
    """

    all_rows: List[Mapping[str, Any]] = []
    offset = 0
    total_count: Optional[int] = None

    while total_count is None or offset < total_count:
        response = build_query().range(offset, offset + _PAGE_SIZE - 1).execute()

        error = getattr(response, "error", None)
        if error:
            raise RuntimeError(f"Failed to {action}: {error}")

        page_rows = getattr(response, "data", None) or []
        if total_count is None:
            total_count = getattr(response, "count", None) or len(page_rows)

        if not page_rows:
            break

        all_rows.extend(page_rows)
        offset += len(page_rows)

    return all_rows


def _count_by(rows: List[Mapping[str, Any]], column: str) -> Counter[str]:
    return Counter(str(row[column]) for row in rows if row.get(column))


def _count_open_leads(agent_ids: List[str]) -> Counter[str]:
    rows = _fetch_all_rows(
        lambda: (
            get_supabase()
            .table(_LEADS_TABLE)
            .select("lead_id, owner_id", count="exact")
            .in_("owner_id", agent_ids)
            .not_.in_("stage", list(CLOSED_LEAD_STAGES))
            .order("lead_id")
        ),
        "count open leads",
    )
    return _count_by(rows, "owner_id")


def _count_open_enquiries(agent_ids: List[str]) -> Counter[str]:
    rows = _fetch_all_rows(
        lambda: (
            get_supabase()
            .table(_ENQUIRIES_TABLE)
            .select("enquiry_id, assigned_agent_id", count="exact")
            .in_("assigned_agent_id", agent_ids)
            .in_("status", [status.value for status in OPEN_STATUSES])
            .order("enquiry_id")
        ),
        "count open enquiries",
    )
    return _count_by(rows, "assigned_agent_id")


def list_routable_agents() -> List[Agent]:
    """
    List active users with a routable role (sales agent / sales manager),
    annotated with their open lead and open enquiry counts.

    Rows are ordered by user_id.
    """

    response = (
        get_supabase()
        .table(_USERS_TABLE)
        .select("user_id, first_name, last_name, role, is_active, office")
        .in_("role", [role.value for role in ROUTABLE_ROLES])
        .eq("is_active", True)
        .order("user_id")
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to list agents: {error}")

    rows = getattr(response, "data", None) or []
    if not rows:
        return []

    agent_ids = [str(row["user_id"]) for row in rows]
    open_leads = _count_open_leads(agent_ids)
    open_enquiries = _count_open_enquiries(agent_ids)

    return [
        _row_to_agent(
            row,
            open_leads=open_leads.get(str(row["user_id"]), 0),
            open_enquiries=open_enquiries.get(str(row["user_id"]), 0),
        )
        for row in rows
    ]


def list_active_user_ids_by_role(role: AgentRole) -> List[UUID]:
    """Return the ids of active users holding `role`."""

    response = (
        get_supabase()
        .table(_USERS_TABLE)
        .select("user_id")
        .eq("role", role.value)
        .eq("is_active", True)
        .execute()
    )
    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to list users by role: {error}")

    rows = getattr(response, "data", None) or []
    return [UUID(str(row["user_id"])) for row in rows]


__all__ = [
    "list_routable_agents",
    "list_active_user_ids_by_role",
]
