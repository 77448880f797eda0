"""
Pytest configuration.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and provides an in-memory store that replaces
the repository functions used by the services.
"""

from __future__ import annotations

import dataclasses
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional
from uuid import UUID

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.agent import Agent, AgentRole  # noqa: E402
from domain.enquiry import Enquiry, EnquirySource, EnquiryStatus  # noqa: E402
from domain.notification import Notification  # noqa: E402


class FakeStore:
    """In-memory stand-in for the Supabase tables the services touch."""

    def __init__(self) -> None:
        self.enquiries: dict[UUID, Enquiry] = {}
        self.agents: list[Agent] = []
        self.admin_ids: list[UUID] = []
        self.notifications: list[Notification] = []
        self.insert_calls: int = 0
        self.failing_emails: set[str] = set()
        self.fail_notifications: bool = False
        self.clock = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def tick(self) -> datetime:
        self.clock += timedelta(seconds=1)
        return self.clock

    # enquiry_repository
    def insert_enquiry(self, enquiry: Enquiry) -> Enquiry:
        self.insert_calls += 1
        if enquiry.email in self.failing_emails:
            raise RuntimeError(f"Failed to insert enquiry: simulated failure for {enquiry.email}")
        self.enquiries[enquiry.enquiry_id] = enquiry
        return enquiry

    def find_by_submission_id(self, submission_id: str) -> Optional[Enquiry]:
        for enquiry in self.enquiries.values():
            if enquiry.submission_id == str(submission_id).strip():
                return enquiry
        return None

    def find_by_email_in_window(
        self,
        email: str,
        source: EnquirySource,
        window_start: datetime,
        window_end: datetime,
    ) -> Optional[Enquiry]:
        matches = [
            e for e in self.enquiries.values()
            if e.email == email and e.source == source and window_start <= e.created_at <= window_end
        ]
        return max(matches, key=lambda e: e.created_at) if matches else None

    def get_last_assigned_agent_id(self) -> Optional[UUID]:
        assigned = [e for e in self.enquiries.values() if e.assigned_agent_id is not None]
        if not assigned:
            return None
        latest = max(assigned, key=lambda e: e.updated_at or e.created_at)
        return latest.assigned_agent_id

    def assign_enquiry_to_agent(self, enquiry_id: UUID, agent_id: UUID) -> bool:
        enquiry = self.enquiries.get(enquiry_id)
        if enquiry is None or enquiry.is_terminal():
            return False
        self.enquiries[enquiry_id] = dataclasses.replace(
            enquiry,
            assigned_agent_id=agent_id,
            status=EnquiryStatus.ASSIGNED,
            updated_at=self.tick(),
        )
        return True

    # agent_repository
    def list_routable_agents(self) -> list[Agent]:
        return list(self.agents)

    def list_active_user_ids_by_role(self, role: AgentRole) -> list[UUID]:
        return list(self.admin_ids) if role is AgentRole.SUPER_ADMIN else []

    # notification_repository
    def insert_notifications(self, notifications: list[Notification]) -> None:
        if self.fail_notifications:
            raise RuntimeError("Failed to insert notifications: simulated failure")
        self.notifications.extend(notifications)


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> FakeStore:
    """Patch every repository function the services import with a FakeStore."""

    import services.enquiry_service as enquiry_service
    import services.intake_service as intake_service
    import services.lead_routing_service as lead_routing_service
    import services.notification_service as notification_service

    fake = FakeStore()

    monkeypatch.setattr(intake_service, "insert_enquiry", fake.insert_enquiry)
    monkeypatch.setattr(intake_service, "find_by_submission_id", fake.find_by_submission_id)
    monkeypatch.setattr(intake_service, "find_by_email_in_window", fake.find_by_email_in_window)

    monkeypatch.setattr(enquiry_service, "insert_enquiry", fake.insert_enquiry)

    monkeypatch.setattr(lead_routing_service, "list_routable_agents", fake.list_routable_agents)
    monkeypatch.setattr(lead_routing_service, "assign_enquiry_to_agent", fake.assign_enquiry_to_agent)
    monkeypatch.setattr(lead_routing_service, "get_last_assigned_agent_id", fake.get_last_assigned_agent_id)

    monkeypatch.setattr(notification_service, "list_active_user_ids_by_role", fake.list_active_user_ids_by_role)
    monkeypatch.setattr(notification_service, "insert_notifications", fake.insert_notifications)

    return fake


def make_agent(
    n: int,
    *,
    office: Optional[str] = None,
    open_leads: int = 0,
    open_enquiries: int = 0,
    role: AgentRole = AgentRole.SALES_AGENT,
    is_active: bool = True,
) -> Agent:
    """Agent with a predictable id: 00000000-0000-0000-0000-0000000000<n>."""

    return Agent(
        agent_id=UUID(f"00000000-0000-0000-0000-{n:012d}"),
        role=role,
        is_active=is_active,
        first_name=f"Agent{n}",
        last_name="Test",
        office=office,
        open_lead_count=open_leads,
        open_enquiry_count=open_enquiries,
    )
