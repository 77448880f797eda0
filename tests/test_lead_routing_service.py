"""
Tests for `services/lead_routing_service.py` against the in-memory store.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

import pytest

from conftest import make_agent
from domain.context import RequestContext
from domain.enquiry import Enquiry, EnquirySource, EnquiryStatus
from domain.notification import NotificationType
from domain.routing import RoutingStrategy
from services.lead_routing_service import (
    auto_assign_enquiry,
    get_next_agent,
    try_auto_assign_enquiry,
)


def _add_enquiry(store, n: int, status: EnquiryStatus = EnquiryStatus.NEW) -> Enquiry:
    enquiry = Enquiry(
        enquiry_id=UUID(f"10000000-0000-0000-0000-{n:012d}"),
        first_name="Test",
        last_name="-",
        email=f"e{n}@x.com",
        phone="-",
        source=EnquirySource.WEBSITE_FORM,
        status=status,
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )
    store.enquiries[enquiry.enquiry_id] = enquiry
    return enquiry


@pytest.mark.parametrize("strategy", list(RoutingStrategy))
def test_no_agents_returns_none(store, strategy):
    assert get_next_agent(strategy, country="Turkey") is None


def test_capacity_picks_least_loaded(store):
    store.agents = [
        make_agent(1, open_leads=4),
        make_agent(2, open_leads=1, open_enquiries=1),
        make_agent(3, open_leads=2, open_enquiries=2),
    ]
    assert get_next_agent(RoutingStrategy.CAPACITY) == make_agent(2).agent_id


def test_candidates_are_ordered_by_id_before_tie_break(store):
    """Query order does not influence which tied agent wins."""
    store.agents = [make_agent(3), make_agent(2), make_agent(1)]
    assert get_next_agent(RoutingStrategy.CAPACITY) == make_agent(1).agent_id


def test_inactive_agents_never_selected(store):
    store.agents = [make_agent(1, is_active=False), make_agent(2, open_leads=10)]
    assert get_next_agent(RoutingStrategy.CAPACITY) == make_agent(2).agent_id
    assert get_next_agent(RoutingStrategy.ROUND_ROBIN) == make_agent(2).agent_id


def test_only_inactive_agents_returns_none(store):
    store.agents = [make_agent(1, is_active=False)]
    assert get_next_agent(RoutingStrategy.CAPACITY) is None


def test_round_robin_rotates_through_agents(store):
    store.agents = [make_agent(1), make_agent(2), make_agent(3)]
    picked = []
    for n in range(4):
        enquiry = _add_enquiry(store, n)
        agent_id = get_next_agent(RoutingStrategy.ROUND_ROBIN)
        store.assign_enquiry_to_agent(enquiry.enquiry_id, agent_id)
        picked.append(agent_id)

    assert picked == [
        make_agent(1).agent_id,
        make_agent(2).agent_id,
        make_agent(3).agent_id,
        make_agent(1).agent_id,
    ]


def test_territory_match_and_fallback(store):
    store.agents = [make_agent(1, office="London Office"), make_agent(2, office="Turkey Office")]
    assert get_next_agent(RoutingStrategy.TERRITORY, country="Turkey") == make_agent(2).agent_id
    assert get_next_agent(RoutingStrategy.TERRITORY, country="Spain") == get_next_agent(
        RoutingStrategy.ROUND_ROBIN
    )


class TestAutoAssign:
    def test_assigns_and_sets_status(self, store):
        store.agents = [make_agent(1, open_leads=3), make_agent(2)]
        enquiry = _add_enquiry(store, 1)

        agent_id = auto_assign_enquiry(enquiry.enquiry_id)

        assert agent_id == make_agent(2).agent_id
        stored = store.enquiries[enquiry.enquiry_id]
        assert stored.assigned_agent_id == agent_id
        assert stored.status is EnquiryStatus.ASSIGNED

    def test_notifies_assigned_agent(self, store):
        store.agents = [make_agent(1)]
        enquiry = _add_enquiry(store, 1)

        auto_assign_enquiry(enquiry.enquiry_id)

        assert len(store.notifications) == 1
        assert store.notifications[0].user_id == make_agent(1).agent_id
        assert store.notifications[0].type is NotificationType.LEAD_ASSIGNED

    def test_does_not_notify_the_acting_agent(self, store):
        store.agents = [make_agent(1)]
        enquiry = _add_enquiry(store, 1)
        context = RequestContext(actor_id=make_agent(1).agent_id, actor_name="Agent1")

        assert auto_assign_enquiry(enquiry.enquiry_id, context=context) == make_agent(1).agent_id
        assert store.notifications == []

    def test_no_agents_leaves_enquiry_unassigned(self, store):
        enquiry = _add_enquiry(store, 1)

        assert auto_assign_enquiry(enquiry.enquiry_id) is None
        assert store.enquiries[enquiry.enquiry_id].status is EnquiryStatus.NEW
        assert store.enquiries[enquiry.enquiry_id].assigned_agent_id is None

    @pytest.mark.parametrize("status", [EnquiryStatus.SPAM, EnquiryStatus.CONVERTED])
    def test_terminal_enquiry_is_not_reassigned(self, store, status):
        store.agents = [make_agent(1)]
        enquiry = _add_enquiry(store, 1, status=status)

        assert auto_assign_enquiry(enquiry.enquiry_id) is None
        assert store.enquiries[enquiry.enquiry_id].status is status
        assert store.notifications == []

    def test_try_auto_assign_swallows_errors(self, store, monkeypatch):
        import services.lead_routing_service as lead_routing_service

        def boom():
            raise RuntimeError("Failed to list agents: connection reset")

        monkeypatch.setattr(lead_routing_service, "list_routable_agents", boom)
        enquiry = _add_enquiry(store, 1)

        assert try_auto_assign_enquiry(enquiry.enquiry_id) is None

    def test_notification_failure_does_not_undo_assignment(self, store):
        store.agents = [make_agent(1)]
        store.fail_notifications = True
        enquiry = _add_enquiry(store, 1)

        assert auto_assign_enquiry(enquiry.enquiry_id) == make_agent(1).agent_id
        assert store.enquiries[enquiry.enquiry_id].status is EnquiryStatus.ASSIGNED
