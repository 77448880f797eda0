"""
Lead routing service.

Picks the agent who should own a new enquiry and applies the assignment.

Selection is delegated to the pure policies in `domain.routing`; this module
only loads the inputs they need:
- routable agents (active sales agents / managers) with open workload counts
- the assignee of the most recently updated assigned enquiry (round-robin)

Candidates are always ordered by agent_id before a policy indexes into them.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from domain.context import SYSTEM_CONTEXT, RequestContext
from domain.notification import ENQUIRIES_LINK, NotificationType
from domain.routing import (
    DEFAULT_STRATEGY,
    RoutingStrategy,
    needs_last_assignment,
    order_candidates,
    select_agent,
)
from repositories.agent_repository import list_routable_agents
from repositories.enquiry_repository import (
    assign_enquiry_to_agent,
    get_last_assigned_agent_id,
)
from services.notification_service import notify

logger = logging.getLogger(__name__)

# Strategy used whenever an enquiry is assigned automatically.
AUTO_ASSIGN_STRATEGY: RoutingStrategy = RoutingStrategy.CAPACITY


def get_next_agent(
    strategy: RoutingStrategy = DEFAULT_STRATEGY,
    country: Optional[str] = None,
    context: RequestContext = SYSTEM_CONTEXT,
) -> Optional[UUID]:
    """
    Return the id of the agent who should receive the next enquiry.

    Returns:
        Agent id, or None when there are no active routable agents.
    """

    candidates = order_candidates(list_routable_agents())
    if not candidates:
        logger.info("No routable agents available", extra={"strategy": strategy.value})
        return None

    last_assigned = get_last_assigned_agent_id() if needs_last_assignment(strategy) else None

    agent = select_agent(
        strategy,
        candidates,
        country=country,
        last_assigned_agent_id=last_assigned,
    )
    if agent is None:
        return None

    logger.debug(
        "Routing selected agent",
        extra={
            "strategy": strategy.value,
            "agent_id": str(agent.agent_id),
            "agent_name": agent.display_name,
            "open_workload": agent.open_workload,
            "actor_id": str(context.actor_id) if context.actor_id else None,
        },
    )
    return agent.agent_id


def auto_assign_enquiry(
    enquiry_id: UUID,
    country: Optional[str] = None,
    context: RequestContext = SYSTEM_CONTEXT,
) -> Optional[UUID]:
    """
    Assign an enquiry to the next agent (capacity-based) and notify them.

    Returns:
        The assigned agent id, or None if no agent is available or the
        enquiry is missing / already CONVERTED or SPAM.
    """

    agent_id = get_next_agent(AUTO_ASSIGN_STRATEGY, country=country, context=context)
    if agent_id is None:
        return None

    if not assign_enquiry_to_agent(enquiry_id, agent_id):
        logger.warning(
            "Enquiry not assigned: missing or in a terminal status",
            extra={"enquiry_id": str(enquiry_id), "agent_id": str(agent_id)},
        )
        return None

    if not context.is_actor(agent_id):
        notify(
            agent_id,
            NotificationType.LEAD_ASSIGNED,
            "Enquiry Assigned to You",
            "A new enquiry has been assigned to you",
            ENQUIRIES_LINK,
        )

    logger.info(
        "Enquiry auto-assigned",
        extra={"enquiry_id": str(enquiry_id), "agent_id": str(agent_id)},
    )
    return agent_id


def try_auto_assign_enquiry(
    enquiry_id: UUID,
    country: Optional[str] = None,
    context: RequestContext = SYSTEM_CONTEXT,
) -> Optional[UUID]:
    """auto_assign_enquiry() that logs and returns None instead of raising."""

    try:
        return auto_assign_enquiry(enquiry_id, country=country, context=context)
    except Exception:
        logger.exception("Auto-assignment failed", extra={"enquiry_id": str(enquiry_id)})
        return None


__all__ = [
    "AUTO_ASSIGN_STRATEGY",
    "get_next_agent",
    "auto_assign_enquiry",
    "try_auto_assign_enquiry",
]
