"""
Domain: enquiry routing policies (pure).

Selects which agent should own a new enquiry. These functions never touch the
database; the routing service loads the candidates and the last assignment
and passes them in.

Policies:
- ROUND_ROBIN: the agent after the one who received the most recent
  assignment, wrapping around. Unknown / no previous assignee -> first agent.
- TERRITORY: first agent whose office label contains the enquiry's country
  (case-insensitive). Falls back to ROUND_ROBIN once.
- CAPACITY: agent with the smallest open workload; ties go to the earliest
  agent in candidate order.

Every policy returns None for an empty candidate list. Callers treat None as
"leave unassigned", not as an error.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence
from uuid import UUID

from .agent import Agent


class RoutingStrategy(str, Enum):
    ROUND_ROBIN = "ROUND_ROBIN"
    TERRITORY = "TERRITORY"
    CAPACITY = "CAPACITY"


DEFAULT_STRATEGY: RoutingStrategy = RoutingStrategy.ROUND_ROBIN


def order_candidates(agents: Sequence[Agent]) -> list[Agent]:
    """
    Return routable agents in the stable order every policy indexes into.

    Round-robin position depends on this order staying the same between
    calls, so it is keyed on agent_id rather than on query order.
    """

    return sorted((a for a in agents if a.is_routable()), key=lambda a: str(a.agent_id))


def select_round_robin(
    candidates: Sequence[Agent],
    last_assigned_agent_id: Optional[UUID],
) -> Optional[Agent]:
    if not candidates:
        return None

    last_index = -1
    if last_assigned_agent_id is not None:
        for index, agent in enumerate(candidates):
            if agent.agent_id == last_assigned_agent_id:
                last_index = index
                break

    return candidates[(last_index + 1) % len(candidates)]


def select_by_territory(
    candidates: Sequence[Agent],
    country: Optional[str],
    last_assigned_agent_id: Optional[UUID],
) -> Optional[Agent]:
    if not candidates:
        return None

    if country and country.strip():
        needle = country.strip().lower()
        for agent in candidates:
            if agent.office and needle in agent.office.lower():
                return agent

    return select_round_robin(candidates, last_assigned_agent_id)


def select_by_capacity(candidates: Sequence[Agent]) -> Optional[Agent]:
    if not candidates:
        return None

    # min() keeps the first of equal elements
    return min(candidates, key=lambda a: a.open_workload)


def needs_last_assignment(strategy: RoutingStrategy) -> bool:
    """Whether the policy may need the most recent assignee to decide."""

    # TERRITORY needs it for its round-robin fallback
    return strategy in (RoutingStrategy.ROUND_ROBIN, RoutingStrategy.TERRITORY)


def select_agent(
    strategy: RoutingStrategy,
    candidates: Sequence[Agent],
    *,
    country: Optional[str] = None,
    last_assigned_agent_id: Optional[UUID] = None,
) -> Optional[Agent]:
    """Dispatch to the selection function for `strategy`."""

    if strategy is RoutingStrategy.ROUND_ROBIN:
        return select_round_robin(candidates, last_assigned_agent_id)
    if strategy is RoutingStrategy.TERRITORY:
        return select_by_territory(candidates, country, last_assigned_agent_id)
    if strategy is RoutingStrategy.CAPACITY:
        return select_by_capacity(candidates)
    return candidates[0] if candidates else None


__all__ = [
    "RoutingStrategy",
    "DEFAULT_STRATEGY",
    "order_candidates",
    "select_round_robin",
    "select_by_territory",
    "select_by_capacity",
    "needs_last_assignment",
    "select_agent",
]
