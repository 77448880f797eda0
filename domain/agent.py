"""
Domain: Agent (sales staff eligible to own enquiries and leads).

Agents are created and deactivated by user administration elsewhere in the
CRM. This service only reads them, together with their current open workload.

Workload rules:
- An open lead is a lead owned by the agent whose stage is not WON or LOST.
- An open enquiry is an enquiry assigned to the agent with status
  NEW, ASSIGNED or CONTACTED.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import UUID


class AgentRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    SALES_MANAGER = "SALES_MANAGER"
    SALES_AGENT = "SALES_AGENT"
    VIEWER = "VIEWER"


# Roles that may receive routed enquiries.
ROUTABLE_ROLES: tuple[AgentRole, ...] = (AgentRole.SALES_AGENT, AgentRole.SALES_MANAGER)

# Lead stages that no longer count towards an agent's workload.
CLOSED_LEAD_STAGES: tuple[str, ...] = ("WON", "LOST")


@dataclass(frozen=True, slots=True)
class Agent:
    """
    Sales agent with a snapshot of its open workload.

    The counts are read at routing time and are not kept in sync afterwards.
    """

    agent_id: UUID
    role: AgentRole
    is_active: bool
    first_name: str = ""
    last_name: str = ""
    office: Optional[str] = None  # office / territory label, e.g. "Turkey Office"
    open_lead_count: int = 0
    open_enquiry_count: int = 0

    def __post_init__(self) -> None:
        if self.open_lead_count < 0 or self.open_enquiry_count < 0:
            raise ValueError("open workload counts must be non-negative")

    @property
    def open_workload(self) -> int:
        return self.open_lead_count + self.open_enquiry_count

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def is_routable(self) -> bool:
        """Check if this agent may receive routed enquiries."""
        return self.is_active and self.role in ROUTABLE_ROLES
