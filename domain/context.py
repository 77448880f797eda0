"""
Domain: request context.

Identifies who triggered an operation (a signed-in user, or nobody for
machine-to-machine webhook deliveries). Passed explicitly into every service
entry point. Services use it for attribution only; authorization happens
before they are called.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from .agent import AgentRole


@dataclass(frozen=True, slots=True)
class RequestContext:
    actor_id: Optional[UUID] = None
    actor_name: Optional[str] = None
    role: Optional[AgentRole] = None

    def is_actor(self, user_id: Optional[UUID]) -> bool:
        return user_id is not None and self.actor_id == user_id


SYSTEM_CONTEXT = RequestContext()
