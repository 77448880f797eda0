"""
Shared FastAPI dependencies.
"""

from __future__ import annotations

import hmac
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Query

from config.settings import Settings, get_settings
from domain.agent import AgentRole
from domain.context import SYSTEM_CONTEXT, RequestContext


def verify_webhook_secret(
    authorization: Optional[str] = Header(default=None),
    secret: Optional[str] = Query(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Require WEBSITE_WEBHOOK_SECRET as a Bearer token or `?secret=` parameter.

    No-op when the secret is not configured.
    """

    expected = settings.webhook_secret
    if not expected:
        return

    provided = (authorization or "").replace("Bearer ", "", 1).strip() or secret or ""
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_request_context(
    x_actor_id: Optional[str] = Header(default=None),
    x_actor_name: Optional[str] = Header(default=None),
    x_actor_role: Optional[str] = Header(default=None),
) -> RequestContext:
    """
    Build the request context from headers set by the CRM front end.

    Requests without an actor id run as the system context.
    """

    if not x_actor_id:
        return SYSTEM_CONTEXT

    try:
        actor_id = UUID(x_actor_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid UUID format for X-Actor-Id")

    role = None
    if x_actor_role:
        try:
            role = AgentRole(x_actor_role)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown role: {x_actor_role}")

    return RequestContext(actor_id=actor_id, actor_name=x_actor_name, role=role)
