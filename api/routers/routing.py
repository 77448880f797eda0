"""
Routing API Endpoints.

Preview routing decisions and trigger auto-assignment for an enquiry.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_request_context
from api.models import AutoAssignRequest, AutoAssignResponse, NextAgentRequest, NextAgentResponse
from domain.context import RequestContext
from services.lead_routing_service import auto_assign_enquiry, get_next_agent

router = APIRouter()


@router.post(
    "/routing/next-agent",
    response_model=NextAgentResponse,
    summary="Preview Next Agent",
    description="Return the agent a routing strategy would pick right now. Nothing is assigned.",
)
def preview_next_agent(
    request: NextAgentRequest,
    context: RequestContext = Depends(get_request_context),
):
    """
    **Strategies:**
    - `ROUND_ROBIN`: next agent after the most recent assignee
    - `TERRITORY`: first agent whose office matches `country`, else round robin
    - `CAPACITY`: agent with the fewest open leads + enquiries

    `agent_id` is null when there are no active sales agents.
    """
    try:
        agent_id = get_next_agent(request.strategy, country=request.country, context=context)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to route: {str(e)}")

    return NextAgentResponse(strategy=request.strategy, agent_id=agent_id)


@router.post(
    "/enquiries/{enquiry_id}/auto-assign",
    response_model=AutoAssignResponse,
    summary="Auto-assign Enquiry",
    description="Assign an enquiry to the agent with the lowest open workload.",
)
def auto_assign(
    enquiry_id: UUID,
    request: AutoAssignRequest = AutoAssignRequest(),
    context: RequestContext = Depends(get_request_context),
):
    """
    `assigned` is false when no agent is available, or when the enquiry does
    not exist or is already CONVERTED / SPAM.
    """
    try:
        agent_id = auto_assign_enquiry(enquiry_id, country=request.country, context=context)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to assign enquiry: {str(e)}")

    return AutoAssignResponse(
        enquiry_id=enquiry_id,
        assigned=agent_id is not None,
        assigned_agent_id=agent_id,
    )
