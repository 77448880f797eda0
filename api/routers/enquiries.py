"""
Enquiries API Endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_request_context
from api.models import CreateEnquiryRequest, EnquiryResponse
from domain.context import RequestContext
from services.enquiry_service import CreateEnquiryData, InvalidEnquiryError, create_enquiry

router = APIRouter()


@router.post(
    "/enquiries",
    response_model=EnquiryResponse,
    status_code=201,
    summary="Create Enquiry",
    description="Create an enquiry by hand. Unassigned enquiries are routed automatically.",
)
def create_manual_enquiry(
    request: CreateEnquiryRequest,
    context: RequestContext = Depends(get_request_context),
):
    try:
        enquiry = create_enquiry(
            CreateEnquiryData(
                first_name=request.first_name,
                last_name=request.last_name,
                email=request.email,
                phone=request.phone,
                message=request.message,
                source=request.source,
                source_url=request.source_url,
                country=request.country,
                segment=request.segment,
                priority=request.priority,
                assigned_agent_id=request.assigned_agent_id,
            ),
            context,
        )
    except InvalidEnquiryError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to create enquiry: {str(e)}")

    return EnquiryResponse(
        enquiry_id=enquiry.enquiry_id,
        first_name=enquiry.first_name,
        last_name=enquiry.last_name,
        email=enquiry.email,
        phone=enquiry.phone,
        source=enquiry.source.value,
        status=enquiry.status.value,
        source_url=enquiry.source_url,
        assigned_agent_id=enquiry.assigned_agent_id,
        country=enquiry.country,
    )
