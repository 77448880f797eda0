"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.enquiry import EnquirySource
from domain.routing import RoutingStrategy


# ============================================================================
# Intake Models
# ============================================================================

class WebhookResponse(BaseModel):
    """Response after processing one webhook delivery."""
    success: bool
    enquiry_id: Optional[UUID] = None
    assigned_agent_id: Optional[UUID] = None
    status: str
    message: str

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "enquiry_id": "123e4567-e89b-12d3-a456-426614174000",
                "assigned_agent_id": "123e4567-e89b-12d3-a456-426614174001",
                "status": "created",
                "message": "Enquiry created from Enquiry Form"
            }
        }


class SyncResultItem(BaseModel):
    """Per-submission outcome of a sync run."""
    submission_id: Optional[str] = None
    status: str
    enquiry_id: Optional[UUID] = None


class SyncResponse(BaseModel):
    """Response after syncing submissions from the website CMS."""
    success: bool
    total: int
    created: int
    skipped: int
    errors: int
    message: str
    results: List[SyncResultItem]

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "total": 50,
                "created": 2,
                "skipped": 48,
                "errors": 0,
                "message": "Successfully synced 2 new enquiries",
                "results": [
                    {"submission_id": "812", "status": "created",
                     "enquiry_id": "123e4567-e89b-12d3-a456-426614174000"},
                    {"submission_id": "811", "status": "already_synced",
                     "enquiry_id": "123e4567-e89b-12d3-a456-426614174002"}
                ]
            }
        }


# ============================================================================
# Enquiry Models
# ============================================================================

class CreateEnquiryRequest(BaseModel):
    """Request to create an enquiry by hand."""
    first_name: str = Field(..., min_length=1)
    last_name: str = ""
    email: str = Field(..., min_length=3)
    phone: str = ""
    message: Optional[str] = None
    source: EnquirySource = EnquirySource.WEBSITE_FORM
    source_url: Optional[str] = None
    country: Optional[str] = None
    segment: str = "Buyer"
    priority: str = "Medium"
    assigned_agent_id: Optional[UUID] = None

    class Config:
        json_schema_extra = {
            "example": {
                "first_name": "Ayşe",
                "last_name": "Yılmaz",
                "email": "ayse@example.com",
                "phone": "+90 555 000 0000",
                "source": "PHONE_CALL",
                "country": "Turkey"
            }
        }


class EnquiryResponse(BaseModel):
    """Enquiry as returned by the API."""
    enquiry_id: UUID
    first_name: str
    last_name: str
    email: str
    phone: str
    source: str
    status: str
    source_url: Optional[str] = None
    assigned_agent_id: Optional[UUID] = None
    country: Optional[str] = None


# ============================================================================
# Routing Models
# ============================================================================

class NextAgentRequest(BaseModel):
    """Request to preview which agent a routing strategy would pick."""
    strategy: RoutingStrategy = RoutingStrategy.ROUND_ROBIN
    country: Optional[str] = None


class NextAgentResponse(BaseModel):
    strategy: RoutingStrategy
    agent_id: Optional[UUID] = None


class AutoAssignRequest(BaseModel):
    country: Optional[str] = None


class AutoAssignResponse(BaseModel):
    enquiry_id: UUID
    assigned: bool
    assigned_agent_id: Optional[UUID] = None


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int
