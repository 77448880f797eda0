"""
Webhook API Endpoints.

Receives website form submissions pushed by the CMS and turns them into
enquiries.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import JSONResponse

from api.dependencies import verify_webhook_secret
from api.models import WebhookResponse
from domain.form_submission import EmptySubmissionError, parse_webhook_payload
from domain.intake import FORM_TEMPLATES
from services.intake_service import IntakeOutcome, ingest_webhook_submission

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/webhooks/website-form",
    response_model=WebhookResponse,
    status_code=201,
    summary="Website Form Webhook",
    description="Create an enquiry from a website form submission.",
    dependencies=[Depends(verify_webhook_secret)],
)
def receive_website_form(payload: Dict[str, Any] = Body(...)):
    """
    Create a CRM enquiry from a website form submission.

    **Accepted payload shapes** (tried in order):
    1. `{"formId", "submissionId", "submissionData": [{"field", "value"}], "formTitle"}`
    2. `{"doc": {"form", "submissionData", "id"}}`
    3. Flat object: `firstname`, `surname`, `email`, `phone`, `message`,
       `full-name`, `name`, `pageURL`

    **Duplicates:**
    A submission whose id was already recorded, or the same email received
    in the last 5 minutes, returns 200 with the existing enquiry id.

    **Example request:**
    ```json
    {
      "formId": 2,
      "submissionId": "812",
      "submissionData": [
        {"field": "firstname", "value": "Ayşe"},
        {"field": "surname", "value": "Yılmaz"},
        {"field": "email", "value": "AYSE@X.COM"}
      ]
    }
    ```
    """
    try:
        try:
            submission = parse_webhook_payload(payload)
        except EmptySubmissionError as e:
            raise HTTPException(status_code=400, detail=str(e))

        result = ingest_webhook_submission(submission)

        if result.outcome is IntakeOutcome.SKIPPED_NO_DATA:
            raise HTTPException(
                status_code=400,
                detail="Missing required fields: firstName and email are required",
            )

        if result.outcome in (IntakeOutcome.DUPLICATE, IntakeOutcome.ALREADY_SYNCED):
            response = WebhookResponse(
                success=True,
                enquiry_id=result.enquiry_id,
                status=result.outcome.value,
                message="Duplicate submission detected",
            )
            return JSONResponse(status_code=200, content=response.model_dump(mode="json"))

        return WebhookResponse(
            success=True,
            enquiry_id=result.enquiry_id,
            assigned_agent_id=result.assigned_agent_id,
            status=result.outcome.value,
            message=f"Enquiry created from {result.form_name}",
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Failed to process form submission")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to process form submission: {str(e)}"
        )


@router.get("/webhooks/website-form", summary="Website Form Webhook Health")
def website_form_health():
    """Health check listing the forms this webhook understands."""
    return {
        "status": "ok",
        "endpoint": "Website Form Webhook",
        "forms": [
            {"id": form_id, "name": template.name}
            for form_id, template in sorted(FORM_TEMPLATES.items())
        ],
    }
