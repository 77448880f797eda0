"""
Sync API Endpoints.

Pulls recent form submissions from the website CMS and creates enquiries for
any that are not yet recorded.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_request_context, verify_webhook_secret
from api.models import SyncResponse, SyncResultItem
from domain.context import RequestContext
from services.cms_client import UpstreamUnavailableError
from services.intake_service import run_website_sync

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/sync/form-submissions",
    response_model=SyncResponse,
    summary="Sync Website Submissions",
    description="Fetch the newest website form submissions and create enquiries for new ones.",
    dependencies=[Depends(verify_webhook_secret)],
)
def sync_form_submissions(context: RequestContext = Depends(get_request_context)):
    """
    Sync the 50 newest submissions from the website CMS.

    Each submission is processed independently; one failing submission is
    reported with status `error` and does not stop the others.

    Returns 502 when the CMS cannot be reached.
    """
    try:
        summary = run_website_sync(context=context)
    except UpstreamUnavailableError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.exception("Sync failed")
        raise HTTPException(status_code=500, detail=f"Sync failed: {str(e)}")

    return SyncResponse(
        success=True,
        total=summary.total,
        created=summary.created,
        skipped=summary.skipped,
        errors=summary.errors,
        message=summary.message,
        results=[
            SyncResultItem(
                submission_id=result.submission_id,
                status=result.outcome.value,
                enquiry_id=result.enquiry_id,
            )
            for result in summary.results
        ],
    )


@router.get("/sync/form-submissions", summary="Sync Health")
def sync_health():
    return {
        "status": "ok",
        "endpoint": "Form Submissions Sync",
        "description": "POST to this endpoint to sync form submissions from the website CMS",
    }
