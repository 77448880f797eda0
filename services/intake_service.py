"""
Enquiry intake service.

Turns website form submissions into enquiries without creating duplicates.

Two intake paths, each with its own duplicate window:
- Webhook (one submission per call): duplicates are the same email from the
  website created in the 5 minutes before the delivery arrived.
- Sync (batch pulled from the CMS): duplicates are the same email from the
  website created within +/- 60 seconds of the submission's CMS timestamp.

Both paths first look for the `submission:<id>` marker when the submission
carries a CMS id.

After an enquiry is created it is auto-assigned (capacity routing). Batch
sync also notifies super admins with a summary. Both side effects are
best-effort and never undo the creation.

Processing is sequential. The marker lookup and the insert are two separate
requests, so two concurrent deliveries of the same submission can still both
be created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence
from uuid import UUID, uuid4

from domain.context import SYSTEM_CONTEXT, RequestContext
from domain.enquiry import (
    PLACEHOLDER_VALUE,
    Enquiry,
    EnquirySource,
    EnquiryStatus,
    build_source_reference,
)
from domain.form_submission import FormSubmission
from domain.intake import (
    SYNC_EVENT_WINDOW,
    WEBHOOK_TRAILING_WINDOW,
    DuplicateWindow,
    NormalizedEnquiry,
    normalize_submission,
)
from domain.notification import ENQUIRIES_LINK, NotificationType
from domain.time import utc_now
from repositories.enquiry_repository import (
    find_by_email_in_window,
    find_by_submission_id,
    insert_enquiry,
)
from services.cms_client import DEFAULT_PAGE_SIZE, fetch_form_submissions
from services.lead_routing_service import try_auto_assign_enquiry
from services.notification_service import notify_super_admins

logger = logging.getLogger(__name__)

INTAKE_SOURCE: EnquirySource = EnquirySource.WEBSITE_FORM


class IntakeOutcome(str, Enum):
    CREATED = "created"
    ALREADY_SYNCED = "already_synced"
    DUPLICATE = "duplicate"
    SKIPPED_NO_DATA = "skipped_no_data"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class IntakeResult:
    """Outcome of processing one submission."""

    outcome: IntakeOutcome
    submission_id: Optional[str] = None
    enquiry_id: Optional[UUID] = None
    assigned_agent_id: Optional[UUID] = None
    form_name: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SyncSummary:
    """
    Result of a batch sync.

    `skipped` counts both already-synced submissions and submissions without
    enough data to create an enquiry.
    """

    total: int
    created: int
    skipped: int
    errors: int
    results: List[IntakeResult] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.created > 0:
            return f"Successfully synced {self.created} new enquiries"
        return f"No new enquiries found ({self.skipped} already synced)"


def build_enquiry(
    normalized: NormalizedEnquiry,
    submission_id: Optional[str],
    created_at: datetime,
) -> Enquiry:
    """Build a NEW website enquiry from normalized form data."""

    return Enquiry(
        enquiry_id=uuid4(),
        first_name=normalized.first_name,
        last_name=normalized.last_name or PLACEHOLDER_VALUE,
        email=normalized.email,
        phone=normalized.phone or PLACEHOLDER_VALUE,
        message=normalized.message or None,
        source=INTAKE_SOURCE,
        source_url=build_source_reference(normalized.source_url, submission_id),
        status=EnquiryStatus.NEW,
        created_at=created_at,
        updated_at=created_at,
    )


def _find_duplicate(email: str, window: DuplicateWindow, anchor: datetime) -> Optional[Enquiry]:
    start, end = window.bounds(anchor)
    return find_by_email_in_window(email, INTAKE_SOURCE, start, end)


def _create(
    normalized: NormalizedEnquiry,
    submission: FormSubmission,
    context: RequestContext,
    now: datetime,
) -> IntakeResult:
    enquiry = insert_enquiry(build_enquiry(normalized, submission.submission_id, now))
    agent_id = try_auto_assign_enquiry(enquiry.enquiry_id, context=context)

    logger.info(
        f"New enquiry created from {normalized.form_name}",
        extra={
            "enquiry_id": str(enquiry.enquiry_id),
            "submission_id": submission.submission_id,
            "assigned_agent_id": str(agent_id) if agent_id else None,
        },
    )
    return IntakeResult(
        outcome=IntakeOutcome.CREATED,
        submission_id=submission.submission_id,
        enquiry_id=enquiry.enquiry_id,
        assigned_agent_id=agent_id,
        form_name=normalized.form_name,
    )


def ingest_webhook_submission(
    submission: FormSubmission,
    context: RequestContext = SYSTEM_CONTEXT,
    now: Optional[datetime] = None,
) -> IntakeResult:
    """
    Create an enquiry from one webhook delivery.

    Returns SKIPPED_NO_DATA when first name or email is missing,
    ALREADY_SYNCED when the submission marker already exists, DUPLICATE when
    the same email arrived in the trailing 5-minute window, else CREATED.

    Raises:
        RuntimeError: persistence failures (the webhook caller reports them).
    """

    now = now or utc_now()
    normalized = normalize_submission(submission)

    if not normalized.is_creatable:
        return IntakeResult(
            outcome=IntakeOutcome.SKIPPED_NO_DATA,
            submission_id=submission.submission_id,
            form_name=normalized.form_name,
        )

    if submission.submission_id:
        existing = find_by_submission_id(submission.submission_id)
        if existing is not None:
            return IntakeResult(
                outcome=IntakeOutcome.ALREADY_SYNCED,
                submission_id=submission.submission_id,
                enquiry_id=existing.enquiry_id,
                form_name=normalized.form_name,
            )

    duplicate = _find_duplicate(normalized.email, WEBHOOK_TRAILING_WINDOW, now)
    if duplicate is not None:
        logger.info(
            "Duplicate webhook submission ignored",
            extra={"enquiry_id": str(duplicate.enquiry_id), "window": WEBHOOK_TRAILING_WINDOW.name},
        )
        return IntakeResult(
            outcome=IntakeOutcome.DUPLICATE,
            submission_id=submission.submission_id,
            enquiry_id=duplicate.enquiry_id,
            form_name=normalized.form_name,
        )

    return _create(normalized, submission, context, now)


def _sync_one(submission: FormSubmission, context: RequestContext, now: datetime) -> IntakeResult:
    normalized = normalize_submission(submission)

    if not normalized.is_creatable:
        return IntakeResult(
            outcome=IntakeOutcome.SKIPPED_NO_DATA,
            submission_id=submission.submission_id,
            form_name=normalized.form_name,
        )

    if submission.submission_id:
        existing = find_by_submission_id(submission.submission_id)
        if existing is not None:
            return IntakeResult(
                outcome=IntakeOutcome.ALREADY_SYNCED,
                submission_id=submission.submission_id,
                enquiry_id=existing.enquiry_id,
                form_name=normalized.form_name,
            )

    anchor = submission.submitted_at or now
    existing = _find_duplicate(normalized.email, SYNC_EVENT_WINDOW, anchor)
    if existing is not None:
        return IntakeResult(
            outcome=IntakeOutcome.ALREADY_SYNCED,
            submission_id=submission.submission_id,
            enquiry_id=existing.enquiry_id,
            form_name=normalized.form_name,
        )

    return _create(normalized, submission, context, now)


def sync_submissions(
    submissions: Sequence[FormSubmission],
    context: RequestContext = SYSTEM_CONTEXT,
    now: Optional[datetime] = None,
) -> SyncSummary:
    """
    Create enquiries for every submission not yet recorded.

    Submissions are processed one at a time. A failure on one submission is
    logged and recorded as ERROR; the remaining submissions are still
    processed and this function does not raise for it.
    """

    now = now or utc_now()
    results: List[IntakeResult] = []

    for submission in submissions:
        try:
            result = _sync_one(submission, context, now)
        except Exception as e:
            logger.exception(
                "Error processing form submission",
                extra={"submission_id": submission.submission_id},
            )
            result = IntakeResult(
                outcome=IntakeOutcome.ERROR,
                submission_id=submission.submission_id,
                error=str(e),
            )
        results.append(result)

    created = sum(1 for r in results if r.outcome is IntakeOutcome.CREATED)
    errors = sum(1 for r in results if r.outcome is IntakeOutcome.ERROR)
    skipped = len(results) - created - errors

    if created > 0:
        by_actor = f" by {context.actor_name}" if context.actor_name else ""
        notify_super_admins(
            NotificationType.SYSTEM_ALERT,
            f"Synced {created} Website Enquiries",
            f"{created} new enquiries were imported from the website{by_actor}. "
            f"{skipped} were already synced or skipped.",
            ENQUIRIES_LINK,
        )

    logger.info(
        "Form submission sync finished",
        extra={"total": len(results), "created": created, "skipped": skipped, "errors": errors},
    )

    return SyncSummary(
        total=len(results),
        created=created,
        skipped=skipped,
        errors=errors,
        results=results,
    )


def run_website_sync(
    context: RequestContext = SYSTEM_CONTEXT,
    limit: int = DEFAULT_PAGE_SIZE,
) -> SyncSummary:
    """
    Pull the newest submissions from the website CMS and sync them.

    Raises:
        UpstreamUnavailableError: the CMS could not be read. Not retried.
    """

    submissions = fetch_form_submissions(limit=limit)
    return sync_submissions(submissions, context=context)


__all__ = [
    "IntakeOutcome",
    "IntakeResult",
    "SyncSummary",
    "build_enquiry",
    "ingest_webhook_submission",
    "sync_submissions",
    "run_website_sync",
]
