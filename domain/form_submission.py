"""
Domain: website form submissions (pure).

The website CMS delivers form submissions in a few different JSON shapes
depending on whether they arrive through the webhook, a CMS hook wrapper or a
hand-rolled integration. This module turns any of them into one
`FormSubmission`.

Accepted shapes, tried in order (a shape that yields no fields falls through
to the next):
1. {"formId" | "form", "submissionId" | "id", "submissionData": [{field, value}], "formTitle"}
2. {"doc": {"form", "submissionData", "id", "createdAt"}}
3. flat object with known keys: firstname, surname, email, phone, message,
   full-name, name, pageURL
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from .time import parse_utc_datetime, require_utc_timestamp

# Top-level keys understood in the flat payload shape.
FLAT_FIELD_KEYS: tuple[str, ...] = (
    "firstname",
    "surname",
    "email",
    "phone",
    "message",
    "full-name",
    "name",
    "pageURL",
)


class EmptySubmissionError(ValueError):
    """Raised when a payload carries no form fields in any known shape."""


@dataclass(frozen=True, slots=True)
class FormField:
    field: str
    value: str


@dataclass(frozen=True, slots=True)
class FormSubmission:
    """
    One form submission, independent of the payload shape it arrived in.

    `submission_id` is the CMS's own id, used for the source reference marker.
    `submitted_at` is the CMS creation time when the payload carries one.
    """

    form_id: Optional[int]
    fields: tuple[FormField, ...]
    submission_id: Optional[str] = None
    form_title: Optional[str] = None
    page_url: Optional[str] = None
    submitted_at: Optional[datetime] = None
    raw_payload: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.submitted_at is not None:
            require_utc_timestamp("submitted_at", self.submitted_at)


def _coerce_form_id(value: Any) -> Optional[int]:
    if isinstance(value, Mapping):
        value = value.get("id")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _coerce_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (Mapping, list)):
        return None
    text = str(value).strip()
    return text or None


def _parse_fields(raw_fields: Any) -> tuple[FormField, ...]:
    if not isinstance(raw_fields, Sequence) or isinstance(raw_fields, (str, bytes)):
        return ()

    parsed: list[FormField] = []
    for item in raw_fields:
        if not isinstance(item, Mapping):
            continue
        name = _coerce_text(item.get("field"))
        if name is None:
            continue
        value = item.get("value")
        parsed.append(FormField(field=name, value="" if value is None else str(value)))
    return tuple(parsed)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    try:
        return parse_utc_datetime(value)
    except (TypeError, ValueError):
        return None


def _from_submission_data(body: Mapping[str, Any]) -> Optional[FormSubmission]:
    fields = _parse_fields(body.get("submissionData"))
    if not fields:
        return None

    form = body.get("form")
    form_id = _coerce_form_id(body.get("formId"))
    if form_id is None:
        form_id = _coerce_form_id(form)

    form_title = _coerce_text(body.get("formTitle"))
    if form_title is None and isinstance(form, Mapping):
        form_title = _coerce_text(form.get("title"))

    submission_id = _coerce_text(body.get("submissionId"))
    if submission_id is None:
        submission_id = _coerce_text(body.get("id"))

    return FormSubmission(
        form_id=form_id,
        fields=fields,
        submission_id=submission_id,
        form_title=form_title,
        page_url=_coerce_text(body.get("pageURL")) or _coerce_text(body.get("pageUrl")),
        submitted_at=_parse_timestamp(body.get("createdAt")),
        raw_payload=body,
    )


def _from_flat(body: Mapping[str, Any]) -> Optional[FormSubmission]:
    fields = []
    for key in FLAT_FIELD_KEYS:
        value = _coerce_text(body.get(key))
        if value is not None:
            fields.append(FormField(field=key, value=value))
    if not fields:
        return None

    return FormSubmission(
        form_id=_coerce_form_id(body.get("formId")),
        fields=tuple(fields),
        submission_id=_coerce_text(body.get("submissionId")),
        form_title=_coerce_text(body.get("formTitle")),
        page_url=_coerce_text(body.get("pageURL")),
        submitted_at=_parse_timestamp(body.get("createdAt")),
        raw_payload=body,
    )


def parse_webhook_payload(payload: Any) -> FormSubmission:
    """
    Parse a webhook body in any supported shape.

    Raises:
        EmptySubmissionError: if no shape yields at least one field.
    """

    if not isinstance(payload, Mapping):
        raise EmptySubmissionError("Submission payload must be a JSON object")

    submission = _from_submission_data(payload)
    if submission is not None:
        return submission

    doc = payload.get("doc")
    if isinstance(doc, Mapping):
        submission = _from_submission_data(doc)
        if submission is not None:
            return submission

    submission = _from_flat(payload)
    if submission is not None:
        return submission

    raise EmptySubmissionError("No submission data found")


def parse_cms_document(doc: Mapping[str, Any]) -> FormSubmission:
    """
    Parse one document from the CMS form-submissions listing.

    Listing documents always use the `submissionData` shape; a document with
    no fields still parses (it is skipped later for missing data).
    """

    submission = _from_submission_data(doc)
    if submission is not None:
        return submission

    form = doc.get("form")
    return FormSubmission(
        form_id=_coerce_form_id(form),
        fields=(),
        submission_id=_coerce_text(doc.get("id")),
        form_title=_coerce_text(form.get("title")) if isinstance(form, Mapping) else None,
        submitted_at=_parse_timestamp(doc.get("createdAt")),
        raw_payload=doc,
    )


__all__ = [
    "EmptySubmissionError",
    "FormField",
    "FormSubmission",
    "FLAT_FIELD_KEYS",
    "parse_webhook_payload",
    "parse_cms_document",
]
