"""
Domain: enquiry intake normalization and duplicate windows (pure).

Maps the field set of each known website form onto the canonical enquiry
shape (first name, last name, email, phone, message, source URL).

Known forms:
- Form 1 (Contact Form):  full-name, email, phone, message
- Form 2 (Enquiry Form):  firstname, surname, email, phone, message, pageURL
- Form 3 (Home Contact):  name, surname, email, phone

Any other form id uses the full alias list for every field.

Field names are matched case-insensitively and the first alias with a
non-empty value wins. A record is only creatable when both first name and
email are present after normalization.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Mapping, Optional, Sequence

from .form_submission import FormField, FormSubmission
from .time import require_utc_timestamp

FIRST_NAME = "first_name"
LAST_NAME = "last_name"
FULL_NAME = "full_name"
EMAIL = "email"
PHONE = "phone"
MESSAGE = "message"
SOURCE_URL = "source_url"


@dataclass(frozen=True, slots=True)
class FormTemplate:
    """Field aliases (in priority order) for one website form."""

    name: str
    aliases: Mapping[str, tuple[str, ...]]
    resplit_first_name: bool = False


FORM_TEMPLATES: dict[int, FormTemplate] = {
    1: FormTemplate(
        name="Contact Form",
        aliases={
            FULL_NAME: ("full-name", "fullname", "name"),
            EMAIL: ("email",),
            PHONE: ("phone",),
            MESSAGE: ("message",),
        },
    ),
    2: FormTemplate(
        name="Enquiry Form",
        aliases={
            FIRST_NAME: ("firstname", "first-name", "name"),
            LAST_NAME: ("surname", "last-name", "lastname"),
            EMAIL: ("email",),
            PHONE: ("phone",),
            MESSAGE: ("message",),
            SOURCE_URL: ("pageURL", "pageurl", "page-url"),
        },
    ),
    3: FormTemplate(
        name="Home Contact",
        aliases={
            FIRST_NAME: ("name", "firstname", "first-name"),
            LAST_NAME: ("surname", "last-name", "lastname"),
            EMAIL: ("email",),
            PHONE: ("phone",),
        },
    ),
}

DEFAULT_TEMPLATE = FormTemplate(
    name="Website Form",
    aliases={
        FIRST_NAME: ("firstname", "first-name", "name", "full-name"),
        LAST_NAME: ("surname", "last-name", "lastname"),
        EMAIL: ("email",),
        PHONE: ("phone",),
        MESSAGE: ("message",),
        SOURCE_URL: ("pageURL", "pageurl"),
    },
    resplit_first_name=True,
)


@dataclass(frozen=True, slots=True)
class DuplicateWindow:
    """
    Time window used to suppress repeated submissions of the same email.

    `before` / `after` are measured from the anchor timestamp.
    """

    name: str
    before: timedelta
    after: timedelta

    def bounds(self, anchor: datetime) -> tuple[datetime, datetime]:
        require_utc_timestamp("anchor", anchor)
        return anchor - self.before, anchor + self.after

    def contains(self, anchor: datetime, candidate: datetime) -> bool:
        start, end = self.bounds(anchor)
        return start <= candidate <= end


# Polling sync: +/- 60 seconds around the submission's own CMS timestamp.
SYNC_EVENT_WINDOW = DuplicateWindow(
    name="sync_event",
    before=timedelta(seconds=60),
    after=timedelta(seconds=60),
)

# Webhook: anything created in the 5 minutes before the delivery arrived.
WEBHOOK_TRAILING_WINDOW = DuplicateWindow(
    name="webhook_trailing",
    before=timedelta(minutes=5),
    after=timedelta(0),
)


@dataclass(frozen=True, slots=True)
class NormalizedEnquiry:
    form_id: Optional[int]
    form_name: str
    first_name: str
    last_name: str
    email: str
    phone: str
    message: str
    source_url: str

    @property
    def is_creatable(self) -> bool:
        return bool(self.first_name) and bool(self.email)


def get_field_value(fields: Sequence[FormField], *names: str) -> str:
    """Return the first non-empty value among `names` (case-insensitive)."""

    for name in names:
        wanted = name.lower()
        for item in fields:
            if item.field.lower() == wanted and item.value:
                return item.value
    return ""


def split_full_name(full_name: str) -> tuple[str, str]:
    """
    Split a combined name field into (first, last).

    "John" -> ("John", ""); "John Michael Smith" -> ("John", "Michael Smith").
    """

    parts = full_name.split()
    if not parts:
        return "", ""
    if len(parts) == 1:
        return parts[0], ""
    return parts[0], " ".join(parts[1:])


def template_for(form_id: Optional[int]) -> FormTemplate:
    if form_id is None:
        return DEFAULT_TEMPLATE
    return FORM_TEMPLATES.get(form_id, DEFAULT_TEMPLATE)


def form_display_name(form_id: Optional[int]) -> str:
    if form_id in FORM_TEMPLATES:
        return FORM_TEMPLATES[form_id].name
    return f"Website Form #{form_id if form_id is not None else 'unknown'}"


def normalize_fields(
    form_id: Optional[int],
    fields: Sequence[FormField],
    page_url: Optional[str] = None,
) -> NormalizedEnquiry:
    """Map raw form fields onto the canonical enquiry shape."""

    template = template_for(form_id)

    def lookup(key: str) -> str:
        aliases = template.aliases.get(key, ())
        return get_field_value(fields, *aliases) if aliases else ""

    if FULL_NAME in template.aliases:
        first_name, last_name = split_full_name(lookup(FULL_NAME))
    else:
        first_name = lookup(FIRST_NAME)
        last_name = lookup(LAST_NAME)

    first_name = first_name.strip()
    last_name = last_name.strip()

    # Full name typed into the first-name box of an unrecognised form.
    if template.resplit_first_name and not last_name and " " in first_name:
        first_name, last_name = split_full_name(first_name)

    source_url = lookup(SOURCE_URL).strip() or (page_url or "").strip()

    return NormalizedEnquiry(
        form_id=form_id,
        form_name=form_display_name(form_id),
        first_name=first_name,
        last_name=last_name,
        email=lookup(EMAIL).strip().lower(),
        phone=lookup(PHONE).strip(),
        message=lookup(MESSAGE).strip(),
        source_url=source_url,
    )


def normalize_submission(submission: FormSubmission) -> NormalizedEnquiry:
    return normalize_fields(submission.form_id, submission.fields, submission.page_url)


__all__ = [
    "FormTemplate",
    "FORM_TEMPLATES",
    "DEFAULT_TEMPLATE",
    "DuplicateWindow",
    "SYNC_EVENT_WINDOW",
    "WEBHOOK_TRAILING_WINDOW",
    "NormalizedEnquiry",
    "get_field_value",
    "split_full_name",
    "template_for",
    "form_display_name",
    "normalize_fields",
    "normalize_submission",
]
