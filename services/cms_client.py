"""
Website CMS client.

Fetches recent form submissions from the Payload CMS that backs the public
website, for the polling sync path.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

import httpx

from config.settings import Settings, get_settings
from domain.form_submission import FormSubmission, parse_cms_document

logger = logging.getLogger(__name__)

FORM_SUBMISSIONS_PATH: str = "/api/form-submissions"
DEFAULT_PAGE_SIZE: int = 50


class UpstreamUnavailableError(RuntimeError):
    """Raised when the CMS cannot be reached or refuses the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


def _auth_headers(api_key: Optional[str]) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"users API-Key {api_key}"
    return headers


def _get(client: httpx.Client, url: str, params: Mapping[str, Any], headers: Mapping[str, str]) -> httpx.Response:
    try:
        return client.get(url, params=params, headers=headers)
    except httpx.HTTPError as e:
        raise UpstreamUnavailableError(f"Failed to connect to website CMS: {e}") from e


def fetch_form_submissions(
    limit: int = DEFAULT_PAGE_SIZE,
    page: int = 1,
    settings: Optional[Settings] = None,
    client: Optional[httpx.Client] = None,
) -> List[FormSubmission]:
    """
    Fetch the newest form submissions (newest first).

    If the authenticated request is refused, the request is repeated once
    without credentials (some CMS configurations allow public read).

    Raises:
        UpstreamUnavailableError: the CMS is unreachable or both requests fail.
    """

    settings = settings or get_settings()
    url = f"{settings.payload_cms_url}{FORM_SUBMISSIONS_PATH}"
    params = {"limit": limit, "page": page, "sort": "-createdAt", "depth": 1}

    owns_client = client is None
    http = client or httpx.Client(timeout=settings.cms_timeout_seconds)
    try:
        response = _get(http, url, params, _auth_headers(settings.payload_cms_api_key))

        if not response.is_success and settings.payload_cms_api_key:
            logger.warning(
                "CMS refused authenticated request, retrying without credentials",
                extra={"status_code": response.status_code},
            )
            response = _get(http, url, params, _auth_headers(None))

        if not response.is_success:
            raise UpstreamUnavailableError(
                f"Cannot access website CMS API ({response.status_code}). "
                "Check PAYLOAD_CMS_API_KEY in .env",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(f"Website CMS returned invalid JSON: {e}") from e
    finally:
        if owns_client:
            http.close()

    docs = body.get("docs") if isinstance(body, Mapping) else None
    if not isinstance(docs, list):
        raise UpstreamUnavailableError("Website CMS response has no 'docs' list")

    submissions: List[FormSubmission] = []
    for doc in docs:
        if not isinstance(doc, Mapping):
            logger.warning("Skipping malformed CMS document", extra={"document_type": type(doc).__name__})
            continue
        submissions.append(parse_cms_document(doc))
    return submissions


__all__ = [
    "UpstreamUnavailableError",
    "fetch_form_submissions",
    "DEFAULT_PAGE_SIZE",
]
