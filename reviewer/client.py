"""Submit a diff to the overview generation endpoint."""

from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlencode

import httpx

from config import CONTEXT_PROMPT_SUFFIX, DEFAULT_ENDPOINT_URL, REQUEST_TIMEOUT
from reviewer.context import collect_context
from reviewer.errors import ReviewError

NO_REVIEW_TEXT = "No review generated"


@dataclass
class ReviewResult:
    """Overview text and the id it is stored under."""
    overview: str
    overview_id: Optional[str]


def build_review_request(diff: str, prompt: Optional[str] = None, context: str = "") -> Dict[str, str]:
    """Build the JSON body sent to the generation endpoint."""
    if not diff:
        raise ReviewError("Diff is required")
    prompt = prompt or ""
    if context:
        prompt = prompt + CONTEXT_PROMPT_SUFFIX + context
    return {"code": diff, "prompt": prompt}


def _error_detail(response: httpx.Response) -> str:
    """Best description of a failed response: relayed message or status text."""
    try:
        data = response.json()
    except ValueError:
        return response.reason_phrase or str(response.status_code)
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if message:
            return f"{response.reason_phrase} ({message})"
    return response.reason_phrase or str(response.status_code)


def review_code(
    diff: str,
    prompt: Optional[str] = None,
    source: Optional[str] = None,
    endpoint: str = DEFAULT_ENDPOINT_URL,
    http_client: Optional[httpx.Client] = None
) -> ReviewResult:
    """Request an overview of a diff, optionally with a source tree as context.

    Raises ReviewError for a missing diff, an unreadable source directory,
    or a failed endpoint call.
    """
    if not diff:
        raise ReviewError("Diff is required")
    if not endpoint:
        raise ReviewError("Endpoint URL is required")

    context = collect_context(source) if source else ""
    body = build_review_request(diff, prompt, context)

    client = http_client or httpx.Client(timeout=REQUEST_TIMEOUT)
    try:
        response = client.post(endpoint, json=body)
    except httpx.HTTPError as e:
        raise ReviewError(f"Could not reach {endpoint}: {e}")
    finally:
        if http_client is None:
            client.close()

    if not response.is_success:
        raise ReviewError(f"Error from worker: {_error_detail(response)}")

    try:
        data = response.json()
    except ValueError:
        raise ReviewError("Error from worker: response was not JSON")
    if not isinstance(data, dict):
        raise ReviewError("Error from worker: unexpected response body")

    return ReviewResult(
        overview=data.get("overview") or NO_REVIEW_TEXT,
        overview_id=data.get("overview_id") or None,
    )


def overview_url(viewer_url: str, overview_id: str) -> str:
    """Shareable link to an overview in the web front end."""
    separator = "&" if "?" in viewer_url else "?"
    return viewer_url + separator + urlencode({"overviewId": overview_id})
