"""Response interpretation.

Turns the final HTTP response of a call into its value: decoded JSON,
raw bytes, or None (absent / no content), or raises the matching error.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

from gitlab_rest_api.rest.exceptions import STATUS_ERRORS, ApiError, DecodeError, RateLimitError
from gitlab_rest_api.rest.models import ResponseMode

if TYPE_CHECKING:
    from collections.abc import Collection

    import httpx

# Number of body characters quoted in error messages
GLIMPSE_LENGTH = 50

# GET on this template answers 403 instead of 404 when the release is missing
RELEASE_TEMPLATE = "projects/:project_id/releases/:tag_name"
DEFAULT_ABSENT_ON_FORBIDDEN: frozenset[str] = frozenset({RELEASE_TEMPLATE})

_WHITESPACE_RE = re.compile(r"\s+")


def glimpse(text: str, length: int = GLIMPSE_LENGTH) -> str:
    """Collapse whitespace and cut the text for use in an error message.

    >>> glimpse("  a\\n  b ")
    ' a b '
    """
    collapsed = _WHITESPACE_RE.sub(" ", text)
    if len(collapsed) > length:
        return collapsed[:length] + "..."
    return collapsed


def is_absent(
    verb: str,
    template: str,
    status_code: int,
    absent_on_forbidden: Collection[str] = DEFAULT_ABSENT_ON_FORBIDDEN,
) -> bool:
    """Whether a response means "no such resource" rather than a failure."""
    if verb != "GET":
        return False
    if status_code == 404:
        return True
    return status_code == 403 and template in absent_on_forbidden


def _error_body(response: httpx.Response) -> dict[str, Any] | list[Any] | str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict | list):
        return body
    return response.text


def _retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def build_error(verb: str, url: str, response: httpx.Response) -> ApiError:
    """Build the exception describing a failed response.

    Args:
        verb: HTTP method of the request
        url: Full request URL
        response: The failed response

    Returns:
        ApiError subclass for the status code, or ApiError itself
    """
    status = response.status_code
    error_cls = STATUS_ERRORS.get(status, ApiError)
    reason = response.reason_phrase or None
    kwargs: dict[str, Any] = {
        "reason": reason,
        "glimpse": glimpse(response.text),
        "response_body": _error_body(response),
    }
    if error_cls is RateLimitError:
        kwargs["retry_after"] = _retry_after(response)
    return error_cls(verb, url, status, **kwargs)


def interpret_response(
    verb: str,
    template: str,
    response: httpx.Response,
    mode: ResponseMode = ResponseMode.DECODED,
    absent_on_forbidden: Collection[str] = DEFAULT_ABSENT_ON_FORBIDDEN,
) -> Any:
    """Interpret the final response of a call.

    Args:
        verb: HTTP method of the request
        template: Path template the request was built from
        response: Final response (after retries)
        mode: What a success returns
        absent_on_forbidden: Templates whose GET 403 means absent

    Returns:
        None when the resource is absent, the status is 204, or mode is
        NONE; bytes in RAW mode; decoded JSON otherwise

    Raises:
        DecodeError: If a decoded-mode success body is not valid JSON
        ApiError: If the status is a failure
    """
    status = response.status_code
    url = str(response.request.url)

    if is_absent(verb, template, status, absent_on_forbidden):
        return None
    if status == 204:
        return None
    if not response.is_success:
        raise build_error(verb, url, response)

    if mode is ResponseMode.NONE:
        return None
    if mode is ResponseMode.RAW:
        return response.content

    try:
        return json.loads(response.content)
    except ValueError as e:
        raise DecodeError(verb, url, status, str(e)) from e
