"""GitLab REST client exceptions."""

from __future__ import annotations

from typing import Any


class GitLabError(Exception):
    """Base exception for everything raised by the client."""


class ArityError(GitLabError, TypeError):
    """Raised when an endpoint is called with the wrong arguments.

    Detected locally, before any request is sent.
    """


class UnknownEndpointError(GitLabError, KeyError):
    """Raised when no endpoint with the given name exists."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown endpoint: {self.name}"


class TransportError(GitLabError):
    """Raised when a request could not be completed at the network level.

    Connection failures, DNS and TLS errors, and timeouts end up here.
    They are never retried.
    """

    def __init__(self, message: str, verb: str | None = None, url: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.verb = verb
        self.url = url


class DecodeError(GitLabError):
    """Raised when a successful response does not hold valid JSON."""

    def __init__(self, verb: str, url: str, status_code: int, detail: str = "") -> None:
        message = f"Error decoding JSON ({verb} {url} {status_code})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.verb = verb
        self.url = url
        self.status_code = status_code


class FileAccessError(GitLabError):
    """Raised when a file to upload is missing or unreadable."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File {path} is not readable")
        self.path = path


class ContractError(GitLabError):
    """Raised when a paginated method does not return a list."""


class ApiError(GitLabError):
    """Raised when GitLab answers with a failure status.

    Attributes:
        verb: HTTP method of the request
        url: Full request URL
        status_code: HTTP status code
        reason: Status reason phrase ("Unknown" if the server sent none)
        glimpse: Start of the response body, whitespace collapsed
        response_body: Parsed JSON body when available, else the raw text
    """

    default_reason = "Unknown"

    def __init__(
        self,
        verb: str,
        url: str,
        status_code: int,
        reason: str | None = None,
        glimpse: str = "",
        response_body: dict[str, Any] | list[Any] | str | None = None,
    ) -> None:
        self.verb = verb
        self.url = url
        self.status_code = status_code
        self.reason = reason or self.default_reason
        self.glimpse = glimpse
        self.response_body = response_body
        self.message = f"{verb} {url} failed: {self.reason}"
        if glimpse:
            self.message = f"{self.message} {glimpse}"
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.status_code}] {self.message}"


class ValidationError(ApiError):
    """Raised when request validation fails (400 Bad Request)."""

    default_reason = "Bad Request"


class AuthenticationError(ApiError):
    """Raised when authentication fails (401 Unauthorized)."""

    default_reason = "Unauthorized"


class ForbiddenError(ApiError):
    """Raised when access is forbidden (403 Forbidden)."""

    default_reason = "Forbidden"


class NotFoundError(ApiError):
    """Raised for a 404 on anything but a GET."""

    default_reason = "Not Found"


class ConflictError(ApiError):
    """Raised when there's a conflict (409 Conflict)."""

    default_reason = "Conflict"


class RateLimitError(ApiError):
    """Raised when rate limited (429) and no retries are left.

    Attributes:
        retry_after: Seconds to wait before retrying (if the server said so)
    """

    default_reason = "Too Many Requests"

    def __init__(
        self,
        verb: str,
        url: str,
        status_code: int = 429,
        reason: str | None = None,
        glimpse: str = "",
        response_body: dict[str, Any] | list[Any] | str | None = None,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(verb, url, status_code, reason, glimpse, response_body)
        self.retry_after = retry_after


STATUS_ERRORS: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    429: RateLimitError,
}
