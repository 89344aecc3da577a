"""Transport client for the GitLab REST API.

Builds each request once, sends it with a bounded retry policy, and
hands the final response to the response interpreter.
"""

from __future__ import annotations

import json
import time
from typing import TYPE_CHECKING, Any

import httpx

from gitlab_rest_api.logging_config import get_logger
from gitlab_rest_api.rest.exceptions import TransportError
from gitlab_rest_api.rest.models import CallResult, ResponseMode
from gitlab_rest_api.rest.paths import build_path
from gitlab_rest_api.rest.payload import NO_BODY, FileUpload, JsonBody, encode_multipart
from gitlab_rest_api.rest.responses import DEFAULT_ABSENT_ON_FORBIDDEN, interpret_response
from gitlab_rest_api.security import AuthStrategy, NoAuthStrategy, mask_sensitive_data

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping, Sequence
    from types import TracebackType

    from gitlab_rest_api.rest.payload import Payload

logger = get_logger(__name__)

# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30.0

# Default pause between attempts (seconds)
DEFAULT_RETRY_WAIT = 1.0

# Redirects are followed for these verbs only; any other 3xx is a failure
REDIRECTABLE_VERBS = frozenset({"GET", "HEAD"})


def is_retryable(status_code: int) -> bool:
    """Whether a response status is worth another attempt."""
    return status_code == 429 or 500 <= status_code <= 599


class RESTClient:
    """Synchronous client for one GitLab REST API base URL.

    The client keeps no per-call state: every call gets its own
    ``CallResult``, so one instance can be shared by several
    ``GitLabAPI`` objects (see ``GitLabAPI.sudo``).

    Example:
        ```python
        client = RESTClient(
            "https://gitlab.com/api/v4",
            auth=PrivateTokenAuthStrategy("xxxx"),
            retries=3,
        )
        result = client.execute("GET", "projects/:project_id", ["group/project"])
        print(result.value["name"], result.attempts)
        ```
    """

    def __init__(
        self,
        base_url: str,
        *,
        auth: AuthStrategy | None = None,
        retries: int = 0,
        retry_wait: float = DEFAULT_RETRY_WAIT,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
        absent_on_forbidden: Collection[str] = DEFAULT_ABSENT_ON_FORBIDDEN,
    ) -> None:
        """Initialize the transport client.

        Args:
            base_url: API base URL (e.g., "https://gitlab.com/api/v4")
            auth: Authentication strategy; anonymous when omitted
            retries: Extra attempts after a 429 or 5xx response
            retry_wait: Seconds to sleep between attempts
            timeout: HTTP timeout in seconds for the default httpx client
            http_client: httpx client to use instead of a private one;
                it is left open by close()
            transport: Transport for the private httpx client, such as an
                httpx.MockTransport; ignored when http_client is given
            absent_on_forbidden: Path templates whose GET 403 means absent
        """
        if retries < 0:
            msg = f"retries must be >= 0, got {retries}"
            raise ValueError(msg)
        if retry_wait < 0:
            msg = f"retry_wait must be >= 0, got {retry_wait}"
            raise ValueError(msg)

        self._base_url = base_url.rstrip("/")
        self._auth = auth or NoAuthStrategy()
        self._retries = retries
        self._retry_wait = retry_wait
        self._absent_on_forbidden = frozenset(absent_on_forbidden)
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout, transport=transport)

    @property
    def base_url(self) -> str:
        """API base URL without trailing slash."""
        return self._base_url

    @property
    def retries(self) -> int:
        """Extra attempts allowed per call."""
        return self._retries

    @property
    def retry_wait(self) -> float:
        """Seconds slept between attempts."""
        return self._retry_wait

    @property
    def absent_on_forbidden(self) -> frozenset[str]:
        """Path templates whose GET 403 is read as absent."""
        return self._absent_on_forbidden

    def __repr__(self) -> str:
        return f"RESTClient({self._base_url!r}, auth={self._auth!r}, retries={self._retries})"

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client and not self._http.is_closed:
            self._http.close()

    def __enter__(self) -> RESTClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def build_url(self, template: str, path_args: Sequence[Any] = ()) -> str:
        """Resolve a path template against the base URL."""
        return f"{self._base_url}/{build_path(template, path_args)}"

    def build_request(
        self,
        verb: str,
        template: str,
        path_args: Sequence[Any] = (),
        *,
        query: Mapping[str, Any] | None = None,
        payload: Payload = NO_BODY,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Request:
        """Build a fully buffered request, ready to be sent any number of times.

        Raises:
            ArityError: If path_args do not fit the template
            FileAccessError: If an uploaded file cannot be read
        """
        verb = verb.upper()
        url = self.build_url(template, path_args)

        params = {key: value for key, value in (query or {}).items() if value is not None}

        request_headers = {"Accept": "application/json"}
        request_headers.update(self._auth.get_auth_headers())
        if headers:
            request_headers.update(headers)

        kwargs: dict[str, Any] = {}
        if isinstance(payload, JsonBody):
            kwargs["content"] = json.dumps(payload.data).encode("utf-8")
            request_headers["Content-Type"] = "application/json"
        elif isinstance(payload, FileUpload):
            filename, content = payload.read()
            if verb == "POST":
                kwargs["files"] = {payload.field: (filename, content)}
                kwargs["data"] = payload.form_fields()
            else:
                body, content_type = encode_multipart(
                    payload.field, filename, content, payload.form_fields()
                )
                kwargs["content"] = body
                request_headers["Content-Type"] = content_type

        request = self._http.build_request(
            verb,
            url,
            params=params or None,
            headers=request_headers,
            **kwargs,
        )
        # Buffer the body so retries resend identical bytes
        request.read()
        return request

    def execute(
        self,
        verb: str,
        template: str,
        path_args: Sequence[Any] = (),
        *,
        query: Mapping[str, Any] | None = None,
        payload: Payload = NO_BODY,
        headers: Mapping[str, str] | None = None,
        mode: ResponseMode = ResponseMode.DECODED,
    ) -> CallResult:
        """Perform one logical API call.

        Args:
            verb: HTTP method (GET, POST, PUT, DELETE)
            template: Path template relative to the base URL
            path_args: One value per template placeholder
            query: Query parameters; None values are dropped
            payload: Request body
            headers: Extra headers, e.g. Sudo
            mode: What a success returns

        Returns:
            CallResult with the interpreted value

        Raises:
            ArityError: If path_args do not fit the template
            FileAccessError: If an uploaded file cannot be read
            TransportError: On network failure
            ApiError: On a failure status once retries are used up
            DecodeError: If a decoded-mode body is not valid JSON
        """
        verb = verb.upper()
        request = self.build_request(
            verb, template, path_args, query=query, payload=payload, headers=headers
        )
        url = str(request.url)
        logger.debug("Request headers: %s", mask_sensitive_data(dict(request.headers)))

        attempts = 0
        while True:
            attempts += 1
            logger.debug("GitLab API request: %s %s (attempt %d)", verb, url, attempts)
            try:
                response = self._http.send(
                    request, follow_redirects=verb in REDIRECTABLE_VERBS
                )
            except httpx.RequestError as e:
                msg = f"{verb} {url} failed: {e}"
                raise TransportError(msg, verb, url) from e

            if attempts > self._retries or not is_retryable(response.status_code):
                break

            logger.warning(
                "%s %s returned %d, retrying in %ss (%d/%d)",
                verb,
                url,
                response.status_code,
                self._retry_wait,
                attempts,
                self._retries,
            )
            response.close()
            time.sleep(self._retry_wait)

        logger.debug("GitLab API response: %s %s -> %d", verb, url, response.status_code)
        value = interpret_response(verb, template, response, mode, self._absent_on_forbidden)
        return CallResult(value=value, request=request, response=response, attempts=attempts)
