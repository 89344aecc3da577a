"""Tests for response interpretation."""

from __future__ import annotations

import httpx
import pytest

from gitlab_rest_api.rest.exceptions import (
    ApiError,
    AuthenticationError,
    DecodeError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from gitlab_rest_api.rest.models import ResponseMode
from gitlab_rest_api.rest.responses import (
    RELEASE_TEMPLATE,
    glimpse,
    interpret_response,
    is_absent,
)

URL = "https://gitlab.example.com/api/v4/projects/1"


def make_response(
    status: int,
    verb: str = "GET",
    url: str = URL,
    **kwargs: object,
) -> httpx.Response:
    """Build a response bound to a request."""
    return httpx.Response(status, request=httpx.Request(verb, url), **kwargs)  # type: ignore[arg-type]


class TestGlimpse:
    """Tests for error body glimpses."""

    def test_collapses_whitespace(self) -> None:
        """Test runs of whitespace become one space."""
        assert glimpse("a \n\t b") == "a b"

    def test_truncates(self) -> None:
        """Test long bodies are cut to 50 characters plus an ellipsis."""
        assert glimpse("x" * 80) == "x" * 50 + "..."

    def test_short_body_unchanged(self) -> None:
        """Test a body of exactly 50 characters is not cut."""
        assert glimpse("y" * 50) == "y" * 50


class TestIsAbsent:
    """Tests for absence detection."""

    def test_get_404(self) -> None:
        """Test GET 404 means absent."""
        assert is_absent("GET", "projects/:project_id", 404)

    def test_delete_404(self) -> None:
        """Test other verbs never mean absent."""
        assert not is_absent("DELETE", "projects/:project_id", 404)

    def test_release_403(self) -> None:
        """Test GET 403 on a single release means absent."""
        assert is_absent("GET", RELEASE_TEMPLATE, 403)

    def test_other_403(self) -> None:
        """Test GET 403 elsewhere is a failure."""
        assert not is_absent("GET", "projects/:project_id", 403)

    def test_release_403_disabled(self) -> None:
        """Test the release rule can be switched off."""
        assert not is_absent("GET", RELEASE_TEMPLATE, 403, frozenset())


class TestInterpretResponse:
    """Tests for interpret_response."""

    def test_decoded_json(self) -> None:
        """Test a 200 JSON body is decoded."""
        response = make_response(200, json={"id": 1})

        assert interpret_response("GET", "projects/:project_id", response) == {"id": 1}

    def test_get_404_is_none(self) -> None:
        """Test GET 404 returns None instead of raising."""
        response = make_response(404, json={"message": "404 Project Not Found"})

        assert interpret_response("GET", "projects/:project_id", response) is None

    def test_release_403_is_none(self) -> None:
        """Test GET 403 on a release returns None."""
        response = make_response(403)

        assert interpret_response("GET", RELEASE_TEMPLATE, response) is None

    def test_204_is_none(self) -> None:
        """Test 204 returns None for any verb."""
        response = make_response(204, verb="DELETE")

        assert interpret_response("DELETE", "projects/:project_id", response) is None

    def test_empty_body_raises(self) -> None:
        """Test an empty 2xx body in decoded mode raises DecodeError."""
        response = make_response(200, content=b"")

        with pytest.raises(DecodeError, match=r"\(GET .* 200\)"):
            interpret_response("GET", "projects/:project_id", response)

    def test_empty_body_none_mode(self) -> None:
        """Test an empty 2xx body is fine when nothing is expected back."""
        response = make_response(202, verb="DELETE", content=b"")

        assert interpret_response("DELETE", "x", response, ResponseMode.NONE) is None

    def test_raw_mode(self) -> None:
        """Test raw mode returns the body bytes."""
        response = make_response(200, content=b"line 1\nline 2\n")

        value = interpret_response("GET", "x", response, ResponseMode.RAW)

        assert value == b"line 1\nline 2\n"

    def test_none_mode(self) -> None:
        """Test none mode discards the body."""
        response = make_response(201, verb="POST", json={"id": 1})

        assert interpret_response("POST", "x", response, ResponseMode.NONE) is None

    def test_invalid_json(self) -> None:
        """Test an undecodable body raises DecodeError."""
        response = make_response(200, content=b"<html>")

        with pytest.raises(DecodeError, match=r"Error decoding JSON \(GET .* 200\)"):
            interpret_response("GET", "projects/:project_id", response)

    @pytest.mark.parametrize(
        ("status", "error_cls"),
        [
            (400, ValidationError),
            (401, AuthenticationError),
            (403, ForbiddenError),
            (429, RateLimitError),
        ],
    )
    def test_status_errors(self, status: int, error_cls: type[ApiError]) -> None:
        """Test failure statuses map to their exception classes."""
        response = make_response(status, json={"message": "nope"})

        with pytest.raises(error_cls) as exc_info:
            interpret_response("GET", "projects/:project_id", response)

        assert exc_info.value.status_code == status

    def test_put_404_raises(self) -> None:
        """Test 404 on a write is an error."""
        response = make_response(404, verb="PUT", json={"message": "404 Not found"})

        with pytest.raises(NotFoundError):
            interpret_response("PUT", "projects/:project_id", response)

    def test_error_message(self) -> None:
        """Test the error carries verb, url, reason and glimpse."""
        response = make_response(500, verb="POST", text="  Internal\n\nerror  ")

        with pytest.raises(ApiError) as exc_info:
            interpret_response("POST", "projects/:project_id", response)

        error = exc_info.value
        assert type(error) is ApiError
        assert error.verb == "POST"
        assert error.url == URL
        assert error.reason == "Internal Server Error"
        assert error.glimpse == " Internal error "
        assert str(error) == f"[500] POST {URL} failed: Internal Server Error  Internal error "

    def test_unknown_reason(self) -> None:
        """Test an unknown status gets the "Unknown" reason."""
        response = make_response(599)

        with pytest.raises(ApiError) as exc_info:
            interpret_response("GET", "x", response)

        assert exc_info.value.reason == "Unknown"

    def test_error_body_is_parsed(self) -> None:
        """Test a JSON error body is kept on the exception."""
        response = make_response(400, verb="POST", json={"message": {"title": ["is missing"]}})

        with pytest.raises(ValidationError) as exc_info:
            interpret_response("POST", "x", response)

        assert exc_info.value.response_body == {"message": {"title": ["is missing"]}}

    def test_retry_after(self) -> None:
        """Test the Retry-After header is exposed."""
        response = make_response(429, headers={"Retry-After": "30"})

        with pytest.raises(RateLimitError) as exc_info:
            interpret_response("GET", "x", response)

        assert exc_info.value.retry_after == 30
