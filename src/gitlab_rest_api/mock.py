"""In-memory stand-in for a GitLab server, for unit tests.

``MockEngine`` holds the server state.  ``MockGitLab`` answers HTTP
requests from that state and plugs into httpx as a ``MockTransport``, so
the whole client stack (dispatcher, transport, response handling) runs
unchanged against it.

Example:
    ```python
    engine = MockEngine()
    api = create_mock_api(engine)
    user = api.create_user({"username": "alice"})
    assert api.user(user["id"])["username"] == "alice"
    ```
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from typing import Any

import httpx

from gitlab_rest_api.api import GitLabAPI
from gitlab_rest_api.logging_config import get_logger

logger = get_logger(__name__)

MOCK_URL = "https://example.com/api/v4"

_API_PREFIX_RE = re.compile(r"^.*?/api/v\d+/")

Handler = Callable[..., httpx.Response]


class MockEngine:
    """State of a mock GitLab server.

    Very little is validated: a user can be created without an email,
    and unexpected fields are stored as given.
    """

    def __init__(self) -> None:
        self.next_ids: dict[str, int] = {}
        self.users: list[dict[str, Any]] = []

    def next_id_for(self, kind: str) -> int:
        """Return the next unused ID for an object kind, starting at 1."""
        next_id = self.next_ids.get(kind, 1)
        self.next_ids[kind] = next_id + 1
        return next_id

    def user(self, user_id: int | str) -> dict[str, Any] | None:
        """Return the user with the given ID, or None."""
        for user in self.users:
            if user["id"] == int(user_id):
                return user
        return None

    def create_user(self, data: dict[str, Any]) -> dict[str, Any]:
        """Store a new user under a fresh ID and return it."""
        user = dict(data)
        user["id"] = self.next_id_for("user")
        self.users.append(user)
        return user

    def update_user(self, user_id: int | str, data: dict[str, Any]) -> dict[str, Any] | None:
        """Merge fields into a user; None if there is no such user."""
        user = self.user(user_id)
        if user is None:
            return None
        user.update({key: value for key, value in data.items() if key != "id"})
        return user

    def delete_user(self, user_id: int | str) -> dict[str, Any] | None:
        """Remove a user and return it; None if there is no such user."""
        user = self.user(user_id)
        if user is None:
            return None
        self.users.remove(user)
        return user


_ROUTES: list[tuple[str, re.Pattern[str], Handler]] = []


def _route(verb: str, pattern: str) -> Callable[[Handler], Handler]:
    def register(handler: Handler) -> Handler:
        _ROUTES.append((verb, re.compile(pattern), handler))
        return handler

    return register


def _json_body(request: httpx.Request) -> dict[str, Any]:
    if not request.content:
        return {}
    data = json.loads(request.content)
    return data if isinstance(data, dict) else {}


@_route("GET", r"users")
def _list_users(engine: MockEngine, request: httpx.Request) -> httpx.Response:
    users = engine.users
    params = request.url.params
    if "page" in params or "per_page" in params:
        page = int(params.get("page") or 1)
        per_page = int(params.get("per_page") or 20)
        start = (page - 1) * per_page
        users = users[start : start + per_page]
    return httpx.Response(200, json=users)


@_route("GET", r"users/(\d+)")
def _get_user(engine: MockEngine, request: httpx.Request, user_id: str) -> httpx.Response:
    user = engine.user(user_id)
    if user is None:
        return httpx.Response(404, json={"message": "404 User Not Found"})
    return httpx.Response(200, json=user)


@_route("POST", r"users")
def _create_user(engine: MockEngine, request: httpx.Request) -> httpx.Response:
    return httpx.Response(201, json=engine.create_user(_json_body(request)))


@_route("PUT", r"users/(\d+)")
def _update_user(engine: MockEngine, request: httpx.Request, user_id: str) -> httpx.Response:
    user = engine.update_user(user_id, _json_body(request))
    if user is None:
        return httpx.Response(404, json={"message": "404 User Not Found"})
    return httpx.Response(200, json=user)


@_route("DELETE", r"users/(\d+)")
def _delete_user(engine: MockEngine, request: httpx.Request, user_id: str) -> httpx.Response:
    if engine.delete_user(user_id) is None:
        return httpx.Response(404, json={"message": "404 User Not Found"})
    return httpx.Response(204)


class MockGitLab:
    """Answers httpx requests from a MockEngine."""

    def __init__(self, engine: MockEngine | None = None) -> None:
        self.engine = engine or MockEngine()

    def handle(self, request: httpx.Request) -> httpx.Response:
        """Serve one request.

        Raises:
            NotImplementedError: If no mock endpoint matches the request
        """
        path = _API_PREFIX_RE.sub("", request.url.path)
        for verb, pattern, handler in _ROUTES:
            if verb != request.method:
                continue
            match = pattern.fullmatch(path)
            if match:
                logger.debug("Mock %s %s", request.method, path)
                return handler(self.engine, request, *match.groups())

        msg = f"No mock endpoint matches {request.method} {path!r}"
        raise NotImplementedError(msg)

    def transport(self) -> httpx.MockTransport:
        """httpx transport backed by this mock."""
        return httpx.MockTransport(self.handle)


def create_mock_api(
    engine: MockEngine | None = None, url: str = MOCK_URL, **kwargs: Any
) -> GitLabAPI:
    """Create a GitLabAPI talking to an in-memory mock server.

    Args:
        engine: Server state to use; a fresh one when omitted
        url: Base URL the client believes it talks to
        **kwargs: Extra GitLabAPI arguments (tokens, sudo_user, ...)

    Returns:
        Client whose requests are served by the mock
    """
    mock = MockGitLab(engine)
    return GitLabAPI(url, transport=mock.transport(), **kwargs)
