"""GitLab API client.

``GitLabAPI`` exposes one method per row of the endpoint table.  Methods
are produced on attribute access and all go through ``call``, which
validates the arguments, routes parameters to the query string or the
request body, and hands the request to the shared ``RESTClient``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from gitlab_rest_api.config import ApiVersion, ConfigError
from gitlab_rest_api.endpoints import EndpointDescriptor, load_endpoints
from gitlab_rest_api.logging_config import get_logger
from gitlab_rest_api.paginator import Paginator
from gitlab_rest_api.rest.client import DEFAULT_RETRY_WAIT, DEFAULT_TIMEOUT, RESTClient
from gitlab_rest_api.rest.exceptions import ArityError, UnknownEndpointError
from gitlab_rest_api.rest.payload import NO_BODY, FileUpload, JsonBody
from gitlab_rest_api.rest.responses import DEFAULT_ABSENT_ON_FORBIDDEN
from gitlab_rest_api.security import build_auth_strategy

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Sequence
    from types import TracebackType

    import httpx
    from pydantic import SecretStr

    from gitlab_rest_api.config import Config
    from gitlab_rest_api.rest.models import CallResult
    from gitlab_rest_api.rest.payload import Payload

logger = get_logger(__name__)

SUDO_HEADER = "Sudo"


def _is_scalar(value: Any) -> bool:
    return isinstance(value, str | int | float) and not isinstance(value, bool)


class GitLabAPI:
    """One-to-one client for the GitLab REST API.

    Example:
        ```python
        api = GitLabAPI("https://gitlab.com/api/v4", private_token="xxxx")

        project = api.project("mygroup/myproject")
        issue = api.create_issue(project["id"], {"title": "Broken build"})
        missing = api.issue(project["id"], 99999)  # None, GitLab said 404

        for issue in api.paginator("issues", project["id"], {"state": "opened"}):
            print(issue["iid"], issue["title"])
        ```
    """

    def __init__(
        self,
        url: str,
        *,
        access_token: SecretStr | str | None = None,
        private_token: SecretStr | str | None = None,
        sudo_user: str | None = None,
        retries: int = 0,
        retry_wait: float = DEFAULT_RETRY_WAIT,
        timeout: float = DEFAULT_TIMEOUT,
        api_version: ApiVersion | str = ApiVersion.V4,
        absent_on_forbidden: Collection[str] = DEFAULT_ABSENT_ON_FORBIDDEN,
        http_client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
        rest_client: RESTClient | None = None,
        endpoints: Mapping[str, EndpointDescriptor] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: API base URL, e.g. "https://gitlab.com/api/v4"
            access_token: Token sent as Authorization: Bearer
            private_token: Token sent in the Private-Token header
            sudo_user: User to act as (needs an admin token)
            retries: Extra attempts after a 429 or 5xx response
            retry_wait: Seconds between attempts
            timeout: HTTP timeout in seconds
            api_version: Endpoint table to use
            absent_on_forbidden: Path templates whose GET 403 means absent
            http_client: httpx client for the transport to use
            transport: httpx transport for the private client (e.g. a mock)
            rest_client: Ready transport; replaces the transport settings above
            endpoints: Endpoint table replacing the one of api_version

        Raises:
            ConfigError: If both tokens are given, or an access token is
                used with API v3
        """
        if not url:
            msg = "A GitLab API URL is required"
            raise ConfigError(msg)

        self._api_version = ApiVersion(api_version)
        if self._api_version is ApiVersion.V3 and access_token:
            msg = "API v3 only accepts a private_token"
            raise ConfigError(msg)

        auth = build_auth_strategy(access_token, private_token)

        self._owns_rest_client = rest_client is None
        if rest_client is None:
            rest_client = RESTClient(
                url,
                auth=auth,
                retries=retries,
                retry_wait=retry_wait,
                timeout=timeout,
                http_client=http_client,
                transport=transport,
                absent_on_forbidden=absent_on_forbidden,
            )
        self._rest_client = rest_client
        self._sudo_user = str(sudo_user) if sudo_user else None
        self._endpoints = endpoints if endpoints is not None else load_endpoints(self._api_version)

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> GitLabAPI:
        """Create a client from a loaded configuration.

        Args:
            config: Validated configuration
            **kwargs: Extra constructor arguments (e.g. http_client)

        Raises:
            ConfigError: If no URL is configured
        """
        if not config.url:
            msg = "No GitLab API URL configured (set GITLAB_API_URL or pass --url)"
            raise ConfigError(msg)

        return cls(
            config.url,
            access_token=config.access_token,
            private_token=config.private_token,
            sudo_user=config.sudo_user,
            retries=config.retries,
            retry_wait=config.retry_wait,
            timeout=config.timeout,
            api_version=config.api_version,
            absent_on_forbidden=(
                DEFAULT_ABSENT_ON_FORBIDDEN if config.absent_on_forbidden_releases else frozenset()
            ),
            **kwargs,
        )

    @property
    def url(self) -> str:
        """API base URL."""
        return self._rest_client.base_url

    @property
    def api_version(self) -> ApiVersion:
        """API version of the endpoint table."""
        return self._api_version

    @property
    def sudo_user(self) -> str | None:
        """User this client acts as, if any."""
        return self._sudo_user

    @property
    def rest_client(self) -> RESTClient:
        """Transport shared by this client and its sudo clones."""
        return self._rest_client

    @property
    def endpoints(self) -> Mapping[str, EndpointDescriptor]:
        """Endpoint table, keyed by method name."""
        return self._endpoints

    def __repr__(self) -> str:
        sudo = f", sudo_user={self._sudo_user!r}" if self._sudo_user else ""
        return f"GitLabAPI({self.url!r}, api_version={self._api_version.value!r}{sudo})"

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_rest_client:
            self._rest_client.close()

    def __enter__(self) -> GitLabAPI:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def sudo(self, user: str | int) -> GitLabAPI:
        """Return a copy of this client that acts as another user.

        The copy shares the transport; this client is left unchanged.
        """
        clone = object.__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone._sudo_user = str(user)
        clone._owns_rest_client = False
        return clone

    def endpoint(self, name: str) -> EndpointDescriptor:
        """Look up an endpoint by method name.

        Raises:
            UnknownEndpointError: If no such endpoint exists
        """
        try:
            return self._endpoints[name]
        except KeyError:
            raise UnknownEndpointError(name) from None

    def _split_args(
        self, endpoint: EndpointDescriptor, args: Sequence[Any]
    ) -> tuple[list[Any], Mapping[str, Any] | FileUpload | None]:
        """Check arguments against an endpoint and split off the parameters."""
        name = endpoint.name
        count = len(args)
        if not endpoint.min_args <= count <= endpoint.max_args:
            if endpoint.min_args == endpoint.max_args:
                expected = str(endpoint.min_args)
            else:
                expected = f"{endpoint.min_args} to {endpoint.max_args}"
            msg = f"{name} must be called with {expected} argument(s), got {count}"
            raise ArityError(msg)

        path_args = list(args[: endpoint.min_args])
        for index, (placeholder, value) in enumerate(zip(endpoint.placeholders, path_args), 1):
            if not _is_scalar(value):
                msg = f"The #{index} argument ({placeholder}) to {name} must be a scalar"
                raise ArityError(msg)

        trailing = args[endpoint.min_args] if count > endpoint.min_args else None
        if trailing is None:
            return path_args, None
        if isinstance(trailing, FileUpload):
            if endpoint.verb == "GET":
                msg = f"{name} sends a GET request and cannot upload a file"
                raise ArityError(msg)
            return path_args, trailing
        if not isinstance(trailing, Mapping):
            msg = f"The last argument (params) to {name} must be a mapping"
            raise ArityError(msg)
        return path_args, trailing

    def call_with_result(self, name: str, *args: Any) -> CallResult:
        """Call an endpoint and return the full outcome.

        Args:
            name: Endpoint method name
            *args: Path values, then optionally a parameter mapping or FileUpload

        Returns:
            CallResult with the value, the request and the final response

        Raises:
            UnknownEndpointError: If no such endpoint exists
            ArityError: If the arguments do not fit the endpoint
        """
        endpoint = self.endpoint(name)
        path_args, trailing = self._split_args(endpoint, args)

        query: dict[str, Any] | None = None
        payload: Payload = NO_BODY
        if isinstance(trailing, FileUpload):
            payload = trailing
        elif trailing is not None:
            if endpoint.verb == "GET":
                query = dict(trailing)
            else:
                payload = JsonBody(dict(trailing))

        headers = {SUDO_HEADER: self._sudo_user} if self._sudo_user else None

        logger.info("Calling %s (%s %s)", name, endpoint.verb, endpoint.path)
        return self._rest_client.execute(
            endpoint.verb,
            endpoint.path,
            path_args,
            query=query,
            payload=payload,
            headers=headers,
            mode=endpoint.returns,
        )

    def call(self, name: str, *args: Any) -> Any:
        """Call an endpoint and return its value.

        ``api.call("issue", 12, 3)`` is the same as ``api.issue(12, 3)``.
        """
        return self.call_with_result(name, *args).value

    def paginator(self, method: str, *args: Any) -> Paginator:
        """Create a paginator over a list endpoint.

        Args:
            method: Endpoint method name, e.g. "issues"
            *args: Path values, then optionally the base parameters

        Raises:
            UnknownEndpointError: If no such endpoint exists
            ArityError: If the endpoint takes no parameters or the
                arguments do not fit it
        """
        endpoint = self.endpoint(method)
        if not endpoint.params:
            msg = f"{method} does not accept parameters and cannot be paginated"
            raise ArityError(msg)

        path_args, trailing = self._split_args(endpoint, args)
        if isinstance(trailing, FileUpload):
            msg = f"Cannot paginate {method} with a file upload"
            raise ArityError(msg)
        return Paginator(self, method, path_args, trailing)

    def _bind(self, endpoint: EndpointDescriptor) -> Callable[..., Any]:
        name = endpoint.name

        def method(*args: Any) -> Any:
            return self.call(name, *args)

        method.__name__ = name
        method.__qualname__ = f"{type(self).__name__}.{name}"
        method.__doc__ = f"{endpoint.signature()}\n\n{endpoint.describe()}"
        return method

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)
        endpoints = self.__dict__.get("_endpoints")
        if endpoints is None or name not in endpoints:
            msg = f"{type(self).__name__!r} object has no attribute {name!r}"
            raise AttributeError(msg)
        return self._bind(endpoints[name])

    def __dir__(self) -> list[str]:
        return sorted({*super().__dir__(), *self._endpoints})
