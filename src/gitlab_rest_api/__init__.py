"""GitLab REST API client.

A one-to-one binding of the GitLab REST API v4 (and v3): every endpoint is
a method, with retries, 404-as-absent reads, file uploads and pagination
handled by one transport layer.
"""

__version__ = "0.1.0"

from gitlab_rest_api.api import GitLabAPI
from gitlab_rest_api.config import ApiVersion, Config, ConfigError, load_config
from gitlab_rest_api.paginator import Paginator, PaginatorState
from gitlab_rest_api.rest import (
    ApiError,
    ArityError,
    CallResult,
    FileUpload,
    GitLabError,
    RESTClient,
    ResponseMode,
)

__all__ = [
    "ApiError",
    "ApiVersion",
    "ArityError",
    "CallResult",
    "Config",
    "ConfigError",
    "FileUpload",
    "GitLabAPI",
    "GitLabError",
    "Paginator",
    "PaginatorState",
    "RESTClient",
    "ResponseMode",
    "__version__",
    "load_config",
]
