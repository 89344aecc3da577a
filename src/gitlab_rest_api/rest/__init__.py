"""REST transport: path building, requests, retries and response handling."""

from gitlab_rest_api.rest.client import RESTClient
from gitlab_rest_api.rest.exceptions import (
    ApiError,
    ArityError,
    AuthenticationError,
    ConflictError,
    ContractError,
    DecodeError,
    FileAccessError,
    ForbiddenError,
    GitLabError,
    NotFoundError,
    RateLimitError,
    TransportError,
    UnknownEndpointError,
    ValidationError,
)
from gitlab_rest_api.rest.models import CallResult, ResponseMode
from gitlab_rest_api.rest.payload import NO_BODY, FileUpload, JsonBody

__all__ = [
    "NO_BODY",
    "ApiError",
    "ArityError",
    "AuthenticationError",
    "CallResult",
    "ConflictError",
    "ContractError",
    "DecodeError",
    "FileAccessError",
    "FileUpload",
    "ForbiddenError",
    "GitLabError",
    "JsonBody",
    "NotFoundError",
    "RESTClient",
    "RateLimitError",
    "ResponseMode",
    "TransportError",
    "UnknownEndpointError",
    "ValidationError",
]
