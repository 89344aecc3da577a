"""Security utilities for the GitLab REST client.

Provides authentication strategies and token redaction helpers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from gitlab_rest_api.config import ConfigError
from gitlab_rest_api.logging_config import get_logger

if TYPE_CHECKING:
    from pydantic import SecretStr

logger = get_logger(__name__)

PRIVATE_TOKEN_HEADER = "Private-Token"
AUTHORIZATION_HEADER = "Authorization"

DEFAULT_SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "private_token",
        "private-token",
        "token",
        "secret",
        "password",
        "authorization",
    }
)


def redact(value: str | None) -> str:
    """Redact a potentially sensitive value for safe logging.

    Args:
        value: The value to redact

    Returns:
        "***" if value is non-empty, "<empty>" if empty/None
    """
    if value is None or value == "":
        return "<empty>"
    return "***"


class AuthStrategy(ABC):
    """Abstract base class for authentication strategies.

    A strategy supplies the credential headers added to every request.
    """

    @abstractmethod
    def get_auth_headers(self) -> dict[str, str]:
        """Get authorization headers for an API request.

        Returns:
            Dictionary of headers to include in the request
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NoAuthStrategy(AuthStrategy):
    """Anonymous access; only public resources are reachable."""

    def get_auth_headers(self) -> dict[str, str]:
        """Return empty headers."""
        return {}


class _TokenAuthStrategy(AuthStrategy):
    def __init__(self, token: str) -> None:
        if not token:
            msg = f"{type(self).__name__} requires a non-empty token"
            raise ConfigError(msg)
        self._token = token

    def __repr__(self) -> str:
        return f"{type(self).__name__}(token={redact(self._token)!r})"


class AccessTokenAuthStrategy(_TokenAuthStrategy):
    """OAuth2 or personal access token sent as ``Authorization: Bearer``."""

    def get_auth_headers(self) -> dict[str, str]:
        """Return the bearer token header."""
        return {AUTHORIZATION_HEADER: f"Bearer {self._token}"}


class PrivateTokenAuthStrategy(_TokenAuthStrategy):
    """Private token sent in the ``Private-Token`` header."""

    def get_auth_headers(self) -> dict[str, str]:
        """Return the private token header."""
        return {PRIVATE_TOKEN_HEADER: self._token}


def _secret(value: SecretStr | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    return value.get_secret_value() or None


def build_auth_strategy(
    access_token: SecretStr | str | None = None,
    private_token: SecretStr | str | None = None,
) -> AuthStrategy:
    """Build the AuthStrategy for a pair of optional tokens.

    Args:
        access_token: Token for the Authorization: Bearer header
        private_token: Token for the Private-Token header

    Returns:
        Configured AuthStrategy instance

    Raises:
        ConfigError: If both tokens are set
    """
    access = _secret(access_token)
    private = _secret(private_token)

    if access and private:
        msg = "access_token and private_token are mutually exclusive"
        raise ConfigError(msg)

    if access:
        logger.debug("Using AccessTokenAuthStrategy")
        return AccessTokenAuthStrategy(access)

    if private:
        logger.debug("Using PrivateTokenAuthStrategy")
        return PrivateTokenAuthStrategy(private)

    logger.debug("Using NoAuthStrategy")
    return NoAuthStrategy()


def mask_sensitive_data(
    data: dict[str, Any], sensitive_keys: set[str] | frozenset[str] | None = None
) -> dict[str, Any]:
    """Mask sensitive data in a dictionary for logging.

    Keys are matched case-insensitively by substring, so both the
    "Private-Token" header and a "private_token" setting are masked.

    Args:
        data: Dictionary potentially containing sensitive data
        sensitive_keys: Set of keys to mask (uses defaults if not provided)

    Returns:
        Copy of dictionary with sensitive values masked
    """
    if sensitive_keys is None:
        sensitive_keys = DEFAULT_SENSITIVE_KEYS

    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = mask_sensitive_data(value, sensitive_keys)
        elif any(sensitive in key.lower() for sensitive in sensitive_keys):
            result[key] = "***"
        else:
            result[key] = value

    return result
