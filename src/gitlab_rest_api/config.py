"""Configuration management for the GitLab REST client.

Provides configuration loading from environment variables, .env files,
and an optional JSON or YAML configuration file with proper precedence
handling.
"""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "GITLAB_API_"
CONFIG_FILE_ENV = f"{ENV_PREFIX}CONFIG_FILE"
DEFAULT_CONFIG_FILENAME = ".gitlab-api-config"

SECRET_KEYS = frozenset({"access_token", "private_token"})


class ConfigError(ValueError):
    """Raised when configuration validation fails."""


class LogLevel(str, Enum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ApiVersion(str, Enum):
    """GitLab REST API versions with an endpoint table."""

    V3 = "v3"
    V4 = "v4"

    @classmethod
    def _missing_(cls, value: object) -> ApiVersion | None:
        """Accept "4", 4, "V4" and "v4" alike."""
        name = str(value).strip().lower()
        if not name.startswith("v"):
            name = f"v{name}"
        for member in cls:
            if member.value == name:
                return member
        return None


class Config(BaseModel):
    """Client configuration.

    Configuration can be loaded from:
    - Environment variables with GITLAB_API_ prefix
    - Optional .env file in the working directory
    - Optional configuration file (JSON or YAML)
    """

    url: str | None = Field(default=None, description="API base URL, e.g. https://gitlab.com/api/v4")
    access_token: SecretStr | None = Field(
        default=None, description="Token sent as Authorization: Bearer"
    )
    private_token: SecretStr | None = Field(
        default=None, description="Token sent in the Private-Token header"
    )
    sudo_user: str | None = Field(default=None, description="User to act as (Sudo header)")

    retries: int = Field(default=0, ge=0, description="Extra attempts on 429 and 5xx")
    retry_wait: float = Field(default=1.0, ge=0, description="Seconds between attempts")
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")

    api_version: ApiVersion = Field(default=ApiVersion.V4, description="Endpoint table")
    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Logging level")

    absent_on_forbidden_releases: bool = Field(
        default=True, description="Treat 403 on GET of a single release as absent"
    )

    model_config = {
        "extra": "ignore",
        "validate_assignment": True,
    }

    @field_validator("url", mode="before")
    @classmethod
    def strip_url(cls, v: Any) -> Any:
        """Drop trailing slashes from the base URL."""
        if isinstance(v, str):
            return v.rstrip("/") or None
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("api_version", mode="before")
    @classmethod
    def normalize_api_version(cls, v: Any) -> Any:
        """Accept every spelling ApiVersion accepts."""
        if isinstance(v, int | str):
            return ApiVersion(v)
        return v

    @model_validator(mode="after")
    def validate_tokens(self) -> Config:
        """Reject configurations carrying both kinds of token."""
        if self.access_token and self.private_token:
            msg = "access_token and private_token are mutually exclusive"
            raise ValueError(msg)
        if self.api_version is ApiVersion.V3 and self.access_token:
            msg = "API v3 only accepts a private_token"
            raise ValueError(msg)
        return self


def default_config_path() -> Path:
    """Path of the per-user configuration file."""
    return Path.home() / DEFAULT_CONFIG_FILENAME


def _load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}
    for field_name in Config.model_fields:
        value = os.environ.get(f"{ENV_PREFIX}{field_name.upper()}")
        if value:
            config[field_name] = value
    return config


def _load_file_config(path: str | Path) -> dict[str, Any]:
    """Load configuration from a file (JSON or YAML)."""
    path = Path(path)
    if not path.exists():
        msg = f"Configuration file not found: {path}"
        raise ConfigError(msg)

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Cannot read configuration file {path}: {e}"
        raise ConfigError(msg) from e

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content) if content.strip() else {}
    except (ValueError, yaml.YAMLError) as e:
        msg = f"Cannot parse configuration file {path}: {e}"
        raise ConfigError(msg) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Configuration file {path} must hold a mapping"
        raise ConfigError(msg)
    return data


def _redact_for_log(key: str, value: Any) -> str:
    """Redact sensitive values for logging."""
    if key in SECRET_KEYS and value:
        return "***"
    return str(value)


def _resolve_file(path: str | Path | None) -> Path | None:
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_FILE_ENV)
    if env_path:
        return Path(env_path)
    default = default_config_path()
    return default if default.exists() else None


def load_config(
    path: str | Path | None = None,
    cli_args: dict[str, Any] | None = None,
) -> Config:
    """Load and validate configuration.

    Precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Configuration file
    4. Model defaults

    Empty values at any layer are ignored.

    Args:
        path: Optional path to configuration file; when omitted the
            GITLAB_API_CONFIG_FILE variable or ~/.gitlab-api-config is used
        cli_args: Optional CLI argument overrides

    Returns:
        Validated Config instance

    Raises:
        ConfigError: If configuration is invalid
    """
    load_dotenv()

    config_dict: dict[str, Any] = {}
    file_path = _resolve_file(path)
    if file_path is not None:
        logger.debug("Loading configuration from file: %s", file_path)
        for key, value in _load_file_config(file_path).items():
            if value is not None and value != "":
                config_dict[key] = value

    for key, value in _load_env_config().items():
        config_dict[key] = value
        logger.debug("Config %s from environment: %s", key, _redact_for_log(key, value))

    if cli_args:
        for key, value in cli_args.items():
            if value is not None and value != "":
                config_dict[key] = value
                logger.debug("Config %s from CLI: %s", key, _redact_for_log(key, value))

    try:
        return Config(**config_dict)
    except ValidationError as e:
        msg = f"Configuration validation failed: {e}"
        raise ConfigError(msg) from e


def save_config_file(path: str | Path, values: dict[str, Any]) -> Path:
    """Write settings as JSON readable only by the owner.

    Args:
        path: Destination file
        values: Settings to store; None and empty values are skipped

    Returns:
        The written path
    """
    path = Path(path)
    data: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        elif isinstance(value, Enum):
            value = value.value
        if value is None or value == "":
            continue
        data[key] = value

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as fh:
        json.dump(data, fh, indent=2, sort_keys=True)
        fh.write("\n")
    os.chmod(path, 0o600)

    logger.debug("Wrote configuration file %s", path)
    return path
