"""Named values for GitLab API parameters that take numeric codes."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any


class AccessLevel(IntEnum):
    """Member access levels (``access_level``, ``group_access``, ...)."""

    NO_ACCESS = 0
    MINIMAL_ACCESS = 5
    GUEST = 10
    PLANNER = 15
    REPORTER = 20
    DEVELOPER = 30
    MAINTAINER = 40
    OWNER = 50


class VisibilityLevel(IntEnum):
    """Numeric ``visibility_level`` of API v3."""

    PRIVATE = 0
    INTERNAL = 10
    PUBLIC = 20


class Visibility(str, Enum):
    """String ``visibility`` of API v4."""

    PRIVATE = "private"
    INTERNAL = "internal"
    PUBLIC = "public"


# Older name kept by GitLab for the maintainer role
_ACCESS_ALIASES = {"master": AccessLevel.MAINTAINER, "minimal": AccessLevel.MINIMAL_ACCESS}

ACCESS_LEVEL_KEYS = ("access_level", "group_access")


def access_level(name: str) -> int:
    """Look up an access level by name, case-insensitively.

    >>> access_level("developer")
    30

    Raises:
        KeyError: If the name is not a known access level
    """
    key = name.strip().lower().replace("-", "_").replace(" ", "_")
    if key in _ACCESS_ALIASES:
        return int(_ACCESS_ALIASES[key])
    return int(AccessLevel[key.upper()])


def visibility_level(name: str) -> int:
    """Look up a v3 visibility level by name, case-insensitively."""
    return int(VisibilityLevel[name.strip().upper()])


def is_access_level_key(key: str) -> bool:
    """Whether a parameter name takes an access level."""
    return any(key.endswith(suffix) for suffix in ACCESS_LEVEL_KEYS)


def resolve_value(key: str, value: Any) -> Any:
    """Replace a symbolic value by its numeric code where the key expects one.

    Numbers and unknown names pass through unchanged.

    Args:
        key: Parameter name, e.g. "access_level" or "merge_access_level"
        value: Parameter value as given by the user

    Returns:
        The numeric code, or the value itself
    """
    if not isinstance(value, str) or value.strip().lstrip("-").isdigit():
        return value
    if is_access_level_key(key):
        try:
            return access_level(value)
        except KeyError:
            return value
    if key == "visibility_level":
        try:
            return visibility_level(value)
        except KeyError:
            return value
    return value
