"""Endpoint tables.

Every client method is one row of a YAML table shipped with the package
(``v3.yml``, ``v4.yml``).  Rows are validated into ``EndpointDescriptor``
objects once per API version and cached.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from types import MappingProxyType
from typing import TYPE_CHECKING, Literal

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from gitlab_rest_api.config import ApiVersion, ConfigError
from gitlab_rest_api.logging_config import get_logger
from gitlab_rest_api.rest.models import ResponseMode
from gitlab_rest_api.rest.paths import placeholders

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = get_logger(__name__)

Verb = Literal["GET", "POST", "PUT", "DELETE"]


class EndpointDescriptor(BaseModel):
    """One client method bound to one REST endpoint.

    Attributes:
        name: Method name, e.g. "create_issue"
        verb: HTTP method
        path: Path template with :name placeholders
        params: Whether a trailing parameter mapping is accepted
        returns: What a successful call returns
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    verb: Verb
    path: str
    params: bool = False
    returns: ResponseMode = ResponseMode.DECODED

    @field_validator("verb", mode="before")
    @classmethod
    def normalize_verb(cls, v: object) -> object:
        """Normalize the verb to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        """Method names must be usable as Python identifiers."""
        if not v.isidentifier() or v.startswith("_"):
            msg = f"Invalid endpoint name: {v!r}"
            raise ValueError(msg)
        return v

    @property
    def placeholders(self) -> list[str]:
        """Placeholder names of the path template, in order."""
        return placeholders(self.path)

    @property
    def min_args(self) -> int:
        """Smallest number of positional arguments accepted."""
        return len(self.placeholders)

    @property
    def max_args(self) -> int:
        """Largest number of positional arguments accepted."""
        return self.min_args + int(self.params)

    def signature(self) -> str:
        """Human readable call signature, e.g. "issue(project_id, issue_iid)"."""
        args = list(self.placeholders)
        if self.params:
            args.append("[params]")
        return f"{self.name}({', '.join(args)})"

    def describe(self) -> str:
        """One-line description used as the method docstring."""
        if self.returns is ResponseMode.NONE:
            outcome = "returns nothing"
        elif self.returns is ResponseMode.RAW:
            outcome = "returns the raw response content"
        else:
            outcome = "returns the decoded response content"
        return f"Sends a `{self.verb}` request to `{self.path}` and {outcome}."


def parse_endpoints(rows: object, source: str = "<table>") -> Mapping[str, EndpointDescriptor]:
    """Validate raw table rows.

    Args:
        rows: Parsed YAML document (a list of mappings)
        source: Name used in error messages

    Returns:
        Read-only mapping of method name to descriptor, in table order

    Raises:
        ConfigError: If a row is malformed or a name is repeated
    """
    if not isinstance(rows, list):
        msg = f"Endpoint table {source} must be a list of rows"
        raise ConfigError(msg)

    table: dict[str, EndpointDescriptor] = {}
    for index, row in enumerate(rows):
        try:
            descriptor = EndpointDescriptor.model_validate(row)
        except ValidationError as e:
            msg = f"Invalid row {index} in endpoint table {source}: {e}"
            raise ConfigError(msg) from e
        if descriptor.name in table:
            msg = f"Duplicate endpoint {descriptor.name!r} in {source}"
            raise ConfigError(msg)
        table[descriptor.name] = descriptor

    return MappingProxyType(table)


@lru_cache(maxsize=None)
def load_endpoints(version: ApiVersion | str = ApiVersion.V4) -> Mapping[str, EndpointDescriptor]:
    """Load the endpoint table of an API version.

    Args:
        version: API version, "v3" or "v4"

    Returns:
        Read-only mapping of method name to descriptor
    """
    version = ApiVersion(version)
    filename = f"{version.value}.yml"
    content = resources.files(__package__).joinpath(filename).read_text(encoding="utf-8")
    table = parse_endpoints(yaml.safe_load(content), filename)
    logger.debug("Loaded %d endpoints from %s", len(table), filename)
    return table


__all__ = ["EndpointDescriptor", "Verb", "load_endpoints", "parse_endpoints"]
