"""Path templates with :name placeholders."""

from __future__ import annotations

import re
import urllib.parse
from typing import TYPE_CHECKING, Any

from gitlab_rest_api.rest.exceptions import ArityError

if TYPE_CHECKING:
    from collections.abc import Sequence

PLACEHOLDER_RE = re.compile(r":[^/]+")


def placeholders(template: str) -> list[str]:
    """Return the placeholder names of a path template, in order.

    >>> placeholders("projects/:project_id/issues/:issue_iid")
    ['project_id', 'issue_iid']
    """
    return [match[1:] for match in PLACEHOLDER_RE.findall(template)]


def encode_segment(value: Any) -> str:
    """Percent-encode a value for use as a single path segment.

    Slashes are encoded too, so "group/project" becomes "group%2Fproject".
    """
    return urllib.parse.quote(str(value), safe="")


def build_path(template: str, args: Sequence[Any]) -> str:
    """Fill the placeholders of a path template from positional arguments.

    Args:
        template: Path such as "projects/:project_id/issues/:issue_iid"
        args: One value per placeholder, in order

    Returns:
        The resolved path

    Raises:
        ArityError: If the number of values does not match the template
    """
    names = placeholders(template)
    if len(names) != len(args):
        msg = (
            f"Path {template!r} takes {len(names)} argument(s) "
            f"but {len(args)} were given"
        )
        raise ArityError(msg)

    values = iter(args)
    return PLACEHOLDER_RE.sub(lambda _: encode_segment(next(values)), template)
