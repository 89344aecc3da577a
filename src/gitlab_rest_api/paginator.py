"""Page-by-page iteration over GitLab list endpoints."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from gitlab_rest_api.logging_config import get_logger
from gitlab_rest_api.rest.exceptions import ContractError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from gitlab_rest_api.api import GitLabAPI

logger = get_logger(__name__)

# GitLab's own default page size
DEFAULT_PER_PAGE = 20


class PaginatorState(str, Enum):
    """Where a paginator stands."""

    FRESH = "fresh"
    PAGING = "paging"
    EXHAUSTED = "exhausted"


class Paginator:
    """Walks the pages of a list endpoint.

    Pages are requested with ``page`` and ``per_page`` parameters added to
    the base parameters.  A page holding fewer than ``per_page`` records is
    the last one.

    Example:
        ```python
        paginator = api.paginator("issues", project_id, {"state": "opened"})
        while (issue := paginator.next()) is not None:
            print(issue["title"])
        ```
    """

    def __init__(
        self,
        api: GitLabAPI,
        method: str,
        args: Sequence[Any] = (),
        params: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize the paginator.

        Args:
            api: Client used for the calls
            method: Endpoint method name returning a list
            args: Path values for the endpoint
            params: Base parameters sent with every page
        """
        self._api = api
        self._method = method
        self._args = tuple(args)
        self._params = dict(params or {})
        self._page = 0
        self._last_page = False
        self._records: list[Any] = []

    @property
    def method(self) -> str:
        """Endpoint method name."""
        return self._method

    @property
    def args(self) -> tuple[Any, ...]:
        """Path values passed on every call."""
        return self._args

    @property
    def params(self) -> dict[str, Any]:
        """Copy of the base parameters."""
        return dict(self._params)

    @property
    def per_page(self) -> int:
        """Records requested per page."""
        return int(self._params.get("per_page") or DEFAULT_PER_PAGE)

    @property
    def page(self) -> int:
        """Number of the last page fetched (0 before the first)."""
        return self._page

    @property
    def state(self) -> PaginatorState:
        """Current state."""
        if self._last_page:
            return PaginatorState.EXHAUSTED
        if self._page == 0:
            return PaginatorState.FRESH
        return PaginatorState.PAGING

    def __repr__(self) -> str:
        return f"Paginator({self._method!r}, page={self._page}, state={self.state.value!r})"

    def reset(self) -> None:
        """Go back to the first page with nothing fetched."""
        self._page = 0
        self._last_page = False
        self._records = []

    def next_page(self) -> list[Any] | None:
        """Fetch the next page.

        Returns:
            The page's records, or None once there are no more

        Raises:
            ContractError: If the endpoint does not return a list
        """
        if self._last_page:
            return None

        page = self._page + 1
        per_page = self.per_page
        params = {**self._params, "page": page, "per_page": per_page}

        records = self._api.call(self._method, *self._args, params)
        if not isinstance(records, list):
            msg = f"The {self._method} method returned a non-list value"
            raise ContractError(msg)

        self._page = page
        if len(records) < per_page:
            self._last_page = True
        self._records = list(records)

        logger.debug("%s page %d: %d record(s)", self._method, page, len(records))

        if not records:
            return None
        return records

    def next(self) -> Any | None:
        """Return the next record, fetching pages as needed.

        Returns:
            The next record, or None once every page has been read
        """
        if self._records:
            return self._records.pop(0)
        if self._last_page:
            return None

        self.next_page()
        if self._records:
            return self._records.pop(0)
        return None

    def all(self) -> list[Any]:
        """Fetch every record, starting again from the first page."""
        self.reset()
        records: list[Any] = []
        while (page := self.next_page()) is not None:
            records.extend(page)
        return records

    def iter_pages(self) -> Iterator[list[Any]]:
        """Yield every non-empty page, starting again from the first one."""
        self.reset()
        while (page := self.next_page()) is not None:
            yield page

    def __iter__(self) -> Iterator[Any]:
        for page in self.iter_pages():
            yield from page
