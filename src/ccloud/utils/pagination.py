"""Cursor-based pagination for Confluent Cloud list endpoints."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar
from urllib.parse import parse_qs, urlsplit

from ccloud.core.exceptions import PaginationError
from ccloud.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

PAGE_TOKEN_QUERY_PARAMETER = "page_token"
DEFAULT_PAGE_SIZE = 99


@dataclass
class PaginatedPage(Generic[T]):
    """One page of a list endpoint."""

    items: list[T] = field(default_factory=list)
    # metadata.next of the response; None or "" on the last page
    next_url: str | None = None

    @property
    def is_last(self) -> bool:
        return not self.next_url


def extract_page_token(next_page_url: str) -> str:
    """Extract the page token from a ``metadata.next`` URL.

    Extracts ``"foo"`` from ``"https://api.confluent.cloud/iam/v2/service-accounts?page_token=foo"``.

    Args:
        next_page_url: Full URL of the next page

    Returns:
        Page token

    Raises:
        PaginationError: If the URL cannot be parsed or has no page token
    """
    try:
        query = urlsplit(next_page_url).query
    except ValueError as e:
        raise PaginationError(f"could not parse {next_page_url!r} into URL, {e}") from e

    values = parse_qs(query).get(PAGE_TOKEN_QUERY_PARAMETER, [])
    page_token = values[0] if values else ""
    if not page_token:
        raise PaginationError(
            f"could not parse the value for {PAGE_TOKEN_QUERY_PARAMETER!r} query parameter "
            f"from {next_page_url!r}"
        )
    return page_token


def iter_pages(fetch_page: Callable[[str | None], PaginatedPage[T]]) -> Iterator[PaginatedPage[T]]:
    """Walk a list endpoint page by page.

    ``fetch_page`` is called with ``None`` for the first page and with the
    extracted page token afterwards. Walking stops once a page has no next URL.

    Args:
        fetch_page: Callable returning one page for a page token

    Yields:
        Pages in server order

    Raises:
        PaginationError: If a next URL carries no usable page token
    """
    page_token: str | None = None
    page_number = 0
    while True:
        page = fetch_page(page_token)
        page_number += 1
        logger.debug(
            "page_fetched",
            page_number=page_number,
            item_count=len(page.items),
            has_next=not page.is_last,
        )
        yield page
        if page.is_last:
            return
        assert page.next_url is not None
        page_token = extract_page_token(page.next_url)


def collect_all(fetch_page: Callable[[str | None], PaginatedPage[T]]) -> list[T]:
    """Concatenate the items of every page of a list endpoint.

    Args:
        fetch_page: Callable returning one page for a page token

    Returns:
        All items in server order

    Raises:
        PaginationError: If a next URL carries no usable page token
    """
    items: list[T] = []
    for page in iter_pages(fetch_page):
        items.extend(page.items)
    return items
