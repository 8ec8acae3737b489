"""Generic JSON REST client for Confluent Cloud APIs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import requests

from ccloud.clients.api_error import ApiError
from ccloud.clients.http import RetryableSession
from ccloud.utils.logging import get_logger
from ccloud.utils.pagination import DEFAULT_PAGE_SIZE, PAGE_TOKEN_QUERY_PARAMETER, PaginatedPage, collect_all

logger = get_logger(__name__)


@dataclass(frozen=True)
class ApiContext:
    """Authentication and headers attached to one outgoing API call."""

    headers: Mapping[str, str] = field(default_factory=dict)
    auth: tuple[str, str] | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.auth is not None or "Authorization" in self.headers

    def with_headers(self, headers: Mapping[str, str]) -> ApiContext:
        """Return a copy with extra headers merged in."""
        return ApiContext(headers={**self.headers, **headers}, auth=self.auth)

    def as_request_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``requests.Session.request``."""
        kwargs: dict[str, Any] = {"headers": dict(self.headers)}
        if self.auth is not None:
            kwargs["auth"] = self.auth
        return kwargs

    def __repr__(self) -> str:
        header_names = sorted(self.headers)
        return f"ApiContext(headers={header_names!r}, basic_auth={self.auth is not None})"


class RestClient:
    """Performs JSON calls against one REST endpoint."""

    def __init__(
        self,
        base_url: str,
        session: RetryableSession,
        default_headers: Mapping[str, str] | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Endpoint root, e.g. ``https://api.confluent.cloud``
            session: HTTP session with retries
            default_headers: Headers sent with every call
        """
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.default_headers = dict(default_headers or {})

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        context: ApiContext,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> tuple[Any, requests.Response]:
        """Perform one API call.

        Args:
            method: HTTP method
            path: Path below the base URL (or an absolute URL)
            context: Authentication and headers for the call
            params: Query parameters
            json: JSON request body

        Returns:
            Tuple of decoded body (None when empty) and raw response

        Raises:
            ApiError: If the response status is not 2xx
        """
        kwargs = context.as_request_kwargs()
        kwargs["headers"] = {**self.default_headers, **kwargs["headers"]}
        if params:
            kwargs["params"] = dict(params)
        if json is not None:
            kwargs["json"] = json

        url = self.url(path)
        logger.debug("api_request", method=method, url=url)
        response = self.session.request(method, url, **kwargs)
        logger.debug("api_response", method=method, url=url, status_code=response.status_code)

        if not 200 <= response.status_code < 300:
            raise ApiError.from_response(response)

        if not response.content:
            return None, response
        try:
            return response.json(), response
        except ValueError:
            return response.text, response

    def get(
        self, path: str, context: ApiContext, params: Mapping[str, Any] | None = None
    ) -> tuple[Any, requests.Response]:
        return self.request("GET", path, context, params=params)

    def fetch_page(
        self,
        path: str,
        context: ApiContext,
        page_token: str | None,
        page_size: int = DEFAULT_PAGE_SIZE,
        params: Mapping[str, Any] | None = None,
    ) -> PaginatedPage[dict[str, Any]]:
        """Fetch one page of a list endpoint.

        Args:
            path: List endpoint path
            context: Authentication and headers for the call
            page_token: Token of the page to fetch (None for the first page)
            page_size: Maximum items per page
            params: Extra query parameters

        Returns:
            Page with the ``data`` items and ``metadata.next`` URL
        """
        query: dict[str, Any] = {"page_size": page_size, **(params or {})}
        if page_token:
            query[PAGE_TOKEN_QUERY_PARAMETER] = page_token
        body, _ = self.get(path, context, params=query)
        body = body if isinstance(body, dict) else {}
        metadata = body.get("metadata") or {}
        return PaginatedPage(items=list(body.get("data") or []), next_url=metadata.get("next"))

    def list_all(
        self,
        path: str,
        context: ApiContext,
        page_size: int = DEFAULT_PAGE_SIZE,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Collect every item of a paginated list endpoint.

        Raises:
            ApiError: If any page request fails
            PaginationError: If a next-page URL has no usable page token
        """
        return collect_all(
            lambda page_token: self.fetch_page(path, context, page_token, page_size, params)
        )
