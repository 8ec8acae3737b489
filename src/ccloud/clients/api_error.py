"""API error types returned by Confluent Cloud REST endpoints.

Each API family reports failures in one of a small, closed set of body shapes:

- Cloud APIs (IAM, CMK, networking, ...) return ``{"errors": [{"detail": ...}]}``
- Kafka REST v3 returns ``{"error_code": ..., "message": ...}``
- Connect returns ``{"error": {"code": ..., "message": ...}}``

``ApiError.detail()`` dispatches over those shapes instead of probing
attributes at runtime.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import requests
from pydantic import BaseModel, Field, ValidationError


class ErrorEntry(BaseModel):
    """A single entry of a Cloud API error list."""

    id: str | None = None
    status: str | None = None
    code: str | None = None
    title: str | None = None
    detail: str | None = None


class ErrorList(BaseModel):
    """Cloud API error body."""

    errors: list[ErrorEntry] = Field(default_factory=list)

    def detail(self) -> str | None:
        if self.errors:
            return self.errors[0].detail
        return None


class RestProxyError(BaseModel):
    """Kafka REST v3 error body."""

    error_code: int | None = None
    message: str | None = None

    def detail(self) -> str | None:
        return self.message


class ConnectErrorBody(BaseModel):
    """Inner object of a Connect error body."""

    code: int | None = None
    message: str | None = None


class ConnectError(BaseModel):
    """Connect error body."""

    error: ConnectErrorBody | None = None

    def detail(self) -> str | None:
        if self.error is not None:
            return self.error.message
        return None


ErrorModel = ErrorList | RestProxyError | ConnectError


@runtime_checkable
class DescribedError(Protocol):
    """Capability shared by every API error: a status code and a detail."""

    @property
    def status_code(self) -> int: ...

    def detail(self) -> str | None: ...


def parse_error_model(body: Any) -> ErrorModel | None:
    """Parse a decoded JSON error body into one of the known shapes.

    Args:
        body: Decoded JSON body

    Returns:
        Matching error model, or None if the body has no known shape
    """
    if not isinstance(body, dict):
        return None
    try:
        if isinstance(body.get("errors"), list):
            return ErrorList.model_validate(body)
        if isinstance(body.get("error"), dict):
            return ConnectError.model_validate(body)
        if "message" in body:
            return RestProxyError.model_validate(body)
    except ValidationError:
        return None
    return None


class ApiError(Exception):
    """Non-2xx response from a Confluent Cloud REST endpoint.

    ``str(error)`` is only the status line (for example ``"400 Bad Request"``);
    use ``ccloud.utils.errors.create_descriptive_error`` for a message a user
    can act on.
    """

    def __init__(
        self,
        status_code: int,
        reason: str = "",
        model: ErrorModel | None = None,
        response: requests.Response | None = None,
    ):
        self._status_code = status_code
        self.reason = reason
        self.model = model
        self.response = response
        super().__init__(f"{status_code} {reason}".strip())

    @property
    def status_code(self) -> int:
        return self._status_code

    def detail(self) -> str | None:
        """Return the human-readable detail carried by the error body, if any."""
        if self.model is None:
            return None
        return self.model.detail()

    @classmethod
    def from_response(cls, response: requests.Response) -> ApiError:
        """Build an error from a failed response.

        The response body is left readable so the raw-body fallback can use it.

        Args:
            response: Failed HTTP response

        Returns:
            ApiError for the response
        """
        model: ErrorModel | None = None
        try:
            model = parse_error_model(response.json())
        except ValueError:
            model = None
        return cls(
            status_code=response.status_code,
            reason=response.reason or "",
            model=model,
            response=response,
        )
