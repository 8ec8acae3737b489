"""Descriptive error messages for failed Confluent Cloud API calls."""

import gzip
import zlib
from http import HTTPStatus

import requests

from ccloud.clients.api_error import DescribedError
from ccloud.core.exceptions import CCloudError
from ccloud.utils.logging import get_logger

logger = get_logger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
INVALID_API_KEY_MARKER = "invalid API key"


def _read_body(response: requests.Response) -> bytes | None:
    """Read a response body without raising."""
    try:
        body = response.content
    except (requests.RequestException, RuntimeError) as e:
        logger.debug("response_body_unreadable", error=str(e))
        return None
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8", errors="replace")
    return None


def decode_body(body: bytes) -> str:
    """Decode a raw error body, decompressing it first if it looks like gzip.

    The magic-number check covers servers that compress without sending a
    Content-Encoding header. A body that fails to decompress is used as-is.

    Args:
        body: Raw response bytes

    Returns:
        Body text
    """
    if body[:2] == GZIP_MAGIC:
        try:
            body = gzip.decompress(body)
        except (OSError, EOFError, zlib.error) as e:
            logger.debug("gzip_decompression_failed", error=str(e))
    return body.decode("utf-8", errors="backslashreplace")


def create_descriptive_error(
    err: BaseException | None, response: requests.Response | None = None
) -> str:
    """Build a descriptive message for a failed API call.

    An API error's own message is just its status line. The detail of the
    first error entry (or the REST Proxy / Connect ``message``) is appended
    when the body had a known shape; otherwise the raw body of ``response``
    is appended as a last resort.

    Args:
        err: Error raised by the call
        response: Raw HTTP response of the call; defaults to ``err.response``

    Returns:
        Descriptive message; empty only when ``err`` is None
    """
    if err is None:
        return ""

    try:
        base_message = str(err)
    except Exception:  # describing an error must never raise
        base_message = type(err).__name__
    if not base_message:
        base_message = type(err).__name__

    message = base_message
    if isinstance(err, DescribedError):
        try:
            detail = err.detail()
        except Exception as e:
            logger.debug("error_detail_unavailable", error_type=type(err).__name__, error=str(e))
            detail = None
        if detail:
            message = f"{base_message}: {detail}"

    if response is None:
        response = getattr(err, "response", None)
    if message == base_message and isinstance(response, requests.Response):
        body = _read_body(response)
        if body is not None:
            message = (
                f"{base_message}; could not parse error details; "
                f"raw response body: {decode_body(body)!r}"
            )

    return message


def describe_error(
    err: BaseException | None, response: requests.Response | None = None
) -> CCloudError | None:
    """Wrap ``err`` in a CCloudError carrying the descriptive message.

    Args:
        err: Error raised by the call
        response: Raw HTTP response of the call (optional)

    Returns:
        CCloudError, or None when ``err`` is None
    """
    if err is None:
        return None
    return CCloudError(create_descriptive_error(err, response))


def response_has_expected_status_code(
    response: requests.Response | None, expected_status_code: int
) -> bool:
    """Report whether ``response`` exists and has the expected status."""
    return response is not None and response.status_code == expected_status_code


def response_has_status_forbidden_due_to_invalid_api_key(
    response: requests.Response | None,
) -> bool:
    """Report whether a 403 was caused by an invalid Cloud API key.

    A 403 otherwise stands in for 404 on resources the caller may not see.
    """
    if not response_has_expected_status_code(response, HTTPStatus.FORBIDDEN):
        return False
    assert response is not None
    body = _read_body(response)
    if body is None:
        return False
    return INVALID_API_KEY_MARKER in decode_body(body)


def is_non_kafka_rest_api_resource_not_found(response: requests.Response | None) -> bool:
    """Report whether a Cloud API response means the resource does not exist."""
    return response_has_expected_status_code(response, HTTPStatus.NOT_FOUND) or (
        response_has_expected_status_code(response, HTTPStatus.FORBIDDEN)
        and not response_has_status_forbidden_due_to_invalid_api_key(response)
    )
