"""Retry utilities for ccloud."""

import requests
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from ccloud.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_RETRIES = 4
DEFAULT_MIN_WAIT = 1.0
DEFAULT_MAX_WAIT = 30.0

# Transport failures worth another attempt
RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    requests.ConnectionError,
    requests.Timeout,
)


def is_retryable_status(status_code: int) -> bool:
    """Report whether an HTTP status should be retried.

    429 and every 5xx except 501 Not Implemented are retried; anything else is
    handed back to the caller to interpret.

    Args:
        status_code: HTTP status code

    Returns:
        True if the request should be retried
    """
    if status_code == 429:
        return True
    return 500 <= status_code <= 599 and status_code != 501


def _log_http_retry(retry_state: RetryCallState) -> None:
    """Log a retried HTTP exchange."""
    outcome = retry_state.outcome
    if outcome is None:
        return
    if outcome.failed:
        exception = outcome.exception()
        logger.warning(
            "http_retry_attempt",
            attempt=retry_state.attempt_number,
            exception=type(exception).__name__,
            message=str(exception),
        )
    else:
        response = outcome.result()
        logger.warning(
            "http_retry_attempt",
            attempt=retry_state.attempt_number,
            status_code=response.status_code,
            url=response.request.url if response.request is not None else None,
        )


def _return_last_response(retry_state: RetryCallState) -> requests.Response:
    """Hand back the final response once retries are exhausted."""
    outcome = retry_state.outcome
    assert outcome is not None
    # Re-raises the transport error if the last attempt never got a response
    return outcome.result()


def http_retrying(
    max_retries: int = DEFAULT_MAX_RETRIES,
    min_wait: float = DEFAULT_MIN_WAIT,
    max_wait: float = DEFAULT_MAX_WAIT,
) -> Retrying:
    """Build a tenacity controller for a single HTTP exchange.

    The exchange is attempted ``max_retries + 1`` times in total. When every
    attempt produced a retryable status, the last response is returned rather
    than raised.

    Args:
        max_retries: Number of retries after the first attempt
        min_wait: Minimum backoff (seconds)
        max_wait: Maximum backoff (seconds)

    Returns:
        Configured Retrying instance
    """
    return Retrying(
        retry=(
            retry_if_exception_type(RETRYABLE_EXCEPTIONS)
            | retry_if_result(lambda response: is_retryable_status(response.status_code))
        ),
        stop=stop_after_attempt(max(max_retries, 0) + 1),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        before_sleep=_log_http_retry,
        retry_error_callback=_return_last_response,
        reraise=True,
    )
