"""Tests for retry utilities."""

from unittest.mock import MagicMock

import pytest
import requests

from ccloud.utils.retry import (
    DEFAULT_MAX_RETRIES,
    http_retrying,
    is_retryable_status,
)


@pytest.mark.parametrize(
    "status_code,expected",
    [
        (200, False),
        (400, False),
        (404, False),
        (429, True),
        (500, True),
        (501, False),
        (502, True),
        (503, True),
        (599, True),
    ],
)
def test_is_retryable_status(status_code, expected):
    """Test 429 and 5xx except 501 are retryable."""
    assert is_retryable_status(status_code) is expected


class TestHttpRetrying:
    """Tests for the HTTP retry controller."""

    def test_returns_first_success(self, response_factory):
        """Test a successful response is returned without retrying."""
        send = MagicMock(return_value=response_factory(200, {}))

        response = http_retrying(min_wait=0, max_wait=0)(send)

        assert response.status_code == 200
        assert send.call_count == 1

    def test_retries_until_success(self, response_factory):
        """Test retryable statuses are retried until a good response."""
        send = MagicMock(
            side_effect=[response_factory(503), response_factory(429), response_factory(200, {})]
        )

        response = http_retrying(min_wait=0, max_wait=0)(send)

        assert response.status_code == 200
        assert send.call_count == 3

    def test_exhausted_returns_last_response(self, response_factory):
        """Test the last response is handed back once retries run out."""
        send = MagicMock(return_value=response_factory(429))

        response = http_retrying(max_retries=2, min_wait=0, max_wait=0)(send)

        assert response.status_code == 429
        assert send.call_count == 3

    def test_default_attempt_count(self, response_factory):
        """Test the default budget is one attempt plus the retries."""
        send = MagicMock(return_value=response_factory(500))

        http_retrying(min_wait=0, max_wait=0)(send)

        assert send.call_count == DEFAULT_MAX_RETRIES + 1

    def test_non_retryable_status_not_retried(self, response_factory):
        """Test client errors and 501 are returned immediately."""
        for status_code in (400, 404, 501):
            send = MagicMock(return_value=response_factory(status_code))

            response = http_retrying(min_wait=0, max_wait=0)(send)

            assert response.status_code == status_code
            assert send.call_count == 1

    def test_connection_error_retried_then_raised(self, response_factory):
        """Test transport errors are retried and re-raised when exhausted."""
        send = MagicMock(side_effect=requests.ConnectionError("refused"))

        with pytest.raises(requests.ConnectionError, match="refused"):
            http_retrying(max_retries=1, min_wait=0, max_wait=0)(send)

        assert send.call_count == 2

    def test_zero_retries(self, response_factory):
        """Test max_retries=0 makes a single attempt."""
        send = MagicMock(return_value=response_factory(503))

        response = http_retrying(max_retries=0, min_wait=0, max_wait=0)(send)

        assert response.status_code == 503
        assert send.call_count == 1
