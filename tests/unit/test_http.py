"""Tests for the retrying HTTP session."""

from unittest.mock import MagicMock

import pytest
import requests

from ccloud import __version__
from ccloud.clients.http import (
    RetryableSession,
    TooManyRequestsError,
    build_user_agent,
    create_retryable_session,
)


@pytest.fixture
def raw_session(response_factory):
    """Mock requests.Session."""
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    session.request.return_value = response_factory(200, {})
    return session


class TestBuildUserAgent:
    """Tests for the User-Agent header."""

    def test_default(self):
        """Test the provider product token."""
        assert build_user_agent("1.2.3") == (
            "terraform-provider-confluent/1.2.3 (https://confluent.cloud; support@confluent.io)"
        )

    def test_additional_user_agent_prefix(self):
        """Test an additional agent is placed in front."""
        user_agent = build_user_agent("1.2.3", additional_user_agent="my-tool/0.1")

        assert user_agent.startswith("my-tool/0.1 terraform-provider-confluent/1.2.3 ")

    def test_uses_package_version(self):
        """Test the package version is the default."""
        assert f"/{__version__} " in build_user_agent()


class TestRetryableSession:
    """Tests for RetryableSession."""

    def test_sets_user_agent(self, raw_session):
        """Test the User-Agent header is installed on the session."""
        RetryableSession(raw_session, user_agent="agent/1")

        assert raw_session.headers["User-Agent"] == "agent/1"

    def test_passes_arguments_through(self, raw_session):
        """Test method, URL and keyword arguments reach requests."""
        session = RetryableSession(raw_session, min_wait=0, max_wait=0)

        session.get("https://api.confluent.cloud/x", params={"a": "1"})

        raw_session.request.assert_called_once_with(
            "GET", "https://api.confluent.cloud/x", params={"a": "1"}
        )

    def test_retries_server_errors(self, raw_session, response_factory):
        """Test 5xx responses are retried."""
        raw_session.request.side_effect = [response_factory(503), response_factory(200, {})]
        session = RetryableSession(raw_session, min_wait=0, max_wait=0)

        response = session.post("https://api.confluent.cloud/x", json={})

        assert response.status_code == 200
        assert raw_session.request.call_count == 2

    def test_client_error_returned(self, raw_session, response_factory):
        """Test 4xx responses other than 429 are returned as-is."""
        raw_session.request.return_value = response_factory(404)
        session = RetryableSession(raw_session, min_wait=0, max_wait=0)

        assert session.delete("https://api.confluent.cloud/x").status_code == 404
        assert raw_session.request.call_count == 1

    def test_persistent_throttling_raises(self, raw_session, response_factory):
        """Test a final 429 becomes TooManyRequestsError."""
        raw_session.request.return_value = response_factory(
            429, url="https://api.confluent.cloud/x", method="PUT"
        )
        session = RetryableSession(raw_session, max_retries=2, min_wait=0, max_wait=0)

        with pytest.raises(TooManyRequestsError) as exc_info:
            session.put("https://api.confluent.cloud/x")

        assert str(exc_info.value) == (
            "received HTTP 429 Too Many Requests "
            "(URL: https://api.confluent.cloud/x, Method: PUT)"
        )
        assert exc_info.value.response.status_code == 429
        assert raw_session.request.call_count == 3

    def test_persistent_server_error_returned(self, raw_session, response_factory):
        """Test a final 5xx is returned for the caller to interpret."""
        raw_session.request.return_value = response_factory(500)
        session = RetryableSession(raw_session, max_retries=1, min_wait=0, max_wait=0)

        assert session.get("https://api.confluent.cloud/x").status_code == 500
        assert raw_session.request.call_count == 2


def test_create_retryable_session():
    """Test the factory applies retries and the default User-Agent."""
    session = create_retryable_session(max_retries=7)

    assert session.max_retries == 7
    assert session.session.headers["User-Agent"] == build_user_agent()
