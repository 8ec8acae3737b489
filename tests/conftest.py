"""Pytest configuration and shared fixtures."""

import json
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from ccloud.core.config import OAuthConfig, ProviderConfig


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_response(
    status_code: int = 200,
    body: Any = None,
    content: bytes | None = None,
    url: str = "https://api.confluent.cloud/test",
    method: str = "GET",
    reason: str = "",
) -> requests.Response:
    """Build a real requests.Response without any network."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response.url = url
    if content is not None:
        response._content = content
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = b""
    response.request = requests.Request(method, url).prepare()
    return response


@pytest.fixture
def response_factory():
    """Provide a builder for real requests.Response objects."""
    return make_response


@pytest.fixture
def clock() -> FakeClock:
    """Provide a controllable clock."""
    return FakeClock()


@pytest.fixture
def oauth_config() -> OAuthConfig:
    """OAuth block fetching tokens from an identity provider."""
    return OAuthConfig(
        external_token_url="https://idp.example.com/oauth2/token",
        external_client_id="client-id",
        external_client_secret="client-secret",
        identity_pool_id="pool-abc",
    )


@pytest.fixture
def static_oauth_config() -> OAuthConfig:
    """OAuth block with a statically provided external token."""
    return OAuthConfig(external_access_token="static-token", identity_pool_id="pool-abc")


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Provider configuration using a Cloud API key."""
    return ProviderConfig(cloud_api_key="cloud-key", cloud_api_secret="cloud-secret")


@pytest.fixture
def mock_session() -> MagicMock:
    """Mock RetryableSession returning 200 with an empty JSON object."""
    session = MagicMock()
    session.request.return_value = make_response(200, {})
    return session


@pytest.fixture
def sample_acl_payload() -> dict[str, Any]:
    """Kafka REST v3 ACL list response with legacy integer principals."""
    return {
        "data": [
            {
                "resource_type": "TOPIC",
                "resource_name": "orders",
                "pattern_type": "LITERAL",
                "principal": "User:101",
                "host": "*",
                "operation": "READ",
                "permission": "ALLOW",
            },
            {
                "resource_type": "GROUP",
                "resource_name": "billing",
                "pattern_type": "PREFIXED",
                "principal": "User:202",
                "host": "*",
                "operation": "DESCRIBE",
                "permission": "ALLOW",
            },
            {
                "resource_type": "TOPIC",
                "resource_name": "payments",
                "pattern_type": "LITERAL",
                "principal": "User:999",
                "host": "*",
                "operation": "WRITE",
                "permission": "DENY",
            },
        ]
    }


# ==============================================================================
# Pytest Markers
# ==============================================================================


def pytest_configure(config: Any) -> None:
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
