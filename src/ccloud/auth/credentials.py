"""Credential resolution for Confluent Cloud API families."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ccloud.auth.oauth import TokenManager
from ccloud.core.config import ProviderConfig
from ccloud.core.exceptions import ConfigurationError
from ccloud.utils.logging import get_logger

logger = get_logger(__name__)

IMPORT_KAFKA_ID_ENV = "IMPORT_KAFKA_ID"
IMPORT_KAFKA_REST_ENDPOINT_ENV = "IMPORT_KAFKA_REST_ENDPOINT"
IMPORT_KAFKA_API_KEY_ENV = "IMPORT_KAFKA_API_KEY"
IMPORT_KAFKA_API_SECRET_ENV = "IMPORT_KAFKA_API_SECRET"

CREDENTIALS_BLOCK = "credentials"
KAFKA_CLUSTER_BLOCK = "kafka_cluster"
REST_ENDPOINT_ATTRIBUTE = "rest_endpoint"


@dataclass(frozen=True)
class BasicAuthCredential:
    """API key and secret sent as HTTP basic auth."""

    key: str
    secret: str

    def __repr__(self) -> str:
        return f"BasicAuthCredential(key={self.key!r})"


@dataclass(frozen=True)
class BearerCredential:
    """OAuth access token sent as a bearer token."""

    access_token: str

    def __repr__(self) -> str:
        return "BearerCredential()"


Credential = BasicAuthCredential | BearerCredential


def resolve_credential(
    api_family: str,
    token_manager: TokenManager | None,
    api_key: str = "",
    api_secret: str = "",
) -> Credential | None:
    """Pick the credential for a call to one API family.

    OAuth wins when a token manager is configured; otherwise the API key pair
    is used. With neither, None is returned and a warning logged; the call
    then proceeds unauthenticated and fails with 401/403.

    Args:
        api_family: Human-readable API family name, used in logs
        token_manager: OAuth token manager, if OAuth is enabled
        api_key: Static API key
        api_secret: Static API secret

    Returns:
        Credential to attach, or None

    Raises:
        OAuthTokenError: If the OAuth token pair cannot be refreshed
    """
    if token_manager is not None:
        snapshot = token_manager.ensure_valid()
        return BearerCredential(snapshot.access_token)

    if api_key and api_secret:
        return BasicAuthCredential(api_key, api_secret)

    logger.warning("credentials_not_found", api_family=api_family)
    return None


def _block_value(block: Mapping[str, Any] | None, block_name: str, attribute: str) -> str:
    """Read ``block_name.attribute`` from a resource block.

    Nested blocks may be given either as a mapping or as a one-element list
    of mappings.
    """
    if not block:
        return ""
    nested = block.get(block_name)
    if isinstance(nested, list):
        nested = nested[0] if nested else None
    if not isinstance(nested, Mapping):
        return ""
    value = nested.get(attribute)
    return value if isinstance(value, str) else ""


def resolve_kafka_cluster_id(
    config: ProviderConfig, block: Mapping[str, Any] | None, is_import: bool = False
) -> str:
    """Resolve the Kafka cluster ID for a Kafka data-plane resource.

    Args:
        config: Provider configuration
        block: Resource block attributes
        is_import: Whether the resource is being imported

    Returns:
        Kafka cluster ID

    Raises:
        ConfigurationError: If no source provides the cluster ID
    """
    if config.is_kafka_cluster_id_set:
        return config.kafka_id
    if is_import:
        cluster_id = os.environ.get(IMPORT_KAFKA_ID_ENV, "")
        if cluster_id:
            return cluster_id
        raise ConfigurationError(
            "one of provider.kafka_id (defaults to KAFKA_ID environment variable) or "
            "IMPORT_KAFKA_ID environment variable must be set"
        )
    cluster_id = _block_value(block, KAFKA_CLUSTER_BLOCK, "id")
    if cluster_id:
        return cluster_id
    raise ConfigurationError(
        "one of provider.kafka_id (defaults to KAFKA_ID environment variable) or "
        "resource.kafka_cluster.id must be set"
    )


def resolve_kafka_rest_endpoint(
    config: ProviderConfig, block: Mapping[str, Any] | None, is_import: bool = False
) -> str:
    """Resolve the Kafka REST endpoint for a Kafka data-plane resource.

    Raises:
        ConfigurationError: If no source provides the endpoint
    """
    if config.is_kafka_metadata_set:
        return config.kafka_rest_endpoint
    if is_import:
        rest_endpoint = os.environ.get(IMPORT_KAFKA_REST_ENDPOINT_ENV, "")
        if rest_endpoint:
            return rest_endpoint
        raise ConfigurationError(
            "one of provider.kafka_rest_endpoint (defaults to KAFKA_REST_ENDPOINT environment "
            "variable) or IMPORT_KAFKA_REST_ENDPOINT environment variable must be set"
        )
    rest_endpoint = (block or {}).get(REST_ENDPOINT_ATTRIBUTE) or ""
    if rest_endpoint:
        return rest_endpoint
    raise ConfigurationError(
        "one of provider.kafka_rest_endpoint (defaults to KAFKA_REST_ENDPOINT environment "
        "variable) or resource.rest_endpoint must be set"
    )


def resolve_kafka_api_key_and_secret(
    config: ProviderConfig, block: Mapping[str, Any] | None, is_import: bool = False
) -> tuple[str, str]:
    """Resolve the Kafka API key pair for a Kafka data-plane resource.

    With OAuth enabled no key pair is needed and an empty pair is returned.

    Raises:
        ConfigurationError: If no source provides the key pair
    """
    if config.is_kafka_metadata_set:
        return config.kafka_api_key, config.kafka_api_secret
    if config.is_oauth_enabled:
        return "", ""
    if is_import:
        api_key = os.environ.get(IMPORT_KAFKA_API_KEY_ENV, "")
        api_secret = os.environ.get(IMPORT_KAFKA_API_SECRET_ENV, "")
        if api_key and api_secret:
            return api_key, api_secret
        raise ConfigurationError(
            "one of (provider.kafka_api_key, provider.kafka_api_secret), (KAFKA_API_KEY, "
            "KAFKA_API_SECRET environment variables) or (IMPORT_KAFKA_API_KEY, "
            "IMPORT_KAFKA_API_SECRET environment variables) must be set"
        )
    api_key = _block_value(block, CREDENTIALS_BLOCK, "key")
    api_secret = _block_value(block, CREDENTIALS_BLOCK, "secret")
    if api_key:
        return api_key, api_secret
    raise ConfigurationError(
        "one of (provider.kafka_api_key, provider.kafka_api_secret), (KAFKA_API_KEY, "
        "KAFKA_API_SECRET environment variables) or (resource.credentials.key, "
        "resource.credentials.secret) must be set"
    )


def validate_credentials_block_with_oauth(
    oauth_enabled: bool, block: Mapping[str, Any] | None
) -> None:
    """Reject a resource ``credentials`` block when OAuth is enabled.

    Raises:
        ConfigurationError: If both are present
    """
    if not oauth_enabled or not block:
        return
    if block.get(CREDENTIALS_BLOCK):
        raise ConfigurationError(
            f"`{CREDENTIALS_BLOCK}` block cannot be used when OAuth is enabled in the provider. "
            "Please remove the `credentials` block or disable OAuth"
        )
