"""Configuration management for ccloud."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from ccloud.core.exceptions import ConfigurationError

DEFAULT_ENDPOINT = "https://api.confluent.cloud"
DEFAULT_MAX_RETRIES = 4

# Provider attribute -> environment variable used as its default
ENV_DEFAULTS: dict[str, str] = {
    "catalog_rest_endpoint": "CATALOG_REST_ENDPOINT",
    "cloud_api_key": "CONFLUENT_CLOUD_API_KEY",
    "cloud_api_secret": "CONFLUENT_CLOUD_API_SECRET",
    "kafka_id": "KAFKA_ID",
    "kafka_api_key": "KAFKA_API_KEY",
    "kafka_api_secret": "KAFKA_API_SECRET",
    "kafka_rest_endpoint": "KAFKA_REST_ENDPOINT",
    "schema_registry_id": "SCHEMA_REGISTRY_ID",
    "schema_registry_api_key": "SCHEMA_REGISTRY_API_KEY",
    "schema_registry_api_secret": "SCHEMA_REGISTRY_API_SECRET",
    "schema_registry_rest_endpoint": "SCHEMA_REGISTRY_REST_ENDPOINT",
    "flink_principal_id": "FLINK_PRINCIPAL_ID",
    "organization_id": "CONFLUENT_ORGANIZATION_ID",
    "environment_id": "CONFLUENT_ENVIRONMENT_ID",
    "flink_compute_pool_id": "FLINK_COMPUTE_POOL_ID",
    "flink_api_key": "FLINK_API_KEY",
    "flink_api_secret": "FLINK_API_SECRET",
    "flink_rest_endpoint": "FLINK_REST_ENDPOINT",
    "tableflow_api_key": "TABLEFLOW_API_KEY",
    "tableflow_api_secret": "TABLEFLOW_API_SECRET",
}
MAX_RETRIES_ENV = "TF_PROVIDER_CONFLUENT_MAX_RETRIES"


def _all_or_none(*values: str) -> bool:
    """Report whether the given attributes are all set or all unset."""
    return all(values) or not any(values)


class OAuthConfig(BaseModel):
    """OAuth settings of the provider block."""

    external_token_url: str = ""
    external_client_id: str = ""
    external_client_secret: str = ""
    external_access_token: str = ""
    external_token_scope: str = ""
    identity_pool_id: str
    sts_token_expired_in_seconds: str = ""

    @model_validator(mode="after")
    def check_token_source(self) -> "OAuthConfig":
        """Require exactly one external token source."""
        if bool(self.external_token_url) == bool(self.external_access_token):
            raise ValueError(
                "exactly one of oauth.external_token_url or oauth.external_access_token must be set"
            )
        if self.external_token_url and not (
            self.external_client_id and self.external_client_secret
        ):
            raise ValueError(
                "oauth.external_client_id and oauth.external_client_secret must not be empty "
                "when oauth.external_token_url is set"
            )
        if not self.identity_pool_id:
            raise ValueError("oauth.identity_pool_id must not be empty")
        return self

    @property
    def uses_static_token(self) -> bool:
        """Whether the external token was provided instead of fetched."""
        return bool(self.external_access_token)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"
    output: str = "stderr"


class ProviderConfig(BaseModel):
    """Provider-level configuration."""

    endpoint: str = DEFAULT_ENDPOINT
    catalog_rest_endpoint: str = ""
    cloud_api_key: str = ""
    cloud_api_secret: str = ""
    kafka_id: str = ""
    kafka_api_key: str = ""
    kafka_api_secret: str = ""
    kafka_rest_endpoint: str = ""
    schema_registry_id: str = ""
    schema_registry_api_key: str = ""
    schema_registry_api_secret: str = ""
    schema_registry_rest_endpoint: str = ""
    flink_principal_id: str = ""
    organization_id: str = ""
    environment_id: str = ""
    flink_compute_pool_id: str = ""
    flink_api_key: str = ""
    flink_api_secret: str = ""
    flink_rest_endpoint: str = ""
    tableflow_api_key: str = ""
    tableflow_api_secret: str = ""
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    oauth: OAuthConfig | None = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def check_attribute_groups(self) -> "ProviderConfig":
        """Enforce that related provider attributes are set together."""
        if self.oauth is not None:
            self._check_no_api_keys_with_oauth()

        # Option #2 (kafka_api_key, kafka_api_secret, kafka_rest_endpoint)
        # Option #3 adds kafka_id
        if not _all_or_none(self.kafka_api_key, self.kafka_api_secret, self.kafka_rest_endpoint):
            raise ValueError(
                "(kafka_api_key, kafka_api_secret, kafka_rest_endpoint) or (kafka_api_key, "
                "kafka_api_secret, kafka_rest_endpoint, kafka_id) attributes should be set or "
                "not set in the provider block at the same time"
            )

        sr_endpoint = self.schema_registry_rest_endpoint or self.catalog_rest_endpoint
        if not _all_or_none(
            self.schema_registry_api_key,
            self.schema_registry_api_secret,
            sr_endpoint,
            self.schema_registry_id,
        ):
            raise ValueError(
                "All 4 schema_registry_api_key, schema_registry_api_secret, "
                "schema_registry_rest_endpoint (or catalog_rest_endpoint), schema_registry_id "
                "attributes should be set or not set in the provider block at the same time"
            )

        if not _all_or_none(
            self.flink_api_key,
            self.flink_api_secret,
            self.flink_rest_endpoint,
            self.organization_id,
            self.environment_id,
            self.flink_compute_pool_id,
            self.flink_principal_id,
        ):
            raise ValueError(
                "All 7 flink_api_key, flink_api_secret, flink_rest_endpoint, organization_id, "
                "environment_id, flink_compute_pool_id, flink_principal_id attributes should be "
                "set or not set in the provider block at the same time"
            )

        if not _all_or_none(self.tableflow_api_key, self.tableflow_api_secret):
            raise ValueError(
                "Both tableflow_api_key and tableflow_api_secret should be set or not set in "
                "the provider block at the same time"
            )
        return self

    def _check_no_api_keys_with_oauth(self) -> None:
        pairs = [
            ("cloud_api_key", "cloud_api_secret"),
            ("kafka_api_key", "kafka_api_secret"),
            ("schema_registry_api_key", "schema_registry_api_secret"),
            ("flink_api_key", "flink_api_secret"),
            ("tableflow_api_key", "tableflow_api_secret"),
        ]
        for key_attr, secret_attr in pairs:
            if getattr(self, key_attr) or getattr(self, secret_attr):
                raise ValueError(
                    f"({key_attr}, {secret_attr}) attributes should not be set in the provider "
                    "block when oauth block is present"
                )

    @property
    def is_oauth_enabled(self) -> bool:
        """Whether the provider authenticates through OAuth."""
        return self.oauth is not None

    @property
    def is_kafka_metadata_set(self) -> bool:
        """Whether Kafka credentials and REST endpoint come from the provider block."""
        return bool(self.kafka_api_key and self.kafka_api_secret and self.kafka_rest_endpoint)

    @property
    def is_kafka_cluster_id_set(self) -> bool:
        """Whether the Kafka cluster ID comes from the provider block."""
        return bool(self.kafka_id)

    @property
    def is_schema_registry_metadata_set(self) -> bool:
        """Whether Schema Registry settings come from the provider block."""
        endpoint = self.schema_registry_rest_endpoint or self.catalog_rest_endpoint
        return bool(
            self.schema_registry_api_key
            and self.schema_registry_api_secret
            and endpoint
            and self.schema_registry_id
        )

    @property
    def is_flink_metadata_set(self) -> bool:
        """Whether Flink settings come from the provider block."""
        return all(
            (
                self.flink_api_key,
                self.flink_api_secret,
                self.flink_rest_endpoint,
                self.organization_id,
                self.environment_id,
                self.flink_compute_pool_id,
                self.flink_principal_id,
            )
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProviderConfig":
        """Build configuration from a dictionary.

        Args:
            data: Raw configuration values

        Returns:
            ProviderConfig instance

        Raises:
            ConfigurationError: If the values are invalid or not a mapping
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Invalid configuration: expected a mapping, got {type(data).__name__}"
            )
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_env(cls, **overrides: Any) -> "ProviderConfig":
        """Build configuration from environment variables.

        Explicit overrides win over environment values, mirroring how the
        provider block takes precedence over its environment defaults.

        Args:
            **overrides: Attribute values set in the provider block

        Returns:
            ProviderConfig instance

        Raises:
            ConfigurationError: If the resulting values are invalid
        """
        data: dict[str, Any] = {}
        for attribute, env_var in ENV_DEFAULTS.items():
            value = os.environ.get(env_var, "")
            if value:
                data[attribute] = value

        max_retries = os.environ.get(MAX_RETRIES_ENV, "")
        if max_retries:
            try:
                data["max_retries"] = int(max_retries)
            except ValueError as e:
                raise ConfigurationError(
                    f"{MAX_RETRIES_ENV} must be an integer, got {max_retries!r}"
                ) from e

        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "ProviderConfig":
        """Load configuration from YAML file.

        Args:
            path: Path to configuration file

        Returns:
            ProviderConfig instance

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        config_path = Path(path).expanduser()

        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        return cls.from_dict(data or {})

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary representation
        """
        return self.model_dump()
