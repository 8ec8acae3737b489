"""Per-API-family call contexts.

Each builder picks the credential for one API family and turns it into an
``ApiContext``: a bearer token from the OAuth token manager, basic auth from
an API key pair, or an unauthenticated context plus a warning.
"""

from enum import Enum

from ccloud.auth.credentials import BasicAuthCredential, BearerCredential, Credential, resolve_credential
from ccloud.auth.oauth import TokenManager
from ccloud.clients.http import RetryableSession, build_user_agent, create_retryable_session
from ccloud.clients.rest import ApiContext, RestClient
from ccloud.core.config import ProviderConfig
from ccloud.utils.logging import get_logger

logger = get_logger(__name__)

IDENTITY_POOL_ID_HEADER = "confluent-identity-pool-id"
TARGET_SR_CLUSTER_HEADER = "target-sr-cluster"


class ApiFamily(str, Enum):
    """Control-plane API families, valued by the name used in logs."""

    API_KEYS = "API Key"
    BYOK = "BYOK"
    CCP = "Custom Connector Plugin"
    CCPM = "Custom Code Logging"
    CMK = "Kafka Cluster"
    IAM = "IAM"
    IAM_IP = "IAM IP"
    CA = "Certificate Authorities"
    CAM = "Cloud Access Management"
    SSO = "SSO"
    PROVIDER_INTEGRATION = "Provider Integration"
    IAM_V1 = "IAM v1"
    MDS = "MDS"
    NETWORKING = "Networking"
    FLINK_ARTIFACTS = "Flink Artifact"
    FLINK_COMPUTE_POOLS = "Flink"
    NETWORK_ACCESS_POINTS = "Network Access Point"
    NETWORK_GATEWAYS = "Network Gateway"
    NETWORK_IP = "Network IP"
    NETWORK_PRIVATE_LINK = "Network Private Link"
    NETWORK_DNS = "Network DNS Forwarder"
    SRCM = "Schema Registry Clusters"
    CONNECT = "Connect"
    ORG = "Organization"
    KSQL = "KSQL"
    OIDC = "Identity Provider"
    QUOTAS = "Kafka Quotas"


# Families that only accept Cloud API keys
BASIC_AUTH_ONLY_FAMILIES = frozenset({ApiFamily.CAM})


def context_for_credential(
    credential: Credential | None, headers: dict[str, str] | None = None
) -> ApiContext:
    """Turn a resolved credential into a call context.

    Args:
        credential: Credential to attach, or None for an unauthenticated call
        headers: Extra headers for the call

    Returns:
        ApiContext
    """
    headers = dict(headers or {})
    if isinstance(credential, BearerCredential):
        headers["Authorization"] = f"Bearer {credential.access_token}"
        return ApiContext(headers=headers)
    if isinstance(credential, BasicAuthCredential):
        return ApiContext(headers=headers, auth=(credential.key, credential.secret))
    return ApiContext(headers=headers)


def org_api_context(cloud_api_key: str, cloud_api_secret: str) -> ApiContext:
    """Organization API context for an explicitly provided Cloud API key."""
    if cloud_api_key and cloud_api_secret:
        return context_for_credential(BasicAuthCredential(cloud_api_key, cloud_api_secret))
    logger.warning("cloud_api_key_or_secret_empty")
    return ApiContext()


class CloudClient:
    """Control-plane client holding the provider-level credentials."""

    def __init__(
        self,
        config: ProviderConfig,
        token_manager: TokenManager | None = None,
        session: RetryableSession | None = None,
    ):
        """Initialize the client.

        Args:
            config: Provider configuration
            token_manager: OAuth token manager when OAuth is enabled
            session: HTTP session (created from the configuration if omitted)
        """
        self.config = config
        self.token_manager = token_manager
        self.session = session or create_retryable_session(config.max_retries)
        self.rest = RestClient(config.endpoint, self.session)

    def api_context(self, family: ApiFamily) -> ApiContext:
        """Build the call context for one API family.

        Raises:
            OAuthTokenError: If the OAuth token pair cannot be refreshed
        """
        token_manager = None if family in BASIC_AUTH_ONLY_FAMILIES else self.token_manager
        credential = resolve_credential(
            family.value, token_manager, self.config.cloud_api_key, self.config.cloud_api_secret
        )
        return context_for_credential(credential)

    def api_keys_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.API_KEYS)

    def byok_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.BYOK)

    def ccp_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.CCP)

    def ccpm_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.CCPM)

    def cmk_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.CMK)

    def iam_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.IAM)

    def iam_ip_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.IAM_IP)

    def ca_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.CA)

    def cam_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.CAM)

    def sso_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.SSO)

    def pi_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.PROVIDER_INTEGRATION)

    def iam_v1_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.IAM_V1)

    def mds_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.MDS)

    def net_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.NETWORKING)

    def fa_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.FLINK_ARTIFACTS)

    def fcpm_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.FLINK_COMPUTE_POOLS)

    def net_ap_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.NETWORK_ACCESS_POINTS)

    def net_gw_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.NETWORK_GATEWAYS)

    def net_ip_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.NETWORK_IP)

    def net_pl_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.NETWORK_PRIVATE_LINK)

    def net_dns_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.NETWORK_DNS)

    def srcm_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.SRCM)

    def connect_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.CONNECT)

    def org_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.ORG)

    def ksql_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.KSQL)

    def oidc_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.OIDC)

    def quotas_api_context(self) -> ApiContext:
        return self.api_context(ApiFamily.QUOTAS)


class DataPlaneClient:
    """Base for clients of a cluster-scoped REST endpoint.

    With OAuth enabled these endpoints accept the external token directly,
    so only the external token is refreshed.
    """

    description = "data plane"

    def __init__(
        self,
        rest_endpoint: str,
        api_key: str,
        api_secret: str,
        session: RetryableSession,
        token_manager: TokenManager | None = None,
        is_metadata_set_in_provider_block: bool = False,
        default_headers: dict[str, str] | None = None,
    ):
        self.rest_endpoint = rest_endpoint
        self.api_key = api_key
        self.api_secret = api_secret
        self.token_manager = token_manager
        self.is_metadata_set_in_provider_block = is_metadata_set_in_provider_block
        self.rest = RestClient(rest_endpoint, session, default_headers)

    def _target(self) -> str:
        return self.rest_endpoint

    def api_context(self) -> ApiContext:
        """Build the call context for this endpoint.

        Raises:
            OAuthTokenError: If the external token cannot be refreshed
        """
        if self.token_manager is not None:
            external_token = self.token_manager.ensure_external_valid()
            return context_for_credential(BearerCredential(external_token.access_token))

        if self.api_key and self.api_secret:
            return context_for_credential(BasicAuthCredential(self.api_key, self.api_secret))

        logger.warning("credentials_not_found", api_family=self.description, target=self._target())
        return ApiContext()


class KafkaRestClient(DataPlaneClient):
    """Kafka REST v3 client for one cluster."""

    description = "Kafka REST"

    def __init__(
        self,
        rest_endpoint: str,
        cluster_id: str,
        api_key: str,
        api_secret: str,
        session: RetryableSession,
        token_manager: TokenManager | None = None,
        is_metadata_set_in_provider_block: bool = False,
        is_cluster_id_set_in_provider_block: bool = False,
        default_headers: dict[str, str] | None = None,
    ):
        super().__init__(
            rest_endpoint,
            api_key,
            api_secret,
            session,
            token_manager,
            is_metadata_set_in_provider_block,
            default_headers,
        )
        self.cluster_id = cluster_id
        self.is_cluster_id_set_in_provider_block = is_cluster_id_set_in_provider_block

    def _target(self) -> str:
        return self.cluster_id

    def api_context_with_cluster_api_key(self, api_key: str, api_secret: str) -> ApiContext:
        """Basic-auth context for an explicit cluster API key.

        Used to check whether a newly created Kafka API key has synced, so
        OAuth is never considered.
        """
        if api_key and api_secret:
            return context_for_credential(BasicAuthCredential(api_key, api_secret))
        logger.warning("credentials_not_found", api_family=self.description, target=self.cluster_id)
        return ApiContext()


class SchemaRegistryRestClient(DataPlaneClient):
    """Schema Registry client for one Stream Governance cluster."""

    description = "Schema Registry"

    def __init__(
        self,
        rest_endpoint: str,
        cluster_id: str,
        api_key: str,
        api_secret: str,
        session: RetryableSession,
        token_manager: TokenManager | None = None,
        is_metadata_set_in_provider_block: bool = False,
        default_headers: dict[str, str] | None = None,
    ):
        super().__init__(
            rest_endpoint,
            api_key,
            api_secret,
            session,
            token_manager,
            is_metadata_set_in_provider_block,
            default_headers,
        )
        self.cluster_id = cluster_id

    def _target(self) -> str:
        return self.cluster_id

    def data_catalog_api_context(self) -> ApiContext:
        """Context for the Data Catalog API served by the same cluster."""
        return self.api_context()


class CatalogRestClient(SchemaRegistryRestClient):
    """Data Catalog client for one Stream Governance cluster."""

    description = "Catalog"


class FlinkRestClient(DataPlaneClient):
    """Flink SQL gateway client for one compute pool."""

    description = "Flink"

    def __init__(
        self,
        rest_endpoint: str,
        organization_id: str,
        environment_id: str,
        compute_pool_id: str,
        principal_id: str,
        api_key: str,
        api_secret: str,
        session: RetryableSession,
        token_manager: TokenManager | None = None,
        is_metadata_set_in_provider_block: bool = False,
        default_headers: dict[str, str] | None = None,
    ):
        super().__init__(
            rest_endpoint,
            api_key,
            api_secret,
            session,
            token_manager,
            is_metadata_set_in_provider_block,
            default_headers,
        )
        self.organization_id = organization_id
        self.environment_id = environment_id
        self.compute_pool_id = compute_pool_id
        self.principal_id = principal_id


class TableflowRestClient(DataPlaneClient):
    """Tableflow client; uses the STS token like the control plane."""

    description = "Tableflow"

    def api_context(self) -> ApiContext:
        if self.token_manager is not None:
            snapshot = self.token_manager.ensure_valid()
            return context_for_credential(BearerCredential(snapshot.access_token))
        return super().api_context()


class RestClientFactory:
    """Creates data-plane clients sharing the provider's settings."""

    def __init__(
        self,
        config: ProviderConfig,
        token_manager: TokenManager | None = None,
        user_agent: str = "",
    ):
        """Initialize the factory.

        Args:
            config: Provider configuration (retry budget and endpoint)
            token_manager: OAuth token manager when OAuth is enabled
            user_agent: User-Agent header value
        """
        self.config = config
        self.token_manager = token_manager
        self.user_agent = user_agent or build_user_agent()

    def _session(self) -> RetryableSession:
        return create_retryable_session(self.config.max_retries, self.user_agent)

    def _oauth_headers(self, **extra: str) -> dict[str, str]:
        if self.token_manager is None:
            return {}
        return {IDENTITY_POOL_ID_HEADER: self.token_manager.oauth_config.identity_pool_id, **extra}

    def create_kafka_rest_client(
        self, rest_endpoint: str, cluster_id: str, api_key: str, api_secret: str
    ) -> KafkaRestClient:
        return KafkaRestClient(
            rest_endpoint,
            cluster_id,
            api_key,
            api_secret,
            self._session(),
            token_manager=self.token_manager,
            is_metadata_set_in_provider_block=self.config.is_kafka_metadata_set,
            is_cluster_id_set_in_provider_block=self.config.is_kafka_cluster_id_set,
            default_headers=self._oauth_headers(),
        )

    def create_schema_registry_rest_client(
        self, rest_endpoint: str, cluster_id: str, api_key: str, api_secret: str
    ) -> SchemaRegistryRestClient:
        return SchemaRegistryRestClient(
            rest_endpoint,
            cluster_id,
            api_key,
            api_secret,
            self._session(),
            token_manager=self.token_manager,
            is_metadata_set_in_provider_block=self.config.is_schema_registry_metadata_set,
            default_headers=self._oauth_headers(**{TARGET_SR_CLUSTER_HEADER: cluster_id}),
        )

    def create_catalog_rest_client(
        self, rest_endpoint: str, cluster_id: str, api_key: str, api_secret: str
    ) -> CatalogRestClient:
        return CatalogRestClient(
            rest_endpoint,
            cluster_id,
            api_key,
            api_secret,
            self._session(),
            token_manager=self.token_manager,
            is_metadata_set_in_provider_block=self.config.is_schema_registry_metadata_set,
            default_headers=self._oauth_headers(**{TARGET_SR_CLUSTER_HEADER: cluster_id}),
        )

    def create_flink_rest_client(
        self,
        rest_endpoint: str,
        organization_id: str,
        environment_id: str,
        compute_pool_id: str,
        principal_id: str,
        api_key: str,
        api_secret: str,
    ) -> FlinkRestClient:
        return FlinkRestClient(
            rest_endpoint,
            organization_id,
            environment_id,
            compute_pool_id,
            principal_id,
            api_key,
            api_secret,
            self._session(),
            token_manager=self.token_manager,
            is_metadata_set_in_provider_block=self.config.is_flink_metadata_set,
            default_headers=self._oauth_headers(),
        )

    def create_tableflow_rest_client(
        self, api_key: str = "", api_secret: str = ""
    ) -> TableflowRestClient:
        return TableflowRestClient(
            self.config.endpoint,
            api_key or self.config.tableflow_api_key,
            api_secret or self.config.tableflow_api_secret,
            self._session(),
            token_manager=self.token_manager,
            is_metadata_set_in_provider_block=bool(
                self.config.tableflow_api_key and self.config.tableflow_api_secret
            ),
            default_headers=self._oauth_headers(),
        )
