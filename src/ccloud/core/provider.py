"""Provider wiring: one configured set of clients per provider instance."""

from dataclasses import dataclass

from ccloud.auth.oauth import OAuthTokenClient, TokenManager
from ccloud.clients.context import CloudClient, RestClientFactory
from ccloud.clients.http import build_user_agent, create_retryable_session
from ccloud.clients.iam import IamClient, IamV1Client
from ccloud.core.config import ProviderConfig
from ccloud.utils.logging import get_logger, log_operation, setup_logging

logger = get_logger(__name__)


@dataclass
class Provider:
    """Clients derived from one provider configuration."""

    config: ProviderConfig
    cloud_client: CloudClient
    rest_client_factory: RestClientFactory
    iam: IamClient
    iam_v1: IamV1Client
    token_manager: TokenManager | None = None

    @classmethod
    def configure(
        cls,
        config: ProviderConfig,
        additional_user_agent: str = "",
        configure_logging: bool = False,
    ) -> "Provider":
        """Build every client for a provider configuration.

        With an OAuth block the initial external and STS tokens are fetched
        here, so a bad identity provider setup fails at configuration time.

        Args:
            config: Validated provider configuration
            additional_user_agent: Product token placed in front of the User-Agent
            configure_logging: Whether to apply ``config.logging``

        Returns:
            Configured Provider

        Raises:
            OAuthTokenError: If the initial OAuth tokens cannot be obtained
        """
        if configure_logging:
            setup_logging(config.logging.level, config.logging.format, config.logging.output)

        user_agent = build_user_agent(additional_user_agent=additional_user_agent)
        session = create_retryable_session(config.max_retries, user_agent)

        token_manager = None
        if config.oauth is not None:
            token_manager = TokenManager.initialize(config.oauth, OAuthTokenClient(session))

        cloud_client = CloudClient(config, token_manager=token_manager, session=session)
        log_operation(
            logger,
            "provider_configure",
            endpoint=config.endpoint,
            oauth_enabled=config.is_oauth_enabled,
            max_retries=config.max_retries,
        )
        return cls(
            config=config,
            cloud_client=cloud_client,
            rest_client_factory=RestClientFactory(config, token_manager, user_agent),
            iam=IamClient(cloud_client),
            iam_v1=IamV1Client(cloud_client),
            token_manager=token_manager,
        )
