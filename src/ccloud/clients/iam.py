"""IAM and organization listings used by principal translation and importers."""

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ccloud.clients.api_error import ApiError
from ccloud.clients.context import CloudClient
from ccloud.core.exceptions import CCloudError
from ccloud.utils.errors import create_descriptive_error
from ccloud.utils.logging import get_logger, log_error
from ccloud.utils.pagination import DEFAULT_PAGE_SIZE

logger = get_logger(__name__)

SERVICE_ACCOUNTS_PATH = "/iam/v2/service-accounts"
USERS_PATH = "/iam/v2/users"
ENVIRONMENTS_PATH = "/org/v2/environments"
V1_SERVICE_ACCOUNTS_PATH = "/service_accounts"
V1_USERS_PATH = "/users"


class ServiceAccount(BaseModel):
    """IAM v2 service account."""

    id: str
    display_name: str = ""
    description: str = ""


class User(BaseModel):
    """IAM v2 user."""

    id: str
    email: str = ""
    full_name: str = ""


class Environment(BaseModel):
    """Org v2 environment."""

    id: str
    display_name: str = ""


class LegacyPrincipal(BaseModel):
    """IAM v1 service account or user carrying its legacy integer ID."""

    id: int | None = None
    resource_id: str = ""


class LegacyPrincipalList(BaseModel):
    """IAM v1 list body; both v1 endpoints return their entries under ``users``."""

    users: list[LegacyPrincipal] = Field(default_factory=list)


class IamClient:
    """Paged IAM v2 and Org v2 listings."""

    def __init__(self, cloud_client: CloudClient):
        self.cloud_client = cloud_client

    def _list(self, path: str, description: str, page_size: int) -> list[dict[str, Any]]:
        try:
            return self.cloud_client.rest.list_all(
                path, self.cloud_client.iam_api_context(), page_size=page_size
            )
        except ApiError as e:
            message = create_descriptive_error(e)
            log_error(logger, e, operation="list", resource=description)
            raise CCloudError(f"error listing {description}: {message}") from e

    def list_service_accounts(self, page_size: int = DEFAULT_PAGE_SIZE) -> list[ServiceAccount]:
        """List every service account of the organization.

        Raises:
            CCloudError: If a page request fails
            PaginationError: If a next-page URL has no usable page token
        """
        items = self._list(SERVICE_ACCOUNTS_PATH, "Service Accounts", page_size)
        logger.debug("service_accounts_listed", count=len(items))
        return [ServiceAccount.model_validate(item) for item in items]

    def list_users(self, page_size: int = DEFAULT_PAGE_SIZE) -> list[User]:
        """List every user of the organization."""
        items = self._list(USERS_PATH, "Users", page_size)
        logger.debug("users_listed", count=len(items))
        return [User.model_validate(item) for item in items]

    def list_environments(self, page_size: int = DEFAULT_PAGE_SIZE) -> list[Environment]:
        """List every environment of the organization."""
        items = self._list(ENVIRONMENTS_PATH, "Environments", page_size)
        logger.debug("environments_listed", count=len(items))
        return [Environment.model_validate(item) for item in items]


class IamV1Client:
    """Legacy IAM v1 listings exposing integer principal IDs."""

    def __init__(self, cloud_client: CloudClient):
        self.cloud_client = cloud_client

    def _list(self, path: str, description: str) -> list[LegacyPrincipal]:
        try:
            body, _ = self.cloud_client.rest.get(path, self.cloud_client.iam_v1_api_context())
        except ApiError as e:
            message = create_descriptive_error(e)
            log_error(logger, e, operation="list", resource=description)
            raise CCloudError(f"error listing {description}: {message}") from e

        try:
            return LegacyPrincipalList.model_validate(body or {}).users
        except ValidationError as e:
            raise CCloudError(f"error listing {description}: unexpected response: {e}") from e

    def list_service_accounts(self) -> list[LegacyPrincipal]:
        """List service accounts with their integer IDs."""
        return self._list(V1_SERVICE_ACCOUNTS_PATH, "Service Accounts (v1)")

    def list_users(self) -> list[LegacyPrincipal]:
        """List users with their integer IDs."""
        return self._list(V1_USERS_PATH, "Users (v1)")
