"""Translation between resource-ID and legacy integer-ID Kafka principals.

Kafka REST still reports and accepts ACL principals carrying legacy integer
IDs (``User:6789``) while users configure resource IDs (``User:sa-abc123``).
"""

import re
from dataclasses import dataclass, field

from ccloud.clients.iam import IamV1Client, LegacyPrincipal
from ccloud.core.exceptions import PrincipalResolutionError
from ccloud.utils.logging import get_logger

logger = get_logger(__name__)

PRINCIPAL_PREFIX = "User:"
WILDCARD_PRINCIPAL = "User:*"
SERVICE_ACCOUNT_PRINCIPAL_PREFIX = "User:sa-"
USER_PRINCIPAL_PREFIX = "User:u-"
# Identity pools and groups never had integer IDs
PASS_THROUGH_PRINCIPAL_PREFIXES = ("User:pool-", "User:group-")
RESOURCE_ID_PRINCIPAL_PREFIXES = (
    SERVICE_ACCOUNT_PRINCIPAL_PREFIX,
    USER_PRINCIPAL_PREFIX,
    *PASS_THROUGH_PRINCIPAL_PREFIXES,
)

_INTEGER_ID = re.compile(r"^[+-]?\d+$")


@dataclass
class PrincipalIdMapping:
    """Integer ID to resource ID map built from one listing."""

    resource_ids: dict[int, str] = field(default_factory=dict)

    def add(self, integer_id: int, resource_id: str) -> None:
        self.resource_ids[integer_id] = resource_id

    def resource_id_for(self, integer_id: int) -> str | None:
        return self.resource_ids.get(integer_id)

    def integer_id_for(self, resource_id: str) -> int | None:
        for integer_id, candidate in self.resource_ids.items():
            if candidate == resource_id:
                return integer_id
        return None

    def __len__(self) -> int:
        return len(self.resource_ids)


def build_principal_id_mapping(iam_v1: IamV1Client) -> PrincipalIdMapping:
    """List service accounts and users once and map their IDs.

    Args:
        iam_v1: Legacy IAM client

    Returns:
        Mapping covering both listings

    Raises:
        CCloudError: If either listing fails
    """
    mapping = PrincipalIdMapping()
    for principal in [*iam_v1.list_service_accounts(), *iam_v1.list_users()]:
        if principal.id is None:
            logger.debug("principal_without_integer_id", resource_id=principal.resource_id)
            continue
        mapping.add(principal.id, principal.resource_id)
    logger.debug("principal_id_mapping_built", size=len(mapping))
    return mapping


def _find_integer_id(principals: list[LegacyPrincipal], resource_id: str, kind: str) -> int:
    for principal in principals:
        if principal.resource_id == resource_id:
            if principal.id is None:
                raise PrincipalResolutionError(
                    f"the matching integer ID for a {kind} with resource ID={resource_id} is nil"
                )
            return principal.id
    raise PrincipalResolutionError(f"the {kind} with resource ID={resource_id} was not found")


def principal_with_resource_id_to_principal_with_integer_id(
    iam_v1: IamV1Client, principal: str
) -> str:
    """Convert ``User:sa-01234`` to ``User:6789``.

    Service account and user principals are looked up in a fresh listing;
    wildcard, identity pool and group principals are returned unchanged.

    Args:
        iam_v1: Legacy IAM client
        principal: Principal with a resource ID

    Returns:
        Principal with an integer ID

    Raises:
        PrincipalResolutionError: If the principal has an unknown form or
            no integer ID could be found
        CCloudError: If the listing fails
    """
    if principal == WILDCARD_PRINCIPAL:
        return principal

    resource_id = principal[len(PRINCIPAL_PREFIX) :]
    if principal.startswith(SERVICE_ACCOUNT_PRINCIPAL_PREFIX):
        integer_id = _find_integer_id(iam_v1.list_service_accounts(), resource_id, "service account")
        return f"{PRINCIPAL_PREFIX}{integer_id}"
    if principal.startswith(USER_PRINCIPAL_PREFIX):
        integer_id = _find_integer_id(iam_v1.list_users(), resource_id, "user")
        return f"{PRINCIPAL_PREFIX}{integer_id}"
    if principal.startswith(PASS_THROUGH_PRINCIPAL_PREFIXES):
        return principal

    raise PrincipalResolutionError(
        "the principal must start with 'User:sa-' or 'User:u-' or 'User:pool-' or "
        "'User:group-' or 'User:*'"
    )


def principal_with_integer_id_to_principal_with_resource_id(
    mapping: PrincipalIdMapping, principal: str
) -> str:
    """Convert ``User:6789`` to ``User:sa-01234``.

    Principals already in resource-ID or wildcard form are returned unchanged.

    Args:
        mapping: Integer ID to resource ID map
        principal: Principal as reported by Kafka REST

    Returns:
        Principal with a resource ID

    Raises:
        PrincipalResolutionError: If the integer ID is malformed or unknown
    """
    if principal == WILDCARD_PRINCIPAL or principal.startswith(RESOURCE_ID_PRINCIPAL_PREFIXES):
        return principal

    integer_id_str = principal[len(PRINCIPAL_PREFIX) :]
    if not _INTEGER_ID.match(integer_id_str):
        raise PrincipalResolutionError(f"failed to convert int ID {integer_id_str} to int")
    integer_id = int(integer_id_str)

    resource_id = mapping.resource_id_for(integer_id)
    if resource_id is None:
        raise PrincipalResolutionError(
            f"the matching resource ID for a principal with int ID={integer_id} is nil"
        )
    return f"{PRINCIPAL_PREFIX}{resource_id}"
