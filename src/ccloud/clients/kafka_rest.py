"""Kafka REST v3 ACL operations."""

from typing import Any

from pydantic import BaseModel, Field

from ccloud.clients.context import KafkaRestClient
from ccloud.utils.logging import get_logger

logger = get_logger(__name__)


def acls_path(cluster_id: str) -> str:
    return f"/kafka/v3/clusters/{cluster_id}/acls"


class AclData(BaseModel):
    """ACL binding as sent to and returned by Kafka REST v3."""

    resource_type: str
    resource_name: str
    pattern_type: str
    principal: str
    host: str
    operation: str
    permission: str

    def as_query(self) -> dict[str, str]:
        return self.model_dump()


class AclDataList(BaseModel):
    data: list[AclData] = Field(default_factory=list)


def list_acls(client: KafkaRestClient, **filters: Any) -> list[AclData]:
    """List the ACLs of the client's cluster.

    Args:
        client: Kafka REST client of the cluster
        **filters: Optional ACL search fields (``principal``, ``resource_type``, ...)

    Returns:
        Matching ACLs

    Raises:
        ApiError: If the request fails
    """
    params = {key: value for key, value in filters.items() if value}
    body, _ = client.rest.get(acls_path(client.cluster_id), client.api_context(), params=params)
    acls = AclDataList.model_validate(body or {}).data
    logger.debug("kafka_acls_listed", kafka_cluster_id=client.cluster_id, count=len(acls))
    return acls


def create_acl(client: KafkaRestClient, acl: AclData) -> None:
    """Create one ACL on the client's cluster.

    Raises:
        ApiError: If the request fails
    """
    client.rest.request(
        "POST", acls_path(client.cluster_id), client.api_context(), json=acl.model_dump()
    )
    logger.info("kafka_acl_created", kafka_cluster_id=client.cluster_id)


def delete_acls(client: KafkaRestClient, acl: AclData) -> list[AclData]:
    """Delete the ACLs matching ``acl`` on the client's cluster.

    Returns:
        Deleted ACLs

    Raises:
        ApiError: If the request fails
    """
    body, _ = client.rest.request(
        "DELETE", acls_path(client.cluster_id), client.api_context(), params=acl.as_query()
    )
    deleted = AclDataList.model_validate(body or {}).data
    logger.info("kafka_acls_deleted", kafka_cluster_id=client.cluster_id, count=len(deleted))
    return deleted
