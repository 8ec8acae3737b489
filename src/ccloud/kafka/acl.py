"""Kafka ACL identity, import parsing and bulk loading."""

from dataclasses import dataclass
from enum import Enum

from ccloud.clients.api_error import ApiError
from ccloud.clients.context import KafkaRestClient
from ccloud.clients.iam import IamV1Client
from ccloud.clients.kafka_rest import AclData, create_acl, delete_acls, list_acls
from ccloud.core.exceptions import AclFormatError, CCloudError, PrincipalResolutionError
from ccloud.kafka.principals import (
    build_principal_id_mapping,
    principal_with_integer_id_to_principal_with_resource_id,
    principal_with_resource_id_to_principal_with_integer_id,
)
from ccloud.utils.errors import create_descriptive_error
from ccloud.utils.helpers import to_valid_terraform_resource_name
from ccloud.utils.logging import get_logger, log_operation

logger = get_logger(__name__)

ACL_FIELD_SEPARATOR = "#"
ACL_FIELD_COUNT = 7
IMPORT_ID_SEPARATOR = "/"
IMPORT_ID_FORMAT = (
    "'<Kafka cluster ID>/<resource type>#<resource name>#<pattern type>#<principal>#<host>"
    "#<operation>#<permission>'"
)


class AclResourceType(str, Enum):
    """Kafka ACL resource types."""

    UNKNOWN = "UNKNOWN"
    ANY = "ANY"
    TOPIC = "TOPIC"
    GROUP = "GROUP"
    CLUSTER = "CLUSTER"
    TRANSACTIONAL_ID = "TRANSACTIONAL_ID"
    DELEGATION_TOKEN = "DELEGATION_TOKEN"


def string_to_acl_resource_type(value: str) -> AclResourceType:
    """Parse an ACL resource type name.

    Raises:
        AclFormatError: If the name is not a known resource type
    """
    try:
        return AclResourceType(value)
    except ValueError as e:
        raise AclFormatError(f"unknown ACL resource type was found: {value!r}") from e


@dataclass(frozen=True)
class Acl:
    """One Kafka ACL binding."""

    resource_type: AclResourceType
    resource_name: str
    pattern_type: str
    principal: str
    host: str
    operation: str
    permission: str

    def fields(self) -> tuple[str, ...]:
        return (
            self.resource_type.value,
            self.resource_name,
            self.pattern_type,
            self.principal,
            self.host,
            self.operation,
            self.permission,
        )

    def serialize(self) -> str:
        return ACL_FIELD_SEPARATOR.join(self.fields())

    def to_acl_data(self, principal: str | None = None) -> AclData:
        """Kafka REST representation, optionally with a translated principal."""
        return AclData(
            resource_type=self.resource_type.value,
            resource_name=self.resource_name,
            pattern_type=self.pattern_type,
            principal=principal if principal is not None else self.principal,
            host=self.host,
            operation=self.operation,
            permission=self.permission,
        )

    @classmethod
    def from_acl_data(cls, data: AclData, principal: str | None = None) -> "Acl":
        return cls(
            resource_type=string_to_acl_resource_type(data.resource_type),
            resource_name=data.resource_name,
            pattern_type=data.pattern_type,
            principal=principal if principal is not None else data.principal,
            host=data.host,
            operation=data.operation,
            permission=data.permission,
        )


def create_kafka_acl_id(cluster_id: str, acl: Acl) -> str:
    """Build the resource ID ``<cluster ID>/<seven fields joined by #>``."""
    return f"{cluster_id}{IMPORT_ID_SEPARATOR}{acl.serialize()}"


def deserialize_acl(serialized_acl: str) -> Acl:
    """Parse the part of an ACL ID after the cluster ID.

    Raises:
        AclFormatError: If there are not exactly seven fields or the resource
            type is unknown
    """
    parts = serialized_acl.split(ACL_FIELD_SEPARATOR)
    if len(parts) != ACL_FIELD_COUNT:
        raise AclFormatError(
            f"invalid format for kafka ACL import: expected {IMPORT_ID_FORMAT}"
        )
    return Acl(
        resource_type=string_to_acl_resource_type(parts[0]),
        resource_name=parts[1],
        pattern_type=parts[2],
        principal=parts[3],
        host=parts[4],
        operation=parts[5],
        permission=parts[6],
    )


def parse_kafka_acl_import_id(import_id: str) -> tuple[str, Acl]:
    """Split an import ID into the cluster ID and the ACL.

    Raises:
        AclFormatError: If the ID is malformed
    """
    parts = import_id.split(IMPORT_ID_SEPARATOR)
    if len(parts) != 2:
        raise AclFormatError(
            f"error importing Kafka ACLs: invalid format: expected {IMPORT_ID_FORMAT}"
        )
    cluster_id, serialized_acl = parts
    return cluster_id, deserialize_acl(serialized_acl)


def create_acl_instance_name(acl: Acl) -> str:
    """Readable name for an imported ACL: permission, operation, pattern, name and type."""
    return "-".join(
        (
            acl.permission,
            acl.operation,
            acl.pattern_type,
            acl.resource_name,
            acl.resource_type.value,
        )
    )


def load_all_kafka_acls(kafka_rest_client: KafkaRestClient, iam_v1: IamV1Client) -> dict[str, str]:
    """Load every ACL of a cluster for bulk import.

    Principals are translated back to resource IDs through a single listing
    of service accounts and users. ACLs whose principal cannot be translated
    are skipped with a warning.

    Args:
        kafka_rest_client: Kafka REST client of the cluster
        iam_v1: Legacy IAM client

    Returns:
        Map of ACL resource ID to Terraform instance name

    Raises:
        CCloudError: If the ACLs or principals cannot be listed
    """
    cluster_id = kafka_rest_client.cluster_id
    try:
        acls = list_acls(kafka_rest_client)
    except ApiError as e:
        message = create_descriptive_error(e)
        logger.warning("kafka_acls_read_failed", kafka_cluster_id=cluster_id, error=message)
        raise CCloudError(f"error reading Kafka ACLs for Kafka Cluster {cluster_id!r}: {message}") from e

    mapping = build_principal_id_mapping(iam_v1)

    instances: dict[str, str] = {}
    for acl_data in acls:
        try:
            principal = principal_with_integer_id_to_principal_with_resource_id(
                mapping, acl_data.principal
            )
            acl = Acl.from_acl_data(acl_data, principal=principal)
        except (PrincipalResolutionError, AclFormatError) as e:
            logger.warning("kafka_acl_skipped", kafka_cluster_id=cluster_id, error=str(e))
            continue
        instances[create_kafka_acl_id(cluster_id, acl)] = to_valid_terraform_resource_name(
            create_acl_instance_name(acl)
        )

    logger.info("kafka_acls_loaded", kafka_cluster_id=cluster_id, count=len(instances))
    return instances


def _acl_data_with_integer_id(iam_v1: IamV1Client, acl: Acl) -> AclData:
    principal = principal_with_resource_id_to_principal_with_integer_id(iam_v1, acl.principal)
    return acl.to_acl_data(principal=principal)


def create_kafka_acl(kafka_rest_client: KafkaRestClient, iam_v1: IamV1Client, acl: Acl) -> str:
    """Create an ACL and return its resource ID.

    Raises:
        PrincipalResolutionError: If the principal has no integer ID
        ApiError: If the request fails
    """
    create_acl(kafka_rest_client, _acl_data_with_integer_id(iam_v1, acl))
    acl_id = create_kafka_acl_id(kafka_rest_client.cluster_id, acl)
    log_operation(logger, "create_kafka_acl", kafka_acl_id=acl_id)
    return acl_id


def read_kafka_acl(kafka_rest_client: KafkaRestClient, iam_v1: IamV1Client, acl: Acl) -> list[Acl]:
    """Find the ACLs matching ``acl`` exactly.

    Raises:
        PrincipalResolutionError: If the principal has no integer ID
        ApiError: If the request fails
    """
    query = _acl_data_with_integer_id(iam_v1, acl)
    matches = list_acls(kafka_rest_client, **query.as_query())
    return [Acl.from_acl_data(match, principal=acl.principal) for match in matches]


def delete_kafka_acl(kafka_rest_client: KafkaRestClient, iam_v1: IamV1Client, acl: Acl) -> int:
    """Delete an ACL and return how many bindings were removed.

    Raises:
        PrincipalResolutionError: If the principal has no integer ID
        ApiError: If the request fails
    """
    deleted = delete_acls(kafka_rest_client, _acl_data_with_integer_id(iam_v1, acl))
    log_operation(
        logger,
        "delete_kafka_acl",
        kafka_acl_id=create_kafka_acl_id(kafka_rest_client.cluster_id, acl),
        count=len(deleted),
    )
    return len(deleted)
