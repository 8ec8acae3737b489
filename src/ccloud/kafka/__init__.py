"""Kafka ACL identity and principal translation."""

from ccloud.kafka.acl import (
    Acl,
    AclResourceType,
    create_kafka_acl_id,
    deserialize_acl,
    load_all_kafka_acls,
    parse_kafka_acl_import_id,
)
from ccloud.kafka.principals import (
    PrincipalIdMapping,
    build_principal_id_mapping,
    principal_with_integer_id_to_principal_with_resource_id,
    principal_with_resource_id_to_principal_with_integer_id,
)

__all__ = [
    "Acl",
    "AclResourceType",
    "create_kafka_acl_id",
    "deserialize_acl",
    "load_all_kafka_acls",
    "parse_kafka_acl_import_id",
    "PrincipalIdMapping",
    "build_principal_id_mapping",
    "principal_with_integer_id_to_principal_with_resource_id",
    "principal_with_resource_id_to_principal_with_integer_id",
]
