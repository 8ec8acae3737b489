"""Small parsing helpers shared by resource implementations."""

import re
import uuid
from collections.abc import Iterable
from datetime import datetime, timedelta
from urllib.parse import unquote

from ccloud.core.exceptions import CCloudError

CRN_KAFKA_SUFFIX = "/kafka="
KAFKA_CLUSTER_TYPE_DEDICATED = "Dedicated"
DEDICATED_CLUSTER_TIMEOUT = timedelta(hours=72)
DEFAULT_CLUSTER_TIMEOUT = timedelta(hours=1)
FLINK_STATEMENT_CLIENT_NAME = "tf"

_ORGANIZATION_ID = re.compile(r"/organization=([^/]+)(/|$)")


def cluster_crn_to_rbac_cluster_crn(cluster_crn: str) -> str:
    """Drop the trailing ``/kafka=<id>`` segment of a Kafka cluster CRN.

    ``crn://confluent.cloud/organization=./environment=./cloud-cluster=lkc-1/kafka=lkc-1``
    becomes ``crn://confluent.cloud/organization=./environment=./cloud-cluster=lkc-1``.

    Raises:
        CCloudError: If the CRN has no ``/kafka=`` segment
    """
    last_index = cluster_crn.rfind(CRN_KAFKA_SUFFIX)
    if last_index == -1:
        raise CCloudError(f"could not find {CRN_KAFKA_SUFFIX} in {cluster_crn}")
    return cluster_crn[:last_index]


def normalize_crn(crn: str) -> str:
    """Percent-decode a CRN."""
    return unquote(crn)


def extract_cloud_and_region_name(resource_id: str) -> tuple[str, str]:
    """Split ``<cloud>.<region>`` or ``<environment>.<cloud>.<region>``.

    Raises:
        CCloudError: If the ID has neither form
    """
    parts = resource_id.split(".")
    if len(parts) == 3:
        return parts[1], parts[2]
    if len(parts) == 2:
        return parts[0], parts[1]
    raise CCloudError(
        "error extracting cloud and region name: invalid format: expected "
        "'<cloud>.<region name>' or '<environment>.<cloud>.<region name>'"
    )


def extract_org_id_from_resource_name(resource_name: str) -> str:
    """Extract the organization ID from a CRN-style resource name.

    Raises:
        CCloudError: If the name has no ``/organization=`` segment
    """
    match = _ORGANIZATION_ID.search(resource_name)
    if match is None:
        raise CCloudError(f"could not find organization ID in resource_name: {resource_name}")
    return match.group(1)


def string_in_slice(target: str, values: Iterable[str], ignore_case: bool = False) -> bool:
    for value in values:
        if value == target or (ignore_case and value.casefold() == target.casefold()):
            return True
    return False


def verify_list_values(
    values: Iterable[str], accepted_values: list[str], ignore_case: bool = False
) -> None:
    """Check that every value is one of the accepted values.

    Raises:
        CCloudError: On the first value that is not accepted
    """
    for value in values:
        if not string_in_slice(value, accepted_values, ignore_case):
            raise CCloudError(f"expected {value} to be one of {accepted_values}, got {value}")


def get_timeout_for(cluster_type: str) -> timedelta:
    """Provisioning timeout for a Kafka cluster type."""
    if cluster_type == KAFKA_CLUSTER_TYPE_DEDICATED:
        return DEDICATED_CLUSTER_TIMEOUT
    return DEFAULT_CLUSTER_TIMEOUT


def generate_flink_statement_name(now: datetime | None = None) -> str:
    """Generate a name like ``tf-2024-05-01-134501-<uuid4>``."""
    now = now or datetime.now()
    return f"{FLINK_STATEMENT_CLIENT_NAME}-{now:%Y-%m-%d}-{now:%H%M%S}-{uuid.uuid4()}"


def parse_statement_name(statement_id: str) -> str:
    """Extract the statement name from ``<env>/<compute pool>/<statement name>``.

    Raises:
        CCloudError: If the ID does not have three parts
    """
    parts = statement_id.split("/")
    if len(parts) != 3:
        raise CCloudError(
            "invalid ID format: expected '<Environment ID>/Compute Pool ID>/<Statement name>'"
        )
    return parts[2]


def to_valid_terraform_resource_name(value: str) -> str:
    """Turn an arbitrary string into a valid Terraform resource name.

    Letters and digits are lower-cased, other characters (except a leading
    one) become underscores, and names not starting with a letter get an
    ``importer_`` prefix.
    """
    chars = []
    for index, char in enumerate(value):
        if char.isalpha() or char.isdigit() or char == "_":
            chars.append(char.lower())
        elif index > 0:
            chars.append("_")
    output = "".join(chars)
    if not output or not output[0].isalpha():
        output = "importer_" + output
    return output.replace("-", "_")
