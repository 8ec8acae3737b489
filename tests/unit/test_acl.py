"""Tests for Kafka ACL IDs, import parsing and bulk loading."""

from unittest.mock import MagicMock, patch

import pytest

from ccloud.clients.api_error import ApiError
from ccloud.clients.context import KafkaRestClient
from ccloud.clients.iam import LegacyPrincipal
from ccloud.core.exceptions import AclFormatError, CCloudError
from ccloud.kafka.acl import (
    Acl,
    AclResourceType,
    create_acl_instance_name,
    create_kafka_acl,
    create_kafka_acl_id,
    delete_kafka_acl,
    deserialize_acl,
    load_all_kafka_acls,
    parse_kafka_acl_import_id,
    read_kafka_acl,
    string_to_acl_resource_type,
)

IMPORT_ID = "lkc-1/TOPIC#orders#LITERAL#User:sa-abc123#*#READ#ALLOW"


@pytest.fixture
def acl():
    """ACL with a resource-ID principal."""
    return Acl(
        resource_type=AclResourceType.TOPIC,
        resource_name="orders",
        pattern_type="LITERAL",
        principal="User:sa-abc123",
        host="*",
        operation="READ",
        permission="ALLOW",
    )


@pytest.fixture
def iam_v1():
    """Legacy IAM client knowing principals 101 and 202."""
    client = MagicMock()
    client.list_service_accounts.return_value = [LegacyPrincipal(id=101, resource_id="sa-abc123")]
    client.list_users.return_value = [LegacyPrincipal(id=202, resource_id="u-xyz")]
    return client


@pytest.fixture
def kafka_client(mock_session):
    """Kafka REST client for lkc-1."""
    return KafkaRestClient("https://pkc-1.confluent.cloud:443", "lkc-1", "k", "s", mock_session)


class TestAclIds:
    """Tests for ACL IDs."""

    def test_create_id(self, acl):
        """Test the ID is the cluster followed by the seven fields."""
        assert create_kafka_acl_id("lkc-1", acl) == IMPORT_ID

    def test_parse_import_id(self, acl):
        """Test an import ID is parsed back into cluster and ACL."""
        cluster_id, parsed = parse_kafka_acl_import_id(IMPORT_ID)

        assert cluster_id == "lkc-1"
        assert parsed == acl

    def test_round_trip(self, acl):
        """Test parsing then formatting gives the same ID."""
        cluster_id, parsed = parse_kafka_acl_import_id(IMPORT_ID)

        assert create_kafka_acl_id(cluster_id, parsed) == IMPORT_ID

    def test_import_id_without_cluster(self):
        """Test an ID without the cluster separator is rejected."""
        with pytest.raises(AclFormatError, match="invalid format"):
            parse_kafka_acl_import_id("TOPIC#orders#LITERAL#User:sa-1#*#READ#ALLOW")

    def test_import_id_with_extra_slash(self):
        """Test an ID with more than one separator is rejected."""
        with pytest.raises(AclFormatError):
            parse_kafka_acl_import_id("lkc-1/TOPIC#a/b#LITERAL#User:sa-1#*#READ#ALLOW")

    @pytest.mark.parametrize(
        "serialized",
        ["TOPIC#orders#LITERAL#User:sa-1#*#READ", "TOPIC#o#LITERAL#User:sa-1#*#READ#ALLOW#X"],
    )
    def test_wrong_field_count(self, serialized):
        """Test a serialized ACL needs exactly seven fields."""
        with pytest.raises(AclFormatError, match="invalid format for kafka ACL import"):
            deserialize_acl(serialized)

    def test_unknown_resource_type(self):
        """Test an unknown resource type is rejected."""
        with pytest.raises(AclFormatError, match="unknown ACL resource type was found: 'TABLE'"):
            string_to_acl_resource_type("TABLE")

    def test_instance_name(self, acl):
        """Test the readable instance name."""
        assert create_acl_instance_name(acl) == "ALLOW-READ-LITERAL-orders-TOPIC"


class TestLoadAllKafkaAcls:
    """Tests for bulk loading."""

    def test_loads_and_translates(
        self, kafka_client, iam_v1, mock_session, response_factory, sample_acl_payload
    ):
        """Test principals are translated and untranslatable ACLs skipped."""
        mock_session.request.return_value = response_factory(200, sample_acl_payload)

        with patch("ccloud.kafka.acl.logger") as mock_logger:
            instances = load_all_kafka_acls(kafka_client, iam_v1)

        assert instances == {
            IMPORT_ID: "allow_read_literal_orders_topic",
            "lkc-1/GROUP#billing#PREFIXED#User:u-xyz#*#DESCRIBE#ALLOW": (
                "allow_describe_prefixed_billing_group"
            ),
        }
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.args[0] == "kafka_acl_skipped"
        iam_v1.list_service_accounts.assert_called_once()
        iam_v1.list_users.assert_called_once()

    def test_listing_failure(self, kafka_client, iam_v1, mock_session, response_factory):
        """Test an ACL listing failure is described."""
        mock_session.request.return_value = response_factory(
            401, {"error_code": 40101, "message": "Unauthorized"}, reason="Unauthorized"
        )

        with pytest.raises(CCloudError, match="error reading Kafka ACLs for Kafka Cluster 'lkc-1'"):
            load_all_kafka_acls(kafka_client, iam_v1)

        iam_v1.list_service_accounts.assert_not_called()


class TestAclOperations:
    """Tests for create, read and delete."""

    def test_create_sends_integer_principal(self, kafka_client, iam_v1, mock_session, response_factory, acl):
        """Test the principal is translated before creation."""
        mock_session.request.return_value = response_factory(201)

        acl_id = create_kafka_acl(kafka_client, iam_v1, acl)

        assert acl_id == IMPORT_ID
        assert mock_session.request.call_args.kwargs["json"]["principal"] == "User:101"

    def test_read_returns_configured_principal(
        self, kafka_client, iam_v1, mock_session, response_factory, acl
    ):
        """Test matches keep the resource-ID principal."""
        mock_session.request.return_value = response_factory(
            200, {"data": [acl.to_acl_data(principal="User:101").model_dump()]}
        )

        matches = read_kafka_acl(kafka_client, iam_v1, acl)

        assert matches == [acl]
        assert mock_session.request.call_args.kwargs["params"]["principal"] == "User:101"

    def test_read_missing(self, kafka_client, iam_v1, mock_session, response_factory, acl):
        """Test no match gives an empty list."""
        mock_session.request.return_value = response_factory(200, {"data": []})

        assert read_kafka_acl(kafka_client, iam_v1, acl) == []

    def test_delete(self, kafka_client, iam_v1, mock_session, response_factory, acl):
        """Test deletion reports the removed bindings."""
        mock_session.request.return_value = response_factory(
            200, {"data": [acl.to_acl_data(principal="User:101").model_dump()]}
        )

        assert delete_kafka_acl(kafka_client, iam_v1, acl) == 1

    def test_create_error(self, kafka_client, iam_v1, mock_session, response_factory, acl):
        """Test API errors propagate."""
        mock_session.request.return_value = response_factory(400, {"message": "bad"})

        with pytest.raises(ApiError):
            create_kafka_acl(kafka_client, iam_v1, acl)
