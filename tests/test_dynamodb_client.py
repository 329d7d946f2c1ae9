"""Tests for the DynamoDB backend with boto3 mocked out."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, ProfileNotFound

from courtcheck_tool.courts.core.client import (
    DynamoDBClient,
    build_update_expression,
    from_dynamo,
    to_dynamo,
)
from courtcheck_tool.courts.core.conditions import ItemExists, ItemNotExists
from courtcheck_tool.courts.core.storage import TransactPut, TransactUpdate, UpdateSpec
from courtcheck_tool.courts.exceptions import (
    AWSPermissionError,
    AWSThrottlingError,
    ConditionFailedError,
    StorageError,
    TableNotFoundError,
    TransactionCanceledError,
)


def _client_error(code: str, **extra) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}, **extra}, "Operation")


@pytest.fixture
def session():
    with patch("courtcheck_tool.courts.core.client.boto3.Session") as session_cls:
        yield session_cls.return_value


@pytest.fixture
def dynamo(session):
    return DynamoDBClient("courts-test", region="us-east-1", timeout=5)


@pytest.fixture
def table(session):
    return session.resource.return_value.Table.return_value


@pytest.fixture
def low_level(session):
    return session.client.return_value


class TestValueConversion:
    def test_floats_become_decimals(self):
        assert to_dynamo({"lat": 40.5, "tags": [1.25], "ok": True}) == {
            "lat": Decimal("40.5"),
            "tags": [Decimal("1.25")],
            "ok": True,
        }

    def test_decimals_become_numbers(self):
        assert from_dynamo({"n": Decimal("3"), "lat": Decimal("40.5")}) == {"n": 3, "lat": 40.5}
        assert isinstance(from_dynamo(Decimal("3")), int)


class TestUpdateExpression:
    def test_set_and_add(self):
        expression, names, values = build_update_expression(
            UpdateSpec(set_values={"status": "LOW"}, increments={"checkin_count": 1})
        )

        assert expression == "SET #s0 = :s0 ADD #a0 :a0"
        assert names == {"#s0": "status", "#a0": "checkin_count"}
        assert values == {":s0": "LOW", ":a0": 1}


class TestReads:
    def test_get_item_passes_consistent_read(self, dynamo, table):
        table.get_item.return_value = {"Item": {"PK": "A", "SK": "B", "n": Decimal("2")}}

        item = dynamo.get_item("A", "B", consistent_read=True)

        table.get_item.assert_called_once_with(Key={"PK": "A", "SK": "B"}, ConsistentRead=True)
        assert item == {"PK": "A", "SK": "B", "n": 2}

    def test_get_missing_item(self, dynamo, table):
        table.get_item.return_value = {}
        assert dynamo.get_item("A", "B") is None

    def test_query_follows_pagination(self, dynamo, table):
        table.query.side_effect = [
            {"Items": [{"SK": "1"}], "LastEvaluatedKey": {"PK": "A", "SK": "1"}},
            {"Items": [{"SK": "2"}]},
        ]

        items = dynamo.query("A", sk_prefix="CHECKIN#")

        assert [i["SK"] for i in items] == ["1", "2"]
        second_call = table.query.call_args_list[1].kwargs
        assert second_call["ExclusiveStartKey"] == {"PK": "A", "SK": "1"}
        assert second_call["ScanIndexForward"] is True


class TestWrites:
    def test_update_returns_new_values(self, dynamo, table):
        table.update_item.return_value = {"Attributes": {"attempt_count": Decimal("1")}}

        row = dynamo.update_item(
            "A", "B", UpdateSpec(increments={"attempt_count": 1}), return_values=True
        )

        kwargs = table.update_item.call_args.kwargs
        assert kwargs["ReturnValues"] == "ALL_NEW"
        assert kwargs["UpdateExpression"] == "ADD #a0 :a0"
        assert row == {"attempt_count": 1}

    def test_put_with_condition(self, dynamo, table):
        dynamo.put_item({"PK": "A", "SK": "B", "lat": 1.5}, condition=ItemNotExists())

        kwargs = table.put_item.call_args.kwargs
        assert kwargs["Item"]["lat"] == Decimal("1.5")
        assert "ConditionExpression" in kwargs

    def test_transaction_items_are_serialized(self, dynamo, low_level):
        dynamo.transact_write(
            [
                TransactPut({"PK": "E", "SK": "1", "lat": 2.5}, condition=ItemNotExists()),
                TransactUpdate(
                    "U", "P", UpdateSpec(increments={"n": 1}), condition=ItemExists()
                ),
            ]
        )

        items = low_level.transact_write_items.call_args.kwargs["TransactItems"]
        put = items[0]["Put"]
        update = items[1]["Update"]
        assert put["TableName"] == "courts-test"
        assert put["Item"]["lat"] == {"N": "2.5"}
        assert put["ConditionExpression"] == "attribute_not_exists(#n0)"
        assert put["ExpressionAttributeNames"] == {"#n0": "PK"}
        assert update["Key"] == {"PK": {"S": "U"}, "SK": {"S": "P"}}
        assert update["UpdateExpression"] == "ADD #a0 :a0"
        assert update["ExpressionAttributeValues"] == {":a0": {"N": "1"}}
        assert update["ExpressionAttributeNames"] == {"#a0": "n", "#n0": "PK"}


class TestErrorMapping:
    def test_condition_failed(self, dynamo, table):
        table.put_item.side_effect = _client_error("ConditionalCheckFailedException")

        with pytest.raises(ConditionFailedError):
            dynamo.put_item({"PK": "A", "SK": "B"}, condition=ItemNotExists())

    def test_transaction_canceled_keeps_reasons(self, dynamo, low_level):
        low_level.transact_write_items.side_effect = _client_error(
            "TransactionCanceledException",
            CancellationReasons=[
                {"Code": "None"},
                {"Code": "ConditionalCheckFailed"},
                {"Code": "None"},
            ],
        )

        with pytest.raises(TransactionCanceledError) as excinfo:
            dynamo.transact_write([TransactPut({"PK": "A", "SK": "B"})])

        assert excinfo.value.condition_failed_indexes() == [1]

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("ResourceNotFoundException", TableNotFoundError),
            ("ProvisionedThroughputExceededException", AWSThrottlingError),
            ("AccessDeniedException", AWSPermissionError),
            ("InternalServerError", StorageError),
        ],
    )
    def test_client_errors(self, dynamo, table, code, expected):
        table.get_item.side_effect = _client_error(code)

        with pytest.raises(expected):
            dynamo.get_item("A", "B")

    def test_transport_error(self, dynamo, table):
        table.delete_item.side_effect = EndpointConnectionError(endpoint_url="http://x")

        with pytest.raises(StorageError):
            dynamo.delete_item("A", "B")

    def test_empty_transaction(self, dynamo):
        with pytest.raises(StorageError):
            dynamo.transact_write([])


def test_client_uses_timeout(session):
    DynamoDBClient("courts-test", timeout=7)

    config = session.resource.call_args.kwargs["config"]
    assert config.connect_timeout == 7
    assert config.read_timeout == 7


def test_unknown_profile_is_a_storage_error():
    with patch("courtcheck_tool.courts.core.client.boto3.Session") as session_cls:
        session_cls.side_effect = ProfileNotFound(profile="nope")

        with pytest.raises(StorageError) as excinfo:
            DynamoDBClient("courts-test", profile="nope")
    assert "nope" in excinfo.value.message
