"""
DynamoDB storage backend with error handling.
"""

from decimal import Decimal
from typing import Any

import boto3
from boto3.dynamodb.conditions import ConditionExpressionBuilder, Key
from boto3.dynamodb.types import TypeSerializer
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..constants import ATTR_PK, ATTR_SK, DEFAULT_REQUEST_TIMEOUT, MAX_TRANSACTION_OPERATIONS
from ..exceptions import (
    AWSPermissionError,
    AWSThrottlingError,
    ConditionFailedError,
    StorageError,
    TableNotFoundError,
    TransactionCanceledError,
)
from ..logging_config import get_logger
from .conditions import Condition
from .storage import StorageBackend, TransactOperation, TransactPut, TransactUpdate, UpdateSpec

logger = get_logger(__name__)

_THROTTLING_CODES = {
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "RequestLimitExceeded",
}


def to_dynamo(value: Any) -> Any:
    """Convert floats to Decimal (recursively) so boto3 can serialize them."""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: to_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_dynamo(v) for v in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Convert Decimal back to int or float (recursively)."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


def build_update_expression(changes: UpdateSpec) -> tuple[str, dict[str, str], dict[str, Any]]:
    """
    Build a SET/ADD update expression with its placeholders.

    Args:
        changes: Field changes to apply

    Returns:
        Tuple of (expression, attribute names, attribute values)
    """
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    set_parts = []
    add_parts = []

    for idx, (attr, value) in enumerate(changes.set_values.items()):
        names[f"#s{idx}"] = attr
        values[f":s{idx}"] = to_dynamo(value)
        set_parts.append(f"#s{idx} = :s{idx}")

    for idx, (attr, value) in enumerate(changes.increments.items()):
        names[f"#a{idx}"] = attr
        values[f":a{idx}"] = to_dynamo(value)
        add_parts.append(f"#a{idx} :a{idx}")

    clauses = []
    if set_parts:
        clauses.append("SET " + ", ".join(set_parts))
    if add_parts:
        clauses.append("ADD " + ", ".join(add_parts))
    return " ".join(clauses), names, values


class DynamoDBClient(StorageBackend):
    """DynamoDB client wrapper with error handling."""

    def __init__(
        self,
        table_name: str,
        region: str | None = None,
        profile: str | None = None,
        timeout: int = DEFAULT_REQUEST_TIMEOUT,
    ):
        """
        Initialize DynamoDB client.

        Args:
            table_name: DynamoDB table name
            region: AWS region (optional, uses SDK default)
            profile: AWS profile (optional, uses SDK default)
            timeout: Connect/read timeout in seconds for every call
        """
        config = Config(
            connect_timeout=timeout,
            read_timeout=timeout,
            retries={"max_attempts": 3, "mode": "standard"},
        )
        try:
            session = boto3.Session(profile_name=profile, region_name=region)
            self.dynamodb = session.resource("dynamodb", config=config)
            self.client = session.client("dynamodb", config=config)
        except BotoCoreError as e:
            raise StorageError(f"AWS error: {e}") from e
        self.table = self.dynamodb.Table(table_name)
        self.table_name = table_name
        self._serializer = TypeSerializer()

    def get_item(self, pk: str, sk: str, consistent_read: bool = False) -> dict[str, Any] | None:
        """
        Get item by key.

        Args:
            pk: Partition key
            sk: Sort key
            consistent_read: Use a strongly consistent read

        Returns:
            Item if found, None otherwise

        Raises:
            StorageError: For DynamoDB errors
        """
        try:
            response = self.table.get_item(
                Key={ATTR_PK: pk, ATTR_SK: sk}, ConsistentRead=consistent_read
            )
        except (ClientError, BotoCoreError) as e:
            self._handle_error(e)
            raise  # For type checker
        item = response.get("Item")
        return from_dynamo(item) if item is not None else None

    def put_item(self, item: dict[str, Any], condition: Condition | None = None) -> None:
        """
        Put item with optional condition.

        Raises:
            ConditionFailedError: If condition fails
            StorageError: For other DynamoDB errors
        """
        kwargs: dict[str, Any] = {"Item": to_dynamo(item)}
        if condition is not None:
            kwargs["ConditionExpression"] = condition.to_expression()
        try:
            self.table.put_item(**kwargs)
        except (ClientError, BotoCoreError) as e:
            self._handle_error(e)
            raise  # For type checker

    def update_item(
        self,
        pk: str,
        sk: str,
        changes: UpdateSpec,
        condition: Condition | None = None,
        return_values: bool = False,
    ) -> dict[str, Any] | None:
        """
        Update item attributes with optional condition.

        Raises:
            ConditionFailedError: If condition fails
            StorageError: For other DynamoDB errors
        """
        if changes.is_empty():
            raise StorageError("Update requires at least one change")

        expression, names, values = build_update_expression(changes)
        kwargs: dict[str, Any] = {
            "Key": {ATTR_PK: pk, ATTR_SK: sk},
            "UpdateExpression": expression,
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": values,
            "ReturnValues": "ALL_NEW" if return_values else "NONE",
        }
        if condition is not None:
            kwargs["ConditionExpression"] = condition.to_expression()

        try:
            response = self.table.update_item(**kwargs)
        except (ClientError, BotoCoreError) as e:
            self._handle_error(e)
            raise  # For type checker

        if not return_values:
            return None
        return from_dynamo(response.get("Attributes", {}))

    def delete_item(self, pk: str, sk: str) -> None:
        """
        Delete item. Deleting a missing key succeeds.

        Raises:
            StorageError: For DynamoDB errors
        """
        try:
            self.table.delete_item(Key={ATTR_PK: pk, ATTR_SK: sk})
        except (ClientError, BotoCoreError) as e:
            self._handle_error(e)
            raise  # For type checker

    def query(
        self, pk: str, sk_prefix: str | None = None, descending: bool = False
    ) -> list[dict[str, Any]]:
        """
        Query a partition, following pagination until exhausted.

        Args:
            pk: Partition key
            sk_prefix: Optional sort key prefix
            descending: Return items in descending sort key order

        Returns:
            List of items

        Raises:
            StorageError: For DynamoDB errors
        """
        key_condition = Key(ATTR_PK).eq(pk)
        if sk_prefix:
            key_condition = key_condition & Key(ATTR_SK).begins_with(sk_prefix)

        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": not descending,
        }
        items: list[dict[str, Any]] = []
        try:
            while True:
                response = self.table.query(**kwargs)
                items.extend(from_dynamo(item) for item in response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            self._handle_error(e)
            raise  # For type checker
        return items

    def transact_write(self, operations: list[TransactOperation]) -> None:
        """
        Execute put/update operations atomically using TransactWriteItems.

        Raises:
            TransactionCanceledError: If any precondition fails (nothing is written)
            StorageError: For validation or DynamoDB errors
        """
        if not operations:
            raise StorageError("Transaction requires at least one operation")
        if len(operations) > MAX_TRANSACTION_OPERATIONS:
            raise StorageError(
                f"Transaction cannot exceed {MAX_TRANSACTION_OPERATIONS} operations"
            )

        transact_items = [self._build_transact_item(op) for op in operations]
        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except (ClientError, BotoCoreError) as e:
            self._handle_error(e)
            raise  # For type checker

    def _build_transact_item(self, operation: TransactOperation) -> dict[str, Any]:
        """Build a low-level transact item with serialized values."""
        names: dict[str, str] = {}
        values: dict[str, Any] = {}
        body: dict[str, Any] = {"TableName": self.table_name}

        if isinstance(operation, TransactPut):
            action = "Put"
            body["Item"] = self._serialize(to_dynamo(operation.item))
        elif isinstance(operation, TransactUpdate):
            action = "Update"
            expression, names, values = build_update_expression(operation.changes)
            body["Key"] = self._serialize({ATTR_PK: operation.pk, ATTR_SK: operation.sk})
            body["UpdateExpression"] = expression
        else:
            raise StorageError(f"Unsupported transaction operation: {operation!r}")

        if operation.condition is not None:
            built = ConditionExpressionBuilder().build_expression(
                operation.condition.to_expression()
            )
            body["ConditionExpression"] = built.condition_expression
            names.update(built.attribute_name_placeholders)
            values.update(to_dynamo(built.attribute_value_placeholders))

        if names:
            body["ExpressionAttributeNames"] = names
        if values:
            body["ExpressionAttributeValues"] = self._serialize(values)
        return {action: body}

    def _serialize(self, values: dict[str, Any]) -> dict[str, Any]:
        return {k: self._serializer.serialize(v) for k, v in values.items()}

    def _handle_error(self, error: ClientError | BotoCoreError) -> None:
        """
        Convert boto3 errors to courtcheck storage exceptions.

        Raises:
            ConditionFailedError: If condition check failed
            TransactionCanceledError: If a transaction was canceled
            TableNotFoundError: If table not found
            AWSThrottlingError: If throttled
            AWSPermissionError: If permission denied
            StorageError: For other errors
        """
        if isinstance(error, BotoCoreError):
            raise StorageError(f"DynamoDB unreachable: {error}")

        code = error.response.get("Error", {}).get("Code", "")

        if code == "ConditionalCheckFailedException":
            raise ConditionFailedError(f"Condition failed: {error}")
        elif code == "TransactionCanceledException":
            reasons = [
                reason.get("Code") for reason in error.response.get("CancellationReasons", [])
            ]
            logger.debug(f"Transaction canceled, reasons: {reasons}")
            raise TransactionCanceledError("Transaction canceled", reasons)
        elif code == "ResourceNotFoundException":
            raise TableNotFoundError(f"Table '{self.table_name}' not found")
        elif code in _THROTTLING_CODES:
            raise AWSThrottlingError("DynamoDB throttling - retry with backoff")
        elif code == "AccessDeniedException":
            raise AWSPermissionError("AWS permission denied")
        else:
            raise StorageError(f"DynamoDB error: {error}")
