"""
Table management operations for the courtcheck table.
"""

from typing import Any, Literal

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..constants import ATTR_PK, ATTR_SK, ATTR_TTL
from ..exceptions import StorageError, TableAlreadyExistsError, TableNotFoundError


def _dynamodb_client(region: str | None, profile: str | None) -> Any:
    try:
        session = boto3.Session(profile_name=profile, region_name=region)
        return session.client("dynamodb")
    except BotoCoreError as e:
        raise StorageError(f"AWS error: {e}") from e


def create_table(
    table_name: str,
    region: str | None = None,
    profile: str | None = None,
    billing_mode: Literal["PAY_PER_REQUEST", "PROVISIONED"] = "PAY_PER_REQUEST",
) -> dict[str, Any]:
    """
    Create the single courtcheck table.

    String PK/SK keys, no secondary indexes. TTL is enabled on the ``ttl``
    attribute so stale challenge rows are eventually removed by DynamoDB; the
    application never relies on that timing.

    Args:
        table_name: Table name
        region: AWS region (optional)
        profile: AWS profile (optional)
        billing_mode: Billing mode (PAY_PER_REQUEST or PROVISIONED)

    Returns:
        Table description

    Raises:
        TableAlreadyExistsError: If table already exists
    """
    dynamodb = _dynamodb_client(region, profile)

    kwargs: dict[str, Any] = {}
    if billing_mode == "PROVISIONED":
        kwargs["ProvisionedThroughput"] = {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5}

    try:
        response = dynamodb.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": ATTR_PK, "KeyType": "HASH"},  # Partition key
                {"AttributeName": ATTR_SK, "KeyType": "RANGE"},  # Sort key
            ],
            AttributeDefinitions=[
                {"AttributeName": ATTR_PK, "AttributeType": "S"},
                {"AttributeName": ATTR_SK, "AttributeType": "S"},
            ],
            BillingMode=billing_mode,
            Tags=[
                {"Key": "ManagedBy", "Value": "courtcheck-tool"},
            ],
            **kwargs,
        )

        dynamodb.get_waiter("table_exists").wait(TableName=table_name)
        dynamodb.update_time_to_live(
            TableName=table_name,
            TimeToLiveSpecification={"Enabled": True, "AttributeName": ATTR_TTL},
        )

        return response["TableDescription"]  # type: ignore[return-value]

    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            raise TableAlreadyExistsError(f"Table '{table_name}' already exists")
        raise StorageError(f"DynamoDB error: {e}") from e
    except BotoCoreError as e:
        raise StorageError(f"AWS error: {e}") from e


def drop_table(
    table_name: str, region: str | None = None, profile: str | None = None
) -> dict[str, Any]:
    """
    Drop the courtcheck table.

    Raises:
        TableNotFoundError: If table does not exist
    """
    dynamodb = _dynamodb_client(region, profile)

    try:
        response = dynamodb.delete_table(TableName=table_name)
        return response["TableDescription"]  # type: ignore[return-value]
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            raise TableNotFoundError(f"Table '{table_name}' not found")
        raise StorageError(f"DynamoDB error: {e}") from e
    except BotoCoreError as e:
        raise StorageError(f"AWS error: {e}") from e


def check_table_exists(
    table_name: str, region: str | None = None, profile: str | None = None
) -> bool:
    """
    Check if table exists.

    Returns:
        True if table exists, False otherwise
    """
    dynamodb = _dynamodb_client(region, profile)

    try:
        dynamodb.describe_table(TableName=table_name)
        return True
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            return False
        raise StorageError(f"DynamoDB error: {e}") from e
    except BotoCoreError as e:
        raise StorageError(f"AWS error: {e}") from e
