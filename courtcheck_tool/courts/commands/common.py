"""
Shared options and helpers for courtcheck commands.
"""

import json
from collections.abc import Callable
from typing import Any

import click

from ..config import check_bounds
from ..constants import DEFAULT_REQUEST_TIMEOUT, DEFAULT_TABLE_NAME, REQUEST_TIMEOUT_BOUNDS
from ..core.client import DynamoDBClient
from ..core.distance import (
    DistanceProvider,
    GoogleDistanceMatrixProvider,
    HaversineDistanceProvider,
)
from ..exceptions import CooldownActiveError, CourtCheckError, TooFarError
from ..utils import error_json, error_text

# Suggested next step per error kind
SOLUTIONS = {
    "validation_error": "Check the command arguments",
    "rate_limited": "Wait before requesting another code",
    "invalid_or_expired": "Request a new code with 'courtcheck-tool auth request'",
    "unauthorized": "Sign in again with 'courtcheck-tool auth verify'",
    "not_found": "Check the identifier",
    "conflict": "Retry the command",
    "cooldown_active": "Wait for the cooldown to end before checking in again",
    "too_far": "Move closer to the court",
    "invalid_resource": "This court cannot accept check-ins",
    "dependency_failure": "Retry later",
    "configuration_error": "Set the missing or invalid environment variable",
    "table_not_found": "Create the table with 'courtcheck-tool table create'",
    "table_exists": "Use a different table name or drop the existing table",
}


def storage_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """--table/--region/--profile/--timeout, backed by environment variables."""
    func = click.option(
        "--timeout",
        envvar="COURTCHECK_REQUEST_TIMEOUT",
        type=int,
        default=DEFAULT_REQUEST_TIMEOUT,
        show_default=True,
        help="Timeout in seconds for each AWS or HTTP call",
    )(func)
    func = click.option("--profile", envvar="AWS_PROFILE", help="AWS profile")(func)
    func = click.option("--region", envvar="AWS_REGION", help="AWS region")(func)
    func = click.option(
        "--table",
        envvar="COURTCHECK_TABLE",
        default=DEFAULT_TABLE_NAME,
        show_default=True,
        help="DynamoDB table name",
    )(func)
    return func


def output_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """--text/--verbose."""
    func = click.option(
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v INFO, -vv DEBUG, -vvv TRACE)",
    )(func)
    func = click.option("--text", is_flag=True, help="Output as human-readable text")(func)
    return func


def open_client(
    table: str, region: str | None, profile: str | None, timeout: int
) -> DynamoDBClient:
    timeout = check_bounds("COURTCHECK_REQUEST_TIMEOUT", timeout, *REQUEST_TIMEOUT_BOUNDS)
    return DynamoDBClient(table, region, profile, timeout=timeout)


def build_distance_provider(google_api_key: str | None, timeout: int) -> DistanceProvider:
    """Travel distance when a Google key is configured, great-circle otherwise."""
    if google_api_key:
        return GoogleDistanceMatrixProvider(google_api_key, timeout=timeout)
    return HaversineDistanceProvider()


def report_error(ctx: click.Context, error: CourtCheckError, text: bool) -> None:
    """Print an error in the selected format and exit with its code."""
    solution = SOLUTIONS.get(error.kind, "Check table exists and AWS credentials")
    if text:
        click.echo(error_text(error.message, solution), err=True)
    else:
        payload = error_json(error.message, error.kind, solution, error.exit_code)
        if isinstance(error, CooldownActiveError) and error.retry_after_seconds is not None:
            payload["retry_after_seconds"] = error.retry_after_seconds
        if isinstance(error, TooFarError) and error.distance_miles is not None:
            payload["distance_miles"] = round(error.distance_miles, 3)
        click.echo(json.dumps(payload), err=True)
    ctx.exit(error.exit_code)
