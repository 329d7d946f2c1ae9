"""
Table management commands.
"""

from typing import Literal

import click

from ..constants import DEFAULT_TABLE_NAME
from ..core.table_operations import check_table_exists, create_table, drop_table
from ..exceptions import CourtCheckError, ValidationError
from ..logging_config import get_logger, setup_logging
from ..utils import output_json, output_text, validate_table_name
from .common import output_options, report_error

logger = get_logger(__name__)

_table_option = click.option(
    "--table",
    envvar="COURTCHECK_TABLE",
    default=DEFAULT_TABLE_NAME,
    show_default=True,
    help="DynamoDB table name",
)


@click.command("create")
@_table_option
@click.option("--region", envvar="AWS_REGION", help="AWS region")
@click.option("--profile", envvar="AWS_PROFILE", help="AWS profile")
@click.option(
    "--billing",
    type=click.Choice(["on-demand", "provisioned"]),
    default="on-demand",
    help="Billing mode (default: on-demand)",
)
@output_options
@click.pass_context
def create_table_command(
    ctx: click.Context,
    table: str,
    region: str | None,
    profile: str | None,
    billing: str,
    text: bool,
    verbose: int,
) -> None:
    """Create the courtcheck table.

    Creates a table with a string partition key (PK), string sort key (SK)
    and TTL on the ``ttl`` attribute. Waits until the table is active.

    Examples:

    \b
        # Create table with default name
        courtcheck-tool table create

    \b
        # Create with provisioned billing
        courtcheck-tool table create --table courts-dev --billing provisioned

    \b
    Output Format:
        Returns JSON with table details:
        {"table": "...", "status": "ACTIVE", "arn": "..."}
    """
    setup_logging(verbose)

    try:
        validate_table_name(table)
        logger.info(f"Creating table '{table}'")
        logger.debug(f"Region: {region}, Billing: {billing}")

        billing_mode: Literal["PAY_PER_REQUEST", "PROVISIONED"] = (
            "PAY_PER_REQUEST" if billing == "on-demand" else "PROVISIONED"
        )
        table_desc = create_table(table, region, profile, billing_mode)

        if text:
            output_text(f"Table '{table}' created")
            output_text(f"ARN: {table_desc['TableArn']}")
        else:
            output_json(
                {
                    "table": table,
                    "status": table_desc["TableStatus"],
                    "arn": table_desc["TableArn"],
                }
            )

    except CourtCheckError as e:
        report_error(ctx, e, text)


@click.command("drop")
@_table_option
@click.option("--region", envvar="AWS_REGION", help="AWS region")
@click.option("--profile", envvar="AWS_PROFILE", help="AWS profile")
@click.option("--approve", is_flag=True, help="Confirm deletion (required)")
@output_options
@click.pass_context
def drop_table_command(
    ctx: click.Context,
    table: str,
    region: str | None,
    profile: str | None,
    approve: bool,
    text: bool,
    verbose: int,
) -> None:
    """Drop the courtcheck table and every record in it.

    Requires --approve.

    Examples:

    \b
        courtcheck-tool table drop --table courts-dev --approve
    """
    setup_logging(verbose)

    try:
        if not approve:
            raise ValidationError("Table deletion requires --approve flag")

        logger.info(f"Dropping table '{table}'")
        table_desc = drop_table(table, region, profile)

        if text:
            output_text(f"Table '{table}' is being deleted")
        else:
            output_json({"table": table, "status": table_desc["TableStatus"]})

    except CourtCheckError as e:
        report_error(ctx, e, text)


@click.command("status")
@_table_option
@click.option("--region", envvar="AWS_REGION", help="AWS region")
@click.option("--profile", envvar="AWS_PROFILE", help="AWS profile")
@output_options
@click.pass_context
def table_status_command(
    ctx: click.Context,
    table: str,
    region: str | None,
    profile: str | None,
    text: bool,
    verbose: int,
) -> None:
    """Check whether the courtcheck table exists.

    \b
    Output Format:
        Returns JSON:
        {"table": "...", "exists": true}
    """
    setup_logging(verbose)

    try:
        exists = check_table_exists(table, region, profile)

        if text:
            output_text(f"Table '{table}' {'exists' if exists else 'does not exist'}")
        else:
            output_json({"table": table, "exists": exists})

    except CourtCheckError as e:
        report_error(ctx, e, text)
