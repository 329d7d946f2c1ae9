"""
Account commands for the signed-in user.
"""

import click

from ..core.account_operations import (
    attach_billing_reference,
    authenticate_session,
    update_display_name,
)
from ..exceptions import CourtCheckError
from ..logging_config import get_logger, setup_logging
from ..utils import output_json, output_text
from .common import open_client, output_options, report_error, storage_options

logger = get_logger(__name__)


@click.command("rename")
@click.argument("name")
@click.option("--token", envvar="COURTCHECK_TOKEN", help="Session token")
@click.option("--jwt-secret", envvar="JWT_SECRET", help="Secret used to sign session tokens")
@storage_options
@output_options
@click.pass_context
def rename_command(
    ctx: click.Context,
    name: str,
    token: str | None,
    jwt_secret: str | None,
    table: str,
    region: str | None,
    profile: str | None,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Change your display name.

    Examples:

    \b
        courtcheck-tool account rename "Sam P."

    \b
    Output Format:
        Returns JSON:
        {"userId": "...", "name": "Sam P.", "checkinCount": 3}
    """
    setup_logging(verbose)

    try:
        client = open_client(table, region, profile, timeout)
        account = authenticate_session(client, token, secret=jwt_secret)
        logger.info(f"Renaming user {account.user_id}")
        user_profile = update_display_name(client, account.user_id, name)

        if text:
            output_text(f"Name set to {user_profile.name}")
        else:
            output_json(
                {
                    "userId": user_profile.user_id,
                    "name": user_profile.name,
                    "checkinCount": user_profile.checkin_count,
                }
            )

    except CourtCheckError as e:
        report_error(ctx, e, text)


@click.command("set-billing")
@click.argument("reference")
@click.option("--token", envvar="COURTCHECK_TOKEN", help="Session token")
@click.option("--jwt-secret", envvar="JWT_SECRET", help="Secret used to sign session tokens")
@storage_options
@output_options
@click.pass_context
def set_billing_command(
    ctx: click.Context,
    reference: str,
    token: str | None,
    jwt_secret: str | None,
    table: str,
    region: str | None,
    profile: str | None,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Attach an external billing customer reference to your profile.

    Examples:

    \b
        courtcheck-tool account set-billing cus_Q1w2E3r4
    """
    setup_logging(verbose)

    try:
        client = open_client(table, region, profile, timeout)
        account = authenticate_session(client, token, secret=jwt_secret)
        attach_billing_reference(client, account.user_id, reference)

        if text:
            output_text("Billing reference saved")
        else:
            output_json({"userId": account.user_id, "billingReference": reference.strip()})

    except CourtCheckError as e:
        report_error(ctx, e, text)
