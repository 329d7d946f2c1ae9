"""
Sign-in commands.
"""

import click

from ..config import require_setting
from ..constants import DEFAULT_OTP_MAX_ATTEMPTS, DEFAULT_OTP_MIN_RESEND, DEFAULT_OTP_TTL
from ..core.account_operations import authenticate_session, require_profile
from ..core.auth_operations import complete_sign_in, request_sign_in
from ..core.email_dispatch import SesEmailDispatcher
from ..exceptions import CourtCheckError
from ..logging_config import get_logger, setup_logging
from ..utils import output_json, output_text
from .common import open_client, output_options, report_error, storage_options

logger = get_logger(__name__)


@click.command("request")
@click.argument("email")
@click.option("--otp-secret", envvar="OTP_SECRET", help="Secret used to hash codes")
@click.option("--from-email", envvar="SES_FROM_EMAIL", help="Sender address for codes")
@click.option(
    "--ttl",
    envvar="OTP_TTL_SECONDS",
    type=int,
    default=DEFAULT_OTP_TTL,
    show_default=True,
    help="Code lifetime in seconds (60-3600)",
)
@click.option(
    "--min-resend",
    envvar="OTP_MIN_RESEND_SECONDS",
    type=int,
    default=DEFAULT_OTP_MIN_RESEND,
    show_default=True,
    help="Minimum seconds between codes (0-600)",
)
@storage_options
@output_options
@click.pass_context
def request_command(
    ctx: click.Context,
    email: str,
    otp_secret: str | None,
    from_email: str | None,
    ttl: int,
    min_resend: int,
    table: str,
    region: str | None,
    profile: str | None,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Email a six digit sign-in code.

    Only one code is active per email. A new code replaces the old one once
    the resend interval has passed.

    Examples:

    \b
        courtcheck-tool auth request player@example.com

    \b
    Output Format:
        Returns JSON:
        {"email": "player@example.com", "expires_at": 1234567890, "send_count": 1}
    """
    setup_logging(verbose)

    try:
        sender = require_setting("SES_FROM_EMAIL", from_email)
        client = open_client(table, region, profile, timeout)
        dispatcher = SesEmailDispatcher(sender, region, profile, timeout=timeout)
        result = request_sign_in(
            client,
            dispatcher,
            email,
            otp_secret=otp_secret,
            ttl_seconds=ttl,
            min_resend_seconds=min_resend,
        )

        if text:
            output_text(f"Code sent to {result['email']}")
        else:
            output_json(result)

    except CourtCheckError as e:
        report_error(ctx, e, text)


@click.command("verify")
@click.argument("email")
@click.argument("code")
@click.option("--name", help="Display name for a new account (default: email local part)")
@click.option("--otp-secret", envvar="OTP_SECRET", help="Secret used to hash codes")
@click.option("--jwt-secret", envvar="JWT_SECRET", help="Secret used to sign session tokens")
@click.option(
    "--max-attempts",
    envvar="OTP_MAX_ATTEMPTS",
    type=int,
    default=DEFAULT_OTP_MAX_ATTEMPTS,
    show_default=True,
    help="Wrong codes allowed before the code is revoked (1-20)",
)
@click.option(
    "--env",
    "environment",
    envvar="COURTCHECK_ENV",
    default="development",
    help="Deployment environment; 'production' marks the session cookie secure",
)
@storage_options
@output_options
@click.pass_context
def verify_command(
    ctx: click.Context,
    email: str,
    code: str,
    name: str | None,
    otp_secret: str | None,
    jwt_secret: str | None,
    max_attempts: int,
    environment: str,
    table: str,
    region: str | None,
    profile: str | None,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Exchange a code for a session token.

    Signs in an existing account or registers a new one.

    Examples:

    \b
        courtcheck-tool auth verify player@example.com 042913 --name "Sam"

    \b
    Output Format:
        Returns JSON:
        {"user": {"userId": "...", "email": "...", "name": "Sam"},
         "token": "eyJ...", "created": true, "cookie": {...}}
    """
    setup_logging(verbose)

    try:
        client = open_client(table, region, profile, timeout)
        logger.info(f"Verifying code for {email}")
        result = complete_sign_in(
            client,
            email,
            code,
            name,
            otp_secret=otp_secret,
            token_secret=jwt_secret,
            max_attempts=max_attempts,
            production=environment == "production",
        )

        if text:
            verb = "Registered" if result.created else "Signed in"
            output_text(f"{verb} {result.user['email']} ({result.user['name']})")
            output_text(result.token)
        else:
            output_json({**result.to_dict(), "cookie": result.cookie})

    except CourtCheckError as e:
        report_error(ctx, e, text)


@click.command("whoami")
@click.option("--token", envvar="COURTCHECK_TOKEN", help="Session token")
@click.option("--jwt-secret", envvar="JWT_SECRET", help="Secret used to sign session tokens")
@storage_options
@output_options
@click.pass_context
def whoami_command(
    ctx: click.Context,
    token: str | None,
    jwt_secret: str | None,
    table: str,
    region: str | None,
    profile: str | None,
    timeout: int,
    text: bool,
    verbose: int,
) -> None:
    """Show the account behind a session token.

    \b
    Output Format:
        Returns JSON:
        {"userId": "...", "email": "...", "name": "...", "checkinCount": 3}
    """
    setup_logging(verbose)

    try:
        client = open_client(table, region, profile, timeout)
        account = authenticate_session(client, token, secret=jwt_secret)
        user_profile = require_profile(client, account.user_id)

        if text:
            output_text(f"{account.email} ({user_profile.name})")
        else:
            output_json(
                {
                    "userId": account.user_id,
                    "email": account.email,
                    "name": user_profile.name,
                    "checkinCount": user_profile.checkin_count,
                }
            )

    except CourtCheckError as e:
        report_error(ctx, e, text)
