"""
Outbound email for one-time codes.
"""

import math
from abc import ABC, abstractmethod

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..constants import DEFAULT_REQUEST_TIMEOUT
from ..exceptions import EmailDispatchError
from ..logging_config import get_logger

logger = get_logger(__name__)

OTP_EMAIL_SUBJECT = "Your verification code"


def build_otp_email(code: str, ttl_seconds: int) -> tuple[str, str]:
    """
    Render the plain-text verification email.

    Args:
        code: Plaintext one-time code
        ttl_seconds: Code lifetime, stated to the user in whole minutes

    Returns:
        Tuple of (subject, body)
    """
    minutes = math.ceil(ttl_seconds / 60)
    body = (
        f"Your verification code is: {code}\n\n"
        f"This code will expire in {minutes} minutes.\n\n"
        "If you didn't request this, you can ignore this email."
    )
    return OTP_EMAIL_SUBJECT, body


class EmailDispatcher(ABC):
    """Sends a single plain-text email."""

    @abstractmethod
    def send(self, to_address: str, subject: str, body: str) -> None:
        """
        Send an email.

        Raises:
            EmailDispatchError: If the message could not be handed off
        """


class SesEmailDispatcher(EmailDispatcher):
    """Amazon SES implementation."""

    def __init__(
        self,
        from_address: str,
        region: str | None = None,
        profile: str | None = None,
        timeout: int = DEFAULT_REQUEST_TIMEOUT,
    ):
        config = Config(connect_timeout=timeout, read_timeout=timeout)
        try:
            session = boto3.Session(profile_name=profile, region_name=region)
            self.client = session.client("ses", config=config)
        except BotoCoreError as e:
            logger.warning(f"SES client setup failed: {e}")
            raise EmailDispatchError("Failed to set up email client") from e
        self.from_address = from_address

    def send(self, to_address: str, subject: str, body: str) -> None:
        try:
            self.client.send_email(
                Source=self.from_address,
                Destination={"ToAddresses": [to_address]},
                Message={
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {"Text": {"Data": body, "Charset": "UTF-8"}},
                },
            )
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"SES send_email failed: {e}")
            raise EmailDispatchError("Failed to send email")
