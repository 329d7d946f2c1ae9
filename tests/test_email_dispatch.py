"""Tests for verification emails and the SES dispatcher."""

from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError, ProfileNotFound

from courtcheck_tool.courts.core.email_dispatch import SesEmailDispatcher, build_otp_email
from courtcheck_tool.courts.exceptions import EmailDispatchError


class TestBuildOtpEmail:
    def test_contains_code_and_minutes(self):
        subject, body = build_otp_email("042913", 600)

        assert subject == "Your verification code"
        assert "042913" in body
        assert "10 minutes" in body

    def test_partial_minutes_round_up(self):
        _, body = build_otp_email("000001", 90)
        assert "2 minutes" in body


class TestSesEmailDispatcher:
    @pytest.fixture
    def ses(self):
        with patch("courtcheck_tool.courts.core.email_dispatch.boto3.Session") as session_cls:
            yield session_cls.return_value.client.return_value

    def test_sends_plain_text(self, ses):
        SesEmailDispatcher("noreply@courtcheck.app").send("sam@example.com", "Hi", "Body")

        kwargs = ses.send_email.call_args.kwargs
        assert kwargs["Source"] == "noreply@courtcheck.app"
        assert kwargs["Destination"] == {"ToAddresses": ["sam@example.com"]}
        assert kwargs["Message"]["Body"]["Text"]["Data"] == "Body"

    def test_provider_error(self, ses):
        ses.send_email.side_effect = ClientError(
            {"Error": {"Code": "MessageRejected", "Message": "Email address is not verified"}},
            "SendEmail",
        )

        with pytest.raises(EmailDispatchError) as excinfo:
            SesEmailDispatcher("noreply@courtcheck.app").send("sam@example.com", "Hi", "Body")
        assert excinfo.value.kind == "dependency_failure"

    def test_unknown_profile(self):
        with patch("courtcheck_tool.courts.core.email_dispatch.boto3.Session") as session_cls:
            session_cls.side_effect = ProfileNotFound(profile="nope")

            with pytest.raises(EmailDispatchError):
                SesEmailDispatcher("noreply@courtcheck.app", profile="nope")
