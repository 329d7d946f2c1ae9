"""Tests for one-time code issuing and verification.

Covers resend throttling, single use, lockout after repeated wrong codes
and expiry.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from courtcheck_tool.courts.constants import SK_OTP
from courtcheck_tool.courts.core.otp_operations import (
    codes_match,
    generate_code,
    get_challenge,
    hash_code,
    issue_challenge,
    verify_challenge,
)
from courtcheck_tool.courts.exceptions import (
    ConfigurationError,
    EmailDispatchError,
    InvalidOrExpiredError,
    RateLimitedError,
    ValidationError,
)
from courtcheck_tool.courts.utils import email_pk
from tests.conftest import NOW, OTP_SECRET, FailingDispatcher, wrong_code

_EMAIL = "player@example.com"


def _issue(client, dispatcher, now=NOW, email=_EMAIL, ttl=600, min_resend=60):
    return issue_challenge(
        client,
        dispatcher,
        email,
        secret=OTP_SECRET,
        ttl_seconds=ttl,
        min_resend_seconds=min_resend,
        now=now,
    )


def _verify(client, code, now=NOW, email=_EMAIL, max_attempts=5):
    verify_challenge(
        client, email, code, secret=OTP_SECRET, max_attempts=max_attempts, now=now
    )


class TestCodeHelpers:
    def test_generated_codes_are_six_digits(self):
        for _ in range(200):
            code = generate_code()
            assert len(code) == 6
            assert code.isdigit()

    def test_hash_is_bound_to_email(self):
        assert hash_code(OTP_SECRET, "a@example.com", "123456") != hash_code(
            OTP_SECRET, "b@example.com", "123456"
        )

    def test_hash_ignores_email_case(self):
        assert hash_code(OTP_SECRET, "A@Example.com", "123456") == hash_code(
            OTP_SECRET, "a@example.com", "123456"
        )

    def test_codes_match_rejects_non_hex(self):
        digest = hash_code(OTP_SECRET, _EMAIL, "123456")
        assert codes_match(digest, digest)
        assert not codes_match(digest, "zz")
        assert not codes_match(digest, digest[:-2])


class TestIssueChallenge:
    def test_first_request_stores_hash_not_code(self, client, dispatcher):
        result = _issue(client, dispatcher)

        assert result == {"email": _EMAIL, "expires_at": NOW + 600, "send_count": 1}
        row = client.get_item(email_pk(_EMAIL), SK_OTP)
        code = dispatcher.last_code()
        assert code not in row.values()
        assert row["otp_hash"] == hash_code(OTP_SECRET, _EMAIL, code)
        assert row["ttl"] == NOW + 600
        assert row["attempt_count"] == 0

    def test_email_is_normalized(self, client, dispatcher):
        result = _issue(client, dispatcher, email="  Player@Example.COM ")

        assert result["email"] == _EMAIL
        assert dispatcher.sent[-1][0] == _EMAIL

    def test_email_states_lifetime_in_minutes(self, client, dispatcher):
        _issue(client, dispatcher, ttl=600)
        assert "10 minutes" in dispatcher.sent[-1][2]

    def test_resend_within_interval_is_rate_limited(self, client, dispatcher):
        _issue(client, dispatcher)

        with pytest.raises(RateLimitedError):
            _issue(client, dispatcher, now=NOW + 30)
        assert len(dispatcher.sent) == 1

    def test_concurrent_requests_issue_one_code(self, client, dispatcher):
        def attempt(_):
            try:
                return _issue(client, dispatcher)
            except RateLimitedError:
                return None

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, range(16)))

        issued = [r for r in results if r is not None]
        assert len(issued) == 1
        assert issued[0]["send_count"] == 1
        assert results.count(None) == 15
        assert len(dispatcher.sent) == 1
        assert get_challenge(client, _EMAIL).send_count == 1

        code = dispatcher.last_code()
        with pytest.raises(InvalidOrExpiredError):
            _verify(client, wrong_code(code))
        _verify(client, code)

    def test_resend_after_interval_replaces_code(self, client, dispatcher):
        _issue(client, dispatcher)
        first_code = dispatcher.last_code()

        result = _issue(client, dispatcher, now=NOW + 61)
        second_code = dispatcher.last_code()

        assert result["send_count"] == 2
        if first_code != second_code:
            with pytest.raises(InvalidOrExpiredError):
                _verify(client, first_code, now=NOW + 62)
        _verify(client, second_code, now=NOW + 63)

    def test_resend_allowed_once_previous_code_expired(self, client, dispatcher):
        _issue(client, dispatcher, ttl=60, min_resend=600)

        _issue(client, dispatcher, now=NOW + 61, ttl=60, min_resend=600)

        assert len(dispatcher.sent) == 2

    def test_dispatch_failure_keeps_challenge(self, client):
        with pytest.raises(EmailDispatchError):
            _issue(client, FailingDispatcher())

        assert get_challenge(client, _EMAIL) is not None
        with pytest.raises(RateLimitedError):
            _issue(client, FailingDispatcher(), now=NOW + 5)

    def test_missing_secret(self, client, dispatcher):
        with pytest.raises(ConfigurationError):
            issue_challenge(
                client, dispatcher, _EMAIL, secret=None, ttl_seconds=600, min_resend_seconds=60
            )

    @pytest.mark.parametrize("ttl", [59, 3601])
    def test_ttl_out_of_bounds(self, client, dispatcher, ttl):
        with pytest.raises(ConfigurationError):
            _issue(client, dispatcher, ttl=ttl)

    def test_invalid_email(self, client, dispatcher):
        with pytest.raises(ValidationError):
            _issue(client, dispatcher, email="not-an-email")


class TestVerifyChallenge:
    def test_code_verifies_once(self, client, dispatcher):
        _issue(client, dispatcher)
        code = dispatcher.last_code()

        _verify(client, code, now=NOW + 10)

        with pytest.raises(InvalidOrExpiredError):
            _verify(client, code, now=NOW + 11)
        assert get_challenge(client, _EMAIL) is None

    def test_wrong_code_counts_attempt(self, client, dispatcher):
        _issue(client, dispatcher)
        code = dispatcher.last_code()

        with pytest.raises(InvalidOrExpiredError):
            _verify(client, wrong_code(code))

        assert get_challenge(client, _EMAIL).attempt_count == 1
        _verify(client, code)

    def test_lockout_after_max_attempts(self, client, dispatcher):
        _issue(client, dispatcher)
        code = dispatcher.last_code()

        for _ in range(3):
            with pytest.raises(InvalidOrExpiredError):
                _verify(client, wrong_code(code), max_attempts=3)

        assert get_challenge(client, _EMAIL) is None
        with pytest.raises(InvalidOrExpiredError):
            _verify(client, code, max_attempts=3)

    def test_expired_code_fails_and_is_removed(self, client, dispatcher):
        _issue(client, dispatcher, ttl=600)
        code = dispatcher.last_code()

        with pytest.raises(InvalidOrExpiredError):
            _verify(client, code, now=NOW + 600)

        assert client.get_item(email_pk(_EMAIL), SK_OTP) is None

    def test_unknown_email_fails_like_wrong_code(self, client):
        with pytest.raises(InvalidOrExpiredError) as excinfo:
            _verify(client, "123456")
        assert excinfo.value.message == "Invalid or expired code"

    @pytest.mark.parametrize("code", ["12345", "1234567", "12a456", ""])
    def test_malformed_code(self, client, code):
        with pytest.raises(ValidationError):
            _verify(client, code)

    def test_code_does_not_verify_for_another_email(self, client, dispatcher):
        _issue(client, dispatcher, email="a@example.com")
        _issue(client, dispatcher, email="b@example.com")
        code_for_b = dispatcher.last_code()

        with pytest.raises(InvalidOrExpiredError):
            _verify(client, code_for_b, email="a@example.com")
