"""
Utility functions for courtcheck operations.
"""

import json
import math
import re
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse

from .constants import (
    MAX_EMAIL_LENGTH,
    OTP_CODE_LENGTH,
    PREFIX_CHECKIN,
    PREFIX_EMAIL,
    PREFIX_RESOURCE,
    PREFIX_USER,
)
from .exceptions import ValidationError
from .models import CourtStatus

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def format_key(prefix: str, key: str) -> str:
    """
    Format a key with namespace prefix.

    Args:
        prefix: Namespace prefix (e.g., 'EMAIL', 'USER', 'RESOURCE')
        key: Identifier

    Returns:
        Formatted key with prefix (e.g., 'EMAIL#a@b.com')
    """
    return f"{prefix}#{key}"


def email_pk(email: str) -> str:
    return format_key(PREFIX_EMAIL, email)


def user_pk(user_id: str) -> str:
    return format_key(PREFIX_USER, user_id)


def resource_sk(resource_id: str) -> str:
    return format_key(PREFIX_RESOURCE, resource_id)


def checkin_pk(resource_id: str) -> str:
    return format_key(PREFIX_RESOURCE, resource_id)


def checkin_sk(created_at: str, checkin_id: str) -> str:
    return f"{PREFIX_CHECKIN}#{created_at}#{checkin_id}"


def iso_timestamp(epoch_seconds: float) -> str:
    """
    Render epoch seconds as a sortable ISO-8601 UTC string.

    Millisecond precision with a trailing 'Z', so lexicographic order equals
    chronological order inside sort keys.
    """
    moment = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_iso_timestamp(value: str) -> float:
    """Parse an ISO-8601 timestamp back to epoch seconds."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value).timestamp()


def normalize_email(email: str | None) -> str:
    """
    Trim, lower-case and validate an email address.

    Not RFC-complete; good enough as an input guard.

    Raises:
        ValidationError: If the email is malformed
    """
    normalized = (email or "").strip().lower()
    if not normalized or len(normalized) > MAX_EMAIL_LENGTH:
        raise ValidationError("Invalid email")
    if not _EMAIL_PATTERN.match(normalized):
        raise ValidationError("Invalid email")
    return normalized


def validate_code(code: str | None) -> str:
    """
    Validate a one-time code: exactly six ASCII digits.

    Raises:
        ValidationError: If the code is malformed
    """
    code = (code or "").strip()
    if len(code) != OTP_CODE_LENGTH or not all(c in "0123456789" for c in code):
        raise ValidationError("Invalid code")
    return code


def validate_coordinates(latitude: Any, longitude: Any) -> tuple[float, float]:
    """
    Validate a latitude/longitude pair.

    Raises:
        ValidationError: If either value is not a finite number or is out of range
    """
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        raise ValidationError("Invalid lat/long")
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValidationError("Invalid lat/long")
    if lat < -90 or lat > 90 or lng < -180 or lng > 180:
        raise ValidationError("lat/long out of range")
    return lat, lng


def parse_status(value: str | CourtStatus) -> CourtStatus:
    """
    Parse a court status value.

    Raises:
        ValidationError: If the value is not a known status
    """
    if isinstance(value, CourtStatus):
        return value
    try:
        return CourtStatus(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(s.value for s in CourtStatus)
        raise ValidationError(f"Invalid status (expected one of: {allowed})")


def output_json(data: dict[str, Any], quiet: bool = False) -> None:
    """
    Output JSON to stdout.

    Args:
        data: Data to output as JSON
        quiet: If True, suppress output
    """
    if not quiet:
        print(json.dumps(data, default=str))


def output_text(message: str, quiet: bool = False) -> None:
    """
    Output text to stdout.

    Args:
        message: Message to output
        quiet: If True, suppress output
    """
    if not quiet:
        print(message)


def error_json(error: str, kind: str, solution: str, exit_code: int) -> dict[str, Any]:
    """
    Format error as JSON.

    Args:
        error: Error message
        kind: Machine-readable error kind
        solution: Solution suggestion
        exit_code: Exit code

    Returns:
        Error dictionary
    """
    return {"error": error, "kind": kind, "solution": solution, "exit_code": exit_code}


def error_text(error: str, solution: str) -> str:
    """
    Format error as human-readable text.

    Args:
        error: Error message
        solution: Solution suggestion

    Returns:
        Formatted error message
    """
    return f"Error: {error}\n\nSolution: {solution}"


def validate_table_name(table_name: str) -> bool:
    """
    Validate DynamoDB table name.

    Args:
        table_name: Table name to validate

    Returns:
        True if valid

    Raises:
        ValidationError: If table name is invalid
    """
    if not table_name:
        raise ValidationError("Table name cannot be empty")
    if len(table_name) < 3 or len(table_name) > 255:
        raise ValidationError("Table name must be between 3 and 255 characters")
    if not all(c.isalnum() or c in "-_." for c in table_name):
        raise ValidationError(
            "Table name can only contain alphanumeric characters, hyphens, underscores, and periods"
        )
    return True


def validate_photo_url(photo_url: str | None) -> str | None:
    """
    Validate an optional photo reference (absolute http(s) URL).

    Raises:
        ValidationError: If the value is present but not a URL
    """
    if photo_url is None:
        return None
    photo_url = photo_url.strip()
    parsed = urlparse(photo_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("Invalid photo URL")
    return photo_url
