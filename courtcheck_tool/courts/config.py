"""
Settings validation.

Settings arrive through click options backed by environment variables; these
helpers turn missing or out-of-range values into ConfigurationError before an
operation touches storage or sends anything.
"""

from typing import Any

from .exceptions import ConfigurationError


def require_setting(name: str, value: str | None) -> str:
    """
    Return a required setting or fail.

    Args:
        name: Environment variable name, used in the error message
        value: Configured value

    Raises:
        ConfigurationError: If the value is missing or empty
    """
    if value is None or not str(value).strip():
        raise ConfigurationError(f"Missing required setting: {name}")
    return str(value)


def check_bounds(name: str, value: Any, low: int, high: int) -> int:
    """
    Validate an integer tunable against inclusive bounds.

    Raises:
        ConfigurationError: If the value is not an integer or is out of bounds
    """
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Bad server config: {name} must be an integer")
    if isinstance(value, float) and value != number:
        raise ConfigurationError(f"Bad server config: {name} must be an integer")
    if number < low or number > high:
        raise ConfigurationError(f"Bad server config: {name} must be between {low} and {high}")
    return number
