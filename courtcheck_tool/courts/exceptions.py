"""
Custom exceptions for courtcheck operations.

Every error carries a machine-readable ``kind`` and the exit code the CLI uses
when it reaches the command layer.
"""


class CourtCheckError(Exception):
    """Base exception for courtcheck operations."""

    kind = "internal_error"
    exit_code = 3

    def __init__(self, message: str = "Internal error"):
        super().__init__(message)
        self.message = message


# Storage errors


class StorageError(CourtCheckError):
    """Storage backend failed or returned an unexpected error."""

    kind = "storage_error"


class ConditionFailedError(StorageError):
    """Conditional write rejected because its precondition did not hold."""

    kind = "condition_failed"


class TransactionCanceledError(ConditionFailedError):
    """Multi-item transaction rejected; nothing was written.

    ``reasons`` holds one entry per operation in submission order: the
    cancellation code (e.g. ``ConditionalCheckFailed``) or None when that
    operation was not the cause.
    """

    kind = "transaction_canceled"

    def __init__(self, message: str, reasons: list[str | None] | None = None):
        super().__init__(message)
        self.reasons = reasons or []

    def condition_failed_indexes(self) -> list[int]:
        return [i for i, reason in enumerate(self.reasons) if reason == "ConditionalCheckFailed"]


class TableNotFoundError(StorageError):
    """DynamoDB table does not exist."""

    kind = "table_not_found"


class TableAlreadyExistsError(StorageError):
    """DynamoDB table already exists."""

    kind = "table_exists"


class AWSThrottlingError(StorageError):
    """DynamoDB throttling occurred."""

    kind = "throttled"


class AWSPermissionError(StorageError):
    """AWS permission denied."""

    kind = "permission_denied"


# Domain errors


class ValidationError(CourtCheckError):
    """Malformed email, code, coordinates or status."""

    kind = "validation_error"
    exit_code = 2


class RateLimitedError(CourtCheckError):
    """Resend cooldown has not elapsed yet."""

    kind = "rate_limited"
    exit_code = 4


class InvalidOrExpiredError(CourtCheckError):
    """Wrong, expired or locked-out code. Intentionally carries no detail."""

    kind = "invalid_or_expired"
    exit_code = 4

    def __init__(self, message: str = "Invalid or expired code"):
        super().__init__(message)


class UnauthorizedError(CourtCheckError):
    """Missing or invalid session token, or identity mismatch."""

    kind = "unauthorized"
    exit_code = 4

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFoundError(CourtCheckError):
    """Resource or profile absent."""

    kind = "not_found"
    exit_code = 1


class ConflictError(CourtCheckError):
    """Concurrent write detected through a rejected transaction."""

    kind = "conflict"
    exit_code = 4


class CooldownActiveError(CourtCheckError):
    """Same user checked in on the same resource too recently."""

    kind = "cooldown_active"
    exit_code = 4

    def __init__(self, message: str, retry_after_seconds: int | None = None):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class TooFarError(CourtCheckError):
    """Caller is outside the geofence of the resource."""

    kind = "too_far"
    exit_code = 4

    def __init__(self, message: str, distance_miles: float | None = None):
        super().__init__(message)
        self.distance_miles = distance_miles


class InvalidResourceError(CourtCheckError):
    """Resource cannot be checked into (e.g. it has no coordinates)."""

    kind = "invalid_resource"
    exit_code = 2


class DependencyFailureError(CourtCheckError):
    """External collaborator unreachable or erroring."""

    kind = "dependency_failure"


class EmailDispatchError(DependencyFailureError):
    """Email could not be sent."""


class DistanceLookupError(DependencyFailureError):
    """Distance could not be computed."""


class ConfigurationError(CourtCheckError):
    """Required secret or tunable missing or out of bounds."""

    kind = "configuration_error"
    exit_code = 2
