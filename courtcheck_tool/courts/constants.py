"""
Constants for courtcheck operations.
"""

# Default table name
DEFAULT_TABLE_NAME = "courtcheck-tool-table"

# One-time code settings (in seconds unless noted)
DEFAULT_OTP_TTL = 600  # 10 minutes
DEFAULT_OTP_MIN_RESEND = 60
DEFAULT_OTP_MAX_ATTEMPTS = 5
OTP_TTL_BOUNDS = (60, 3600)
OTP_MIN_RESEND_BOUNDS = (0, 600)
OTP_MAX_ATTEMPTS_BOUNDS = (1, 20)
OTP_CODE_LENGTH = 6

# Session token settings
SESSION_TOKEN_TTL = 60 * 60 * 24 * 7  # 7 days
SESSION_TOKEN_ALGORITHM = "HS256"
SESSION_COOKIE_NAME = "auth-token"

# Check-in rules
CHECKIN_COOLDOWN_SECONDS = 2 * 60 * 60
CHECKIN_DISTANCE_LIMIT_MILES = 0.5
NEAREST_RESOURCES_TOP_K = 50

# Distance math
EARTH_RADIUS_MILES = 3958.8
METERS_TO_MILES = 0.000621371

# Outbound call deadline
DEFAULT_REQUEST_TIMEOUT = 10
REQUEST_TIMEOUT_BOUNDS = (1, 60)

# Display names
MAX_DISPLAY_NAME_LENGTH = 256
MAX_EMAIL_LENGTH = 320

# Key prefixes and fixed sort keys
PREFIX_EMAIL = "EMAIL"
PREFIX_USER = "USER"
PREFIX_RESOURCE = "RESOURCE"
PREFIX_CHECKIN = "CHECKIN"
SK_OTP = "OTP"
SK_USER = "USER"
SK_PROFILE = "PROFILE"
PK_RESOURCES = "RESOURCE"

# DynamoDB attribute names
ATTR_PK = "PK"
ATTR_SK = "SK"
ATTR_TYPE = "type"
ATTR_TTL = "ttl"
ATTR_CREATED_AT = "created_at"

# Challenge attributes
ATTR_OTP_HASH = "otp_hash"
ATTR_EXPIRES_AT = "expires_at"
ATTR_LAST_SENT_AT = "last_sent_at"
ATTR_ATTEMPT_COUNT = "attempt_count"
ATTR_SEND_COUNT = "send_count"

# Account and resource attributes
ATTR_CHECKIN_COUNT = "checkin_count"
ATTR_BILLING_REFERENCE = "billing_reference"
ATTR_STATUS = "status"
ATTR_LAST_UPDATED_AT = "last_updated_at"

# TransactWriteItems limit
MAX_TRANSACTION_OPERATIONS = 100
