"""Core application constants."""

# Time constants
MILLISECONDS_PER_SECOND = 1000

# Security and redaction
REDACTED = "[REDACTED]"
DEFAULT_HSTS_MAX_AGE = 31536000  # 1 year in seconds

# Authentication
BEARER_SCHEME = "Bearer"
TOKEN_AUTHENTICATED_CLAIM = "authenticated"
TOKEN_TIMESTAMP_CLAIM = "timestamp"
