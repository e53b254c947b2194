"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MAX_COMPLIMENTARY_PER_MONTH = 3
COMPLIMENTARY_LIMIT_CODE = "complimentary_limit_exceeded"
DEFAULT_BATCH_SIZE = 50
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_LOCK_TIMEOUT_SECONDS = 10.0
DEFAULT_PHOTO_MAX_BYTES = 5 * 1024 * 1024
LOW_ATTENDANCE_THRESHOLD = 70
SESSION_LIFETIME_HOURS = 24
