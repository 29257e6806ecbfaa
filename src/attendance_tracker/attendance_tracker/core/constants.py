"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_EDIT_WINDOW_DAYS = 2
DEFAULT_AUTO_MARK_INTERVAL_MINUTES = 5
DEFAULT_LOCK_SWEEP_HOUR_UTC = 0
DEFAULT_LOW_ATTENDANCE_THRESHOLD = 75.0

# Optimistic update retries before giving up with ConcurrencyError.
MAX_MARK_ATTEMPTS = 3

SYSTEM_USER_ID = "system"

# MySQL ER_DUP_ENTRY
MYSQL_DUPLICATE_KEY_ERRNO = 1062
