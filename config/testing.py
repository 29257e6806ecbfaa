import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_tracker_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

EDIT_WINDOW_DAYS = 2

# Tests drive the sweeps directly.
SCHEDULER_ENABLED = False
AUTO_MARK_INTERVAL_MINUTES = 5
LOCK_SWEEP_HOUR_UTC = 0

LOW_ATTENDANCE_THRESHOLD = 75.0
