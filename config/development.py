import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_tracker"),
}

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Days after a class during which attendance can still be changed.
EDIT_WINDOW_DAYS = int(os.getenv("EDIT_WINDOW_DAYS", "2"))

SCHEDULER_ENABLED = bool(int(os.getenv("SCHEDULER_ENABLED", "1")))
AUTO_MARK_INTERVAL_MINUTES = int(os.getenv("AUTO_MARK_INTERVAL_MINUTES", "5"))
LOCK_SWEEP_HOUR_UTC = int(os.getenv("LOCK_SWEEP_HOUR_UTC", "0"))

LOW_ATTENDANCE_THRESHOLD = float(os.getenv("LOW_ATTENDANCE_THRESHOLD", "75"))
