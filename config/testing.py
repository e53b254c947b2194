SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

DATA_BACKEND = "memory"

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "coach_attendance_test",
}

AUTO_INIT_DB = False
AUTO_SEED_DB = True

ATTENDANCE = {
    "batch_size": 50,
    "complimentary_limit": 3,
    "retry_attempts": 3,
    "strict_quota_lock": False,
    "lock_timeout": 2.0,
}

PHOTO_STORAGE = {"backend": "none"}
