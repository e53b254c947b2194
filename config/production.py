import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DATA_BACKEND = os.getenv("DATA_BACKEND", "mysql")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "coach_attendance_db"),
}

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

ATTENDANCE = {
    "batch_size": int(os.getenv("ATTENDANCE_BATCH_SIZE", "50")),
    "complimentary_limit": int(os.getenv("COMPLIMENTARY_LIMIT", "3")),
    "retry_attempts": int(os.getenv("ATTENDANCE_RETRY_ATTEMPTS", "3")),
    "strict_quota_lock": bool(int(os.getenv("STRICT_QUOTA_LOCK", "0"))),
    "lock_timeout": float(os.getenv("ATTENDANCE_LOCK_TIMEOUT", "10")),
}

PHOTO_STORAGE = {
    "backend": os.getenv("PHOTO_STORAGE_BACKEND", "s3"),
    "bucket_name": os.getenv("R2_BUCKET_NAME"),
    "endpoint_url": os.getenv("R2_ENDPOINT_URL"),
    "access_key": os.getenv("R2_ACCESS_KEY_ID"),
    "secret_key": os.getenv("R2_SECRET_ACCESS_KEY"),
    "public_domain": os.getenv("R2_PUBLIC_DOMAIN"),
    "max_bytes": int(os.getenv("PHOTO_MAX_BYTES", str(5 * 1024 * 1024))),
}
