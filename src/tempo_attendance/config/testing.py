import os

SECRET_KEY = "test-secret"

STORAGE_BACKEND = "local"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "tempo_test"),
}

# None keeps everything in memory.
LOCAL_STORE_PATH = None

ADMIN_PIN = "1234"

STALE_CHECK_INTERVAL_SECONDS = 60
START_RECONCILER = False

LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
