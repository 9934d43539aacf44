import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# "mysql" for the shared database, "local" for a JSON file on this machine.
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "tempo_db"),
}

LOCAL_STORE_PATH = os.getenv("LOCAL_STORE_PATH", "instance/tempo_store.json")

ADMIN_PIN = os.getenv("ADMIN_PIN", "1234")

STALE_CHECK_INTERVAL_SECONDS = int(os.getenv("STALE_CHECK_INTERVAL_SECONDS", "60"))
START_RECONCILER = bool(int(os.getenv("START_RECONCILER", "1")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
