import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "fee_billing_db"),
}

# "mysql" serves bills from the local database, "http" proxies a remote API.
GATEWAY = os.getenv("FEE_GATEWAY", "mysql")
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000/api")
API_TOKEN = os.getenv("API_TOKEN") or None
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "10"))

CURRENCY_LABEL = os.getenv("CURRENCY_LABEL", "Rs.")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo fee structures on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
