import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "fee_billing_db"),
}

GATEWAY = os.getenv("FEE_GATEWAY", "mysql")
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000/api")
API_TOKEN = os.getenv("API_TOKEN") or None
API_TIMEOUT = float(os.getenv("API_TIMEOUT", "10"))

CURRENCY_LABEL = os.getenv("CURRENCY_LABEL", "Rs.")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
