import os

from .config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = Config.db_config()

STANDARD_WORK_HOURS = Config.STANDARD_WORK_HOURS
LATE_THRESHOLD_MINUTES = Config.LATE_THRESHOLD_MINUTES
WORKDAY_START = Config.WORKDAY_START

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "0")))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Inserts the default leave policies when missing
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "1")))
