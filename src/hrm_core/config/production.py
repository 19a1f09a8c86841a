import os

from .config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = Config.db_config()

STANDARD_WORK_HOURS = Config.STANDARD_WORK_HOURS
LATE_THRESHOLD_MINUTES = Config.LATE_THRESHOLD_MINUTES
WORKDAY_START = Config.WORKDAY_START

DEBUG = False
LOG_LEVEL = Config.LOG_LEVEL
LOG_JSON = Config.LOG_JSON

AUTO_INIT_DB = Config.AUTO_INIT_DB
AUTO_SEED_DB = Config.AUTO_SEED_DB
