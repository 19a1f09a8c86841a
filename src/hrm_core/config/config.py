import os
from dataclasses import dataclass
from datetime import time

from ..common.datetime_utils import parse_clock_time
from ..core.constants import DEFAULT_LATE_THRESHOLD_MINUTES, DEFAULT_STANDARD_WORK_HOURS, DEFAULT_WORKDAY_START


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "change-me"

    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "hrm_db")

    # Attendance rules
    STANDARD_WORK_HOURS = float(os.environ.get("STANDARD_WORK_HOURS", str(DEFAULT_STANDARD_WORK_HOURS)))
    LATE_THRESHOLD_MINUTES = int(os.environ.get("LATE_THRESHOLD_MINUTES", str(DEFAULT_LATE_THRESHOLD_MINUTES)))
    WORKDAY_START = os.environ.get("WORKDAY_START", DEFAULT_WORKDAY_START.strftime("%H:%M:%S"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_JSON = bool(int(os.environ.get("LOG_JSON", "1")))

    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))
    AUTO_SEED_DB = bool(int(os.environ.get("AUTO_SEED_DB", "0")))

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }


@dataclass(frozen=True)
class EngineSettings:
    standard_work_hours: float = DEFAULT_STANDARD_WORK_HOURS
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    workday_start: time = DEFAULT_WORKDAY_START


def engine_settings_from(settings) -> EngineSettings:
    """Build EngineSettings from a settings module (missing values fall back to defaults)."""
    start = getattr(settings, "WORKDAY_START", DEFAULT_WORKDAY_START)
    return EngineSettings(
        standard_work_hours=float(getattr(settings, "STANDARD_WORK_HOURS", DEFAULT_STANDARD_WORK_HOURS)),
        late_threshold_minutes=int(getattr(settings, "LATE_THRESHOLD_MINUTES", DEFAULT_LATE_THRESHOLD_MINUTES)),
        workday_start=parse_clock_time(start, "WORKDAY_START"),
    )
