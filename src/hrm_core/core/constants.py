"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time
from decimal import Decimal

DEFAULT_STANDARD_WORK_HOURS = 8
DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_WORKDAY_START = time(9, 0, 0)

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 100
DEFAULT_UPCOMING_DAYS = 30

MIN_PAYROLL_YEAR = 2000
MONEY_QUANTUM = Decimal("0.01")
HOURS_PRECISION = 2
UNASSIGNED_DEPARTMENT = "UNASSIGNED"
