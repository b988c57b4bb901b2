"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_DEPARTMENT = "General"
UNASSIGNED_DEPARTMENT = "Unassigned"
DEFAULT_FIRST_NAME = "Unknown"
DEFAULT_LAST_NAME = "User"

DEFAULT_TREND_DAYS = 7
DEFAULT_DEPARTMENT_STATS_DAYS = 30
DEFAULT_PAGE_LIMIT = 50
DEFAULT_ADMIN_USERS_LIMIT = 10
MAX_PAGE_LIMIT = 500
DEFAULT_SYNC_LIMIT = 100
USER_SUMMARY_TREND_MONTHS = 6

WORK_START = time(9, 30)
WORK_END = time(17, 30)
GRACE_PERIOD_MINUTES = 15
HALF_DAY_HOURS = 4
