"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_ABSENCE_AMOUNT = Decimal("25")
DEFAULT_LATENESS_AMOUNT = Decimal("30")
DEFAULT_TIMEZONE = "Asia/Riyadh"

# Fixed month length used for daily subscription rates.
DAYS_PER_MONTH = 30

# Absence deductions are never computed for this day of the month.
SKIPPED_DAY_OF_MONTH = 31

FALLBACK_WEEKDAYS = frozenset({1, 2, 3, 4, 5})
ALL_WEEKDAYS = frozenset(range(7))
SUNDAY = 0

PERMISSION_STATUS = "permission"
UPGRADEABLE_STATUSES = frozenset({"active", "trialing"})
