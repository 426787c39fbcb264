"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time
from decimal import Decimal

EARTH_RADIUS_M = 6_371_000.0

# Geo-fence
DEFAULT_GEOFENCE_RADIUS_M = 100.0
DEFAULT_COMPANY_LAT = 23.032546
DEFAULT_COMPANY_LNG = 72.5030202

# Attendance rules
DEFAULT_LATE_GRACE_MINUTES = 15
DEFAULT_HALF_DAY_THRESHOLD_HOURS = 4.0
DEFAULT_MAX_BREAKS_PER_DAY = 2

# Default shift for employees without an assigned one
DEFAULT_SHIFT_NAME = "General"
DEFAULT_SHIFT_START = time(9, 0)
DEFAULT_SHIFT_END = time(18, 0)
DEFAULT_STANDARD_HOURS = 8.0
DEFAULT_MAX_OVERTIME_HOURS = 4.0

# Payroll rules
DEFAULT_OVERTIME_RATE = Decimal("1.5")
DEFAULT_OVERTIME_PAY_BASIS = Decimal("100")
DEFAULT_LATE_PENALTY = Decimal("100")
DEFAULT_HALF_DAY_PENALTY = Decimal("0.5")
DEFAULT_LATES_FOR_HALF_DAY = 3
DEFAULT_PF_PERCENTAGE = Decimal("12")
DEFAULT_CURRENCY = "INR"

# Monday..Friday as date.weekday() values
DEFAULT_WORKING_WEEKDAYS = (0, 1, 2, 3, 4)

MONEY_QUANT = Decimal("0.01")
