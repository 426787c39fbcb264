"""Company rule set shared by every environment.

Read by ``attendance_payroll.settings.loader.rules_from_settings``. Money
values are strings so they reach Decimal without float rounding.
"""

import os

COMPANY_RULES = {
    "geo_fence": {
        "enabled": os.getenv("GEOFENCE_ENABLED", "1"),
        "company_location": {
            "lat": float(os.getenv("COMPANY_LAT", "23.032546")),
            "lng": float(os.getenv("COMPANY_LNG", "72.5030202")),
        },
        "radius": float(os.getenv("GEOFENCE_RADIUS_M", "100")),
    },
    "attendance": {
        "grace_minutes": 15,
        "half_day_threshold_hours": 4,
        "max_breaks_per_day": 2,
    },
    "payroll": {
        "overtime_rate": "1.5",
        "overtime_pay_basis": "100",
        "late_penalty": "100",
        "half_day_penalty": "0.5",
        "smart_late_rule": True,
        "lates_for_half_day": 3,
        "tax_deduction": False,
        "tax_percentage": "0",
        "provident_fund": False,
        "pf_percentage": "12",
        "currency": "INR",
    },
    "allowances": [
        {"name": "house_rent", "percentage_of_basic": "40"},
        {"name": "conveyance", "amount": "1600"},
        {"name": "medical", "amount": "1250"},
        {"name": "special", "amount": "0"},
    ],
    "working_weekdays": ["monday", "tuesday", "wednesday", "thursday", "friday"],
    "holidays": [
        {"date": "2025-01-26", "name": "Republic Day", "kind": "national", "recurring": True},
        {"date": "2025-08-15", "name": "Independence Day", "kind": "national", "recurring": True},
        {"date": "2025-10-02", "name": "Gandhi Jayanti", "kind": "national", "recurring": True},
    ],
}
