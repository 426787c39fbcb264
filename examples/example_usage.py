"""Example: drive the service layer directly (no Flask).

Controllers are thin; the attendance and payroll rules live in the services.
"""

import importlib

from config import get_settings_module

from src.attendance_payroll.attendance_payroll.common.logging_config import configure_logging
from src.attendance_payroll.attendance_payroll.container import build_container
from src.attendance_payroll.attendance_payroll.settings.loader import rules_from_settings, static_rules


def main():
    configure_logging("INFO")
    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    container = build_container(
        db_config=settings.DB_CONFIG,
        rules_provider=static_rules(rules_from_settings(settings_module)),
    )
    summary = container.attendance_service.monthly_summary(employee_id=1, month=6, year=2025)
    print(summary.to_dict())
    print(container.payroll_service.monthly_summary(6, 2025))


if __name__ == "__main__":
    main()
