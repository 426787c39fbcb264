from src.attendance_payroll.attendance_payroll.attendance.factory import AttendanceStrategyFactory
from src.attendance_payroll.attendance_payroll.attendance.strategies.absent_strategy import AbsentStrategy
from src.attendance_payroll.attendance_payroll.attendance.strategies.half_day_strategy import HalfDayStrategy
from src.attendance_payroll.attendance_payroll.attendance.strategies.late_strategy import LateStrategy
from src.attendance_payroll.attendance_payroll.attendance.strategies.normal_strategy import NormalStrategy
from src.attendance_payroll.attendance_payroll.core.enums import AttendanceStatus


def test_factory_checkin_on_time_within_grace():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkin(late_minutes=15, grace_minutes=15)

    assert isinstance(strategy, NormalStrategy)
    assert strategy.decide(late_minutes=15, worked_hours=None).status == AttendanceStatus.PRESENT


def test_factory_checkin_late_after_grace():
    factory = AttendanceStrategyFactory()
    strategy = factory.for_checkin(late_minutes=20, grace_minutes=15)

    assert isinstance(strategy, LateStrategy)
    decision = strategy.decide(late_minutes=20, worked_hours=None)
    assert decision.status == AttendanceStatus.LATE
    assert decision.note == "Late by 20 minutes"


def test_factory_checkout_thresholds():
    factory = AttendanceStrategyFactory()

    assert isinstance(factory.for_checkout(worked_hours=8, standard_hours=8, half_day_threshold=4), NormalStrategy)
    assert isinstance(factory.for_checkout(worked_hours=4, standard_hours=8, half_day_threshold=4), HalfDayStrategy)
    assert isinstance(factory.for_checkout(worked_hours=3.99, standard_hours=8, half_day_threshold=4), AbsentStrategy)
