from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import now_local
from .common.locks import KeyedLocks
from .core.events import EventDispatcher, audit_log_subscriber
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_directory import MySQLEmployeeDirectory
from .employees.repository import EmployeeDirectory
from .leave.mysql_leave_ledger import MySQLLeaveLedger
from .leave.repository import LeaveLedger
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService
from .settings.model import CompanyRules
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .shifts.service import ShiftResolver
from .signatures.mysql_signature_repository import MySQLSignatureRepository
from .signatures.repository import SignatureRepository
from .signatures.service import SignatureService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    employees_repo: EmployeeDirectory
    shifts_repo: ShiftRepository
    leaves_repo: LeaveLedger
    attendance_repo: AttendanceRepository
    payroll_repo: PayrollRepository
    signature_repo: SignatureRepository

    events: EventDispatcher
    rules_provider: Callable[[], CompanyRules]

    attendance_service: AttendanceService
    payroll_service: PayrollService
    signature_service: SignatureService


def assemble(
    *,
    employees_repo: EmployeeDirectory,
    shifts_repo: ShiftRepository,
    leaves_repo: LeaveLedger,
    attendance_repo: AttendanceRepository,
    payroll_repo: PayrollRepository,
    signature_repo: SignatureRepository,
    rules_provider: Callable[[], CompanyRules],
    clock: Callable[[], datetime] = now_local,
    events: Optional[EventDispatcher] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire the services over any set of repositories (MySQL or in-memory)."""

    if events is None:
        events = EventDispatcher()
        events.subscribe(audit_log_subscriber)
    locks = KeyedLocks()
    shifts = ShiftResolver(shifts_repo)

    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        shifts,
        rules_provider=rules_provider,
        leaves=leaves_repo,
        locks=locks,
        events_sink=events,
        strategy_factory=AttendanceStrategyFactory(),
        clock=clock,
    )
    payroll_service = PayrollService(
        payroll_repo,
        attendance_repo,
        employees_repo,
        shifts,
        leaves_repo,
        rules_provider=rules_provider,
        locks=locks,
        events_sink=events,
        clock=clock,
    )
    signature_service = SignatureService(signature_repo, payroll_service, employees_repo, clock=clock)

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        shifts_repo=shifts_repo,
        leaves_repo=leaves_repo,
        attendance_repo=attendance_repo,
        payroll_repo=payroll_repo,
        signature_repo=signature_repo,
        events=events,
        rules_provider=rules_provider,
        attendance_service=attendance_service,
        payroll_service=payroll_service,
        signature_service=signature_service,
    )


def build_container(*, db_config: dict, rules_provider: Callable[[], CompanyRules]) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return assemble(
        employees_repo=MySQLEmployeeDirectory(conn),
        shifts_repo=MySQLShiftRepository(conn),
        leaves_repo=MySQLLeaveLedger(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        payroll_repo=MySQLPayrollRepository(conn),
        signature_repo=MySQLSignatureRepository(conn),
        rules_provider=rules_provider,
        conn=conn,
    )
