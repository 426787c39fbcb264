from __future__ import annotations

import base64
import io
import threading
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest
from PIL import Image

from src.attendance_payroll.attendance_payroll.attendance.model import AttendanceDay
from src.attendance_payroll.attendance_payroll.container import assemble
from src.attendance_payroll.attendance_payroll.core.enums import LeaveStatus, Role, SignatureType
from src.attendance_payroll.attendance_payroll.core.events import EventDispatcher, RecordingSink
from src.attendance_payroll.attendance_payroll.core.exceptions import AlreadyCheckedIn, DuplicateSignature
from src.attendance_payroll.attendance_payroll.employees.model import Employee
from src.attendance_payroll.attendance_payroll.leave.model import LeaveApplication
from src.attendance_payroll.attendance_payroll.payroll.model import PayrollRecord
from src.attendance_payroll.attendance_payroll.settings.loader import static_rules
from src.attendance_payroll.attendance_payroll.settings.model import CompanyRules
from src.attendance_payroll.attendance_payroll.shifts.model import ShiftPolicy
from src.attendance_payroll.attendance_payroll.signatures.model import Signature

EMPLOYEE_ID = 1
ADMIN_ID = 2
OTHER_ADMIN_ID = 3
INACTIVE_ID = 4
OTHER_EMPLOYEE_ID = 5


class InMemoryEmployees:
    def __init__(self, employees: list[Employee]):
        self._by_id = {e.employee_id: e for e in employees}

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        return self._by_id.get(employee_id)

    def list_active(self):
        return [e for e in self._by_id.values() if e.is_active and e.role == Role.EMPLOYEE]

    def add(self, employee: Employee) -> None:
        self._by_id[employee.employee_id] = employee


class InMemoryShifts:
    def __init__(self, shifts: list[ShiftPolicy] = ()):
        self._by_id = {s.shift_id: s for s in shifts}

    def add(self, shift: ShiftPolicy) -> None:
        self._by_id[shift.shift_id] = shift

    def list_all(self):
        return list(self._by_id.values())

    def get_by_id(self, shift_id: int) -> Optional[ShiftPolicy]:
        return self._by_id.get(shift_id)


class InMemoryLeaves:
    def __init__(self):
        self.items: list[LeaveApplication] = []

    def add(self, leave: LeaveApplication) -> None:
        self.items.append(leave)

    def approved_overlapping(self, employee_id: int, start: date, end: date):
        return [
            leave
            for leave in self.items
            if leave.employee_id == employee_id
            and leave.status == LeaveStatus.APPROVED
            and leave.start_date <= end
            and leave.end_date >= start
        ]


class InMemoryAttendance:
    def __init__(self):
        self._lock = threading.Lock()
        self._by_id: dict[int, AttendanceDay] = {}
        self._id = 0

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceDay]:
        return self._by_id.get(attendance_id)

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceDay]:
        for d in self._by_id.values():
            if d.employee_id == employee_id and d.work_date == work_date:
                return d
        return None

    def create(self, day: AttendanceDay) -> AttendanceDay:
        with self._lock:
            if self.get_for_employee_and_date(day.employee_id, day.work_date):
                raise AlreadyCheckedIn()
            self._id += 1
            stored = replace(day, attendance_id=self._id, version=1)
            self._by_id[self._id] = stored
            return stored

    def update(self, day: AttendanceDay, *, expected_version: int) -> Optional[AttendanceDay]:
        with self._lock:
            current = self._by_id.get(day.attendance_id)
            if current is None or current.version != expected_version:
                return None
            stored = replace(day, version=expected_version + 1)
            self._by_id[day.attendance_id] = stored
            return stored

    def list_for_employee_between(self, employee_id: int, start: date, end: date):
        items = [d for d in self._by_id.values() if d.employee_id == employee_id and start <= d.work_date <= end]
        return sorted(items, key=lambda d: d.work_date)

    def put(self, day: AttendanceDay) -> AttendanceDay:
        """Seed a finished day directly (payroll tests)."""
        return self.create(day)


class InMemoryPayrolls:
    def __init__(self):
        self._lock = threading.RLock()
        self._by_id: dict[int, PayrollRecord] = {}
        self._id = 0

    def get_by_id(self, payroll_id: int) -> Optional[PayrollRecord]:
        return self._by_id.get(payroll_id)

    def get_for_employee_month(self, employee_id: int, month: int, year: int) -> Optional[PayrollRecord]:
        for p in self._by_id.values():
            if (p.employee_id, p.month, p.year) == (employee_id, month, year):
                return p
        return None

    def upsert_calculation(self, employee_id: int, month: int, year: int, build):
        with self._lock:
            existing = self.get_for_employee_month(employee_id, month, year)
            record = build(existing)
            if existing is None:
                self._id += 1
                stored = replace(record, payroll_id=self._id, version=1)
            else:
                stored = replace(record, version=existing.version + 1)
            self._by_id[stored.payroll_id] = stored
            return stored

    def update(self, record: PayrollRecord, *, expected_version: int) -> Optional[PayrollRecord]:
        with self._lock:
            current = self._by_id.get(record.payroll_id)
            if current is None or current.version != expected_version:
                return None
            stored = replace(record, version=expected_version + 1)
            self._by_id[record.payroll_id] = stored
            return stored

    def list_for_month(self, month: int, year: int):
        return sorted(
            (p for p in self._by_id.values() if (p.month, p.year) == (month, year)),
            key=lambda p: p.employee_id,
        )

    def list_for_employee_year(self, employee_id: int, year: int):
        return sorted(
            (p for p in self._by_id.values() if p.employee_id == employee_id and p.year == year),
            key=lambda p: p.month,
        )


class InMemorySignatures:
    def __init__(self):
        self._lock = threading.Lock()
        self._by_id: dict[int, Signature] = {}
        self._id = 0

    def get_by_id(self, signature_id: int) -> Optional[Signature]:
        return self._by_id.get(signature_id)

    def find(self, *, user_id: int, payroll_id: int, signature_type: SignatureType) -> Optional[Signature]:
        for s in self._by_id.values():
            if (s.user_id, s.payroll_id, s.signature_type) == (user_id, payroll_id, signature_type):
                return s
        return None

    def create(self, signature: Signature) -> Signature:
        with self._lock:
            if self.find(
                user_id=signature.user_id,
                payroll_id=signature.payroll_id,
                signature_type=signature.signature_type,
            ):
                raise DuplicateSignature()
            self._id += 1
            stored = replace(signature, signature_id=self._id)
            self._by_id[self._id] = stored
            return stored

    def mark_verified(self, signature: Signature) -> Signature:
        self._by_id[signature.signature_id] = signature
        return signature

    def discard(self, signature_id: int) -> None:
        self._by_id.pop(signature_id, None)

    def list_for_payroll(self, payroll_id: int):
        return [s for s in self._by_id.values() if s.payroll_id == payroll_id]

    def tamper(self, signature_id: int, **changes) -> None:
        self._by_id[signature_id] = replace(self._by_id[signature_id], **changes)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    # Monday
    return FakeClock(datetime(2025, 6, 2, 9, 0))


@pytest.fixture
def rules():
    return CompanyRules()


@pytest.fixture
def employees():
    return InMemoryEmployees(
        [
            Employee(EMPLOYEE_ID, "Asha Patel", Role.EMPLOYEE, Decimal("30000")),
            Employee(ADMIN_ID, "Ravi Admin", Role.ADMIN, Decimal("50000")),
            Employee(OTHER_ADMIN_ID, "Meera Admin", Role.ADMIN, Decimal("50000")),
            Employee(INACTIVE_ID, "Former Staff", Role.EMPLOYEE, Decimal("20000"), is_active=False),
            Employee(OTHER_EMPLOYEE_ID, "Kiran Shah", Role.EMPLOYEE, Decimal("24000")),
        ]
    )


@pytest.fixture
def recorded_events():
    return RecordingSink()


@pytest.fixture
def container(employees, rules, clock, recorded_events):
    events = EventDispatcher()
    events.subscribe(recorded_events.publish)
    return assemble(
        employees_repo=employees,
        shifts_repo=InMemoryShifts(),
        leaves_repo=InMemoryLeaves(),
        attendance_repo=InMemoryAttendance(),
        payroll_repo=InMemoryPayrolls(),
        signature_repo=InMemorySignatures(),
        rules_provider=static_rules(rules),
        clock=clock,
        events=events,
    )


def _png_base64(size=(40, 20)) -> str:
    img = Image.new("RGB", size, color="white")
    for x in range(5, 35):
        img.putpixel((x, 10), (0, 0, 0))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


@pytest.fixture
def signature_png():
    return "data:image/png;base64," + _png_base64()
