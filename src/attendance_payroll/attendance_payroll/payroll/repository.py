from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from .model import PayrollRecord


class PayrollRepository(Protocol):
    def get_by_id(self, payroll_id: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def get_for_employee_month(self, employee_id: int, month: int, year: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def upsert_calculation(
        self,
        employee_id: int,
        month: int,
        year: int,
        build: Callable[[Optional[PayrollRecord]], PayrollRecord],
    ) -> PayrollRecord:
        """Atomically create or overwrite the (employee, month, year) record.

        ``build`` receives the current record (None when absent) while it is
        held exclusively and returns the record to store. Exceptions raised by
        ``build`` abort without writing.
        """

        raise NotImplementedError

    def update(self, record: PayrollRecord, *, expected_version: int) -> Optional[PayrollRecord]:
        """Compare-and-set write. Returns None when the stored version moved on."""

        raise NotImplementedError

    def list_for_month(self, month: int, year: int) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def list_for_employee_year(self, employee_id: int, year: int) -> Sequence[PayrollRecord]:
        raise NotImplementedError
