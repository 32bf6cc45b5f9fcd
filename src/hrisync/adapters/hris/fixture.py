"""In-process HRIS source serving a fixed employee set."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from hrisync.domain.model import EmployeeStatus, ExternalEmployee, Role
from hrisync.domain.ports import ConnectionCheck

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from hrisync.domain.ports import EmployeeFilter, EmployeeSource


FIXTURE_EMPLOYEES: tuple[ExternalEmployee, ...] = (
    ExternalEmployee(
        employee_id="CM12345",
        email="john.doe@example.com",
        first_name="John",
        last_name="Doe",
        display_name="John Doe",
        department="IT",
        village_id="vlg-001",
        role=Role.USER,
        status=EmployeeStatus.ACTIVE,
        start_date=date(2023, 1, 15),
    ),
    ExternalEmployee(
        employee_id="CM67890",
        email="jane.smith@example.com",
        first_name="Jane",
        last_name="Smith",
        display_name="Jane Smith",
        department="Product",
        village_id="vlg-002",
        role=Role.PM,
        status=EmployeeStatus.ACTIVE,
        start_date=date(2022, 5, 1),
    ),
    ExternalEmployee(
        employee_id="CM11111",
        email="bob.transfer@example.com",
        first_name="Bob",
        last_name="Transfer",
        display_name="Bob Transfer",
        department="Operations",
        village_id="vlg-003",
        previous_village_id="vlg-001",
        role=Role.USER,
        status=EmployeeStatus.ACTIVE,
        start_date=date(2021, 3, 10),
        transfer_date=date(2024, 1, 1),
    ),
    ExternalEmployee(
        employee_id="CM22222",
        email="alice.departed@example.com",
        first_name="Alice",
        last_name="Departed",
        display_name="Alice Departed",
        department="HR",
        village_id="vlg-001",
        role=Role.USER,
        status=EmployeeStatus.DEPARTED,
        start_date=date(2020, 6, 1),
        end_date=date(2024, 2, 28),
    ),
)

FIXTURE_CHANGED_EMPLOYEE_IDS: frozenset[str] = frozenset({"CM11111"})


@dataclass(slots=True)
class FixtureHrisClient:
    """Employee source for development and tests; never touches the network.

    ``fetch_since`` ignores the timestamp and returns the employees listed in
    ``changed_employee_ids``.
    """

    employees: Sequence[ExternalEmployee] = FIXTURE_EMPLOYEES
    changed_employee_ids: frozenset[str] = field(default=FIXTURE_CHANGED_EMPLOYEE_IDS)

    def fetch_all(self, employee_filter: EmployeeFilter | None = None) -> list[ExternalEmployee]:
        employees = list(self.employees)
        if employee_filter is None:
            return employees
        if employee_filter.status is not None:
            employees = [e for e in employees if e.status is employee_filter.status]
        if employee_filter.page is not None:
            page_size = employee_filter.page_size or len(employees) or 1
            start = (employee_filter.page - 1) * page_size
            employees = employees[start : start + page_size]
        return employees

    def fetch_one(self, employee_id: str) -> ExternalEmployee | None:
        return next((e for e in self.employees if e.employee_id == employee_id), None)

    def fetch_since(self, since: datetime) -> list[ExternalEmployee]:  # noqa: ARG002
        return [e for e in self.employees if e.employee_id in self.changed_employee_ids]

    def test_connection(self) -> ConnectionCheck:
        return ConnectionCheck(success=True)


if TYPE_CHECKING:
    _source_check: EmployeeSource = FixtureHrisClient()
