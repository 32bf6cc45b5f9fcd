"""Public interface for the HRIS adapter."""

from __future__ import annotations

from .client import HrisClient
from .fixture import FIXTURE_EMPLOYEES, FixtureHrisClient
from .schema import EmployeePayload, EmployeesResponse, PaginationPayload
from .translator import parse_employee, parse_employees

__all__ = [
    "FIXTURE_EMPLOYEES",
    "EmployeePayload",
    "EmployeesResponse",
    "FixtureHrisClient",
    "HrisClient",
    "PaginationPayload",
    "parse_employee",
    "parse_employees",
]
