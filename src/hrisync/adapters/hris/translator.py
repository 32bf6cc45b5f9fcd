"""Translate HRIS payloads into domain employees."""

from __future__ import annotations

from typing import TYPE_CHECKING

from hrisync.domain.model import ExternalEmployee

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import EmployeePayload


def parse_employee(payload: EmployeePayload) -> ExternalEmployee:
    return ExternalEmployee(
        employee_id=payload.employee_id,
        email=str(payload.email),
        first_name=payload.first_name,
        last_name=payload.last_name,
        display_name=payload.display_name,
        department=payload.department,
        village_id=payload.village_id,
        role=payload.role,
        status=payload.status,
        start_date=payload.start_date,
        end_date=payload.end_date,
        transfer_date=payload.transfer_date,
        previous_village_id=payload.previous_village_id,
    )


def parse_employees(payloads: Iterable[EmployeePayload] | None) -> list[ExternalEmployee]:
    return [parse_employee(payload) for payload in payloads or ()]
