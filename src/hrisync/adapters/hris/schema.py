"""Pydantic models describing the HRIS REST payloads."""

from __future__ import annotations

from datetime import date  # noqa: TC003

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from hrisync.domain.model import EmployeeStatus, Role


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _date_part(value: object) -> object:
    value = _blank_to_none(value)
    if isinstance(value, str):
        # timestamps are accepted; only the calendar day matters
        return value[:10]
    return value


class HrisBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EmployeePayload(HrisBaseModel):
    employee_id: str
    email: EmailStr
    first_name: str
    last_name: str
    display_name: str | None = None
    department: str | None = None
    village_id: str | None = None
    role: Role | None = None
    status: EmployeeStatus
    start_date: date | None = None
    end_date: date | None = None
    transfer_date: date | None = None
    previous_village_id: str | None = None

    _normalize_optional = field_validator(
        "display_name",
        "department",
        "village_id",
        "previous_village_id",
        "role",
        mode="before",
    )(_blank_to_none)
    _normalize_dates = field_validator(
        "start_date",
        "end_date",
        "transfer_date",
        mode="before",
    )(_date_part)


class PaginationPayload(HrisBaseModel):
    page: int
    page_size: int
    total: int
    has_more: bool

    @property
    def last_page(self) -> int:
        if self.page_size <= 0:
            return self.page
        return max(self.page, -(-self.total // self.page_size))


class EmployeesResponse(HrisBaseModel):
    success: bool
    data: list[EmployeePayload] | None = None
    error: str | None = None
    pagination: PaginationPayload | None = None

    @property
    def has_more(self) -> bool:
        return bool(self.pagination and self.pagination.has_more and self.data)
