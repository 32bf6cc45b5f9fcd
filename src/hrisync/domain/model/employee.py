"""External employee snapshots as delivered by the HRIS."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING

from hrisync.domain.model.enums import EmployeeStatus, Role

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True, kw_only=True)
class ExternalEmployee:
    """Immutable employee record fetched from the HRIS.

    Carries no local identity; it is consumed by reconciliation and then discarded.
    """

    employee_id: str
    email: str
    first_name: str
    last_name: str
    status: EmployeeStatus
    display_name: str | None = None
    department: str | None = None
    village_id: str | None = None
    role: Role | None = None
    start_date: date | None = None
    end_date: date | None = None
    transfer_date: date | None = None
    previous_village_id: str | None = None

    @property
    def full_name(self) -> str:
        if self.display_name:
            return self.display_name
        return f"{self.first_name} {self.last_name}".strip()

    def to_snapshot(self) -> dict[str, object]:
        return {
            "employee_id": self.employee_id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "display_name": self.display_name,
            "department": self.department,
            "village_id": self.village_id,
            "role": self.role.value if self.role is not None else None,
            "status": self.status.value,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "transfer_date": _iso(self.transfer_date),
            "previous_village_id": self.previous_village_id,
        }

    @classmethod
    def from_snapshot(cls, data: Mapping[str, object]) -> ExternalEmployee:
        role = _optional_str(data, "role")
        return cls(
            employee_id=_required_str(data, "employee_id"),
            email=_required_str(data, "email"),
            first_name=_required_str(data, "first_name"),
            last_name=_required_str(data, "last_name"),
            status=EmployeeStatus(_required_str(data, "status")),
            display_name=_optional_str(data, "display_name"),
            department=_optional_str(data, "department"),
            village_id=_optional_str(data, "village_id"),
            role=Role(role) if role is not None else None,
            start_date=_optional_date(data, "start_date"),
            end_date=_optional_date(data, "end_date"),
            transfer_date=_optional_date(data, "transfer_date"),
            previous_village_id=_optional_str(data, "previous_village_id"),
        )


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _required_str(data: Mapping[str, object], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ValueError(f"Employee snapshot is missing {key!r}")
    return value


def _optional_str(data: Mapping[str, object], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Employee snapshot field {key!r} must be a string")
    return value


def _optional_date(data: Mapping[str, object], key: str) -> date | None:
    value = _optional_str(data, key)
    return date.fromisoformat(value) if value else None
