"""Ports for fetching employee records from an HRIS."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from hrisync.domain.model import EmployeeStatus, ExternalEmployee


@dataclass(frozen=True, slots=True, kw_only=True)
class EmployeeFilter:
    """Query options for a full fetch; without ``page`` every page is returned."""

    status: EmployeeStatus | None = None
    page: int | None = None
    page_size: int | None = None


@dataclass(frozen=True, slots=True)
class ConnectionCheck:
    success: bool
    error: str | None = None


@runtime_checkable
class EmployeeSource(Protocol):
    """Uniform fetch contract over any HRIS transport.

    ``fetch_*`` methods raise ``NetworkError`` or ``SchemaError``; they never mutate
    anything and are safe to retry. ``test_connection`` never raises.
    """

    def fetch_all(self, employee_filter: EmployeeFilter | None = None) -> list[ExternalEmployee]:
        ...

    def fetch_one(self, employee_id: str) -> ExternalEmployee | None: ...

    def fetch_since(self, since: datetime) -> list[ExternalEmployee]: ...

    def test_connection(self) -> ConnectionCheck: ...


__all__ = ["ConnectionCheck", "EmployeeFilter", "EmployeeSource"]
