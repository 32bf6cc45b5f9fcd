"""Local identities and their village history."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import TYPE_CHECKING

from hrisync.domain.errors import VillageHistoryError
from hrisync.domain.model.base import Entity
from hrisync.domain.model.enums import Role

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class VillageInterval:
    """One village assignment; ``end`` is ``None`` while the assignment is current."""

    village_id: str
    start: date
    end: date | None = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    def close(self, on: date) -> VillageInterval:
        return replace(self, end=on)

    def to_snapshot(self) -> dict[str, str | None]:
        return {
            "village_id": self.village_id,
            "from": self.start.isoformat(),
            "to": self.end.isoformat() if self.end is not None else None,
        }

    @classmethod
    def from_snapshot(cls, data: Mapping[str, object]) -> VillageInterval:
        village_id = data.get("village_id")
        start = data.get("from")
        end = data.get("to")
        if not isinstance(village_id, str) or not isinstance(start, str):
            raise ValueError("Village interval requires 'village_id' and 'from'")
        return cls(
            village_id=village_id,
            start=_parse_day(start),
            end=_parse_day(end) if isinstance(end, str) and end else None,
        )


type VillageHistory = tuple[VillageInterval, ...]


def ensure_single_open_interval(history: Iterable[VillageInterval]) -> VillageHistory:
    intervals = tuple(history)
    open_count = sum(1 for interval in intervals if interval.is_open)
    if open_count > 1:
        raise VillageHistoryError(
            f"Village history has {open_count} open intervals; at most one is allowed"
        )
    return intervals


def _parse_day(value: str) -> date:
    # older rows stored full ISO timestamps
    return date.fromisoformat(value[:10])


@dataclass(eq=False, kw_only=True)
class LocalIdentity(Entity):
    """Local user record reconciled against HRIS employees."""

    email: str
    display_name: str
    role: Role = Role.USER
    employee_id: str | None = None
    current_village_id: str | None = None
    village_history: VillageHistory = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.village_history = ensure_single_open_interval(self.village_history)

    @property
    def open_interval(self) -> VillageInterval | None:
        for interval in self.village_history:
            if interval.is_open:
                return interval
        return None

    def move_to_village(self, village_id: str, *, effective: date) -> bool:
        """Close the open assignment and open ``village_id`` from ``effective``.

        Returns ``False`` when the identity already sits in ``village_id``.
        """

        if village_id == self.current_village_id:
            return False
        history = [
            interval.close(effective) if interval.is_open else interval
            for interval in self.village_history
        ]
        history.append(VillageInterval(village_id=village_id, start=effective))
        self.village_history = ensure_single_open_interval(history)
        self.current_village_id = village_id
        return True

    def to_snapshot(self) -> dict[str, object]:
        return {
            "id": str(self.id),
            "employee_id": self.employee_id,
            "email": self.email,
            "display_name": self.display_name,
            "current_village_id": self.current_village_id,
            "role": self.role.value,
        }
