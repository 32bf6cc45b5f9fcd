"""Planning and applying identity mutations derived from HRIS employees."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING

from hrisync.domain.model import LocalIdentity, Role, VillageInterval

if TYPE_CHECKING:
    from datetime import date, datetime

    from hrisync.domain.model import ExternalEmployee


@dataclass(frozen=True, slots=True)
class VillageMove:
    village_id: str
    effective: date


@dataclass(frozen=True, slots=True, kw_only=True)
class IdentityChanges:
    """Field changes for one identity; ``None`` means leave the field alone."""

    employee_id: str | None = None
    email: str | None = None
    display_name: str | None = None
    role: Role | None = None
    village: VillageMove | None = None

    @property
    def changed_fields(self) -> tuple[str, ...]:
        return tuple(f.name for f in fields(self) if getattr(self, f.name) is not None)

    @property
    def is_empty(self) -> bool:
        return not self.changed_fields


def plan_identity_update(
    identity: LocalIdentity,
    employee: ExternalEmployee,
    *,
    on: date,
) -> IdentityChanges:
    """Overwrite identity fields with the HRIS values that differ.

    A missing HRIS role or village keeps the local value. A village move takes
    effect on ``transfer_date`` when the HRIS provides one, otherwise on ``on``.
    """

    village: VillageMove | None = None
    if employee.village_id and employee.village_id != identity.current_village_id:
        village = VillageMove(employee.village_id, employee.transfer_date or on)
    return IdentityChanges(
        employee_id=_differs(identity.employee_id, employee.employee_id),
        email=_differs(identity.email, employee.email),
        display_name=_differs(identity.display_name, employee.full_name),
        role=employee.role if employee.role is not None and employee.role != identity.role else None,
        village=village,
    )


def plan_identity_merge(
    identity: LocalIdentity,
    employee: ExternalEmployee,
    *,
    on: date,
) -> IdentityChanges:
    """Fill empty local fields and take the HRIS village; email and employee_id stay."""

    village: VillageMove | None = None
    if employee.village_id and employee.village_id != identity.current_village_id:
        village = VillageMove(employee.village_id, employee.transfer_date or on)
    return IdentityChanges(
        display_name=None if identity.display_name else employee.full_name,
        village=village,
    )


def apply_identity_changes(
    identity: LocalIdentity,
    changes: IdentityChanges,
    *,
    at: datetime,
) -> bool:
    """Mutate ``identity`` in place; returns ``False`` when nothing changed."""

    if changes.is_empty:
        return False
    if changes.employee_id is not None:
        identity.employee_id = changes.employee_id
    if changes.email is not None:
        identity.email = changes.email
    if changes.display_name is not None:
        identity.display_name = changes.display_name
    if changes.role is not None:
        identity.role = changes.role
    if changes.village is not None:
        identity.move_to_village(changes.village.village_id, effective=changes.village.effective)
    identity.updated_at = at
    return True


def identity_from_employee(
    employee: ExternalEmployee,
    *,
    on: date,
    at: datetime,
    assign_village: bool = True,
) -> LocalIdentity:
    """Build a fresh identity; the opening village interval starts at ``start_date``."""

    village_id = employee.village_id if assign_village else None
    history: tuple[VillageInterval, ...] = ()
    if village_id:
        history = (VillageInterval(village_id=village_id, start=employee.start_date or on),)
    return LocalIdentity(
        email=employee.email,
        display_name=employee.full_name,
        role=employee.role or Role.USER,
        employee_id=employee.employee_id,
        current_village_id=village_id or None,
        village_history=history,
        created_at=at,
        updated_at=at,
    )


def _differs(current: str | None, incoming: str) -> str | None:
    return incoming if incoming != current else None
