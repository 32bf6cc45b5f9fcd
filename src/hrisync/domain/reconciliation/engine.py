"""Identity matching for single HRIS employee records."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from hrisync.domain.model import Conflict, ConflictType, utcnow
from hrisync.domain.reconciliation.contracts import (
    ConflictDecision,
    CreateDecision,
    SkipDecision,
    UpdateDecision,
)

if TYPE_CHECKING:
    from uuid import UUID

    from hrisync.domain.model import Clock, ExternalEmployee, LocalIdentity
    from hrisync.domain.ports import HrisRepositories
    from hrisync.domain.reconciliation.contracts import ReconcileOutcome

log = getLogger(__name__)


@dataclass(slots=True)
class ReconciliationEngine:
    """Classify employees against the identity store.

    Checks run in a fixed order and the first match wins:

    1. same ``employee_id`` and same email: update
    2. same ``employee_id``, different email: ``email_change`` conflict
    3. same email held by another ``employee_id``: ``duplicate_email`` conflict
    4. same email, identity without ``employee_id``: update (backfill)
    5. new employee pointing at an unknown village: ``village_not_found`` conflict
    6. otherwise: create

    When both lookups hit different identities the ``employee_id`` match takes
    precedence, so the result is an ``email_change`` conflict.
    """

    repositories: HrisRepositories
    clock: Clock = field(default=utcnow)

    def reconcile(
        self,
        employee: ExternalEmployee,
        sync_id: UUID,
        *,
        persist: bool = True,
    ) -> ReconcileOutcome:
        """Classify ``employee`` and persist any conflict it produces.

        Never raises: lookup or persistence failures degrade to a skip. With
        ``persist=False`` conflicts are returned unsaved.
        """

        try:
            outcome = self.classify(employee, sync_id)
            if persist and isinstance(outcome, ConflictDecision):
                self.repositories.conflicts.add(outcome.conflict)
                outcome = replace(outcome, persisted=True)
        except Exception as exc:  # noqa: BLE001
            log.warning("Reconciliation of %s failed: %s", employee.employee_id, exc)
            return SkipDecision(reason=str(exc) or type(exc).__name__)
        return outcome

    def classify(self, employee: ExternalEmployee, sync_id: UUID) -> ReconcileOutcome:
        """Classify ``employee`` without writing anything.

        Conflicts are built but not added, so ``persisted`` is ``False``.
        """

        identities = self.repositories.identities
        by_employee_id = identities.get_by_employee_id(employee.employee_id)
        by_email = identities.get_by_email(employee.email)

        if by_employee_id is not None:
            if by_employee_id.email == employee.email:
                return UpdateDecision(user_id=by_employee_id.id, reason="Matched by employee_id")
            return self._conflict(
                employee,
                sync_id,
                ConflictType.EMAIL_CHANGE,
                existing=by_employee_id,
                reason="Email changed in HRIS",
            )

        if by_email is not None:
            if by_email.employee_id is not None and by_email.employee_id != employee.employee_id:
                return self._conflict(
                    employee,
                    sync_id,
                    ConflictType.DUPLICATE_EMAIL,
                    existing=by_email,
                    reason="Email already exists with different employee_id",
                )
            return UpdateDecision(
                user_id=by_email.id,
                reason="Matched by email, will update employee_id",
            )

        village_id = employee.village_id
        if village_id and not self.repositories.villages.exists(village_id):
            return self._conflict(
                employee,
                sync_id,
                ConflictType.VILLAGE_NOT_FOUND,
                existing=None,
                reason=f"Village {village_id} does not exist",
            )

        return CreateDecision(reason="New employee")

    def _conflict(
        self,
        employee: ExternalEmployee,
        sync_id: UUID,
        conflict_type: ConflictType,
        *,
        existing: LocalIdentity | None,
        reason: str,
    ) -> ConflictDecision:
        conflict = Conflict(
            sync_id=sync_id,
            conflict_type=conflict_type,
            hris_employee_id=employee.employee_id,
            hris_email=employee.email,
            hris_data=employee.to_snapshot(),
            existing_user_id=existing.id if existing is not None else None,
            system_data=existing.to_snapshot() if existing is not None else None,
            created_at=self.clock(),
        )
        return ConflictDecision(conflict=conflict, reason=reason, persisted=False)
