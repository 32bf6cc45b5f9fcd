"""Reconcile outcome types.

Each outcome is a frozen dataclass tagged with its ``action``; ``ReconcileOutcome``
is the closed union the orchestrator matches on.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from uuid import UUID

    from hrisync.domain.model import Conflict, ConflictType


class ReconcileAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    CONFLICT = "conflict"
    SKIP = "skip"


@dataclass(frozen=True, slots=True, kw_only=True)
class CreateDecision:
    """No identity matches; a new one should be created."""

    reason: str
    action: Literal[ReconcileAction.CREATE] = ReconcileAction.CREATE


@dataclass(frozen=True, slots=True, kw_only=True)
class UpdateDecision:
    """The employee maps onto one existing identity."""

    user_id: UUID
    reason: str
    action: Literal[ReconcileAction.UPDATE] = ReconcileAction.UPDATE


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictDecision:
    """The employee cannot be matched unambiguously.

    ``persisted`` is ``False`` for classification-only decisions.
    """

    conflict: Conflict
    reason: str
    persisted: bool = True
    action: Literal[ReconcileAction.CONFLICT] = ReconcileAction.CONFLICT

    @property
    def conflict_type(self) -> ConflictType:
        return self.conflict.conflict_type

    @property
    def conflict_id(self) -> UUID:
        return self.conflict.id

    @property
    def user_id(self) -> UUID | None:
        return self.conflict.existing_user_id


@dataclass(frozen=True, slots=True, kw_only=True)
class SkipDecision:
    """Reconciliation failed for this employee; ``reason`` holds the error message."""

    reason: str
    action: Literal[ReconcileAction.SKIP] = ReconcileAction.SKIP


type ReconcileOutcome = CreateDecision | UpdateDecision | ConflictDecision | SkipDecision
