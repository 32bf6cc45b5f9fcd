"""Reconciliation of HRIS employees against local identities."""

from __future__ import annotations

from .changes import (
    IdentityChanges,
    VillageMove,
    apply_identity_changes,
    identity_from_employee,
    plan_identity_merge,
    plan_identity_update,
)
from .contracts import (
    ConflictDecision,
    CreateDecision,
    ReconcileAction,
    ReconcileOutcome,
    SkipDecision,
    UpdateDecision,
)
from .engine import ReconciliationEngine

__all__ = [
    "ConflictDecision",
    "CreateDecision",
    "IdentityChanges",
    "ReconcileAction",
    "ReconcileOutcome",
    "ReconciliationEngine",
    "SkipDecision",
    "UpdateDecision",
    "VillageMove",
    "apply_identity_changes",
    "identity_from_employee",
    "plan_identity_merge",
    "plan_identity_update",
]
