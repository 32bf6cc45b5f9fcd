"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EmployeeStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DEPARTED = "departed"


class Role(StrEnum):
    USER = "USER"
    PM = "PM"
    PO = "PO"
    RESEARCHER = "RESEARCHER"
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"


class ConflictType(StrEnum):
    EMAIL_CHANGE = "email_change"
    DUPLICATE_EMAIL = "duplicate_email"
    VILLAGE_NOT_FOUND = "village_not_found"


class ConflictStatus(StrEnum):
    PENDING = "pending"
    AUTO_RESOLVED = "auto_resolved"
    MANUALLY_RESOLVED = "manually_resolved"
    IGNORED = "ignored"


class ResolutionKind(StrEnum):
    KEEP_SYSTEM = "keep_system"
    USE_HRIS = "use_hris"
    MERGE = "merge"
    CREATE_NEW = "create_new"


class SyncType(StrEnum):
    FULL = "full"
    INCREMENTAL = "incremental"
    MANUAL = "manual"


class SyncStatus(StrEnum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"
