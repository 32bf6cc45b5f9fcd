"""SQLAlchemy mapping metadata for the hrisync domain model."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
    text,
)
from sqlalchemy.orm import configure_mappers

from hrisync.domain.model import (
    Conflict,
    ConflictStatus,
    ConflictType,
    LocalIdentity,
    ResolutionKind,
    Role,
    SyncRun,
    SyncStatus,
    SyncType,
    Village,
    VillageInterval,
)

if TYPE_CHECKING:
    from hrisync.domain.model import VillageHistory

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


def _enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


def _enum_column(enum_cls: type[StrEnum]) -> Enum:
    return Enum(enum_cls, native_enum=False, values_callable=_enum_values, length=32)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class VillageHistoryType(TypeDecorator[tuple[VillageInterval, ...]]):
    """Village history stored as a JSON list of ``{village_id, from, to}`` objects."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: VillageHistory | None, dialect: Dialect) -> str:
        _ = dialect
        return json.dumps([interval.to_snapshot() for interval in value or ()])

    def process_result_value(self, value: str | None, dialect: Dialect) -> VillageHistory:
        _ = dialect
        if not value:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        items = cast(list[Any], loaded)
        return tuple(
            VillageInterval.from_snapshot(cast(dict[str, object], item))
            for item in items
            if isinstance(item, dict)
        )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

village_table = Table(
    "village",
    mapper_registry.metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=True),
)

identity_table = Table(
    "identity",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("employee_id", String, nullable=True, unique=True),
    Column("email", String, nullable=False, unique=True),
    Column("display_name", String, nullable=False),
    Column("role", _enum_column(Role), nullable=False),
    Column("current_village_id", String, nullable=True),
    Column("village_history", VillageHistoryType(), nullable=False, default=()),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
)

sync_run_table = Table(
    "sync_run",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("sync_type", _enum_column(SyncType), nullable=False),
    Column("status", _enum_column(SyncStatus), nullable=False),
    Column("triggered_by", String, nullable=True),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("completed_at", UTCDateTime(), nullable=True),
    Column("records_processed", Integer, nullable=False, default=0),
    Column("records_created", Integer, nullable=False, default=0),
    Column("records_updated", Integer, nullable=False, default=0),
    Column("records_unchanged", Integer, nullable=False, default=0),
    Column("records_failed", Integer, nullable=False, default=0),
    Column("conflicts_detected", Integer, nullable=False, default=0),
    Column("conflicts_auto_resolved", Integer, nullable=False, default=0),
    Column("error_details", JSON, nullable=True),
    Column("error_message", Text, nullable=True),
    Column("options", JSON, nullable=False, default=dict),
)

IN_PROGRESS_CLAUSE = f"status = '{SyncStatus.IN_PROGRESS.value}'"

# at most one run may be in progress at a time
Index(
    "uq_sync_run_single_in_progress",
    sync_run_table.c.status,
    unique=True,
    sqlite_where=text(IN_PROGRESS_CLAUSE),
    postgresql_where=text(IN_PROGRESS_CLAUSE),
)
Index("ix_sync_run_started_at", sync_run_table.c.started_at)

conflict_table = Table(
    "conflict",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("sync_id", UUIDColumnType, ForeignKey("sync_run.id"), nullable=False, index=True),
    Column("conflict_type", _enum_column(ConflictType), nullable=False),
    Column("hris_employee_id", String, nullable=False),
    Column("hris_email", String, nullable=True),
    Column("hris_data", JSON, nullable=False),
    Column("existing_user_id", UUIDColumnType, ForeignKey("identity.id"), nullable=True),
    Column("system_data", JSON, nullable=True),
    Column("status", _enum_column(ConflictStatus), nullable=False, index=True),
    Column("resolution", _enum_column(ResolutionKind), nullable=True),
    Column("resolved_by", String, nullable=True),
    Column("resolved_at", UTCDateTime(), nullable=True),
    Column("resolution_notes", Text, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
)


@cache
def start_mappers() -> orm.registry:
    """Map domain dataclasses onto their tables; safe to call repeatedly."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Village, village_table)
    mapper_registry.map_imperatively(LocalIdentity, identity_table)
    mapper_registry.map_imperatively(SyncRun, sync_run_table)
    mapper_registry.map_imperatively(Conflict, conflict_table)

    configure_mappers()
    return mapper_registry
