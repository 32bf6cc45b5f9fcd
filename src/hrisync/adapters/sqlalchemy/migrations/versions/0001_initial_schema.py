"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa
from alembic import op

from hrisync.adapters.sqlalchemy.mappings import UTCDateTime, VillageHistoryType

if TYPE_CHECKING:
    from collections.abc import Sequence

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_ENUM = sa.String(length=32)
_IN_PROGRESS = sa.text("status = 'in_progress'")


def upgrade() -> None:
    op.create_table(
        "village",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_village"),
    )
    op.create_table(
        "identity",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("role", _ENUM, nullable=False),
        sa.Column("current_village_id", sa.String(), nullable=True),
        sa.Column("village_history", VillageHistoryType(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_identity"),
        sa.UniqueConstraint("employee_id", name="uq_identity_employee_id"),
        sa.UniqueConstraint("email", name="uq_identity_email"),
    )
    op.create_table(
        "sync_run",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("sync_type", _ENUM, nullable=False),
        sa.Column("status", _ENUM, nullable=False),
        sa.Column("triggered_by", sa.String(), nullable=True),
        sa.Column("started_at", UTCDateTime(), nullable=False),
        sa.Column("completed_at", UTCDateTime(), nullable=True),
        sa.Column("records_processed", sa.Integer(), nullable=False),
        sa.Column("records_created", sa.Integer(), nullable=False),
        sa.Column("records_updated", sa.Integer(), nullable=False),
        sa.Column("records_unchanged", sa.Integer(), nullable=False),
        sa.Column("records_failed", sa.Integer(), nullable=False),
        sa.Column("conflicts_detected", sa.Integer(), nullable=False),
        sa.Column("conflicts_auto_resolved", sa.Integer(), nullable=False),
        sa.Column("error_details", sa.JSON(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_sync_run"),
    )
    op.create_index(
        "uq_sync_run_single_in_progress",
        "sync_run",
        ["status"],
        unique=True,
        sqlite_where=_IN_PROGRESS,
        postgresql_where=_IN_PROGRESS,
    )
    op.create_index("ix_sync_run_started_at", "sync_run", ["started_at"])
    op.create_table(
        "conflict",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("sync_id", sa.Uuid(), nullable=False),
        sa.Column("conflict_type", _ENUM, nullable=False),
        sa.Column("hris_employee_id", sa.String(), nullable=False),
        sa.Column("hris_email", sa.String(), nullable=True),
        sa.Column("hris_data", sa.JSON(), nullable=False),
        sa.Column("existing_user_id", sa.Uuid(), nullable=True),
        sa.Column("system_data", sa.JSON(), nullable=True),
        sa.Column("status", _ENUM, nullable=False),
        sa.Column("resolution", _ENUM, nullable=True),
        sa.Column("resolved_by", sa.String(), nullable=True),
        sa.Column("resolved_at", UTCDateTime(), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["sync_id"], ["sync_run.id"], name="fk_conflict_sync_id_sync_run"
        ),
        sa.ForeignKeyConstraint(
            ["existing_user_id"], ["identity.id"], name="fk_conflict_existing_user_id_identity"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_conflict"),
    )
    op.create_index("ix_conflict_sync_id", "conflict", ["sync_id"])
    op.create_index("ix_conflict_status", "conflict", ["status"])


def downgrade() -> None:
    op.drop_index("ix_conflict_status", table_name="conflict")
    op.drop_index("ix_conflict_sync_id", table_name="conflict")
    op.drop_table("conflict")
    op.drop_index("ix_sync_run_started_at", table_name="sync_run")
    op.drop_index("uq_sync_run_single_in_progress", table_name="sync_run")
    op.drop_table("sync_run")
    op.drop_table("identity")
    op.drop_table("village")
