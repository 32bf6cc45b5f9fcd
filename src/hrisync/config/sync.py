"""Synchronization defaults for HRIS sync runs."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_number

DEFAULT_HISTORY_LIMIT = 20
SYSTEM_ACTOR = "system"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    history_limit: int = DEFAULT_HISTORY_LIMIT
    system_actor: str = SYSTEM_ACTOR


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        history_limit=env_number("HRIS_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT, cast=int),
    )
