"""Audit sinks forwarding domain audit entries to an external log."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from logging import Logger, getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hrisync.domain.ports import AuditEntry, AuditSink

AUDIT_LOGGER_NAME = "hrisync.audit"


@dataclass(slots=True)
class LoggingAuditSink:
    """Write each audit entry as one JSON line on the ``hrisync.audit`` logger."""

    logger: Logger = field(default_factory=lambda: getLogger(AUDIT_LOGGER_NAME))

    def record(self, entry: AuditEntry) -> None:
        payload = {
            "action": entry.action.value,
            "actor": entry.actor,
            "resource_id": entry.resource_id,
            "resource_type": entry.resource_type.value,
            "metadata": entry.metadata,
        }
        self.logger.info(json.dumps(payload, default=str, sort_keys=True))


if TYPE_CHECKING:
    _sink_check: AuditSink = LoggingAuditSink()
