"""Error taxonomy for HRIS synchronisation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class HrisSyncError(RuntimeError):
    """Base class for all HRIS sync failures."""


class FetchError(HrisSyncError):
    """Raised when employee records cannot be acquired from the HRIS."""


class NetworkError(FetchError):
    """HRIS unreachable, timed out, or answered with a non-success response.

    Retryable by the caller; the client never retries on its own unless configured to.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SchemaError(FetchError):
    """HRIS response did not match the expected employee payload shape."""


class FatalSyncError(HrisSyncError):
    """Fetch-level failure that aborted a whole sync run."""

    def __init__(self, message: str, *, sync_id: UUID) -> None:
        super().__init__(message)
        self.sync_id = sync_id


class SyncAlreadyRunningError(HrisSyncError):
    """Raised when a run is requested while another run is still in progress."""


class SyncRunStateError(HrisSyncError):
    """Raised when a sync run is finalised twice."""


class RecordError(HrisSyncError):
    """Processing of a single employee record failed."""

    def __init__(self, employee_id: str, message: str) -> None:
        super().__init__(message)
        self.employee_id = employee_id
        self.message = message


class NotFoundError(HrisSyncError):
    """Raised when a referenced record does not exist."""


class ConflictNotFoundError(NotFoundError):
    def __init__(self, conflict_id: UUID) -> None:
        super().__init__(f"Conflict {conflict_id} not found")
        self.conflict_id = conflict_id


class IdentityNotFoundError(NotFoundError):
    def __init__(self, identity_id: UUID) -> None:
        super().__init__(f"Identity {identity_id} not found")
        self.identity_id = identity_id


class AlreadyResolvedError(HrisSyncError):
    """Raised when resolving a conflict that is no longer pending."""


class InvalidResolutionError(HrisSyncError):
    """Raised when a manual resolution cannot be applied to the conflict."""


class VillageHistoryError(HrisSyncError):
    """Raised when a village history would hold more than one open interval."""
