"""Transport settings for the HRIS HTTP client.

The HRIS API is read-only from our side, so retries only ever cover GET requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Transport-level retries; ``total=0`` leaves retrying to the caller."""

    total: int = 0
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    retry_statuses: frozenset[int] = TRANSIENT_STATUSES

    @property
    def enabled(self) -> bool:
        return self.total > 0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float = 1.0


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    base_url: str
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] = field(default_factory=dict[str, str])
