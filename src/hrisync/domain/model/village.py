"""Known villages (locations) an identity can be assigned to."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False, kw_only=True)
class Village:
    id: str
    name: str | None = None
