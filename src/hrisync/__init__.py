"""Synchronise HRIS employee records into the local identity store."""

from __future__ import annotations

from importlib import metadata

try:
    __version__ = metadata.version("hrisync")
except metadata.PackageNotFoundError:
    __version__ = "0.0.0+local"
