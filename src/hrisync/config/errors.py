"""Configuration failures surfaced before any HRIS call or database write."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """An environment value is unusable, or a guarded feature is switched off."""


class MissingConfigurationError(ConfigurationError):
    """One or more required environment variables are unset or blank."""
