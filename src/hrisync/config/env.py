"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    values = {name: os.getenv(name, "") for name in names}
    missing = sorted(name for name, value in values.items() if not value.strip())
    if missing:
        raise MissingConfigurationError(f"Missing configuration for: {', '.join(missing)}")
    return values


def require_env_var(name: str) -> str:
    """Return a required environment variable by name."""

    return require_env_vars([name])[name]


def env_flag(name: str, *, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUTHY


def env_number[TNumber: (int, float)](
    name: str,
    default: TNumber,
    *,
    cast: type[TNumber],
) -> TNumber:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = cast(value.strip())
    except ValueError as exc:
        raise ConfigurationError(f"Invalid value for {name}: {value!r}") from exc
    if parsed < 0:
        raise ConfigurationError(f"{name} must be non-negative")
    return parsed
