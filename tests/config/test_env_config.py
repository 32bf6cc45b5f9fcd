from __future__ import annotations

import os

import pytest

from hrisync.config import (
    ConfigurationError,
    MissingConfigurationError,
    env_flag,
    env_number,
    get_sync_config,
    is_sync_enabled,
    require_env_var,
    require_env_vars,
    use_fixture_client,
)


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.setenv("MISSING_B", "  ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert str(exc.value) == "Missing configuration for: MISSING_A, MISSING_B"
    assert isinstance(exc.value, ConfigurationError)


def test_require_env_var_reads_single_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEMP_VAR", "123")

    assert os.getenv("TEMP_VAR") == "123"
    assert require_env_var("TEMP_VAR") == "123"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("true", True), ("1", True), (" YES ", True), ("false", False), ("0", False), ("", False)],
)
def test_env_flag(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", raw)

    assert env_flag("EXAMPLE_FLAG") is expected


def test_env_number_defaults_and_validation(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_NUMBER", raising=False)
    assert env_number("EXAMPLE_NUMBER", 7, cast=int) == 7

    monkeypatch.setenv("EXAMPLE_NUMBER", "2.5")
    assert env_number("EXAMPLE_NUMBER", 1.0, cast=float) == 2.5

    monkeypatch.setenv("EXAMPLE_NUMBER", "abc")
    with pytest.raises(ConfigurationError, match="Invalid value for EXAMPLE_NUMBER"):
        env_number("EXAMPLE_NUMBER", 1, cast=int)

    monkeypatch.setenv("EXAMPLE_NUMBER", "-3")
    with pytest.raises(ConfigurationError, match="non-negative"):
        env_number("EXAMPLE_NUMBER", 1, cast=int)


def test_sync_switches_default_off(monkeypatch: pytest.MonkeyPatch) -> None:
    assert is_sync_enabled() is False
    assert use_fixture_client() is False

    monkeypatch.setenv("HRIS_SYNC_ENABLED", "true")
    monkeypatch.setenv("HRIS_USE_FIXTURES", "true")

    assert is_sync_enabled() is True
    assert use_fixture_client() is True


def test_sync_config_history_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    assert get_sync_config().history_limit == 20
    assert get_sync_config().system_actor == "system"

    monkeypatch.setenv("HRIS_HISTORY_LIMIT", "5")

    assert get_sync_config().history_limit == 5
