from __future__ import annotations

import pytest

from returnsync.config import (
    ConfigurationError,
    MissingConfigurationError,
    get_sync_config,
    require_env_var,
    require_env_vars,
)
from returnsync.config.env import optional_float, optional_int


def test_require_env_vars_returns_stripped_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", " value ")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_names_every_missing_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.delenv("MISSING_A", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_optional_numbers_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_INT", raising=False)
    monkeypatch.setenv("EXAMPLE_FLOAT", "")

    assert optional_int("EXAMPLE_INT", 7) == 7
    assert optional_float("EXAMPLE_FLOAT", 0.5) == 0.5


def test_optional_numbers_reject_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_INT", "five")

    with pytest.raises(ConfigurationError, match="EXAMPLE_INT"):
        optional_int("EXAMPLE_INT", 7)


def test_sync_config_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SYNC_DETAIL_BATCH_SIZE", "20")
    monkeypatch.setenv("SYNC_ITEM_PAUSE_SECONDS", "0")
    monkeypatch.delenv("SYNC_INTERVAL_MINUTES", raising=False)

    config = get_sync_config()

    assert config.detail_batch_size == 20
    assert config.item_pause_seconds == 0.0
    assert config.interval_minutes == 5


def test_missing_configuration_error_exposes_names() -> None:
    error = MissingConfigurationError(["ZIGZAG_SECRET_KEY", "ZIGZAG_ACCESS_KEY"])

    assert error.names == ("ZIGZAG_ACCESS_KEY", "ZIGZAG_SECRET_KEY")
