from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest  # noqa: TC002

from returnsync.config import storage


def test_get_storage_config_prefers_explicit_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("RETURNSYNC_DATA_DIR", str(custom))

    result = storage.get_storage_config().resolve_data_dir()

    assert result == custom.resolve()


def test_get_database_config_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert storage.get_database_config().uri == "sqlite:///override.db"


def test_get_database_config_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("RETURNSYNC_DATA_DIR", str(tmp_path / "data-dir"))

    uri = storage.get_database_config().uri

    expected_path = (tmp_path / "data-dir" / storage.DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_http_cache_lives_in_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RETURNSYNC_DATA_DIR", str(tmp_path))

    assert storage.get_http_cache_path() == tmp_path.resolve() / storage.HTTP_CACHE_FILENAME


def test_sqlite_engines_wait_on_locked_files() -> None:
    sqlite = storage.DatabaseConfig(uri="sqlite+pysqlite:///state.db")
    server = storage.DatabaseConfig(uri="postgresql+psycopg://db/returnsync")

    assert sqlite.is_sqlite
    assert sqlite.engine_options() == {"connect_args": {"timeout": storage.SQLITE_BUSY_TIMEOUT}}
    assert server.engine_options() == {"pool_pre_ping": True}
