from __future__ import annotations

import pytest

from returnsync.config import MissingConfigurationError, get_smartstore_config, get_zigzag_config


def test_smartstore_config_reads_store_specific_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORE_B_CLIENT_ID", "id-b")
    monkeypatch.setenv("STORE_B_CLIENT_SECRET", "secret-b")

    config = get_smartstore_config("B")

    assert config.client_id == "id-b"
    assert config.client_secret == "secret-b"
    assert config.resilience.name == "smartstore-b"
    # Store B is written to, so its reads must never be served from cache.
    assert config.resilience.cache is None


def test_primary_store_caches_listing_reads_only(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORE_A_CLIENT_ID", "id-a")
    monkeypatch.setenv("STORE_A_CLIENT_SECRET", "secret-a")

    cache = get_smartstore_config("A").resilience.cache

    assert cache is not None
    assert cache.should_cache is not None
    assert cache.should_cache({"originProduct": {}})
    assert not cache.should_cache({"data": []})


def test_smartstore_config_requires_both_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORE_A_CLIENT_ID", "id-a")
    monkeypatch.delenv("STORE_A_CLIENT_SECRET", raising=False)

    with pytest.raises(MissingConfigurationError, match="STORE_A_CLIENT_SECRET"):
        get_smartstore_config("A")


def test_zigzag_retries_graphql_posts(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ZIGZAG_ACCESS_KEY", "ak")
    monkeypatch.setenv("ZIGZAG_SECRET_KEY", "sk")

    config = get_zigzag_config()

    assert "POST" in config.resilience.retry.allowed_methods
