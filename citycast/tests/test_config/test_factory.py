"""Tests for building stores and services from config."""

from pathlib import Path

import pytest

from citycast.config.factory import build_aggregator, build_favorites, build_store
from citycast.config.loader import set_config_value
from citycast.config.schema import AppConfig
from citycast.store.errors import StoreError
from citycast.store.postgrest import API_KEY_ENV, PostgrestStore
from citycast.store.sqlite_store import SqliteStore


class TestBuildStore:
    def test_sqlite_default(self, tmp_path: Path):
        store = build_store(AppConfig(), str(tmp_path / "f.db"))
        assert isinstance(store, SqliteStore)
        assert (tmp_path / "f.db").exists()
        store.conn.close()

    def test_postgrest(self):
        config = AppConfig(store={
            "backend": "postgrest", "url": "https://x.example.com", "api_key": "k",
        })
        store = build_store(config)
        assert isinstance(store, PostgrestStore)
        assert store.base_url == "https://x.example.com"

    def test_postgrest_without_key(self, monkeypatch):
        monkeypatch.delenv(API_KEY_ENV, raising=False)
        config = AppConfig(store={"backend": "postgrest", "url": "https://x.example.com"})
        with pytest.raises(StoreError):
            build_store(config)


class TestBuildServices:
    def test_settings_flow_through(self, store: SqliteStore):
        config = set_config_value(AppConfig(), "aggregation.forecast_days", 5)
        config = set_config_value(config, "store.timeout_seconds", 2.5)
        agg = build_aggregator(config, store)
        favs = build_favorites(config, store)
        assert agg.forecast_days == 5
        assert agg.timeout == 2.5
        assert favs.timeout == 2.5
