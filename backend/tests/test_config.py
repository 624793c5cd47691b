"""Tests for settings validation and collaborator construction."""

import pytest
from pydantic import ValidationError

from console.api.deps import build_data_source, build_session_storage
from console.auth.storage import MemorySessionStorage, RedisSessionStorage
from console.config import Settings
from console.datasource.http import HttpDataSource
from console.datasource.mock import MockDataSource

PRODUCTION_OK = {
    "environment": "production",
    "secret_key": "a-real-secret",
    "data_source": "http",
    "session_backend": "redis",
    "demo_login_enabled": False,
}


class TestProductionSettings:
    def test_valid_production_settings(self):
        assert Settings(**PRODUCTION_OK).environment == "production"

    @pytest.mark.parametrize("override", [
        {"secret_key": "dev-secret-key-change-in-production"},
        {"data_source": "mock"},
        {"session_backend": "memory"},
        {"demo_login_enabled": True},
    ])
    def test_unsafe_production_settings_are_refused(self, override):
        with pytest.raises(ValidationError):
            Settings(**{**PRODUCTION_OK, **override})

    def test_development_defaults_are_accepted(self):
        config = Settings(environment="development", data_source="mock", session_backend="memory")
        assert config.demo_login_enabled is True


class TestBuilders:
    def test_mock_data_source(self):
        source = build_data_source(Settings(data_source="mock", mock_latency_ms=5))
        assert isinstance(source, MockDataSource)
        assert source.latency_ms == 5

    def test_http_data_source(self):
        assert isinstance(build_data_source(Settings(data_source="http")), HttpDataSource)

    def test_memory_storage(self):
        assert isinstance(build_session_storage(Settings(session_backend="memory")), MemorySessionStorage)

    def test_redis_storage(self):
        storage = build_session_storage(Settings(session_backend="redis", session_key_prefix="x"))
        assert isinstance(storage, RedisSessionStorage)
        assert storage.prefix == "x"

    @pytest.mark.parametrize("field", ["data_source", "session_backend"])
    def test_unknown_backend(self, field):
        config = Settings(**{field: "carrier-pigeon"})
        builder = build_data_source if field == "data_source" else build_session_storage
        with pytest.raises(ValueError):
            builder(config)
