"""Tests for settings loading and validation."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.core.config import EnvironmentMode, Settings, StorageBackend


class TestDefaults:
    def test_development_uses_memory(self, monkeypatch):
        monkeypatch.delenv("STORAGE_BACKEND", raising=False)
        settings = Settings(_env_file=None)

        assert settings.env_mode == EnvironmentMode.DEVELOPMENT
        assert settings.is_development
        assert settings.resolved_storage_backend == StorageBackend.MEMORY

    def test_business_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.service_charge_rate == Decimal("0.10")
        assert settings.top_items_limit == 10
        assert settings.api_prefix == "/api"
        assert settings.legacy_route_prefix == "/make-server-5c1c75e3"
        assert settings.excel_export_enabled is False


class TestEnvironment:
    def test_env_mode_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("ENV_MODE", "PRODUCTION")
        settings = Settings(_env_file=None)

        assert settings.is_production
        assert settings.use_real_services

    def test_invalid_env_mode(self, monkeypatch):
        monkeypatch.setenv("ENV_MODE", "qa")
        with pytest.raises(ValidationError, match="Invalid env_mode"):
            Settings(_env_file=None)

    def test_staging_defaults_to_sql(self, monkeypatch):
        monkeypatch.setenv("ENV_MODE", "staging")
        monkeypatch.delenv("STORAGE_BACKEND", raising=False)

        assert Settings(_env_file=None).resolved_storage_backend == StorageBackend.SQL

    def test_explicit_backend_wins(self, monkeypatch):
        monkeypatch.setenv("ENV_MODE", "production")
        monkeypatch.setenv("STORAGE_BACKEND", "Redis")

        assert Settings(_env_file=None).resolved_storage_backend == StorageBackend.REDIS

    def test_service_charge_rate_from_env(self, monkeypatch):
        monkeypatch.setenv("SERVICE_CHARGE_RATE", "0.15")
        assert Settings(_env_file=None).service_charge_rate == Decimal("0.15")

    def test_service_charge_rate_bounds(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, service_charge_rate=Decimal("1.5"))


class TestProductionConfig:
    def test_development_never_complains(self):
        assert Settings(_env_file=None, debug=True).validate_production_config() == []

    def test_memory_store_in_production(self):
        settings = Settings(
            _env_file=None,
            env_mode="production",
            storage_backend="memory",
            debug=True,
        )
        assert settings.validate_production_config() == ["STORAGE_BACKEND", "DEBUG"]

    def test_sql_without_url(self):
        settings = Settings(_env_file=None, env_mode="production", storage_backend="sql", database_url="")
        assert settings.validate_production_config() == ["DATABASE_URL"]
