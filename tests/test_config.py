"""Tests for configuration management."""

import pytest
from pydantic import ValidationError

from pldg.config import Settings
from pldg.sources import SourceType


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Run each test away from any real .env file."""
    monkeypatch.chdir(tmp_path)
    for var in (
        "DATA_BASE_URL", "DATA_DIR", "DEFAULT_SOURCE", "DEFAULT_COHORT",
        "FALLBACK_ORDER", "CACHE_TTL_MS", "ATTEMPT_TIMEOUT", "LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)


def test_settings_has_defaults():
    """Settings should have sensible defaults for every field."""
    settings = Settings()

    assert settings.data_base_url == "http://localhost:3000"
    assert settings.data_dir is None
    assert settings.default_source is SourceType.CSV
    assert settings.default_cohort == "2"
    assert settings.fallback_order == [SourceType.CSV, SourceType.MONGODB, SourceType.STORACHA]
    assert settings.cache_ttl_ms == 300_000
    assert settings.attempt_timeout == 10.0
    assert settings.log_level == "INFO"


def test_settings_loads_from_env(monkeypatch):
    """Settings should load overrides from environment variables."""
    monkeypatch.setenv("DATA_BASE_URL", "https://dashboard.example.org")
    monkeypatch.setenv("DEFAULT_SOURCE", "storacha")
    monkeypatch.setenv("CACHE_TTL_MS", "60000")
    monkeypatch.setenv("FALLBACK_ORDER", '["storacha", "csv"]')

    settings = Settings()

    assert settings.data_base_url == "https://dashboard.example.org"
    assert settings.default_source is SourceType.STORACHA
    assert settings.cache_ttl_ms == 60_000
    assert settings.fallback_order == [SourceType.STORACHA, SourceType.CSV]


def test_settings_loads_from_dotenv(tmp_path):
    """Settings should read a .env file in the working directory."""
    (tmp_path / ".env").write_text("DATA_DIR=/srv/pldg/data\nLOG_LEVEL=debug\n")

    settings = Settings()

    assert settings.data_dir == "/srv/pldg/data"
    assert settings.log_level == "DEBUG"


def test_settings_validates_log_level(monkeypatch):
    """Settings should validate log level."""
    monkeypatch.setenv("LOG_LEVEL", "INVALID")

    with pytest.raises(ValidationError) as exc_info:
        Settings()

    assert "log_level must be one of" in str(exc_info.value)


def test_settings_rejects_unknown_source(monkeypatch):
    """Source names must be SourceType members."""
    monkeypatch.setenv("DEFAULT_SOURCE", "ftp")

    with pytest.raises(ValidationError):
        Settings()


def test_settings_rejects_duplicate_fallback(monkeypatch):
    """Each source may appear once in the fallback order."""
    monkeypatch.setenv("FALLBACK_ORDER", '["csv", "csv"]')

    with pytest.raises(ValidationError) as exc_info:
        Settings()

    assert "duplicates" in str(exc_info.value)


def test_settings_rejects_non_positive_timeout(monkeypatch):
    """Attempt timeout must be positive."""
    monkeypatch.setenv("ATTEMPT_TIMEOUT", "0")

    with pytest.raises(ValidationError):
        Settings()
