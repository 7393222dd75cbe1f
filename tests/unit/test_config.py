"""Unit tests for config module."""

import pytest
from pydantic import SecretStr, ValidationError

from app.core.config import (
    AppConfig,
    AppEnvironment,
    ForensicsConfig,
    GeminiConfig,
    SecurityConfig,
    ServerConfig,
    Settings,
    StorageConfig,
)


def test_app_config_defaults():
    config = AppConfig()
    assert config.name == "campaign-forensics-service"
    assert config.version == "0.1.0"
    assert config.api_prefix == "/api/v1"


def test_app_config_env_parsing():
    config = AppConfig(env="prod")
    assert config.env == AppEnvironment.PROD


def test_server_config_port_from_env(monkeypatch):
    monkeypatch.setenv("SERVER_PORT", "3100")
    assert ServerConfig().port == 3100


def test_forensics_defaults():
    config = ForensicsConfig()
    assert config.max_media_items == 10
    assert config.max_exif_images == 3
    assert config.max_reverse_images == 2
    assert config.max_donors_checked == 5
    assert config.burner_max_age_hours == 24
    assert config.burner_max_nonce == 5
    assert config.media_poll_interval_seconds == 2.0
    assert config.media_poll_max_attempts == 30
    assert config.deep_investigation_threshold == 50


def test_gemini_defaults():
    config = GeminiConfig()
    assert config.model == "gemini-2.5-flash"
    assert config.deep_research_agent


def test_storage_base_url_strips_trailing_slash():
    config = StorageConfig(url="https://project.supabase.co/")
    assert config.storage_base_url == "https://project.supabase.co/storage/v1"


def test_cors_origins_split():
    config = SecurityConfig(cors_allowed_origins="https://a.example, https://b.example")
    assert config.cors_allowed_origins == ["https://a.example", "https://b.example"]


def test_jwt_secret_accepts_supabase_env_name(monkeypatch):
    monkeypatch.setenv("SUPABASE_JWT_SECRET", "from-supabase")
    assert SecurityConfig().jwt_secret.get_secret_value() == "from-supabase"


def test_skip_jwt_validation_refused_outside_local():
    with pytest.raises(ValidationError):
        Settings(
            app=AppConfig(env="test"),
            security=SecurityConfig(skip_jwt_validation=True),
        )


def test_prod_requires_jwt_secret():
    with pytest.raises(ValidationError):
        Settings(
            app=AppConfig(env="prod"),
            security=SecurityConfig(skip_jwt_validation=False, jwt_secret=SecretStr("")),
        )


def test_prod_with_secret_is_valid():
    settings = Settings(
        app=AppConfig(env="prod"),
        security=SecurityConfig(skip_jwt_validation=False, jwt_secret=SecretStr("s3cret")),
    )
    assert settings.app.env == AppEnvironment.PROD
