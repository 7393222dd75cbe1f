"""Configuration management for the Campaign Forensics service.

Configuration is loaded from environment variables once at startup and then
passed explicitly to each component at construction.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache

from pydantic import AliasChoices, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(StrEnum):
    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class LogLevel(StrEnum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AppConfig(BaseSettings):
    name: str = Field(default="campaign-forensics-service")
    env: AppEnvironment = Field(default=AppEnvironment.LOCAL)
    version: str = Field(default="0.1.0")
    log_level: LogLevel = Field(default=LogLevel.INFO)
    api_prefix: str = Field(default="/api/v1")

    model_config = SettingsConfigDict(env_prefix="APP_")

    @field_validator("env", mode="before")
    @classmethod
    def validate_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        if isinstance(v, AppEnvironment):
            return v
        return AppEnvironment(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        if isinstance(v, LogLevel):
            return v
        return LogLevel(v)


class ServerConfig(BaseSettings):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    workers: int = Field(default=4)

    model_config = SettingsConfigDict(env_prefix="SERVER_")


class SecurityConfig(BaseSettings):
    cors_allowed_origins: str = Field(default="*")
    cors_allow_methods: list[str] = Field(default=["GET", "POST"])
    cors_allow_headers: list[str] = Field(default=["Authorization", "Content-Type", "X-Request-ID"])
    jwt_secret: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("supabase_jwt_secret", "security_jwt_secret"),
    )
    jwt_audience: str = Field(default="authenticated")
    jwt_algorithms: str = Field(default="HS256")
    skip_jwt_validation: bool = Field(default=False)

    model_config = SettingsConfigDict(env_prefix="SECURITY_", populate_by_name=True)

    @field_validator("cors_allowed_origins", mode="after")
    @classmethod
    def validate_cors_allowed_origins(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("skip_jwt_validation", mode="before")
    @classmethod
    def parse_skip_jwt_validation(cls, v: bool | str) -> bool:
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes", "on")
        return v

    @property
    def algorithms_list(self) -> list[str]:
        return [algo.strip() for algo in self.jwt_algorithms.split(",")]


class ObservabilityConfig(BaseSettings):
    service_name: str = Field(default="campaign-forensics-service")
    otlp_endpoint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("otel_exporter_otlp_endpoint", "otel_otlp_endpoint"),
    )
    otlp_insecure: bool = Field(default=True)
    log_record_format: str = Field(default="json")

    model_config = SettingsConfigDict(env_prefix="OTEL_")


class GeminiConfig(BaseSettings):
    """AI model boundary: one client handle, one model id."""

    api_key: SecretStr = Field(default=SecretStr(""))
    model: str = Field(default="gemini-2.5-flash")
    deep_research_agent: str = Field(default="deep-research-pro-preview-12-2025")
    timeout_seconds: int = Field(default=120)

    model_config = SettingsConfigDict(env_prefix="GEMINI_")


class StorageConfig(BaseSettings):
    url: str = Field(default="")
    key: SecretStr = Field(default=SecretStr(""))
    bucket_name: str = Field(default="campaign-media")
    signed_url_ttl_seconds: int = Field(default=3600)
    timeout_seconds: float = Field(default=30.0)

    model_config = SettingsConfigDict(env_prefix="SUPABASE_")

    @property
    def storage_base_url(self) -> str:
        return f"{self.url.rstrip('/')}/storage/v1"


class EtherscanConfig(BaseSettings):
    api_key: SecretStr = Field(default=SecretStr(""))
    base_url: str = Field(default="https://api.etherscan.io/v2/api")
    chain_id: int = Field(default=1)
    timeout_seconds: float = Field(default=15.0)
    max_attempts: int = Field(default=3)

    model_config = SettingsConfigDict(env_prefix="ETHERSCAN_")


class SerpApiConfig(BaseSettings):
    api_key: SecretStr = Field(default=SecretStr(""))
    base_url: str = Field(default="https://serpapi.com/search.json")
    timeout_seconds: float = Field(default=30.0)

    model_config = SettingsConfigDict(env_prefix="SERPAPI_")


class ForensicsConfig(BaseSettings):
    """Caps and thresholds for evidence collection."""

    max_media_items: int = Field(default=10)
    max_exif_images: int = Field(default=3)
    max_reverse_images: int = Field(default=2)
    max_warnings: int = Field(default=5)
    max_sources: int = Field(default=5)
    max_sources_per_image: int = Field(default=3)
    max_donors_checked: int = Field(default=5)

    burner_max_age_hours: int = Field(default=24)
    burner_max_nonce: int = Field(default=5)
    date_mismatch_days: int = Field(default=30)

    media_poll_interval_seconds: float = Field(default=2.0)
    media_poll_max_attempts: int = Field(default=30)

    deep_investigation_threshold: int = Field(default=50)
    investigation_tracker_size: int = Field(default=1024)

    model_config = SettingsConfigDict(env_prefix="FORENSICS_")


class Settings(BaseSettings):
    app: AppConfig = Field(default_factory=AppConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    etherscan: EtherscanConfig = Field(default_factory=EtherscanConfig)
    serpapi: SerpApiConfig = Field(default_factory=SerpApiConfig)
    forensics: ForensicsConfig = Field(default_factory=ForensicsConfig)
    metrics_token: str | None = Field(default=None)

    @model_validator(mode="after")
    def validate_security_settings(self) -> Settings:
        if self.security.skip_jwt_validation and self.app.env != AppEnvironment.LOCAL:
            raise ValueError(
                "SECURITY_SKIP_JWT_VALIDATION can only be set in local environment. "
                f"Current environment: {self.app.env.value}"
            )
        if self.app.env == AppEnvironment.PROD and not self.security.jwt_secret.get_secret_value():
            raise ValueError("SUPABASE_JWT_SECRET must be set in production environment")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()


def reload_settings() -> Settings:
    get_settings.cache_clear()
    return get_settings()
