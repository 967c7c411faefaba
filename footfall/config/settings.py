"""
Tourism Footfall Analytics
Settings

Every section reads its own environment prefix so deployments can override
one concern (database, cache, reconciliation) without touching the others.
A ``.env`` file in the working directory is honoured for local runs.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Relational store connection (POSTGRES_*)"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = "localhost"
    port: int = 5432
    db: str = Field(default="tourism_footfall", alias="database")
    user: str = "footfall"
    password: SecretStr = SecretStr("footfall")
    echo: bool = Field(default=False, description="Log every SQL statement")
    create_schema: bool = Field(default=False, description="Run CREATE TABLE on startup")

    # A full SQLAlchemy URL wins over the discrete fields, e.g. a sqlite file
    url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    @property
    def async_url(self) -> str:
        if self.url:
            return self.url
        secret = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{secret}@{self.host}:{self.port}/{self.db}"


class RedisSettings(BaseSettings):
    """Response cache (REDIS_*). Disabled means every read hits the store."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    enabled: bool = True
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[SecretStr] = None
    max_connections: int = 20
    socket_timeout: int = Field(default=2, description="Seconds before a cache call gives up")
    decode_responses: bool = True
    url: Optional[str] = Field(default=None, alias="REDIS_URL")

    def get_url(self) -> str:
        if self.url:
            return self.url
        auth = f":{self.password.get_secret_value()}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


class FootfallSettings(BaseSettings):
    """
    Reconciliation parameters (FOOTFALL_*)

    The telecom and ticket weights blend the two sources into one place
    estimate; they are not required to sum to one but must not both be zero.
    """

    model_config = SettingsConfigDict(env_prefix="FOOTFALL_")

    store_backend: Literal["sql", "memory"] = "sql"
    default_state: str = "Rajasthan"

    min_confidence: float = Field(default=0.5, ge=0, le=1)
    telecom_weight: float = Field(default=0.7, ge=0)
    ticket_weight: float = Field(default=0.3, ge=0)
    max_telecom_groups: int = Field(default=50, ge=1, description="Most recent place groups admitted into a merge")

    history_limit: int = Field(default=500, ge=1, description="Booking history entries kept per place")

    recommendation_limit: int = Field(default=6, ge=1, le=50)
    lookback_hours: int = Field(default=24, ge=1)
    cache_ttl_seconds: int = Field(default=60, ge=1)

    @field_validator("store_backend", mode="before")
    @classmethod
    def _lower_backend(cls, v):
        return v.lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def _weights_not_both_zero(self) -> "FootfallSettings":
        if self.telecom_weight == 0 and self.ticket_weight == 0:
            raise ValueError("telecom_weight and ticket_weight cannot both be zero")
        return self


class SecuritySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="")

    cors_origins: List[str] = Field(default=["*"], alias="CORS_ORIGINS")


class MonitoringSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["json", "text"] = Field(default="json", alias="LOG_FORMAT")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator("log_format", mode="before")
    @classmethod
    def _lower_format(cls, v):
        return v.lower() if isinstance(v, str) else v


class Settings(BaseSettings):
    """Top-level settings; the nested sections load from their own prefixes."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = Field(default="tourism-footfall", alias="APP_NAME")
    app_env: Literal["development", "staging", "production", "testing"] = Field(
        default="development", alias="APP_ENV"
    )
    version: str = "1.0.0"

    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    api_workers: int = Field(default=4, ge=1, alias="API_WORKERS")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    footfall: FootfallSettings = Field(default_factory=FootfallSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env", mode="before")
    @classmethod
    def _lower_env(cls, v):
        return v.lower() if isinstance(v, str) else v

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache()
def get_settings() -> Settings:
    """Settings are read from the environment once per process."""
    return Settings()
