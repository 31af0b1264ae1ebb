"""
Application configuration using Pydantic settings.

This module contains all configuration settings for the collector,
loaded from environment variables with sensible defaults.
"""

import os
import secrets
from typing import Optional

from pydantic import Field, field_validator, model_validator, ValidationInfo, ConfigDict
from pydantic_settings import BaseSettings


def _default_pool_size() -> int:
    """One pooled connection per CPU, never fewer than one."""
    return max(os.cpu_count() or 1, 1)


class Settings(BaseSettings):
    """
    Collector settings loaded from environment variables.

    All settings can be overridden with environment variables.
    """

    SERVICE_NAME: str = "Weather Station Collector"
    DEBUG: bool = False

    # Database Configuration
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "weather_user"
    POSTGRES_PASSWORD: str = "weather_password"
    POSTGRES_DB: str = "weather"
    POSTGRES_PORT: int = 5432
    DB_POOL_SIZE: int = Field(default_factory=_default_pool_size, ge=1)

    SQLALCHEMY_DATABASE_URI: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> str:
        """Assemble database connection string from individual components."""
        # Check for explicit SQLALCHEMY_DATABASE_URI first
        if isinstance(v, str) and v:
            return v

        # Check for DATABASE_URL (Render/Railway/Heroku style)
        database_url = os.getenv('DATABASE_URL')
        if database_url:
            if database_url.startswith('postgres://'):
                database_url = database_url.replace('postgres://', 'postgresql+asyncpg://', 1)
            elif database_url.startswith('postgresql://'):
                database_url = database_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
            return database_url

        values = info.data
        db_name = values.get('POSTGRES_DB')

        # Check if it's a SQLite database (ends with .db)
        if db_name and db_name.endswith('.db'):
            return f"sqlite+aiosqlite:///{db_name}"

        return (
            f"postgresql+asyncpg://{values.get('POSTGRES_USER')}:"
            f"{values.get('POSTGRES_PASSWORD')}@"
            f"{values.get('POSTGRES_SERVER')}:"
            f"{values.get('POSTGRES_PORT')}/"
            f"{db_name}"
        )

    # MQTT Broker Configuration
    MQTT_BROKER_HOST: str = "localhost"
    MQTT_BROKER_PORT: int = 8883
    MQTT_USER: Optional[str] = None
    MQTT_PASS: Optional[str] = None
    MQTT_CLIENT_ID: str = Field(default_factory=lambda: f"mqtt_{secrets.token_hex(6)}")
    MQTT_CLEAN_SESSION: bool = True
    MQTT_QOS: int = Field(default=0, ge=0, le=2)
    MQTT_CONNECT_TIMEOUT: float = 4.0  # seconds
    MQTT_RECONNECT_PERIOD: float = 5.0  # seconds

    # TLS (mutual TLS against the broker)
    MQTT_TLS_ENABLED: bool = True
    MQTT_CA_CERT: Optional[str] = "./ca.crt"
    MQTT_CLIENT_CERT: Optional[str] = "./client.crt"
    MQTT_CLIENT_KEY: Optional[str] = "./client.key"

    # Station topics, one per station id
    STATION_TOPIC_TEMPLATE: str = "/{station_id}"

    @field_validator("STATION_TOPIC_TEMPLATE")
    @classmethod
    def validate_topic_template(cls, v: str) -> str:
        """The template must contain exactly one {station_id} placeholder."""
        if v.count("{station_id}") != 1:
            raise ValueError(
                f"STATION_TOPIC_TEMPLATE must contain exactly one '{{station_id}}' placeholder: {v!r}"
            )
        return v

    # Ingestion pipeline
    MAX_PAYLOAD_BYTES: int = Field(default=4096, gt=0)
    MAX_CONCURRENT_MESSAGES: Optional[int] = Field(default=None, ge=1)
    REFERENCE_TIMEZONE: str = "Europe/Madrid"

    @model_validator(mode="after")
    def default_concurrency(self) -> "Settings":
        """Message concurrency follows the connection pool unless set explicitly."""
        if self.MAX_CONCURRENT_MESSAGES is None:
            self.MAX_CONCURRENT_MESSAGES = self.DB_POOL_SIZE
        return self

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Create global settings instance
settings = Settings()
