"""
Template Notifications - Configuration.

Centralized configuration for the template store, content store, delivery
providers and logging. Every section reads its own environment prefix.

Architecture Layer: Infrastructure
Principles: 12-Factor App, Configuration Externalization, Type Safety
"""
from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

logger = structlog.get_logger(__name__)


class Environment(str, Enum):
    """Deployment environment."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class ServiceConfiguration(BaseSettings):
    """Core service configuration."""
    name: str = Field(default="template-notifications")
    version: str = Field(default="1.0.0")
    env: Environment = Field(default=Environment.DEVELOPMENT)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="TEMPLATE_NOTIFICATIONS_",
        env_file=".env",
        extra="ignore",
    )


class ContentStoreConfig(BaseSettings):
    """Remote file store holding template bodies (Cloudinary raw resources)."""
    provider: Literal["memory", "cloudinary"] = Field(default="memory")
    cloud_name: str = Field(default="")
    api_key: str = Field(default="")
    api_secret: str = Field(default="")
    folder: str = Field(default="templates")
    upload_directory: str = Field(default="templates", description="Where uploaded files are staged locally")
    remove_local_after_upload: bool = Field(default=True)
    api_url: str = Field(default="https://api.cloudinary.com/v1_1")
    delivery_url: str = Field(default="https://res.cloudinary.com")
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_STORE_",
        env_file=".env",
        extra="ignore",
    )


class SmtpConfig(BaseSettings):
    """SMTP delivery configuration."""
    host: str = Field(default="localhost")
    port: int = Field(default=587, ge=1, le=65535)
    username: str = Field(default="")
    password: str = Field(default="")
    use_tls: bool = Field(default=False)
    start_tls: bool = Field(default=True)
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)

    model_config = SettingsConfigDict(
        env_prefix="SMTP_",
        env_file=".env",
        extra="ignore",
    )


class ResendConfig(BaseSettings):
    """Resend HTTP API configuration."""
    api_key: str = Field(default="")
    api_url: str = Field(default="https://api.resend.com")
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)

    model_config = SettingsConfigDict(
        env_prefix="RESEND_",
        env_file=".env",
        extra="ignore",
    )


class DeliveryConfig(BaseSettings):
    """Selects the delivery provider used for dispatch."""
    provider: Literal["memory", "smtp", "resend"] = Field(default="memory")

    model_config = SettingsConfigDict(
        env_prefix="DELIVERY_",
        env_file=".env",
        extra="ignore",
    )


class ObservabilityConfig(BaseSettings):
    """Logging configuration."""
    log_format: Literal["json", "console"] = Field(default="json")

    model_config = SettingsConfigDict(
        env_prefix="OBSERVABILITY_",
        env_file=".env",
        extra="ignore",
    )


class TemplateNotificationsConfig(BaseSettings):
    """Aggregate configuration."""
    service: ServiceConfiguration = Field(default_factory=ServiceConfiguration)
    content_store: ContentStoreConfig = Field(default_factory=ContentStoreConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    smtp: SmtpConfig = Field(default_factory=SmtpConfig)
    resend: ResendConfig = Field(default_factory=ResendConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @staticmethod
    def load() -> TemplateNotificationsConfig:
        """Load configuration from environment."""
        config = TemplateNotificationsConfig()
        logger.info(
            "template_notifications_config_loaded",
            service=config.service.name,
            env=config.service.env.value,
            content_store=config.content_store.provider,
            delivery=config.delivery.provider,
        )
        return config

    def is_production(self) -> bool:
        """Check if running in production."""
        return self.service.env == Environment.PRODUCTION


_config: TemplateNotificationsConfig | None = None


def get_config() -> TemplateNotificationsConfig:
    """Get singleton configuration instance."""
    global _config
    if _config is None:
        _config = TemplateNotificationsConfig.load()
    return _config


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    global _config
    _config = None
