"""Application configuration settings.

This module provides the AppConfig class and settings singleton.
"""

from pathlib import Path

import structlog
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wildcard_bridge.config.env_loader import Environment, get_environment, load_env_files
from wildcard_bridge.config.validators import (
    resolve_path,
    validate_base_url,
    validate_log_format,
    validate_log_level,
)

log = structlog.get_logger(__name__)


class AppConfig(BaseSettings):
    """Unified application configuration.

    Loads configuration from environment variables (``BRIDGE_`` prefix),
    .env files, and defaults. Validates all values using Pydantic.
    """

    model_config = SettingsConfigDict(
        # .env files are loaded manually via env_loader to support
        # environment-specific files with priority order
        env_prefix="BRIDGE_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: Environment = Field(
        default_factory=get_environment, description="Current environment"
    )
    debug: bool = Field(default=False, alias="APP_DEBUG", description="Debug mode flag")

    # Application
    project_name: str = Field(default="Wildcard Bridge", description="Project name")
    version: str = Field(default="0.1.0", description="Application version")

    # Telemetry
    log_dir: Path = Field(default=Path("telemetry/logs"), description="Log directory path")
    log_level: str = Field(
        default="INFO",
        alias="APP_LOG_LEVEL",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_format: str = Field(
        default="json", alias="APP_LOG_FORMAT", description="Log format (json or console)"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        return validate_log_level(v)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        return validate_log_format(v)

    @field_validator("log_dir", mode="before")
    @classmethod
    def resolve_paths(cls, v: Path | str) -> Path:
        """Resolve relative paths to absolute."""
        return resolve_path(v)

    # Classifier model (OpenAI-compatible chat completions)
    llm_base_url: str = Field(
        default="https://api.openai.com/v1", description="Base URL for the classifier model API"
    )
    llm_api_key: SecretStr | None = Field(
        default=None, alias="OPENAI_API_KEY", description="API key for the classifier model"
    )
    llm_model: str = Field(default="gpt-4o", description="Classifier/summary model ID")
    llm_timeout_seconds: float = Field(default=60.0, gt=0, description="Model call deadline")
    llm_max_retries: int = Field(
        default=0,
        ge=0,
        description="Retries for timeouts/5xx/429. Classifier failures are fatal by default.",
    )
    llm_temperature: float | None = Field(default=None, ge=0, le=2, description="Sampling temperature")

    # Remote agent
    agent_base_url: str = Field(
        default="http://localhost:8000",
        alias="WILDCARD_BACKEND_URL",
        description="Base URL of the remote tool-calling agent",
    )
    agent_timeout_seconds: float = Field(
        default=120.0, gt=0, description="Deadline for one agent exchange"
    )

    @field_validator("llm_base_url", "agent_base_url", "service_url")
    @classmethod
    def validate_urls(cls, v: str) -> str:
        """Validate upstream URLs."""
        return validate_base_url(v)

    # Transactional API
    stripe_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Deadline for one Stripe operation (including pagination)"
    )

    # Orchestrator
    orchestrator_max_turns: int = Field(
        default=25,
        ge=1,
        description="Maximum agent exchanges per user request before failing with max turns exceeded",
    )

    # Service Configuration
    service_host: str = Field(default="0.0.0.0", description="Service host address")
    service_port: int = Field(default=8080, alias="PORT", description="Service port number")
    service_url: str = Field(
        default="http://localhost:8080", description="Service URL used by the CLI client"
    )


_settings: AppConfig | None = None


def load_app_config() -> AppConfig:
    """Load and validate application configuration.

    This function:
    1. Loads .env files in priority order (via env_loader)
    2. Creates AppConfig instance (reads from environment variables)
    3. Validates all values using Pydantic

    Returns:
        Validated AppConfig instance.

    Raises:
        ValidationError: If configuration validation fails.
    """
    log.info("loading_app_config", environment=get_environment().value)

    load_env_files()

    try:
        config = AppConfig()
        log.info(
            "app_config_loaded",
            environment=config.environment.value,
            debug=config.debug,
            log_level=config.log_level,
            agent_base_url=config.agent_base_url,
            llm_model=config.llm_model,
            llm_api_key_set=config.llm_api_key is not None,
        )
        return config
    except Exception as e:
        log.error("app_config_load_failed", error=str(e), error_type=type(e).__name__)
        raise


def get_settings() -> AppConfig:
    """Get the application settings singleton."""
    global _settings
    if _settings is None:
        _settings = load_app_config()
    return _settings
