"""
Configuration management for the Dynamic Form application.

This module handles all configuration settings including the remote form service,
form engine behaviour, the HTTP API and logging, using Pydantic settings.
"""

from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class FormApiConfig(BaseSettings):
    """Remote form service settings (user registration and form fetch)."""

    base_url: str = "https://dynamic-form-generator-9rl7.onrender.com"
    timeout: int = 30
    max_retries: int = 3
    retry_delay: int = 1
    descriptor_file: Optional[str] = Field(
        None,
        description="Local JSON/YAML descriptor served instead of the remote service"
    )

    class Config:
        env_prefix = "FORM_API_"
        case_sensitive = False
        extra = "ignore"

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate the service URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Form API base URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("Max retries must be between 1 and 10")
        return v


class EngineConfig(BaseSettings):
    """Form engine behaviour and user-facing messages."""

    validation_mode: str = Field("onChange", description="'onChange' or 'onSubmit'")
    section_error_message: str = "Please fix the errors in this section before continuing."
    submit_error_message: str = "Please fix the highlighted errors before submitting."
    submit_success_message: str = "Form submitted successfully!"

    class Config:
        env_prefix = "FORM_ENGINE_"
        case_sensitive = False
        extra = "ignore"

    @field_validator("validation_mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        if v not in ("onChange", "onSubmit"):
            raise ValueError("Validation mode must be 'onChange' or 'onSubmit'")
        return v


class APIConfig(BaseSettings):
    """API server configuration."""

    host: str = "localhost"
    port: int = 8000
    environment: str = "development"
    debug: bool = True
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:9002"]

    class Config:
        env_prefix = "API_"
        case_sensitive = False
        extra = "ignore"


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    class Config:
        env_prefix = "LOG_"
        case_sensitive = False
        extra = "ignore"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level


class AppConfig(BaseSettings):
    """Main application configuration."""

    environment: str = "development"
    debug: bool = True

    # Sub-configurations
    form_api: FormApiConfig
    engine: EngineConfig
    api: APIConfig
    logging: LoggingConfig

    def __init__(self, **kwargs):
        super().__init__(
            form_api=kwargs.pop("form_api", None) or FormApiConfig(),
            engine=kwargs.pop("engine", None) or EngineConfig(),
            api=kwargs.pop("api", None) or APIConfig(),
            logging=kwargs.pop("logging", None) or LoggingConfig(),
            **kwargs
        )

    class Config:
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment.lower() == "production"


# Global configuration instance
config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the global configuration instance.

    Returns:
        AppConfig: The application configuration instance.
    """
    global config
    if config is None:
        config = AppConfig()
    return config


def reload_config() -> AppConfig:
    """
    Reload the configuration from environment variables.

    Returns:
        AppConfig: The reloaded application configuration instance.
    """
    global config
    config = AppConfig()
    return config
