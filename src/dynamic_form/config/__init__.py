"""
Configuration management package for Dynamic Form.

This package handles all configuration settings, validation, and management
for the schema-driven form engine and its collaborators.
"""

from .settings import (
    get_config,
    reload_config,
    AppConfig,
    FormApiConfig,
    EngineConfig,
    APIConfig,
    LoggingConfig,
)

__all__ = [
    "get_config",
    "reload_config",
    "AppConfig",
    "FormApiConfig",
    "EngineConfig",
    "APIConfig",
    "LoggingConfig",
]
