"""Configuration system for analysis runs.

This module provides configuration management for the computed-artifact
engine and audits, including YAML loading, validation, and environment
variable overrides.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator


logger = logging.getLogger(__name__)

DEFAULT_EXTENSION_STORE_URL = "https://chromewebstore.google.com/detail/"


class AuditToggle(BaseModel):
    """Per-audit activation settings."""

    enabled: bool = Field(default=True, description="Whether the audit runs")


class AnalysisConfig(BaseModel):
    """Root configuration for an analysis run."""

    environment: str = Field(
        default="production",
        description="Environment name"
    )

    log_level: str = Field(
        default="WARNING",
        description="Logging level for the tracelens loggers"
    )

    known_entities_path: Optional[Path] = Field(
        default=None,
        description="YAML dataset of known entities (bundled dataset when unset)"
    )

    extension_store_url: str = Field(
        default=DEFAULT_EXTENSION_STORE_URL,
        description="Base URL that extension homepages are built from"
    )

    include_private_suffixes: bool = Field(
        default=False,
        description="Treat private public-suffix entries (github.io, ...) as suffixes"
    )

    audits: Dict[str, AuditToggle] = Field(
        default_factory=dict,
        description="Per-audit settings keyed by audit id"
    )

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        """Validate environment name."""
        allowed_envs = ['development', 'staging', 'production', 'test']
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate and normalize the log level name."""
        level = str(v).upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator('extension_store_url')
    @classmethod
    def validate_extension_store_url(cls, v):
        if not v.startswith(('http://', 'https://')):
            raise ValueError("extension_store_url must be an http(s) URL")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    def is_audit_enabled(self, audit_id: str) -> bool:
        toggle = self.audits.get(audit_id)
        return toggle.enabled if toggle is not None else True


class ConfigurationError(Exception):
    """Configuration-related errors."""
    pass


class ConfigManager:
    """Manages analysis configuration loading and validation."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file
        """
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[AnalysisConfig] = None
        self._overrides: Dict[str, Any] = {}

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> AnalysisConfig:
        """Load configuration from file.

        Args:
            config_path: Optional override for config file path

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If the file cannot be read or is invalid
        """
        if config_path:
            self.config_path = Path(config_path)

        config_data: Dict[str, Any] = {}

        if self.config_path:
            if not self.config_path.exists():
                raise ConfigurationError(f"Config file not found: {self.config_path}")
            try:
                with open(self.config_path, 'r') as f:
                    config_data = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {self.config_path}: {e}")

            if not isinstance(config_data, dict):
                raise ConfigurationError(f"Config file must contain a mapping: {self.config_path}")

        self._merge_config(config_data, self._overrides)
        self._merge_config(config_data, self._load_environment_variables())

        try:
            self._config = AnalysisConfig(**config_data)
        except Exception as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

        logger.debug(f"Loaded configuration (environment={self._config.environment})")
        return self._config

    def get_config(self) -> AnalysisConfig:
        """Get current configuration, loading default if needed."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def set_override(self, key: str, value: Any) -> None:
        """Set a programmatic configuration override.

        Takes effect on the next ``load_config``.
        """
        self._overrides[key] = value

    def validate_config(self, config_data: Dict[str, Any]) -> List[str]:
        """Validate configuration data without loading.

        Returns:
            List of validation errors
        """
        errors = []

        try:
            AnalysisConfig(**config_data)
        except Exception as e:
            errors.append(str(e))

        return errors

    def create_default_config(self, output_path: Union[str, Path]) -> None:
        """Write the default configuration as YAML."""
        config_dict = AnalysisConfig().model_dump(mode='json')

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w') as f:
            yaml.dump(config_dict, f, default_flow_style=False, indent=2)

    def _load_environment_variables(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config: Dict[str, Any] = {}

        if env_env := os.getenv('TRACELENS_ENVIRONMENT'):
            env_config['environment'] = env_env

        if env_level := os.getenv('TRACELENS_LOG_LEVEL'):
            env_config['log_level'] = env_level

        if env_entities := os.getenv('TRACELENS_KNOWN_ENTITIES'):
            env_config['known_entities_path'] = env_entities

        if env_store := os.getenv('TRACELENS_EXTENSION_STORE_URL'):
            env_config['extension_store_url'] = env_store

        return env_config

    def _merge_config(self, base_config: Dict[str, Any], override_config: Dict[str, Any]) -> None:
        """Deep merge configuration dictionaries."""
        for key, value in override_config.items():
            if key in base_config and isinstance(base_config[key], dict) and isinstance(value, dict):
                self._merge_config(base_config[key], value)
            else:
                base_config[key] = value


# Global configuration manager instance
config_manager = ConfigManager()


def get_config() -> AnalysisConfig:
    """Get current analysis configuration."""
    return config_manager.get_config()


def load_config(config_path: Union[str, Path]) -> AnalysisConfig:
    """Load configuration from specified path."""
    return config_manager.load_config(config_path)
