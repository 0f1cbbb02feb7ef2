"""
Onionlink Configuration using Pydantic Settings.

Provides strongly typed configuration with environment variable support,
validation, and sensible defaults.

Environment variables use ONIONLINK_ prefix:
- ONIONLINK_BRIDGE_LINES, ONIONLINK_BRIDGE_LINES_FILE (bridge settings)
- ONIONLINK_LOG_LEVEL, ONIONLINK_LOG_FORMAT (log settings)
- ONIONLINK_DIAGNOSTICS_CAPACITY (diagnostics settings)
- ONIONLINK_API_HOST, ONIONLINK_API_PORT (api settings)
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..errors import ConfigurationError


def get_project_root() -> Path:
    """Get the project root directory."""
    # Check for environment override
    if env_home := os.getenv("ONIONLINK_HOME"):
        return Path(env_home)

    # Default to current working directory
    return Path.cwd()


class BridgeSettings(BaseSettings):
    """Bridge line configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="ONIONLINK_BRIDGE_",
        extra="ignore",
    )

    lines: Optional[str] = Field(
        default=None,
        description="Newline-separated bridge lines"
    )
    lines_file: Optional[str] = Field(
        default=None,
        description="File with bridge lines (relative to project root); wins over 'lines'"
    )
    client_port: int = Field(
        default=-1,
        description="Port of the externally started transport client (-1 = unset)"
    )

    @field_validator('client_port')
    @classmethod
    def validate_client_port(cls, v: int) -> int:
        """Validate port is unset or in valid range."""
        if v != -1 and (v < 1 or v > 65535):
            raise ValueError(f"Invalid client port: {v}. Must be -1 or 1-65535")
        return v


class LogSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="ONIONLINK_LOG_",
        extra="ignore",
    )

    level: str = Field(
        default="INFO",
        description="Log level"
    )
    format: str = Field(
        default="json",
        description="Log format (json, console)"
    )
    file: Optional[str] = Field(
        default=None,
        description="Log file path"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator('format')
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        v_lower = v.lower()
        if v_lower not in ("json", "console"):
            raise ValueError(f"Invalid log format: {v}. Must be 'json' or 'console'")
        return v_lower


class DiagnosticsSettings(BaseSettings):
    """Diagnostics buffer settings."""

    model_config = SettingsConfigDict(
        env_prefix="ONIONLINK_DIAGNOSTICS_",
        extra="ignore",
    )

    capacity: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of diagnostic entries kept"
    )
    reverse_order: bool = Field(
        default=False,
        description="Newest entries first"
    )


class ApiSettings(BaseSettings):
    """API server configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="ONIONLINK_API_",
        extra="ignore",
    )

    host: str = Field(
        default="127.0.0.1",
        description="API host address"
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="API port"
    )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from:
    1. Environment variables (ONIONLINK_* prefix)
    2. YAML config file (config/config.yaml)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="ONIONLINK_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    bridge: BridgeSettings = Field(default_factory=BridgeSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    diagnostics: DiagnosticsSettings = Field(default_factory=DiagnosticsSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)

    @classmethod
    def load_from_yaml(cls, config_file: Path) -> "Settings":
        """Load settings from YAML file with environment overrides."""
        data = {}

        if config_file.exists():
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f) or {}
            except (yaml.YAMLError, OSError) as e:
                raise ConfigurationError(f"Could not load config {config_file}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Could not load config {config_file}: top level must be a mapping")

        # Create nested settings from YAML data
        settings_dict = {}
        sections = {
            'bridge': BridgeSettings,
            'log': LogSettings,
            'diagnostics': DiagnosticsSettings,
            'api': ApiSettings,
        }

        for name, section_cls in sections.items():
            # An empty section ("log:") loads as None
            section = data.get(name) or {}
            if not isinstance(section, dict):
                raise ConfigurationError(f"Invalid '{name}' section in {config_file}: must be a mapping")
            try:
                settings_dict[name] = section_cls(**section)
            except (ValidationError, TypeError) as e:
                raise ConfigurationError(f"Invalid '{name}' section in {config_file}: {e}") from e

        return cls(**settings_dict)

    def resolve_path(self, relative_path: str) -> Path:
        """Resolve a relative path against the project root."""
        path = Path(relative_path)
        if path.is_absolute():
            return path
        return get_project_root() / path

    def read_bridge_lines(self) -> Optional[str]:
        """
        Get the configured bridge line text.

        The bridge lines file wins over inline lines.

        Raises:
            ConfigurationError: If the bridge lines file can't be read
        """
        if self.bridge.lines_file:
            path = self.resolve_path(self.bridge.lines_file)
            try:
                return path.read_text(encoding='utf-8')
            except OSError as e:
                raise ConfigurationError(f"Could not read bridge lines file {path}: {e}") from e
        return self.bridge.lines

    def save_to_yaml(self, config_file: Path) -> None:
        """Save settings to YAML file."""
        config_file.parent.mkdir(parents=True, exist_ok=True)

        data = {
            'bridge': {
                'lines': self.bridge.lines,
                'lines_file': self.bridge.lines_file,
                'client_port': self.bridge.client_port,
            },
            'log': {
                'level': self.log.level,
                'format': self.log.format,
                'file': self.log.file,
            },
            'diagnostics': {
                'capacity': self.diagnostics.capacity,
                'reverse_order': self.diagnostics.reverse_order,
            },
            'api': {
                'host': self.api.host,
                'port': self.api.port,
            },
        }

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def validate_all(self) -> list[str]:
        """
        Validate all settings.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if self.bridge.lines_file:
            path = self.resolve_path(self.bridge.lines_file)
            if not path.is_file():
                errors.append(f"Bridge lines file not found: {path}")

        if self.api.port < 1 or self.api.port > 65535:
            errors.append(f"Invalid API port: {self.api.port}")

        return errors


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached singleton).

    First attempts to load from config/config.yaml, then applies
    environment variable overrides.
    """
    config_file = get_project_root() / "config" / "config.yaml"

    if config_file.exists():
        return Settings.load_from_yaml(config_file)

    return Settings()
