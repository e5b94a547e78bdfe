"""Configuration management for the flow log decorator.

This module provides a centralized configuration loader that:
1. Checks environment variables first
2. Falls back to YAML configuration files
3. Provides type-safe configuration objects
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field


class AWSConfig(BaseModel):
    """AWS-related configuration."""
    region: str = "us-east-1"
    profile: Optional[str] = None


class GeolocationConfig(BaseModel):
    """Geocode provider configuration."""
    enabled: bool = True
    endpoint: str = "https://api.ipstack.com"
    api_key_parameter: str = "/flowlog-decorator/geocode-api-key"


class DeliveryConfig(BaseModel):
    """Firehose delivery stream configuration."""
    stream_name: Optional[str] = None
    max_batch_size: int = Field(default=500, ge=1, le=500)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"


class Config(BaseModel):
    """Main configuration object."""
    environment: str = "dev"
    app_name: str = "flowlog-decorator"
    aws: AWSConfig = Field(default_factory=AWSConfig)
    geolocation: GeolocationConfig = Field(default_factory=GeolocationConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _config_dir() -> Path:
    override = os.getenv("FLOWLOG_CONFIG_DIR")
    if override:
        return Path(override)
    return Path(__file__).parent.parent.parent / "config"


def load_config(environment: Optional[str] = None) -> Config:
    """Load configuration from environment variables and YAML files.

    Args:
        environment: Environment name (dev/prod). If None, uses ENVIRONMENT env var.

    Returns:
        Loaded configuration object.

    Raises:
        FileNotFoundError: If configuration file doesn't exist.
        ValueError: If configuration is invalid.
    """
    env = environment or os.getenv("ENVIRONMENT", "dev")

    config_file = _config_dir() / f"{env}.yml"

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    with open(config_file, 'r') as f:
        config_data = yaml.safe_load(f) or {}

    config_data.setdefault("environment", env)
    config_data = _apply_env_overrides(config_data)

    return Config(**config_data)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration data."""
    # AWS overrides
    if os.getenv("AWS_REGION"):
        config_data.setdefault("aws", {})["region"] = os.getenv("AWS_REGION")
    if os.getenv("AWS_PROFILE"):
        config_data.setdefault("aws", {})["profile"] = os.getenv("AWS_PROFILE")

    # Geolocation overrides
    geolocation_enabled = os.getenv("GEOLOCATION_ENABLED")
    if geolocation_enabled:
        config_data.setdefault("geolocation", {})["enabled"] = _parse_bool(geolocation_enabled)
    if os.getenv("GEOCODE_ENDPOINT"):
        config_data.setdefault("geolocation", {})["endpoint"] = os.getenv("GEOCODE_ENDPOINT")
    if os.getenv("GEOCODE_API_KEY_PARAMETER"):
        config_data.setdefault("geolocation", {})["api_key_parameter"] = os.getenv(
            "GEOCODE_API_KEY_PARAMETER"
        )

    # Delivery overrides
    if os.getenv("DELIVERY_STREAM_NAME"):
        config_data.setdefault("delivery", {})["stream_name"] = os.getenv("DELIVERY_STREAM_NAME")

    # Logging overrides
    if os.getenv("LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = os.getenv("LOG_LEVEL").upper()

    return config_data
