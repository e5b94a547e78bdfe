"""Tests for the configuration management system."""

import pytest
import yaml
from pydantic import ValidationError

from flowlog.config import Config, _apply_env_overrides, load_config


def test_load_dev_config(clean_env):
    """Test loading development configuration."""
    config = load_config("dev")

    assert config.environment == "dev"
    assert config.app_name == "flowlog-decorator"
    assert config.aws.region == "us-west-2"
    assert config.geolocation.enabled is True
    assert config.delivery.stream_name == "flowlog-decorator-dev"
    assert config.logging.level == "DEBUG"


def test_load_prod_config(clean_env):
    """Test loading production configuration."""
    config = load_config("prod")

    assert config.environment == "prod"
    assert config.aws.region == "us-east-1"
    assert config.geolocation.api_key_parameter == "/flowlog-decorator/prod/geocode-api-key"
    assert config.delivery.max_batch_size == 500


def test_environment_variable_selects_file(clean_env):
    clean_env.setenv("ENVIRONMENT", "prod")
    assert load_config().environment == "prod"


def test_env_overrides_apply(clean_env):
    clean_env.setenv("AWS_REGION", "eu-central-1")
    clean_env.setenv("GEOLOCATION_ENABLED", "false")
    clean_env.setenv("GEOCODE_ENDPOINT", "https://geo.example.com")
    clean_env.setenv("GEOCODE_API_KEY_PARAMETER", "/custom/key")
    clean_env.setenv("DELIVERY_STREAM_NAME", "env-stream")
    clean_env.setenv("LOG_LEVEL", "warning")

    cfg = load_config("dev")
    assert cfg.aws.region == "eu-central-1"
    assert cfg.geolocation.enabled is False
    assert cfg.geolocation.endpoint == "https://geo.example.com"
    assert cfg.geolocation.api_key_parameter == "/custom/key"
    assert cfg.delivery.stream_name == "env-stream"
    assert cfg.logging.level == "WARNING"


@pytest.mark.parametrize("raw,expected", [("1", True), ("TRUE", True), ("yes", True), ("0", False), ("no", False)])
def test_geolocation_flag_parsing(clean_env, raw, expected):
    clean_env.setenv("GEOLOCATION_ENABLED", raw)
    result = _apply_env_overrides({})
    assert result["geolocation"]["enabled"] is expected


def test_config_dir_override(clean_env, tmp_path):
    (tmp_path / "staging.yml").write_text(yaml.safe_dump({"delivery": {"stream_name": "staging-stream"}}))
    clean_env.setenv("FLOWLOG_CONFIG_DIR", str(tmp_path))

    cfg = load_config("staging")
    assert cfg.environment == "staging"
    assert cfg.delivery.stream_name == "staging-stream"
    # Unspecified sections fall back to model defaults
    assert cfg.geolocation.enabled is True


def test_empty_file_uses_defaults(clean_env, tmp_path):
    (tmp_path / "empty.yml").write_text("")
    clean_env.setenv("FLOWLOG_CONFIG_DIR", str(tmp_path))

    cfg = load_config("empty")
    assert cfg == Config(environment="empty")


def test_config_file_not_found(clean_env):
    """Test error handling when config file doesn't exist."""
    with pytest.raises(FileNotFoundError):
        load_config("nonexistent")


def test_invalid_batch_size_rejected(clean_env, tmp_path):
    (tmp_path / "bad.yml").write_text(yaml.safe_dump({"delivery": {"max_batch_size": 1000}}))
    clean_env.setenv("FLOWLOG_CONFIG_DIR", str(tmp_path))

    with pytest.raises(ValidationError):
        load_config("bad")
