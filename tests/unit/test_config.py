"""Unit tests for analysis configuration."""

from pathlib import Path

import pytest
import yaml

from tracelens.audit.config import (
    DEFAULT_EXTENSION_STORE_URL,
    AnalysisConfig,
    ConfigManager,
    ConfigurationError,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TRACELENS_ENVIRONMENT", "TRACELENS_LOG_LEVEL",
                 "TRACELENS_KNOWN_ENTITIES", "TRACELENS_EXTENSION_STORE_URL"):
        monkeypatch.delenv(name, raising=False)


class TestAnalysisConfig:
    """Test AnalysisConfig model."""

    def test_defaults(self):
        config = AnalysisConfig()

        assert config.environment == "production"
        assert config.is_production
        assert config.log_level == "WARNING"
        assert config.known_entities_path is None
        assert config.extension_store_url == DEFAULT_EXTENSION_STORE_URL
        assert config.include_private_suffixes is False
        assert config.audits == {}

    def test_log_level_normalized(self):
        assert AnalysisConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize("field,value", [
        ("environment", "qa"),
        ("log_level", "LOUD"),
        ("extension_store_url", "ftp://store/"),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValueError):
            AnalysisConfig(**{field: value})

    def test_is_audit_enabled(self):
        config = AnalysisConfig(audits={"link-text": {"enabled": False}})

        assert config.is_audit_enabled("link-text") is False
        assert config.is_audit_enabled("third-party-summary") is True


class TestConfigManager:
    """Test ConfigManager loading."""

    def test_load_without_file(self):
        config = ConfigManager().load_config()
        assert config.environment == "production"

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "tracelens.yaml"
        path.write_text(yaml.dump({
            "environment": "test",
            "include_private_suffixes": True,
            "audits": {"first-party-resources": {"enabled": False}},
        }))

        config = ConfigManager(path).load_config()

        assert config.environment == "test"
        assert config.include_private_suffixes is True
        assert not config.is_audit_enabled("first-party-resources")

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "tracelens.yaml"
        path.write_text(yaml.dump({"environment": "test", "log_level": "INFO"}))
        monkeypatch.setenv("TRACELENS_ENVIRONMENT", "development")
        monkeypatch.setenv("TRACELENS_KNOWN_ENTITIES", "/data/entities.yaml")
        monkeypatch.setenv("TRACELENS_EXTENSION_STORE_URL", "https://store.example/ext/")

        config = ConfigManager(path).load_config()

        assert config.environment == "development"
        assert config.log_level == "INFO"
        assert config.known_entities_path == Path("/data/entities.yaml")
        assert config.extension_store_url == "https://store.example/ext/"

    def test_set_override(self):
        manager = ConfigManager()
        manager.set_override("log_level", "error")

        assert manager.load_config().log_level == "ERROR"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager(tmp_path / "missing.yaml").load_config()

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "tracelens.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigManager(path).load_config()

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "tracelens.yaml"
        path.write_text(yaml.dump({"environment": "qa"}))

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            ConfigManager(path).load_config()

    def test_get_config_loads_once(self):
        manager = ConfigManager()
        assert manager.get_config() is manager.get_config()

    def test_validate_config(self):
        manager = ConfigManager()

        assert manager.validate_config({"environment": "test"}) == []
        assert len(manager.validate_config({"log_level": "LOUD"})) == 1

    def test_create_default_config(self, tmp_path):
        path = tmp_path / "nested" / "tracelens.yaml"
        ConfigManager().create_default_config(path)

        data = yaml.safe_load(path.read_text())
        assert data["environment"] == "production"
        assert data["extension_store_url"] == DEFAULT_EXTENSION_STORE_URL
        assert ConfigManager(path).load_config() == AnalysisConfig()
