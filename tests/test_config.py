"""
Tests for configuration loading and validation
"""
import json

import pytest

from threadview.utils.config import AppConfig, ConfigManager, RefreshConfig, UIConfig
from threadview.utils.errors import InvalidConfigError, MissingConfigError


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config.json"


class TestConfigModels:
    """Tests for the pydantic config models"""

    def test_defaults(self):
        config = AppConfig()

        assert config.refresh.interval_seconds == 5
        assert config.refresh.query_page_size == 10
        assert config.ui.labels == ["jmap", "xmpp"]
        assert config.account.session_url is None

    @pytest.mark.parametrize("field", ["interval_seconds", "query_page_size"])
    def test_refresh_values_must_be_positive(self, field):
        with pytest.raises(ValueError):
            RefreshConfig(**{field: 0})

    @pytest.mark.parametrize("labels", [["one"], ["a", "b", "c"], ["a", " "]])
    def test_exactly_two_labels(self, labels):
        with pytest.raises(ValueError):
            UIConfig(labels=labels)


class TestConfigManager:
    """Tests for the persistent config manager"""

    def test_creates_default_file(self, config_path):
        manager = ConfigManager(config_path)

        assert config_path.exists()
        assert manager.config == AppConfig()
        assert json.loads(config_path.read_text())["refresh"]["interval_seconds"] == 5

    def test_loads_existing_file(self, config_path):
        config_path.write_text(json.dumps({"refresh": {"interval_seconds": 30}}))

        manager = ConfigManager(config_path)

        assert manager.config.refresh.interval_seconds == 30
        assert manager.config.refresh.query_page_size == 10

    def test_invalid_json(self, config_path):
        config_path.write_text("{not json")
        with pytest.raises(InvalidConfigError):
            ConfigManager(config_path)

    def test_schema_violation(self, config_path):
        config_path.write_text(json.dumps({"refresh": {"interval_seconds": -1}}))
        with pytest.raises(InvalidConfigError):
            ConfigManager(config_path)

    def test_non_object_file(self, config_path):
        config_path.write_text("[1, 2]")
        with pytest.raises(InvalidConfigError):
            ConfigManager(config_path)

    def test_set_config_persists(self, config_path):
        manager = ConfigManager(config_path)

        manager.set_config("refresh.query_page_size", 25)

        assert manager.config.refresh.query_page_size == 25
        assert ConfigManager(config_path).config.refresh.query_page_size == 25

    def test_set_config_without_persist(self, config_path):
        manager = ConfigManager(config_path)

        manager.set_config("logging.log_level", "DEBUG", persist=False)

        assert manager.config.logging.log_level == "DEBUG"
        assert ConfigManager(config_path).config.logging.log_level == "INFO"

    def test_set_unknown_key(self, config_path):
        manager = ConfigManager(config_path)
        with pytest.raises(MissingConfigError):
            manager.set_config("refresh.nope", 1)

    def test_set_invalid_value_keeps_config(self, config_path):
        """A rejected value leaves the current config untouched"""
        manager = ConfigManager(config_path)

        with pytest.raises(InvalidConfigError):
            manager.set_config("refresh.interval_seconds", 0)

        assert manager.config.refresh.interval_seconds == 5

    def test_reset_to_defaults(self, config_path):
        manager = ConfigManager(config_path)
        manager.set_config("ui.compose_to", "someone@example.com")

        manager.reset_to_defaults()

        assert manager.config.ui.compose_to == "test@example.com"
