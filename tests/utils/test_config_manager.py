import json

import pytest

from docker_ops_manager.services.exceptions import ConfigurationError
from docker_ops_manager.utils.config_manager import FILE_KEYS, ConfigManager


class TestConfigManager:
    """Tests for layering configuration sources."""

    def test_defaults(self, tmp_path):
        """Test settings with no file and no environment."""
        manager = ConfigManager(config_dir=tmp_path, environ={})

        settings = manager.build_settings()

        assert settings.config_dir == tmp_path
        assert settings.state_file == tmp_path / "state.json"
        assert settings.log_level == "INFO"

    def test_config_dir_from_environment(self, tmp_path):
        manager = ConfigManager(environ={"DOCKER_OPS_CONFIG_DIR": str(tmp_path / "env")})

        assert manager.config_dir == tmp_path / "env"
        assert manager.config_file == tmp_path / "env" / "config.json"

    def test_explicit_dir_beats_environment(self, tmp_path):
        manager = ConfigManager(config_dir=tmp_path / "cli",
                                environ={"DOCKER_OPS_CONFIG_DIR": str(tmp_path / "env")})

        assert manager.config_dir == tmp_path / "cli"

    def test_layering_order(self, tmp_path):
        """Test file < environment < overrides."""
        (tmp_path / "config.json").write_text(json.dumps({
            "log_level": "DEBUG",
            "max_unit_history": 4,
            "readiness_timeout": 90,
        }))
        manager = ConfigManager(config_dir=tmp_path, environ={
            "DOCKER_OPS_MAX_CONTAINER_HISTORY": "6",
            "DOCKER_OPS_READINESS_TIMEOUT": "30",
        })

        settings = manager.build_settings({"readiness_timeout": 15, "log_level": None})

        assert settings.log_level == "DEBUG"
        assert settings.max_unit_history == 6
        assert settings.readiness_timeout == 15

    def test_blank_environment_values_ignored(self, tmp_path):
        manager = ConfigManager(config_dir=tmp_path, environ={"DOCKER_OPS_LOG_LEVEL": "  "})

        assert manager.build_settings().log_level == "INFO"

    def test_invalid_environment_value(self, tmp_path):
        """Test a value that fails validation."""
        manager = ConfigManager(config_dir=tmp_path, environ={"DOCKER_OPS_READINESS_TIMEOUT": "soon"})

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            manager.build_settings()

    def test_corrupt_config_file(self, tmp_path):
        (tmp_path / "config.json").write_text("{broken")
        manager = ConfigManager(config_dir=tmp_path, environ={})

        with pytest.raises(ConfigurationError, match="Cannot read config file"):
            manager.build_settings()

    def test_config_file_must_be_object(self, tmp_path):
        (tmp_path / "config.json").write_text("[1, 2]")
        manager = ConfigManager(config_dir=tmp_path, environ={})

        with pytest.raises(ConfigurationError, match="JSON object"):
            manager.load_file()

    def test_unknown_file_keys_ignored(self, tmp_path):
        (tmp_path / "config.json").write_text(json.dumps({"colour": "blue", "log_level": "ERROR"}))
        manager = ConfigManager(config_dir=tmp_path, environ={})

        assert manager.load_file() == {"log_level": "ERROR"}

    def test_init_config_file(self, tmp_path):
        """Test the default config file is written once."""
        manager = ConfigManager(config_dir=tmp_path / "new", environ={})

        path = manager.init_config_file()

        data = json.loads(path.read_text())
        assert data["log_level"] == "INFO"
        assert data["max_unit_history"] == 10
        assert "state_file" not in data
        assert set(data) <= set(FILE_KEYS)

        path.write_text(json.dumps({"log_level": "ERROR"}))
        manager.init_config_file()
        assert json.loads(path.read_text()) == {"log_level": "ERROR"}

    def test_set_value(self, tmp_path):
        """Test a setting is validated, converted and persisted."""
        manager = ConfigManager(config_dir=tmp_path, environ={})

        manager.set_value("readiness_timeout", "45")

        assert json.loads((tmp_path / "config.json").read_text())["readiness_timeout"] == 45
        assert manager.get_value("readiness_timeout") == 45

    def test_set_value_unknown_key(self, tmp_path):
        manager = ConfigManager(config_dir=tmp_path, environ={})

        with pytest.raises(ConfigurationError, match="cannot be stored"):
            manager.set_value("config_dir", "/tmp")

    def test_set_value_invalid(self, tmp_path):
        """Test invalid values are not written."""
        manager = ConfigManager(config_dir=tmp_path, environ={})

        with pytest.raises(ConfigurationError, match="Invalid value"):
            manager.set_value("max_unit_history", "0")
        assert not (tmp_path / "config.json").exists()

    def test_get_value_unknown(self, tmp_path):
        manager = ConfigManager(config_dir=tmp_path, environ={})

        with pytest.raises(ConfigurationError, match="Unknown setting"):
            manager.get_value("colour")
