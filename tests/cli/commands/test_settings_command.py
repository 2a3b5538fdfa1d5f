import json

from docker_ops_manager.cli.main import cli


class TestConfigCommands:
    """Tests for the config command group."""

    def test_show(self, cli_runner, isolated_config):
        """Test the effective settings are printed as JSON."""
        result = cli_runner.invoke(cli, ['config', 'show'])

        assert result.exit_code == 0, result.output
        assert "Docker Ops Manager Configuration:" in result.output
        shown = json.loads(result.output.split("Configuration:", 1)[1])
        assert shown["state_file"] == str(isolated_config / "state.json")
        assert shown["log_level"] == "INFO"

    def test_show_reflects_environment(self, cli_runner, monkeypatch):
        monkeypatch.setenv("DOCKER_OPS_READINESS_TIMEOUT", "75")

        result = cli_runner.invoke(cli, ['config', 'show'])

        assert '"readiness_timeout": 75' in result.output

    def test_set(self, cli_runner, isolated_config):
        """Test a value is validated and stored in the config file."""
        result = cli_runner.invoke(cli, ['config', 'set', 'max_unit_history', '5'])

        assert result.exit_code == 0, result.output
        assert "Set max_unit_history = 5" in result.output
        data = json.loads((isolated_config / "config.json").read_text())
        assert data["max_unit_history"] == 5

    def test_set_unknown_key(self, cli_runner):
        result = cli_runner.invoke(cli, ['config', 'set', 'colour', 'blue'])

        assert result.exit_code == 1
        assert "cannot be stored" in result.output

    def test_set_invalid_value(self, cli_runner):
        result = cli_runner.invoke(cli, ['config', 'set', 'readiness_timeout', 'soon'])

        assert result.exit_code == 1
        assert "Invalid value for readiness_timeout" in result.output


class TestConfigValidateCommand:
    """Tests for config validate."""

    def test_validate(self, cli_runner, compose_file):
        """Test a valid file is summarized."""
        result = cli_runner.invoke(cli, ['config', 'validate', str(compose_file)])

        assert result.exit_code == 0, result.output
        assert "Type: docker-compose" in result.output
        assert "db (app-db): postgres:13-alpine" in result.output
        assert "Configuration is valid" in result.output

    def test_validate_missing_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(cli, ['config', 'validate', str(tmp_path / "missing.yml")])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_validate_invalid_container_name(self, cli_runner, tmp_path):
        path = tmp_path / "app.yml"
        path.write_text("services:\n  web:\n    image: nginx\n    container_name: bad name\n")

        result = cli_runner.invoke(cli, ['config', 'validate', str(path)])

        assert result.exit_code == 1
        assert "Invalid container names: bad name" in result.output

    def test_validate_no_containers(self, cli_runner, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("settings:\n  debug: true\n")

        result = cli_runner.invoke(cli, ['config', 'validate', str(path)])

        assert result.exit_code == 1
        assert "No containers found" in result.output
