import pytest
from click.testing import CliRunner
from unittest.mock import MagicMock, patch
from pathlib import Path

from docker_ops_manager.core.command_executor import CommandResult
from docker_ops_manager.core.lifecycle import LifecycleController
from docker_ops_manager.core.readiness import ReadinessProber
from docker_ops_manager.core.reconciler import ReconciliationEngine
from docker_ops_manager.core.runtime import DockerRuntime
from docker_ops_manager.core.state_store import StateStore
from docker_ops_manager.models.settings import ManagerSettings


ENV_SUFFIXES = [
    "CONFIG_DIR", "LOG_DIR", "LOG_LEVEL", "LOG_ROTATION_DAYS", "STATE_FILE",
    "CONFIG_FILE", "MAX_CONTAINER_HISTORY", "PROJECT_NAME_PATTERN", "READINESS_TIMEOUT",
]

COMPOSE_CONTENT = """
version: '3.8'
services:
  web:
    image: nginx:alpine
    ports:
      - "8080:80"
    environment:
      - NGINX_HOST=localhost
  db:
    image: postgres:13-alpine
    container_name: app-db
    environment:
      POSTGRES_DB: myapp
    volumes:
      - db_data:/var/lib/postgresql/data
    x-docker-ops:
      readiness_timeout: 120
volumes:
  db_data:
"""


def ok_result(output: str = "") -> CommandResult:
    return CommandResult(output=output, exit_code=0, duration=0.1)


def failed_result(output: str = "error", exit_code: int = 1) -> CommandResult:
    return CommandResult(output=output, exit_code=exit_code, duration=0.1)


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the configuration directory at a temporary path for every test."""
    for suffix in ENV_SUFFIXES:
        monkeypatch.delenv(f"DOCKER_OPS_{suffix}", raising=False)
    config_dir = tmp_path / "config"
    monkeypatch.setenv("DOCKER_OPS_CONFIG_DIR", str(config_dir))
    return config_dir


@pytest.fixture
def cli_runner():
    """Provides a Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path):
    """Provides settings rooted in a temporary directory."""
    return ManagerSettings(config_dir=tmp_path / "config")


@pytest.fixture
def mock_runtime():
    """Provides a mocked DockerRuntime where every command succeeds."""
    runtime = MagicMock(spec=DockerRuntime)
    runtime.exists.return_value = False
    runtime.is_running.return_value = False
    runtime.status.return_value = "running"
    runtime.health_status.return_value = "healthy"
    runtime.container_id.return_value = "abc123"
    runtime.inventory.return_value = []
    for method in ("run", "compose", "pull", "start", "stop", "kill", "restart", "remove", "logs", "stats"):
        getattr(runtime, method).return_value = ok_result()
    runtime.prune.return_value = [ok_result()]
    return runtime


@pytest.fixture
def store(settings):
    """Provides a StateStore backed by a temporary file."""
    return StateStore(settings)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def prober(mock_runtime, settings, fake_clock):
    """Provides a ReadinessProber that never really sleeps."""
    return ReadinessProber(mock_runtime, settings, clock=fake_clock, sleep=fake_clock.sleep)


@pytest.fixture
def reconciler(mock_runtime, store):
    return ReconciliationEngine(mock_runtime, store)


@pytest.fixture
def controller(mock_runtime, store, prober, reconciler, settings):
    """Provides a LifecycleController wired to the mocked runtime."""
    return LifecycleController(mock_runtime, store, prober, reconciler, settings, sleep=lambda seconds: None)


@pytest.fixture
def compose_file(tmp_path) -> Path:
    """Creates a compose-style config file with two services."""
    path = tmp_path / "app.yml"
    path.write_text(COMPOSE_CONTENT)
    return path


@pytest.fixture
def cli_runtime(mock_runtime):
    """Patches the runtime used by CLI commands with the mock."""
    with patch('docker_ops_manager.cli.helpers.DockerRuntime', return_value=mock_runtime):
        yield mock_runtime


@pytest.fixture
def cli_store(isolated_config):
    """StateStore over the state file CLI commands use."""
    return StateStore(ManagerSettings(config_dir=isolated_config))
