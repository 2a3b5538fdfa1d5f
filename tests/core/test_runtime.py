"""Tests for DockerRuntime."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from conftest import failed_result, ok_result
from docker_ops_manager.core.runtime import DockerRuntime
from docker_ops_manager.services.exceptions import RuntimeCommandFailedError


@pytest.fixture
def mock_executor():
    executor = MagicMock()
    executor.execute.return_value = ok_result()
    return executor


@pytest.fixture
def runtime(mock_executor, settings):
    return DockerRuntime(mock_executor, settings)


def executed_args(mock_executor, index=-1):
    return mock_executor.execute.call_args_list[index][0][2]


class TestDockerRuntime:
    """Test cases for DockerRuntime."""

    def test_exists_from_ps(self, runtime, mock_executor):
        """Test existence is answered by the container listing."""
        mock_executor.execute.return_value = ok_result("other\nweb\n")

        assert runtime.exists("web") is True
        assert mock_executor.execute.call_count == 1
        assert executed_args(mock_executor) == ["docker", "ps", "-a", "--format", "{{.Names}}"]

    def test_exists_requires_exact_name(self, runtime, mock_executor):
        """Test that a name prefix is not mistaken for the container."""
        mock_executor.execute.side_effect = [ok_result("webserver\n"), failed_result("[]", 1)]

        assert runtime.exists("web") is False

    def test_exists_falls_back_to_inspect(self, runtime, mock_executor):
        """Test the inspect fallback when the listing does not show the container."""
        mock_executor.execute.side_effect = [ok_result(""), ok_result('[{"Name": "/web"}]')]

        assert runtime.exists("web") is True
        assert executed_args(mock_executor) == ["docker", "inspect", "web"]

    def test_exists_empty_inspect(self, runtime, mock_executor):
        """Test that an empty inspect result means the container is absent."""
        mock_executor.execute.side_effect = [ok_result(""), ok_result("[]\n")]

        assert runtime.exists("web") is False

    def test_is_running(self, runtime, mock_executor):
        """Test running check uses the running-only listing."""
        mock_executor.execute.return_value = ok_result("web\n")

        assert runtime.is_running("web") is True
        assert executed_args(mock_executor) == ["docker", "ps", "--format", "{{.Names}}"]

    def test_status(self, runtime, mock_executor):
        """Test the state reported by inspect."""
        mock_executor.execute.return_value = ok_result("exited\n")
        assert runtime.status("web") == "exited"

        mock_executor.execute.return_value = failed_result("No such object: web")
        assert runtime.status("web") is None

    @pytest.mark.parametrize("output,expected", [
        ("healthy\n", "healthy"),
        ("starting\n", "starting"),
        ("\n", None),
        ("<nil>\n", None),
    ])
    def test_health_status(self, runtime, mock_executor, output, expected):
        """Test health status parsing, with no health check reported as None."""
        mock_executor.execute.return_value = ok_result(output)

        assert runtime.health_status("web") == expected

    def test_container_id(self, runtime, mock_executor):
        """Test container ID lookup by exact name."""
        mock_executor.execute.return_value = ok_result("111aaa\twebserver\n222bbb\tweb\n")

        assert runtime.container_id("web") == "222bbb"
        assert runtime.container_id("missing") is None

    def test_inventory(self, runtime, mock_executor):
        """Test parsing of the runtime inventory."""
        mock_executor.execute.return_value = ok_result(
            "web\tUp 3 minutes\tabc123\napp-db\tExited (0) 2 hours ago\tdef456\n\n"
        )

        inventory = runtime.inventory()

        assert [(c.name, c.status_phrase, c.id) for c in inventory] == [
            ("web", "Up 3 minutes", "abc123"),
            ("app-db", "Exited (0) 2 hours ago", "def456"),
        ]

    def test_inventory_failure_raises(self, runtime, mock_executor):
        """Test that an unreachable daemon is not mistaken for an empty inventory."""
        mock_executor.execute.return_value = failed_result(
            "Got permission denied while trying to connect to the Docker daemon socket"
        )

        with pytest.raises(RuntimeCommandFailedError) as exc_info:
            runtime.inventory()
        assert exc_info.value.hint.kind == "permission_denied"

    def test_compose_up(self, runtime, mock_executor, tmp_path):
        """Test the compose command line for starting services."""
        manifest = tmp_path / "manifest.yml"

        runtime.compose("web", manifest, "project-web", Path("/srv/app"))

        assert executed_args(mock_executor) == [
            "docker", "compose", "-f", str(manifest), "--project-directory", "/srv/app",
            "-p", "project-web", "up", "-d",
        ]
        assert mock_executor.execute.call_args[1]["timeout"] == 300

    def test_compose_create(self, runtime, mock_executor, tmp_path):
        """Test the compose command line for creating without starting."""
        runtime.compose("web", tmp_path / "m.yml", "project-web", tmp_path, no_start=True)

        assert executed_args(mock_executor)[-1] == "create"

    def test_stop_uses_grace_period(self, runtime, mock_executor):
        """Test graceful stop passes the grace period to docker."""
        runtime.stop("web", timeout=10)
        assert executed_args(mock_executor) == ["docker", "stop", "--time=10", "web"]

        runtime.stop("web")
        assert executed_args(mock_executor) == ["docker", "stop", "--time=30", "web"]

    def test_remove(self, runtime, mock_executor):
        """Test plain and forced removal."""
        runtime.remove("web")
        assert executed_args(mock_executor) == ["docker", "rm", "web"]

        runtime.remove("web", force=True)
        assert executed_args(mock_executor) == ["docker", "rm", "-f", "web"]

    def test_logs(self, runtime, mock_executor):
        """Test log retrieval options."""
        runtime.logs("web", tail=20, timestamps=True, since="10m")

        assert executed_args(mock_executor) == [
            "docker", "logs", "--tail", "20", "--timestamps", "--since", "10m", "web"
        ]

    def test_stats(self, runtime, mock_executor):
        """Test a single stats snapshot is requested."""
        runtime.stats("web")

        assert executed_args(mock_executor) == ["docker", "stats", "--no-stream", "web"]

    def test_pull(self, runtime, mock_executor):
        """Test image pull uses the pull timeout."""
        runtime.pull("nginx:alpine")

        assert executed_args(mock_executor) == ["docker", "pull", "nginx:alpine"]
        assert mock_executor.execute.call_args[1]["timeout"] == 300

    def test_prune(self, runtime, mock_executor):
        """Test prune targets, with volumes only on request."""
        assert len(runtime.prune()) == 3
        targets = [call[0][2][1] for call in mock_executor.execute.call_args_list]
        assert targets == ["container", "image", "network"]

        mock_executor.execute.reset_mock()
        runtime.prune(volumes=True)
        assert executed_args(mock_executor) == ["docker", "volume", "prune", "-f"]

    def test_run_passes_command_line(self, runtime, mock_executor):
        """Test that assembled run commands are executed as given."""
        runtime.run("web", "docker run -d --name web nginx:alpine")

        assert executed_args(mock_executor) == "docker run -d --name web nginx:alpine"
