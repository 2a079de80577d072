"""Tests for DockerExporterClient."""

from unittest.mock import MagicMock, patch

import pytest
from docker.errors import APIError, DockerException

from docker_exporter.client import DockerExporterClient
from docker_exporter.core.constants import (
    OP_GET_CONTAINER_SIZES,
    OP_GET_CONTAINER_STATS,
    OP_GET_DISK_USAGE,
    OP_LIST_CONTAINERS,
    OP_NEW_DOCKER_CLIENT,
)
from docker_exporter.core.schemas import ExporterConfig
from docker_exporter.core.status import ErrorRegistry
from docker_exporter.monitoring.base import ContainerSize


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def create_mock_api() -> MagicMock:
    """Create a mock low-level Docker API client."""
    api = MagicMock()
    api.containers.return_value = [
        {
            "Id": "aaa111",
            "Names": ["/web"],
            "Image": "nginx:latest",
            "State": "running",
            "Status": "Up 2 hours",
            "SizeRw": 4096,
            "SizeRootFs": 1_000_000,
        },
        {"Id": "bbb222", "Names": [], "Image": "redis:7", "State": "exited", "Status": "Exited (0)"},
    ]
    api.stats.return_value = {
        "pids_stats": {"current": 3},
        "cpu_stats": {"cpu_usage": {"total_usage": 1000}, "system_cpu_usage": 5000, "online_cpus": 2},
        "memory_stats": {"usage": 4096, "limit": 8192, "stats": {"inactive_file": 2048}},
        "networks": {"eth0": {"rx_bytes": 10, "tx_bytes": 20}},
    }
    api.df.return_value = {
        "LayersSize": 1234,
        "Images": [{"Size": 100}, {"Size": 200}],
        "Containers": [{"SizeRw": 10}],
        "Volumes": [{"UsageData": {"Size": 50}}],
        "BuildCache": [],
    }
    return api


@pytest.fixture
def api():
    return create_mock_api()


@pytest.fixture
def registry():
    return ErrorRegistry()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def client(api, registry, clock):
    config = ExporterConfig(size_cache_seconds=60, disk_usage_cache_seconds=300)
    return DockerExporterClient(config, api=api, registry=registry, clock=clock)


class TestListContainers:
    """Tests for container listing."""

    def test_list_containers(self, client, api):
        """Test mapping the daemon listing to ContainerInfo."""
        containers = client.list_containers()

        assert [c.id for c in containers] == ["aaa111", "bbb222"]
        assert containers[0].name == "web"
        assert containers[0].image == "nginx:latest"
        # Unnamed containers fall back to the short ID
        assert containers[1].name == "bbb222"
        api.containers.assert_called_once_with(all=False)

    def test_include_stopped(self, client, api):
        """Test the include_stopped override."""
        client.list_containers(include_stopped=True)
        api.containers.assert_called_once_with(all=True)

    def test_failure_recorded(self, client, api, registry):
        """Test that a listing failure is re-raised and recorded."""
        api.containers.side_effect = APIError("server error")

        with pytest.raises(APIError):
            client.list_containers()
        assert registry.get(OP_LIST_CONTAINERS) is not None


class TestGetContainerStats:
    """Tests for stats collection through the facade."""

    def test_stats_aggregated(self, client, api):
        """Test fetching and aggregating one snapshot."""
        stats = client.get_container_stats("aaa111")

        api.stats.assert_called_once_with("aaa111", stream=False, one_shot=True)
        assert stats.pids == 3
        assert stats.memory_usage_kib == 2
        assert stats.memory_limit_kib == 8
        assert stats.net.recv_bytes == 10
        assert stats.cpu.usage_ns == 1000

    def test_cpu_counters_carried_between_calls(self, client):
        """Test that the second call reports the first call's counters."""
        client.get_container_stats("aaa111")
        stats = client.get_container_stats("aaa111")

        assert stats.cpu.pre_usage_ns == 1000
        assert stats.cpu.pre_system_usage_ns == 5000

    def test_cpu_disabled(self, client):
        """Test that cpu=False skips CPU bookkeeping."""
        stats = client.get_container_stats("aaa111", cpu=False)

        assert stats.cpu.usage_ns == 0
        assert "aaa111" not in client.aggregator.cpu_counters

    def test_status_set_then_cleared(self, client, api, registry):
        """Test that a failure sets the status slot and a success clears it."""
        api.stats.side_effect = APIError("no such container")
        with pytest.raises(APIError):
            client.get_container_stats("gone")
        assert registry.get(OP_GET_CONTAINER_STATS) is not None

        api.stats.side_effect = None
        client.get_container_stats("aaa111")
        assert registry.get(OP_GET_CONTAINER_STATS) is None

    def test_decode_failure_propagated(self, client, api, registry):
        """Test that an undecodable snapshot is a hard failure for the call."""
        api.stats.return_value = {"memory_stats": {"usage": "not a number"}}

        with pytest.raises(ValueError):
            client.get_container_stats("aaa111")
        assert registry.get(OP_GET_CONTAINER_STATS) is not None
        assert len(client.aggregator.cpu_counters) == 0

    def test_prune_cpu_counters(self, client):
        """Test forgetting counters of vanished containers."""
        client.get_container_stats("aaa111")
        client.get_container_stats("old")

        assert client.prune_cpu_counters(["aaa111"]) == 1
        assert "old" not in client.aggregator.cpu_counters


class TestCachedOperations:
    """Tests for the size and disk usage caches."""

    def test_sizes_cached(self, client, api, clock):
        """Test that sizes are loaded once per freshness window."""
        sizes = client.get_container_sizes()
        client.get_container_sizes()

        assert sizes["aaa111"] == ContainerSize(size_rw=4096, size_root_fs=1_000_000)
        api.containers.assert_called_once_with(all=True, size=True)

        clock.now = 60
        client.get_container_sizes()
        assert api.containers.call_count == 2

    def test_sizes_copy_isolated(self, client):
        """Test that callers cannot corrupt the cached listing."""
        sizes = client.get_container_sizes()
        sizes.clear()

        assert "aaa111" in client.get_container_sizes()

    def test_get_container_size(self, client):
        """Test the single-container convenience lookup."""
        assert client.get_container_size("aaa111").size_rw == 4096
        assert client.get_container_size("missing") is None

    def test_disk_usage_cached(self, client, api, clock):
        """Test that disk usage is loaded once per freshness window."""
        usage = client.get_disk_usage()
        clock.now = 299
        client.get_disk_usage()

        assert usage.images_size == 300
        assert usage.layers_size == 1234
        api.df.assert_called_once()

    def test_disk_usage_failure_keeps_stale(self, client, api, clock, registry):
        """Test stale fallback after a failed refresh."""
        client.get_disk_usage()
        clock.now = 300
        api.df.side_effect = APIError("timeout")

        with pytest.raises(APIError):
            client.get_disk_usage()
        assert registry.get(OP_GET_DISK_USAGE) is not None
        assert client.disk_usage_cache.peek().images_size == 300

    def test_sizes_failure_recorded(self, client, api, registry):
        """Test that a size listing failure sets the status slot."""
        api.containers.side_effect = APIError("boom")

        with pytest.raises(APIError):
            client.get_container_sizes()
        assert registry.get(OP_GET_CONTAINER_SIZES) is not None


class TestConstruction:
    """Tests for creating the daemon connection."""

    def test_connect_failure_recorded(self, registry):
        """Test that a client creation failure is recorded and re-raised."""
        with patch(
            "docker_exporter.client.docker.DockerClient", side_effect=DockerException("no socket")
        ):
            with pytest.raises(DockerException):
                DockerExporterClient(ExporterConfig(), registry=registry)
        assert registry.get(OP_NEW_DOCKER_CLIENT) is not None

    def test_connect_with_host(self, registry):
        """Test that an explicit host is passed to the SDK."""
        with patch("docker_exporter.client.docker.DockerClient") as docker_client:
            client = DockerExporterClient(
                ExporterConfig(docker_host="tcp://10.0.0.1:2375", timeout_seconds=5),
                registry=registry,
            )
            docker_client.assert_called_once_with(
                base_url="tcp://10.0.0.1:2375", timeout=5, user_agent="docker-exporter"
            )
            client.close()
            docker_client.return_value.close.assert_called_once()
        assert registry.healthy

    def test_connect_from_env_sends_user_agent(self, registry, monkeypatch):
        """Test that the environment-based connection identifies the exporter."""
        monkeypatch.setenv("DOCKER_HOST", "tcp://10.0.0.2:2375")
        monkeypatch.delenv("DOCKER_TLS_VERIFY", raising=False)
        monkeypatch.delenv("DOCKER_CERT_PATH", raising=False)
        with patch("docker_exporter.client.docker.DockerClient") as docker_client:
            DockerExporterClient(ExporterConfig(timeout_seconds=7), registry=registry)

        kwargs = docker_client.call_args.kwargs
        assert kwargs["user_agent"] == "docker-exporter"
        assert kwargs["timeout"] == 7
        assert kwargs["base_url"] == "tcp://10.0.0.2:2375"
