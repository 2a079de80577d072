"""Docker client facade for metrics collection.

This module composes the pieces that make polling the Docker daemon cheap
and meaningful:
- A FreshnessCache for the container size listing (``ContainerList(size=True)``)
- A FreshnessCache for the daemon-wide disk usage (``/system/df``)
- A StatsAggregator holding the previous CPU counters of every container

Every top-level operation reports its outcome to an ErrorRegistry so health
checks can see which daemon calls are failing. Errors are re-raised
unwrapped; retrying is left to the polling caller.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

import docker

from docker_exporter.core.constants import (
    OP_GET_CONTAINER_SIZES,
    OP_GET_CONTAINER_STATS,
    OP_GET_DISK_USAGE,
    OP_LIST_CONTAINERS,
    OP_NEW_DOCKER_CLIENT,
    USER_AGENT,
)
from docker_exporter.core.schemas import ExporterConfig
from docker_exporter.core.status import ErrorRegistry
from docker_exporter.core.status import registry as default_registry
from docker_exporter.monitoring.base import ContainerInfo, ContainerSize, ContainerStats, DiskUsage
from docker_exporter.monitoring.cache import FreshnessCache, copy_mapping
from docker_exporter.monitoring.sizes import container_size_loader, disk_usage_loader
from docker_exporter.monitoring.stats import StatsAggregator

if TYPE_CHECKING:
    from docker import APIClient

logger = logging.getLogger(__name__)

R = TypeVar("R")


def connect(config: ExporterConfig) -> docker.DockerClient:
    """Create a Docker SDK client for the configured daemon.

    Args:
        config: Exporter configuration

    Returns:
        Connected DockerClient (no request is made yet)
    """
    if config.docker_host:
        return docker.DockerClient(
            base_url=config.docker_host,
            timeout=config.timeout_seconds,
            user_agent=USER_AGENT,
        )
    # DOCKER_HOST / DOCKER_TLS_VERIFY / DOCKER_CERT_PATH, as docker.from_env() reads them
    return docker.DockerClient(
        timeout=config.timeout_seconds,
        user_agent=USER_AGENT,
        **docker.utils.kwargs_from_env(),
    )


class DockerExporterClient:
    """Metrics-oriented view of a Docker daemon.

    Example:
        ```python
        client = DockerExporterClient(ExporterConfig())
        for info in client.list_containers():
            stats = client.get_container_stats(info.id)
            print(info.name, stats.memory_usage_kib)
        print(client.get_disk_usage().images_size)
        ```
    """

    def __init__(
        self,
        config: ExporterConfig | None = None,
        *,
        api: APIClient | None = None,
        registry: ErrorRegistry | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the client.

        Args:
            config: Exporter configuration (defaults apply when None)
            api: Low-level Docker API client; created from ``config`` when None
            registry: Status registry; the process-wide one when None
            clock: Monotonic time source for the caches

        Raises:
            docker.errors.DockerException: If the daemon client cannot be created
        """
        self.config = config or ExporterConfig()
        self.registry = registry if registry is not None else default_registry
        self._docker: docker.DockerClient | None = None

        if api is None:
            try:
                self._docker = connect(self.config)
            except Exception as e:
                self.registry.set_error(OP_NEW_DOCKER_CLIENT, e)
                raise
            self.registry.set_error(OP_NEW_DOCKER_CLIENT, None)
            api = self._docker.api
        self._api = api

        self.size_cache: FreshnessCache[dict[str, ContainerSize]] = FreshnessCache(
            "size_cache",
            self.config.size_cache_seconds,
            container_size_loader(api),
            copier=copy_mapping,
            clock=clock,
        )
        self.disk_usage_cache: FreshnessCache[DiskUsage] = FreshnessCache(
            "disk_usage_cache",
            self.config.disk_usage_cache_seconds,
            disk_usage_loader(api),
            clock=clock,
        )
        self.aggregator = StatsAggregator()

    def _tracked(self, operation: str, func: Callable[..., R], *args: Any) -> R:
        """Run ``func`` and record its outcome under ``operation``."""
        try:
            result = func(*args)
        except Exception as e:
            self.registry.set_error(operation, e)
            raise
        self.registry.set_error(operation, None)
        return result

    def ping(self) -> bool:
        """Check that the daemon answers."""
        return bool(self._api.ping())

    def list_containers(self, include_stopped: bool | None = None) -> list[ContainerInfo]:
        """List containers known to the daemon.

        Args:
            include_stopped: Include stopped containers (config default when None)
        """
        if include_stopped is None:
            include_stopped = self.config.include_stopped
        return self._tracked(OP_LIST_CONTAINERS, self._list_containers, include_stopped)

    def _list_containers(self, include_stopped: bool) -> list[ContainerInfo]:
        containers = []
        for c in self._api.containers(all=include_stopped):
            names = c.get("Names") or []
            name = names[0].lstrip("/") if names else c["Id"][:12]
            containers.append(
                ContainerInfo(
                    id=c["Id"],
                    name=name,
                    image=c.get("Image", ""),
                    state=c.get("State", ""),
                    status=c.get("Status", ""),
                )
            )
        return containers

    def get_container_stats(self, container_id: str, cpu: bool | None = None) -> ContainerStats:
        """Fetch one stats snapshot of a container and aggregate it.

        Args:
            container_id: Docker container ID
            cpu: Track CPU counters for this request (config default when None)

        Raises:
            docker.errors.APIError: If the daemon request fails
            ValueError: If the snapshot cannot be decoded
        """
        if cpu is None:
            cpu = self.config.collect_cpu
        return self._tracked(OP_GET_CONTAINER_STATS, self._get_container_stats, container_id, cpu)

    def _get_container_stats(self, container_id: str, cpu: bool) -> ContainerStats:
        raw = self._api.stats(container_id, stream=False, one_shot=True)
        return self.aggregator.aggregate(container_id, raw, compute_cpu=cpu)

    def get_container_sizes(self) -> dict[str, ContainerSize]:
        """Return sizes of all containers, served from the size cache."""
        return self._tracked(OP_GET_CONTAINER_SIZES, self.size_cache.get)

    def get_container_size(self, container_id: str) -> ContainerSize | None:
        """Return the sizes of one container, or None if the daemon did not list it."""
        return self.get_container_sizes().get(container_id)

    def get_disk_usage(self) -> DiskUsage:
        """Return the daemon disk usage, served from the disk usage cache."""
        return self._tracked(OP_GET_DISK_USAGE, self.disk_usage_cache.get)

    def prune_cpu_counters(self, active_ids: Iterable[str]) -> int:
        """Forget CPU counters of containers not in ``active_ids``."""
        return self.aggregator.cpu_counters.retain(active_ids)

    def close(self) -> None:
        if self._docker is not None:
            self._docker.close()

    def __enter__(self) -> DockerExporterClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
