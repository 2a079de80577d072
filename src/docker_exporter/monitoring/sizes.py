"""Loaders for the expensive size and disk-usage daemon calls.

These are bound into FreshnessCache instances by the client; each returns a
freshly built value and lets any daemon error propagate.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from docker_exporter.monitoring.base import ContainerSize, DiskUsage

if TYPE_CHECKING:
    import docker

logger = logging.getLogger(__name__)


def _sum_sizes(items: list[dict[str, Any]], key: str) -> int:
    total = 0
    for item in items:
        size = item.get(key) or 0
        # The daemon reports -1 for sizes it did not compute
        if size > 0:
            total += size
    return total


def parse_container_sizes(containers: list[dict[str, Any]]) -> dict[str, ContainerSize]:
    """Map a ``ContainerList(size=True)`` response to sizes by container ID."""
    return {
        c["Id"]: ContainerSize(
            size_rw=c.get("SizeRw") or 0,
            size_root_fs=c.get("SizeRootFs") or 0,
        )
        for c in containers
    }


def parse_disk_usage(df: dict[str, Any]) -> DiskUsage:
    """Summarize a ``/system/df`` response."""
    images = df.get("Images") or []
    containers = df.get("Containers") or []
    volumes = df.get("Volumes") or []
    build_cache = df.get("BuildCache") or []

    volumes_size = 0
    for volume in volumes:
        size = (volume.get("UsageData") or {}).get("Size", -1)
        if size > 0:
            volumes_size += size

    return DiskUsage(
        layers_size=df.get("LayersSize") or 0,
        images_count=len(images),
        images_size=_sum_sizes(images, "Size"),
        containers_count=len(containers),
        containers_size=_sum_sizes(containers, "SizeRw"),
        volumes_count=len(volumes),
        volumes_size=volumes_size,
        build_cache_count=len(build_cache),
        build_cache_size=_sum_sizes(build_cache, "Size"),
    )


def container_size_loader(api: docker.APIClient) -> Callable[[], dict[str, ContainerSize]]:
    """Build the loader for the container size cache."""

    def load() -> dict[str, ContainerSize]:
        sizes = parse_container_sizes(api.containers(all=True, size=True))
        logger.debug(f"Loaded sizes of {len(sizes)} containers")
        return sizes

    return load


def disk_usage_loader(api: docker.APIClient) -> Callable[[], DiskUsage]:
    """Build the loader for the daemon disk usage cache."""

    def load() -> DiskUsage:
        usage = parse_disk_usage(api.df())
        logger.debug(
            f"Loaded disk usage: images={usage.images_count} containers={usage.containers_count} "
            f"volumes={usage.volumes_count} cache={usage.build_cache_count} "
            f"layers={usage.layers_size}"
        )
        return usage

    return load
