"""Shared constants for docker-exporter.

Centralized constants to avoid duplication and ensure consistency across modules.
"""

from __future__ import annotations

# Bytes per KiB, used for memory usage/limit conversion.
KIB = 1024

# User agent sent to the Docker daemon.
USER_AGENT = "docker-exporter"

# Block I/O operation labels counted towards input/output totals.
BLKIO_OP_READ = "read"
BLKIO_OP_WRITE = "write"

# Default cache durations (seconds) for the expensive daemon calls.
# ContainerList(size=True) and DiskUsage both walk the storage driver.
DEFAULT_SIZE_CACHE_SECONDS = 60.0
DEFAULT_DISK_USAGE_CACHE_SECONDS = 300.0

# Names of the top-level operations tracked by the status registry.
OP_NEW_DOCKER_CLIENT = "new_docker_client"
OP_LIST_CONTAINERS = "list_containers"
OP_GET_CONTAINER_STATS = "get_container_stats"
OP_GET_CONTAINER_SIZES = "get_container_sizes"
OP_GET_DISK_USAGE = "get_disk_usage"
