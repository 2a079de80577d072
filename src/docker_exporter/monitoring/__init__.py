"""Monitoring module - Stats aggregation and caching for Docker containers.

Provides:
- FreshnessCache: TTL cache for expensive daemon calls
- StatsAggregator: Raw stats snapshot to ContainerStats, with CPU counter tracking
- sizes: Loaders for the container size listing and daemon disk usage
"""

from __future__ import annotations

from docker_exporter.monitoring.base import (
    ContainerCpuStats,
    ContainerInfo,
    ContainerNetStats,
    ContainerSize,
    ContainerStats,
    CpuCounterSnapshot,
    DiskUsage,
)
from docker_exporter.monitoring.cache import FreshnessCache, copy_mapping
from docker_exporter.monitoring.sizes import (
    container_size_loader,
    disk_usage_loader,
    parse_container_sizes,
    parse_disk_usage,
)
from docker_exporter.monitoring.stats import (
    CpuCounterStore,
    StatsAggregator,
    cpu_usage_percent,
    parse_raw_stats,
)

__all__ = [
    "ContainerCpuStats",
    "ContainerInfo",
    "ContainerNetStats",
    "ContainerSize",
    "ContainerStats",
    "container_size_loader",
    "copy_mapping",
    "CpuCounterSnapshot",
    "CpuCounterStore",
    "cpu_usage_percent",
    "DiskUsage",
    "disk_usage_loader",
    "FreshnessCache",
    "parse_container_sizes",
    "parse_disk_usage",
    "parse_raw_stats",
    "StatsAggregator",
]
