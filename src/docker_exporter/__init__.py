"""docker-exporter - Per-container resource metrics from the Docker daemon."""

from __future__ import annotations

from docker_exporter.client import DockerExporterClient
from docker_exporter.core.schemas import ExporterConfig
from docker_exporter.monitoring.base import ContainerStats, DiskUsage
from docker_exporter.monitoring.cache import FreshnessCache
from docker_exporter.monitoring.stats import StatsAggregator

__version__ = "0.1.0"

__all__ = [
    "ContainerStats",
    "DiskUsage",
    "DockerExporterClient",
    "ExporterConfig",
    "FreshnessCache",
    "StatsAggregator",
    "__version__",
]
