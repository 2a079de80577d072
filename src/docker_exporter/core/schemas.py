"""Pydantic schemas for docker-exporter.

This module defines the data contracts that cross the process boundary:
the exporter configuration and the raw stats snapshot returned by the
Docker daemon (``GET /containers/{id}/stats?stream=false``).

The raw snapshot layout is dictated by the daemon API and not versioned here.
Missing fields decode to zero and unknown fields are ignored, so schema drift
between daemon versions degrades to zero-valued metrics rather than errors.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator

from docker_exporter.core.constants import (
    DEFAULT_DISK_USAGE_CACHE_SECONDS,
    DEFAULT_SIZE_CACHE_SECONDS,
)


class ExporterConfig(BaseModel):
    """Top-level exporter configuration.

    This is the main configuration loaded from YAML/JSON files.

    Attributes:
        docker_host: Daemon URL (e.g. ``unix:///var/run/docker.sock``).
            ``None`` uses the ``DOCKER_HOST`` environment like the ``docker`` CLI.
        timeout_seconds: Timeout applied to every daemon request
        size_cache_seconds: Freshness window of the container size listing
        disk_usage_cache_seconds: Freshness window of the daemon disk usage
        collect_cpu: Whether stats requests track CPU counters
        include_stopped: Whether listings include stopped containers
        poll_interval_seconds: Delay between polls in ``watch`` mode
        log_level: Logging level name
    """

    docker_host: str | None = Field(default=None, description="Docker daemon URL")
    timeout_seconds: int = Field(default=10, ge=1, description="Daemon request timeout")
    size_cache_seconds: float = Field(
        default=DEFAULT_SIZE_CACHE_SECONDS, ge=0, description="Container size cache TTL"
    )
    disk_usage_cache_seconds: float = Field(
        default=DEFAULT_DISK_USAGE_CACHE_SECONDS, ge=0, description="Disk usage cache TTL"
    )
    collect_cpu: bool = Field(default=True)
    include_stopped: bool = Field(default=False)
    poll_interval_seconds: float = Field(default=15.0, gt=0, description="Watch mode interval")
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


# =============================================================================
# RAW DAEMON STATS SNAPSHOT
# =============================================================================


class _RawModel(BaseModel):
    model_config = {"extra": "ignore"}


class RawPidsStats(_RawModel):
    current: int = 0


class RawCpuUsage(_RawModel):
    total_usage: int = 0
    usage_in_kernelmode: int = 0
    usage_in_usermode: int = 0


class RawCpuStats(_RawModel):
    """CPU counters for one sample window."""

    cpu_usage: RawCpuUsage = Field(default_factory=RawCpuUsage)
    system_cpu_usage: int = 0
    online_cpus: int = 0


class RawBlkioEntry(_RawModel):
    major: int = 0
    minor: int = 0
    op: str = ""
    value: int = 0


class RawBlkioStats(_RawModel):
    io_service_bytes_recursive: list[RawBlkioEntry] = Field(default_factory=list)

    @field_validator("io_service_bytes_recursive", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        # cgroups v2 daemons send null when no device saw I/O
        return [] if v is None else v


class RawMemoryInnerStats(_RawModel):
    inactive_file: int = 0


class RawMemoryStats(_RawModel):
    usage: int = 0
    limit: int = 0
    stats: RawMemoryInnerStats = Field(default_factory=RawMemoryInnerStats)

    @field_validator("stats", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class RawNetworkStats(_RawModel):
    rx_bytes: int = 0
    rx_errors: int = 0
    rx_dropped: int = 0
    tx_bytes: int = 0
    tx_errors: int = 0
    tx_dropped: int = 0


class RawStatsRecord(_RawModel):
    """One instantaneous stats snapshot as returned by the Docker daemon."""

    pids_stats: RawPidsStats = Field(default_factory=RawPidsStats)
    cpu_stats: RawCpuStats = Field(default_factory=RawCpuStats)
    precpu_stats: RawCpuStats = Field(default_factory=RawCpuStats)
    blkio_stats: RawBlkioStats = Field(default_factory=RawBlkioStats)
    memory_stats: RawMemoryStats = Field(default_factory=RawMemoryStats)
    networks: dict[str, RawNetworkStats] = Field(default_factory=dict)

    @field_validator(
        "pids_stats", "cpu_stats", "precpu_stats", "blkio_stats", "memory_stats", "networks",
        mode="before",
    )
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        # Stopped containers report null sections
        return {} if v is None else v
