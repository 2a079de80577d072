"""Core module - configuration, schemas and operation status."""

from __future__ import annotations

from docker_exporter.core.config import load_config
from docker_exporter.core.constants import KIB, USER_AGENT
from docker_exporter.core.schemas import (
    ExporterConfig,
    RawBlkioEntry,
    RawCpuStats,
    RawMemoryStats,
    RawNetworkStats,
    RawStatsRecord,
)
from docker_exporter.core.status import ErrorRegistry, OperationError, registry

__all__ = [
    "ErrorRegistry",
    "ExporterConfig",
    "KIB",
    "load_config",
    "OperationError",
    "RawBlkioEntry",
    "RawCpuStats",
    "RawMemoryStats",
    "RawNetworkStats",
    "RawStatsRecord",
    "registry",
    "USER_AGENT",
]
