"""Data model for per-container and daemon-wide metrics.

All values are raw counters or gauges as reported by the daemon; ratios
(e.g. CPU percent) are left to the consumer so that each scrape can decide
how to handle a missing previous sample.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CpuCounterSnapshot:
    """Last-seen raw CPU counters of a container (nanoseconds)."""

    usage_ns: int = 0
    system_usage_ns: int = 0


@dataclass
class ContainerCpuStats:
    """Raw CPU counters (ns) of the current and the previously observed sample.

    A ``pre_system_usage_ns`` of zero means there is no prior sample for this
    container and no usage ratio can be derived yet.
    """

    usage_ns: int = 0
    usage_user_ns: int = 0
    usage_kernel_ns: int = 0
    pre_usage_ns: int = 0
    system_usage_ns: int = 0
    pre_system_usage_ns: int = 0
    online_cpus: int = 0


@dataclass
class ContainerNetStats:
    """Network counters summed over all interfaces of a container."""

    send_bytes: int = 0
    send_dropped: int = 0
    send_errors: int = 0
    recv_bytes: int = 0
    recv_dropped: int = 0
    recv_errors: int = 0


@dataclass
class ContainerStats:
    """Flattened, aggregated stats of a single container.

    ``memory_usage_kib`` excludes the inactive page cache and is not clamped:
    a negative value is an anomalous daemon reading the consumer must guard
    against.
    """

    pids: int = 0
    cpu: ContainerCpuStats = field(default_factory=ContainerCpuStats)
    net: ContainerNetStats = field(default_factory=ContainerNetStats)
    memory_usage_kib: int = 0
    memory_limit_kib: int = 0
    block_input_bytes: int = 0
    block_output_bytes: int = 0


@dataclass(frozen=True)
class ContainerSize:
    """Disk sizes of a container (bytes)."""

    size_rw: int = 0  # Writable layer
    size_root_fs: int = 0  # Whole filesystem including image layers


@dataclass(frozen=True)
class DiskUsage:
    """Daemon-wide disk usage summary (bytes)."""

    layers_size: int = 0
    images_count: int = 0
    images_size: int = 0
    containers_count: int = 0
    containers_size: int = 0
    volumes_count: int = 0
    volumes_size: int = 0
    build_cache_count: int = 0
    build_cache_size: int = 0

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for serialization."""
        return {
            "layers_size": self.layers_size,
            "images_count": self.images_count,
            "images_size": self.images_size,
            "containers_count": self.containers_count,
            "containers_size": self.containers_size,
            "volumes_count": self.volumes_count,
            "volumes_size": self.volumes_size,
            "build_cache_count": self.build_cache_count,
            "build_cache_size": self.build_cache_size,
        }


@dataclass(frozen=True)
class ContainerInfo:
    """Summary of a container from the daemon listing."""

    id: str
    name: str
    image: str = ""
    state: str = ""
    status: str = ""

    @property
    def short_id(self) -> str:
        return self.id[:12]
