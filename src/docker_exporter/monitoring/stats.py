"""StatsAggregator - turns raw daemon stats snapshots into ContainerStats.

The daemon reports cumulative counters. Network and block I/O counters are
summed across interfaces/devices; memory is converted to KiB with the
reclaimable inactive page cache removed. CPU usage can only be turned into a
ratio by comparing against an earlier sample, so the aggregator remembers the
last CPU counters seen per container and reports them next to the current
ones.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable, Mapping
from typing import Any

from docker_exporter.core.constants import BLKIO_OP_READ, BLKIO_OP_WRITE, KIB
from docker_exporter.core.schemas import RawStatsRecord
from docker_exporter.monitoring.base import (
    ContainerCpuStats,
    ContainerNetStats,
    ContainerStats,
    CpuCounterSnapshot,
)

logger = logging.getLogger(__name__)


def parse_raw_stats(raw: RawStatsRecord | Mapping[str, Any] | bytes | str) -> RawStatsRecord:
    """Decode a raw stats snapshot.

    Args:
        raw: Already decoded mapping, JSON bytes/str, or a RawStatsRecord

    Returns:
        Validated RawStatsRecord

    Raises:
        json.JSONDecodeError: If the body is not valid JSON
        pydantic.ValidationError: If the JSON does not match the stats layout
    """
    if isinstance(raw, RawStatsRecord):
        return raw
    if isinstance(raw, (bytes, bytearray, str)):
        raw = json.loads(raw)
    return RawStatsRecord.model_validate(raw)


class CpuCounterStore:
    """Last-seen CPU counters keyed by container ID.

    A single lock guards the map but is only held for the dictionary
    operation itself, never across a daemon call, so requests for different
    containers do not wait on each other.

    Entries are never removed implicitly. Long-running callers can drop
    containers that disappeared with ``retain()``.
    """

    def __init__(self) -> None:
        self._counters: dict[str, CpuCounterSnapshot] = {}
        self._lock = threading.Lock()

    def swap(self, container_id: str, current: CpuCounterSnapshot) -> CpuCounterSnapshot:
        """Store ``current`` and return the previous counters (zeros if none)."""
        with self._lock:
            previous = self._counters.get(container_id, CpuCounterSnapshot())
            self._counters[container_id] = current
        return previous

    def get(self, container_id: str) -> CpuCounterSnapshot | None:
        with self._lock:
            return self._counters.get(container_id)

    def forget(self, container_id: str) -> bool:
        with self._lock:
            return self._counters.pop(container_id, None) is not None

    def retain(self, active_ids: Iterable[str]) -> int:
        """Drop counters of containers not in ``active_ids``.

        Returns:
            Number of removed entries
        """
        keep = set(active_ids)
        with self._lock:
            stale = [cid for cid in self._counters if cid not in keep]
            for cid in stale:
                del self._counters[cid]
        if stale:
            logger.debug(f"Pruned CPU counters of {len(stale)} vanished containers")
        return len(stale)

    def __contains__(self, container_id: object) -> bool:
        with self._lock:
            return container_id in self._counters

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)


class StatsAggregator:
    """Aggregates raw stats snapshots into ContainerStats.

    Example:
        ```python
        aggregator = StatsAggregator()
        stats = aggregator.aggregate(container_id, api.stats(container_id, stream=False))
        print(stats.memory_usage_kib, stats.net.recv_bytes)
        ```
    """

    def __init__(self, cpu_counters: CpuCounterStore | None = None) -> None:
        self.cpu_counters = cpu_counters if cpu_counters is not None else CpuCounterStore()

    def aggregate(
        self,
        container_id: str,
        raw: RawStatsRecord | Mapping[str, Any] | bytes | str,
        compute_cpu: bool = True,
    ) -> ContainerStats:
        """Aggregate one raw snapshot of ``container_id``.

        Decoding happens before any state is touched, so a malformed snapshot
        raises without updating the stored CPU counters.

        Args:
            container_id: Docker container ID the snapshot belongs to
            raw: Raw snapshot (see ``parse_raw_stats``)
            compute_cpu: Fill CPU fields and advance the stored counters

        Returns:
            Flattened ContainerStats
        """
        rec = parse_raw_stats(raw)

        cpu = self._cpu_stats(container_id, rec) if compute_cpu else ContainerCpuStats()
        block_input, block_output = self._block_io_totals(container_id, rec)

        return ContainerStats(
            pids=rec.pids_stats.current,
            cpu=cpu,
            net=self._net_totals(rec),
            memory_usage_kib=(rec.memory_stats.usage - rec.memory_stats.stats.inactive_file) // KIB,
            memory_limit_kib=rec.memory_stats.limit // KIB,
            block_input_bytes=block_input,
            block_output_bytes=block_output,
        )

    def _cpu_stats(self, container_id: str, rec: RawStatsRecord) -> ContainerCpuStats:
        usage = rec.cpu_stats.cpu_usage
        prev = self.cpu_counters.swap(
            container_id,
            CpuCounterSnapshot(
                usage_ns=usage.total_usage,
                system_usage_ns=rec.cpu_stats.system_cpu_usage,
            ),
        )
        return ContainerCpuStats(
            usage_ns=usage.total_usage,
            usage_user_ns=usage.usage_in_usermode,
            usage_kernel_ns=usage.usage_in_kernelmode,
            pre_usage_ns=prev.usage_ns,
            system_usage_ns=rec.cpu_stats.system_cpu_usage,
            pre_system_usage_ns=prev.system_usage_ns,
            online_cpus=rec.cpu_stats.online_cpus,
        )

    @staticmethod
    def _net_totals(rec: RawStatsRecord) -> ContainerNetStats:
        net = ContainerNetStats()
        for iface in rec.networks.values():
            net.send_bytes += iface.tx_bytes
            net.send_errors += iface.tx_errors
            net.send_dropped += iface.tx_dropped
            net.recv_bytes += iface.rx_bytes
            net.recv_errors += iface.rx_errors
            net.recv_dropped += iface.rx_dropped
        return net

    @staticmethod
    def _block_io_totals(container_id: str, rec: RawStatsRecord) -> tuple[int, int]:
        """Sum block I/O bytes per direction across all devices."""
        read_bytes = 0
        write_bytes = 0

        for entry in rec.blkio_stats.io_service_bytes_recursive:
            if entry.op == BLKIO_OP_READ:
                read_bytes += entry.value
            elif entry.op == BLKIO_OP_WRITE:
                write_bytes += entry.value
            else:
                logger.warning(
                    f"Unknown blkio operation {entry.op!r} for container {container_id[:12]}",
                    extra={"operation": entry.op, "container_id": container_id},
                )

        return read_bytes, write_bytes


def cpu_usage_percent(cpu: ContainerCpuStats) -> float | None:
    """Derive CPU utilization from current and previous counters.

    Uses the same formula as ``docker stats``:
    ``(usage delta / system delta) * online CPUs * 100``.

    Returns:
        Percentage, or None when there is no prior sample or no elapsed
        system time
    """
    if cpu.pre_system_usage_ns == 0:
        return None

    system_delta = cpu.system_usage_ns - cpu.pre_system_usage_ns
    if system_delta <= 0:
        return None

    usage_delta = max(0, cpu.usage_ns - cpu.pre_usage_ns)
    online_cpus = cpu.online_cpus or 1
    return (usage_delta / system_delta) * online_cpus * 100.0
