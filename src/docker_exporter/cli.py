"""CLI for docker-exporter.

Provides a rich command-line interface using Typer for:
- One-shot collection of container metrics
- Watching metrics with derived CPU utilization
- Inspecting the health of daemon operations
- Generating a sample configuration
"""

from __future__ import annotations

import time
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from docker_exporter.client import DockerExporterClient
from docker_exporter.core.config import load_config
from docker_exporter.core.schemas import ExporterConfig
from docker_exporter.monitoring.base import ContainerInfo, ContainerSize, ContainerStats, DiskUsage
from docker_exporter.monitoring.stats import cpu_usage_percent
from docker_exporter.utils.logging import setup_logging

app = typer.Typer(
    name="docker-exporter",
    help="Per-container resource metrics from the Docker daemon",
    add_completion=False,
)

console = Console()


def _load(config: Path | None, json_logs: bool, **overrides: object) -> ExporterConfig:
    """Load configuration, apply CLI overrides and configure logging.

    Overrides left as None keep the file value; the merged result is
    validated like the file itself.
    """
    try:
        exporter_config = load_config(config) if config is not None else ExporterConfig()
        updates = {key: value for key, value in overrides.items() if value is not None}
        if updates:
            exporter_config = ExporterConfig.model_validate(
                {**exporter_config.model_dump(), **updates}
            )
    except Exception as e:
        console.print(f"[bold red]Error loading config: {e}[/]")
        raise typer.Exit(1) from e

    setup_logging(level=exporter_config.log_level, json_format=json_logs, rich_console=not json_logs)
    return exporter_config


def _connect(exporter_config: ExporterConfig) -> DockerExporterClient:
    try:
        return DockerExporterClient(exporter_config)
    except Exception as e:
        console.print(f"[bold red]Cannot connect to Docker daemon: {e}[/]")
        raise typer.Exit(1) from e


def _collect_once(
    client: DockerExporterClient, containers: list[ContainerInfo]
) -> dict[str, ContainerStats]:
    """Fetch stats of every container, skipping the ones that fail."""
    results: dict[str, ContainerStats] = {}
    for info in containers:
        try:
            results[info.id] = client.get_container_stats(info.id)
        except Exception as e:
            console.print(f"[yellow]Skipping {info.name} ({info.short_id}): {e}[/]")
    return results


def _sizes_or_stale(client: DockerExporterClient) -> dict[str, ContainerSize]:
    try:
        return client.get_container_sizes()
    except Exception as e:
        console.print(f"[yellow]Container sizes unavailable: {e}[/]")
        return client.size_cache.peek() or {}


def _disk_usage_or_stale(client: DockerExporterClient) -> DiskUsage | None:
    try:
        return client.get_disk_usage()
    except Exception as e:
        console.print(f"[yellow]Disk usage unavailable: {e}[/]")
        return client.disk_usage_cache.peek()


def _list_or_exit(client: DockerExporterClient) -> list[ContainerInfo]:
    try:
        return client.list_containers()
    except Exception as e:
        console.print(f"[bold red]Cannot list containers: {e}[/]")
        raise typer.Exit(1) from e


@app.command()
def collect(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to exporter configuration file (YAML/JSON)"
    ),
    host: str | None = typer.Option(None, "--host", "-H", help="Docker daemon URL (overrides config)"),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Logging level"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs in JSON format"),
) -> None:
    """Collect metrics of all containers once."""
    exporter_config = _load(config, json_logs, docker_host=host, log_level=log_level)

    with _connect(exporter_config) as client:
        containers = _list_or_exit(client)
        stats = _collect_once(client, containers)
        sizes = _sizes_or_stale(client)
        _show_stats_table(containers, stats, sizes)

        disk_usage = _disk_usage_or_stale(client)
        if disk_usage is not None:
            _show_disk_usage_table(disk_usage)


@app.command()
def watch(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to exporter configuration file (YAML/JSON)"
    ),
    host: str | None = typer.Option(None, "--host", "-H", help="Docker daemon URL (overrides config)"),
    interval: float | None = typer.Option(
        None, "--interval", "-i", help="Seconds between polls (overrides config)"
    ),
    count: int = typer.Option(0, "--count", "-n", help="Number of polls, 0 = until interrupted"),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Logging level"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs in JSON format"),
) -> None:
    """Poll container metrics repeatedly, showing CPU utilization between polls."""
    exporter_config = _load(
        config,
        json_logs,
        docker_host=host,
        log_level=log_level,
        poll_interval_seconds=interval,
        collect_cpu=True,
    )

    with _connect(exporter_config) as client:
        iteration = 0
        try:
            while count <= 0 or iteration < count:
                if iteration > 0:
                    time.sleep(exporter_config.poll_interval_seconds)
                iteration += 1

                try:
                    containers = client.list_containers()
                except Exception as e:
                    console.print(f"[yellow]Cannot list containers: {e}[/]")
                    continue

                client.prune_cpu_counters(c.id for c in containers)
                stats = _collect_once(client, containers)
                _show_stats_table(containers, stats, _sizes_or_stale(client))
        except KeyboardInterrupt:
            console.print("[bold]Stopped[/]")


@app.command()
def status(
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to exporter configuration file (YAML/JSON)"
    ),
    host: str | None = typer.Option(None, "--host", "-H", help="Docker daemon URL (overrides config)"),
) -> None:
    """Run every daemon operation once and report which ones fail."""
    exporter_config = _load(config, False, docker_host=host, log_level="WARNING")

    with _connect(exporter_config) as client:
        try:
            containers = client.list_containers()
        except Exception:
            # Recorded in the registry and reported below
            containers = []
        if containers:
            _collect_once(client, containers[:1])
        _sizes_or_stale(client)
        _disk_usage_or_stale(client)

        errors = client.registry.snapshot()

    if not errors:
        console.print("[bold green]All daemon operations healthy[/]")
        return

    table = Table(title="Failing Operations")
    table.add_column("Operation", style="cyan")
    table.add_column("Since", style="white")
    table.add_column("Error", style="red")
    for name, err in sorted(errors.items()):
        table.add_row(name, err.timestamp.strftime("%Y-%m-%d %H:%M:%S"), err.message)
    console.print(table)
    raise typer.Exit(1)


@app.command()
def init_config(
    output: Path = typer.Option(
        Path("config.yaml"), "--output", "-o", help="Output configuration file"
    ),
) -> None:
    """Generate a sample configuration file."""
    sample_config = """\
# docker-exporter configuration

# Docker daemon URL; omit to use DOCKER_HOST / the default socket
docker_host: "unix:///var/run/docker.sock"
timeout_seconds: 10

# Freshness windows (seconds) of the expensive daemon calls.
# 0 disables caching.
size_cache_seconds: 60
disk_usage_cache_seconds: 300

# Track CPU counters between polls
collect_cpu: true
include_stopped: false

# Delay between polls in watch mode (seconds)
poll_interval_seconds: 15

log_level: INFO
"""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(sample_config)
    console.print(f"[bold green]Sample configuration written to {output}[/]")


def _format_kib(kib: int) -> str:
    return f"{kib / 1024:.1f} MiB"


def _format_bytes(byte_count: int) -> str:
    return f"{byte_count / (1024 * 1024):.1f} MB"


def _show_stats_table(
    containers: list[ContainerInfo],
    stats: dict[str, ContainerStats],
    sizes: dict[str, ContainerSize],
) -> None:
    """Display per-container metrics."""
    table = Table(title="Container Stats")
    table.add_column("Container", style="cyan")
    table.add_column("CPU %", justify="right")
    table.add_column("Memory", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("PIDs", justify="right")
    table.add_column("Net RX / TX", justify="right")
    table.add_column("Block In / Out", justify="right")
    table.add_column("Size RW", justify="right", style="dim")

    for info in containers:
        s = stats.get(info.id)
        if s is None:
            table.add_row(info.name, "[red]error[/]", "", "", "", "", "", "")
            continue

        cpu = cpu_usage_percent(s.cpu)
        size = sizes.get(info.id)
        table.add_row(
            info.name,
            f"{cpu:.1f}" if cpu is not None else "N/A",
            # Negative usage is a daemon anomaly; show it rather than hide it
            f"[red]{_format_kib(s.memory_usage_kib)}[/]"
            if s.memory_usage_kib < 0
            else _format_kib(s.memory_usage_kib),
            _format_kib(s.memory_limit_kib),
            str(s.pids),
            f"{_format_bytes(s.net.recv_bytes)} / {_format_bytes(s.net.send_bytes)}",
            f"{_format_bytes(s.block_input_bytes)} / {_format_bytes(s.block_output_bytes)}",
            _format_bytes(size.size_rw) if size else "N/A",
        )

    console.print(table)


def _show_disk_usage_table(usage: DiskUsage) -> None:
    """Display the daemon disk usage summary."""
    table = Table(title="Disk Usage")
    table.add_column("Type", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Size", justify="right")

    table.add_row("Images", str(usage.images_count), _format_bytes(usage.images_size))
    table.add_row("Containers", str(usage.containers_count), _format_bytes(usage.containers_size))
    table.add_row("Volumes", str(usage.volumes_count), _format_bytes(usage.volumes_size))
    table.add_row("Build Cache", str(usage.build_cache_count), _format_bytes(usage.build_cache_size))
    table.add_row("Layers", "", _format_bytes(usage.layers_size))

    console.print(table)


if __name__ == "__main__":
    app()
