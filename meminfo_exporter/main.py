"""
meminfo_exporter.main
------------
AUTHOR: carter-vin

CLI entrypoint

Key contract:
- `node-meminfo-exporter --help` shows a Commands section.
- `node-meminfo-exporter oneshot` runs a single collection pass and exits
  non-zero when any enabled collector failed.
- `node-meminfo-exporter run` serves /metrics until interrupted.
"""

from __future__ import annotations

import platform
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import typer
from prometheus_client import CollectorRegistry, start_http_server

from meminfo_exporter import __version__
from meminfo_exporter.collectors import build_collectors
from meminfo_exporter.config import (
    DEFAULT_LISTEN_ADDRESS,
    DEFAULT_PORT,
    DEFAULT_PROCFS,
    DEFAULT_SYSFS,
    ENV_LISTEN_ADDRESS,
    ENV_PORT,
    ENV_PROCFS,
    ENV_SYSFS,
    ExporterConfig,
)
from meminfo_exporter.exporter import NodeCollector, render_exposition
from meminfo_exporter.logging import emit_event
from meminfo_exporter.model import records_to_json

# Explicit multi-command CLI
app = typer.Typer(
    add_completion=False,
    help="node-meminfo-exporter: OS memory statistics for Prometheus",
)

EXPORTER_VERSION = __version__

# -----------------------------
# DATA CLASSES
# -----------------------------
@dataclass(frozen=True)
class EnvironmentInfo:
    """
    Snapshot of the runtime environment
    """

    python_version: str
    os: str
    machine: str
    utc_now: str


def collect_environment_info() -> EnvironmentInfo:
    return EnvironmentInfo(
        python_version=sys.version.split()[0],
        os=f"{platform.system()} {platform.release()}",
        machine=platform.machine(),
        utc_now=datetime.now(timezone.utc).isoformat(),
    )


def _build_config(
    *,
    procfs: str,
    sysfs: str,
    meminfo: bool,
    meminfo_numa: bool,
    listen_address: str = DEFAULT_LISTEN_ADDRESS,
    port: int = DEFAULT_PORT,
) -> ExporterConfig:
    collectors = set()
    if meminfo:
        collectors.add("meminfo")
    if meminfo_numa:
        collectors.add("meminfo_numa")

    return ExporterConfig(
        procfs=Path(procfs),
        sysfs=Path(sysfs),
        collectors=frozenset(collectors),
        listen_address=listen_address,
        port=port,
    )


def _build_node_collector(config: ExporterConfig) -> NodeCollector:
    try:
        collectors = build_collectors(config)
    except ValueError as e:
        raise typer.BadParameter(str(e))

    return NodeCollector(
        collectors,
        namespace=config.namespace,
        exporter_version=EXPORTER_VERSION,
    )


# -----------------------------
# ROOT COMMAND BEHAVIOR
# -----------------------------
@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """
    Root command behavior.

    If no subcommand is provided, print a short hint and exit 0.
    """
    if ctx.invoked_subcommand is None:
        typer.echo("No command provided. Try: node-meminfo-exporter --help")


# -----------------------------
# CLI COMMANDS
# -----------------------------
@app.command()
def version() -> None:
    """
    Print exporter version & runtime env
    """
    env = collect_environment_info()

    typer.echo(f"node-meminfo-exporter v{EXPORTER_VERSION}")
    typer.echo(f"python={env.python_version}")
    typer.echo(f"os={env.os}")
    typer.echo(f"machine={env.machine}")
    typer.echo(f"utc_now={env.utc_now}")


@app.command("oneshot")
def oneshot(
    procfs: str = typer.Option(
        DEFAULT_PROCFS,
        envvar=ENV_PROCFS,
        help="procfs mountpoint.",
    ),
    sysfs: str = typer.Option(
        DEFAULT_SYSFS,
        envvar=ENV_SYSFS,
        help="sysfs mountpoint.",
    ),
    meminfo: bool = typer.Option(
        True,
        "--collector-meminfo/--no-collector-meminfo",
        help="Enable the meminfo collector.",
    ),
    meminfo_numa: bool = typer.Option(
        False,
        "--collector-meminfo-numa/--no-collector-meminfo-numa",
        help="Enable the meminfo_numa collector (Linux only).",
    ),
    output_format: str = typer.Option(
        "text",
        "--format",
        help="Output format: text (Prometheus exposition) or json.",
    ),
    output: str = typer.Option(
        "-",
        "--output",
        help="Write output to this path instead of stdout.",
    ),
) -> None:
    """
    Run a single collection pass and print the result

    Failure semantics:
    - output is still written for the collectors that succeeded
    - exit code 1 when any enabled collector failed
    """
    if output_format not in {"text", "json"}:
        raise typer.BadParameter("--format must be 'text' or 'json'")

    config = _build_config(
        procfs=procfs,
        sysfs=sysfs,
        meminfo=meminfo,
        meminfo_numa=meminfo_numa,
    )
    node_collector = _build_node_collector(config)

    outcomes = node_collector.collect_once()

    if output_format == "json":
        records = {
            node_collector.collectors[name].subsystem: outcome.value
            for name, outcome in outcomes.items()
            if outcome.ok
        }
        meta = {
            "exporter_version": EXPORTER_VERSION,
            "platform": config.platform,
            "failed": sorted(name for name, outcome in outcomes.items() if not outcome.ok),
        }
        payload = records_to_json(records, meta=meta) + "\n"
    else:
        payload = render_exposition(node_collector.families(outcomes))

    if output == "-":
        typer.echo(payload, nl=False)
    else:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")
        emit_event(
            "oneshot_written",
            exporter_version=EXPORTER_VERSION,
            path=path,
            bytes=len(payload),
        )

    if any(not outcome.ok for outcome in outcomes.values()):
        raise typer.Exit(code=1)


@app.command("run")
def run(
    procfs: str = typer.Option(
        DEFAULT_PROCFS,
        envvar=ENV_PROCFS,
        help="procfs mountpoint.",
    ),
    sysfs: str = typer.Option(
        DEFAULT_SYSFS,
        envvar=ENV_SYSFS,
        help="sysfs mountpoint.",
    ),
    meminfo: bool = typer.Option(
        True,
        "--collector-meminfo/--no-collector-meminfo",
        help="Enable the meminfo collector.",
    ),
    meminfo_numa: bool = typer.Option(
        False,
        "--collector-meminfo-numa/--no-collector-meminfo-numa",
        help="Enable the meminfo_numa collector (Linux only).",
    ),
    listen_address: str = typer.Option(
        DEFAULT_LISTEN_ADDRESS,
        envvar=ENV_LISTEN_ADDRESS,
        help="Address to listen on for /metrics.",
    ),
    port: int = typer.Option(
        DEFAULT_PORT,
        envvar=ENV_PORT,
        help="Port to listen on for /metrics.",
        min=1,
        max=65535,
    ),
) -> None:
    """
    Serve /metrics until interrupted.
    """
    config = _build_config(
        procfs=procfs,
        sysfs=sysfs,
        meminfo=meminfo,
        meminfo_numa=meminfo_numa,
        listen_address=listen_address,
        port=port,
    )
    node_collector = _build_node_collector(config)

    registry = CollectorRegistry()
    registry.register(node_collector)

    emit_event(
        "exporter_start",
        exporter_version=EXPORTER_VERSION,
        listen_address=config.listen_address,
        port=config.port,
        collectors=sorted(config.collectors),
        platform=config.platform,
    )

    try:
        start_http_server(config.port, addr=config.listen_address, registry=registry)
        while True:
            time.sleep(1)

    except KeyboardInterrupt:
        # Graceful shutdown on Ctrl+C
        pass

    finally:
        emit_event(
            "exporter_shutdown",
            exporter_version=EXPORTER_VERSION,
        )


if __name__ == "__main__":
    app()
