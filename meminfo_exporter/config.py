"""
meminfo_exporter.config
AUTHOR: carter-vin

Exporter configuration

- procfs / sysfs roots are overridable so fixtures and containers work
- every CLI option has an env var fallback (see ENV_* below)
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path

from meminfo_exporter.model import NAMESPACE

DEFAULT_PROCFS = "/proc"
DEFAULT_SYSFS = "/sys"
DEFAULT_LISTEN_ADDRESS = "0.0.0.0"
DEFAULT_PORT = 9100

# Env var overrides, read by the typer options in meminfo_exporter.main
ENV_PROCFS = "MEMINFO_EXPORTER_PROCFS"
ENV_SYSFS = "MEMINFO_EXPORTER_SYSFS"
ENV_LISTEN_ADDRESS = "MEMINFO_EXPORTER_LISTEN_ADDRESS"
ENV_PORT = "MEMINFO_EXPORTER_PORT"


@dataclass(frozen=True)
class ExporterConfig:
    """
    Runtime configuration snapshot

    - platform: selects the meminfo source variant ("darwin" -> native queries)
    - collectors: names of enabled collectors
    """

    procfs: Path = Path(DEFAULT_PROCFS)
    sysfs: Path = Path(DEFAULT_SYSFS)
    namespace: str = NAMESPACE
    platform: str = sys.platform
    collectors: frozenset[str] = field(default_factory=lambda: frozenset({"meminfo"}))
    listen_address: str = DEFAULT_LISTEN_ADDRESS
    port: int = DEFAULT_PORT

    def proc_file_path(self, name: str) -> Path:
        return self.procfs / name
