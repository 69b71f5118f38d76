"""
meminfo_exporter.collectors.meminfo
AUTHOR: carter-vin

Aggregate memory collector
- Linux via /proc/meminfo
- macOS via native queries (see meminfo_darwin)
- one output shape for both; kind is inferred from the name
"""

from __future__ import annotations

from typing import Iterable, Optional

from meminfo_exporter.collectors.base import MemorySource
from meminfo_exporter.collectors.keys import canonical_key
from meminfo_exporter.collectors.values import parse_value
from meminfo_exporter.config import ExporterConfig
from meminfo_exporter.descriptors import DescriptorCache
from meminfo_exporter.errors import CollectorError, MalformedLineError
from meminfo_exporter.model import (
    MEMINFO_SUBSYSTEM,
    MetricRecord,
    assemble_records,
    validate_records,
)


def parse_meminfo(lines: Iterable[str]) -> dict[str, float]:
    """
    Parse /proc/meminfo lines into canonical key -> value

    - "Key: value"     -> value as-is
    - "Key: value kB"  -> value * 1024, key + "_bytes"
    - later duplicates overwrite earlier ones
    """
    values: dict[str, float] = {}
    for line in lines:
        parts = line.split()
        # Workaround for empty lines occasionally seen on some kernels
        if not parts:
            continue
        if len(parts) < 2:
            raise MalformedLineError("invalid line in meminfo", line=line.rstrip("\n"))

        value = parse_value("meminfo", parts[1])
        key = canonical_key(parts[0])
        if len(parts) == 3:
            # Unit present, presumed kB
            value *= 1024
            key = key + "_bytes"
        elif len(parts) != 2:
            raise MalformedLineError("invalid line in meminfo", line=line.rstrip("\n"))

        values[key] = value
    return values


class ProcMeminfoSource:
    """Line-format variant of MemorySource."""

    name = "proc"

    def __init__(self, config: ExporterConfig) -> None:
        self.path = config.proc_file_path("meminfo")

    def get_meminfo(self) -> dict[str, float]:
        with self.path.open(encoding="utf-8") as handle:
            return parse_meminfo(handle)


def select_meminfo_source(config: ExporterConfig) -> MemorySource:
    """
    Pick the source variant for the configured platform
    """
    if config.platform == "darwin":
        from meminfo_exporter.collectors.meminfo_darwin import DarwinMeminfoSource

        return DarwinMeminfoSource()
    return ProcMeminfoSource(config)


class MeminfoCollector:
    """
    node_memory_* families, no labels
    """

    subsystem = MEMINFO_SUBSYSTEM
    labels: tuple[str, ...] = ()

    def __init__(self, config: ExporterConfig, source: Optional[MemorySource] = None) -> None:
        self.source = source if source is not None else select_meminfo_source(config)
        self.descriptors = DescriptorCache(config.namespace, self.subsystem, self.labels)

    def collect_records(self) -> list[MetricRecord]:
        try:
            values = self.source.get_meminfo()
        except Exception as e:
            raise CollectorError(f"couldn't get meminfo: {e}") from e

        records = assemble_records(values)
        validate_records(records)
        return records
