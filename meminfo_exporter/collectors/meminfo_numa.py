"""
meminfo_exporter.collectors.meminfo_numa
AUTHOR: carter-vin

Per-NUMA-node memory collector (Linux only)

Sources, per node directory under <sysfs>/devices/system/node/:
- nodeN/meminfo:  "Node N Key: value [kB]"  -> gauges
- nodeN/numastat: "name value"              -> counters (name + "_total")

Failure semantics:
- any malformed line, unreadable file or unexpected node path aborts the
  whole pass; nothing partial is returned
- files opened during a pass stay open until the pass unwinds
"""

from __future__ import annotations

import contextlib
import glob
import re
from pathlib import Path
from typing import Iterable

from meminfo_exporter.collectors.keys import canonical_key
from meminfo_exporter.collectors.values import parse_value
from meminfo_exporter.config import ExporterConfig
from meminfo_exporter.descriptors import DescriptorCache
from meminfo_exporter.errors import CollectorError, MalformedLineError, NodePathError
from meminfo_exporter.model import (
    COUNTER_SUFFIX,
    MEMINFO_NUMA_SUBSYSTEM,
    MetricKind,
    MetricRecord,
    validate_records,
)

NODE_GLOB = "devices/system/node/node[0-9]*"

_NODE_RE = re.compile(r".*devices/system/node/node([0-9]+)$")


def parse_meminfo_numa(lines: Iterable[str]) -> list[MetricRecord]:
    """
    Parse a node meminfo file; every line becomes one gauge

    The node label is taken verbatim from the second column.
    """
    records: list[MetricRecord] = []
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) < 4:
            raise MalformedLineError("invalid line in meminfo", line=line)

        value = parse_value("meminfo", parts[3])
        name = canonical_key(parts[2])
        if len(parts) == 5 and parts[4] == "kB":
            value *= 1024
            name = name + "_bytes"
        elif len(parts) != 4:
            raise MalformedLineError("invalid line in meminfo", line=line)

        records.append(MetricRecord(name=name, kind=MetricKind.GAUGE, value=value, node=parts[1]))
    return records


def parse_numastat(lines: Iterable[str], node: str) -> list[MetricRecord]:
    """
    Parse a node numastat file; every line becomes one `<name>_total` counter
    """
    records: list[MetricRecord] = []
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        parts = line.split()
        if len(parts) != 2:
            raise MalformedLineError("line scan did not return 2 fields", line=line)

        value = parse_value("numastat", parts[1])

        records.append(
            MetricRecord(
                name=parts[0] + COUNTER_SUFFIX,
                kind=MetricKind.COUNTER,
                value=value,
                node=node,
            )
        )
    return records


def discover_nodes(sysfs: Path) -> list[Path]:
    """
    List node directories, sorted for stable output
    """
    return [Path(p) for p in sorted(glob.glob(str(sysfs / NODE_GLOB)))]


def node_id_from_path(path: Path | str) -> str:
    """
    ".../devices/system/node/node3" -> "3"

    Raises NodePathError when the path does not end in node<digits>
    """
    match = _NODE_RE.match(str(path))
    if match is None:
        raise NodePathError(str(path))
    return match.group(1)


def collect_meminfo_numa(sysfs: Path) -> list[MetricRecord]:
    """
    One pass over every discovered node
    """
    records: list[MetricRecord] = []

    with contextlib.ExitStack() as stack:
        for node_dir in discover_nodes(sysfs):
            meminfo = stack.enter_context((node_dir / "meminfo").open(encoding="utf-8"))
            records.extend(parse_meminfo_numa(meminfo))

            numastat = stack.enter_context((node_dir / "numastat").open(encoding="utf-8"))
            node = node_id_from_path(node_dir)
            records.extend(parse_numastat(numastat, node))

    return records


class MeminfoNumaCollector:
    """
    node_memory_numa_* families, labelled by node
    """

    subsystem = MEMINFO_NUMA_SUBSYSTEM
    labels: tuple[str, ...] = ("node",)

    def __init__(self, config: ExporterConfig) -> None:
        self.sysfs = config.sysfs
        self.descriptors = DescriptorCache(config.namespace, self.subsystem, self.labels)

    def collect_records(self) -> list[MetricRecord]:
        try:
            records = collect_meminfo_numa(self.sysfs)
        except Exception as e:
            raise CollectorError(f"couldn't get NUMA meminfo: {e}") from e

        validate_records(records)
        return records
