"""
meminfo_exporter.model
AUTHOR: carter-vin

Metric record schema + deterministic serialization primitives.

Design goals:
- One canonical record shape for every memory source
- Explicit structure (no accidental serialization via __dict__)
- Deterministic ordering where it matters (records, keys)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

# Naming constants
NAMESPACE = "node"
MEMINFO_SUBSYSTEM = "memory"
MEMINFO_NUMA_SUBSYSTEM = "memory_numa"

COUNTER_SUFFIX = "_total"


class MetricKind(str, Enum):
    GAUGE = "gauge"
    COUNTER = "counter"


@dataclass(frozen=True)
class MetricRecord:
    """
    One normalized memory statistic
    - name: canonical metric name fragment (no namespace/subsystem)
    - kind: gauge or counter
    - value: bytes when the source carried a unit, raw count otherwise
    - node: NUMA node label, "" when not NUMA-scoped
    """

    name: str
    kind: MetricKind
    value: float
    node: str = ""

    def to_dict(self) -> dict[str, Any]:
        # Explicit key mapping for stability
        return {
            "name": self.name,
            "kind": self.kind.value,
            "value": self.value,
            "node": self.node,
        }


def classify_name(name: str) -> MetricKind:
    """
    Counter iff the name ends in `_total`
    """
    if name.endswith(COUNTER_SUFFIX):
        return MetricKind.COUNTER
    return MetricKind.GAUGE


def assemble_records(values: Mapping[str, float]) -> list[MetricRecord]:
    """
    Fold a name -> value mapping into records, kind inferred from the name

    Used by the aggregate paths (/proc/meminfo, native). NUMA parsers build
    their records directly and set kind themselves.
    """
    return [
        MetricRecord(name=name, kind=classify_name(name), value=float(value))
        for name, value in values.items()
    ]


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """
    Join non-empty parts with "_"
    """
    return "_".join(part for part in (namespace, subsystem, name) if part)


def validate_records(records: Iterable[MetricRecord]) -> None:
    """
    Validate one pass worth of records

    Raises ValueError on invalid
    """
    seen: set[tuple[str, str]] = set()
    for record in records:
        if not record.name:
            raise ValueError("record name is empty")
        if "(" in record.name or ")" in record.name:
            raise ValueError(f"record name contains parentheses: {record.name}")
        key = (record.name, record.node)
        if key in seen:
            raise ValueError(f"duplicate record: name={record.name} node={record.node!r}")
        seen.add(key)


def records_to_json(records: Mapping[str, list[MetricRecord]], *, meta: dict[str, Any]) -> str:
    """
    Serialize per-subsystem records

    Rules:
    - records sorted by (node, name) inside each subsystem
    - sort_keys + compact separators to avoid formatting drift
    """
    payload = {
        "meta": dict(meta),
        "records": {
            subsystem: [
                record.to_dict()
                for record in sorted(items, key=lambda r: (r.node, r.name))
            ]
            for subsystem, items in records.items()
        },
    }

    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
