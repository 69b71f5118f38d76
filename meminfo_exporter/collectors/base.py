"""
meminfo_exporter.collectors.base
AUTHOR: carter-vin

Light result wrapper -> prevent collector errors from crashing a scrape
Source interface -> one record-set contract regardless of platform
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from meminfo_exporter.descriptors import DescriptorCache
from meminfo_exporter.model import MetricRecord


class MemorySource(Protocol):
    """
    Aggregate memory statistics provider

    Variants: line-format (/proc/meminfo) and native-query (macOS)
    """

    name: str

    def get_meminfo(self) -> dict[str, float]:
        ...


class Collector(Protocol):
    """
    One registered collector
    - subsystem: metric family subsystem (memory, memory_numa)
    - labels: label names attached to every family of this collector
    - descriptors: per-instance descriptor cache
    """

    subsystem: str
    labels: tuple[str, ...]
    descriptors: DescriptorCache

    def collect_records(self) -> list[MetricRecord]:
        ...


@dataclass(frozen=True)
class CollectorOutcome:
    """
    Normalized collector result
    - ok: false=failure, error details in error field
    - value: collector result object if ok=true
    - elapsed_s: wall time spent in the collector
    """

    name: str
    ok: bool
    value: Optional[Any] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    elapsed_s: float = 0.0


def run_collector(name: str, fn, *args, **kwargs) -> CollectorOutcome:
    """
    Run collector & collect failure as data
    """
    start = time.monotonic()
    try:
        v = fn(*args, **kwargs)
        return CollectorOutcome(
            name=name,
            ok=True,
            value=v,
            elapsed_s=time.monotonic() - start,
        )
    except Exception as e:
        return CollectorOutcome(
            name=name,
            ok=False,
            value=None,
            error_type=type(e).__name__,
            error_message=str(e),
            elapsed_s=time.monotonic() - start,
        )
