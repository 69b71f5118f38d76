"""meminfo_exporter.collectors registry."""

from __future__ import annotations

from meminfo_exporter.collectors.base import Collector
from meminfo_exporter.collectors.meminfo import MeminfoCollector
from meminfo_exporter.collectors.meminfo_numa import MeminfoNumaCollector
from meminfo_exporter.config import ExporterConfig

_COLLECTORS = {
    "meminfo": MeminfoCollector,
    "meminfo_numa": MeminfoNumaCollector,
}

# Collectors that only make sense on Linux
_LINUX_ONLY = {"meminfo_numa"}


def build_collectors(config: ExporterConfig) -> dict[str, Collector]:
    """
    Instantiate enabled collectors in registry order
    """
    unknown = set(config.collectors) - set(_COLLECTORS)
    if unknown:
        raise ValueError(f"unknown collector: {', '.join(sorted(unknown))}")

    if not config.platform.startswith("linux"):
        unsupported = set(config.collectors) & _LINUX_ONLY
        if unsupported:
            raise ValueError(
                f"collector not supported on {config.platform}: {', '.join(sorted(unsupported))}"
            )

    return {
        name: factory(config)
        for name, factory in _COLLECTORS.items()
        if name in config.collectors
    }


__all__ = [
    "build_collectors",
]
