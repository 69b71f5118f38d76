"""
Contract tests for the prometheus_client bridge
"""

import json
from pathlib import Path

import pytest
from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.parser import text_string_to_metric_families

from meminfo_exporter.collectors import build_collectors
from meminfo_exporter.config import ExporterConfig
from meminfo_exporter.descriptors import DescriptorCache
from meminfo_exporter.exporter import NodeCollector, build_families, render_exposition
from meminfo_exporter.model import MetricKind, MetricRecord

FIXTURES = Path(__file__).parent / "fixtures"


def _node_collector(config: ExporterConfig) -> NodeCollector:
    return NodeCollector(build_collectors(config), namespace="node", exporter_version="0.1.0")


def _families(text: str) -> dict:
    return {family.name: family for family in text_string_to_metric_families(text)}


def _samples(family) -> dict:
    return {(sample.name, sample.labels.get("node", "")): sample.value for sample in family.samples}


def test_build_families_keeps_numa_kinds() -> None:
    """
    NUMA gauges stay gauges even with a _total name; numastat stays counter
    """
    descriptors = DescriptorCache("node", "memory_numa", ("node",))
    records = [
        MetricRecord(name="Weird_total", kind=MetricKind.GAUGE, value=1.0, node="0"),
        MetricRecord(name="numa_hit_total", kind=MetricKind.COUNTER, value=42.0, node="0"),
        MetricRecord(name="numa_hit_total", kind=MetricKind.COUNTER, value=43.0, node="1"),
    ]

    families = build_families(descriptors, records)

    assert [family.type for family in families] == ["gauge", "counter"]
    assert families[0].name == "node_memory_numa_Weird_total"
    assert len(families[1].samples) == 2


def test_full_scrape_from_fixtures() -> None:
    config = ExporterConfig(
        procfs=FIXTURES / "proc",
        sysfs=FIXTURES / "sys",
        platform="linux",
        collectors=frozenset({"meminfo", "meminfo_numa"}),
    )
    node = _node_collector(config)

    families = _families(render_exposition(node.families(node.collect_once())))

    mem_total = families["node_memory_MemTotal_bytes"]
    assert mem_total.type == "gauge"
    assert mem_total.documentation == "Memory information field MemTotal_bytes."
    assert _samples(mem_total) == {("node_memory_MemTotal_bytes", ""): 16286804 * 1024}

    numa_free = families["node_memory_numa_MemFree_bytes"]
    assert _samples(numa_free) == {
        ("node_memory_numa_MemFree_bytes", "0"): 612400 * 1024,
        ("node_memory_numa_MemFree_bytes", "1"): 632800 * 1024,
    }

    numa_hit = families["node_memory_numa_numa_hit"]
    assert numa_hit.type == "counter"
    assert _samples(numa_hit)[("node_memory_numa_numa_hit_total", "1")] == 59858626709

    success = families["node_scrape_collector_success"]
    assert {sample.labels["collector"]: sample.value for sample in success.samples} == {
        "meminfo": 1.0,
        "meminfo_numa": 1.0,
    }


def test_failed_collector_emits_nothing_but_status(tmp_path: Path, capsys) -> None:
    """
    A failed pass yields no memory families and a success=0 status
    """
    node = _node_collector(ExporterConfig(procfs=tmp_path, platform="linux"))

    families = _families(render_exposition(node.families(node.collect_once())))

    assert not any(name.startswith("node_memory_") for name in families)
    success = families["node_scrape_collector_success"]
    assert [(sample.labels["collector"], sample.value) for sample in success.samples] == [("meminfo", 0.0)]

    events = [json.loads(line) for line in capsys.readouterr().err.splitlines()]
    failed = [event for event in events if event["event_type"] == "collector_failed"]
    assert failed[0]["collector"] == "meminfo"
    assert failed[0]["error_type"] == "CollectorError"


def test_descriptor_cache_survives_scrapes() -> None:
    """
    Descriptors are built once per name and reused; values are not cached
    """
    config = ExporterConfig(procfs=FIXTURES / "proc", platform="linux")
    node = _node_collector(config)
    descriptors = node.collectors["meminfo"].descriptors

    node.families(node.collect_once())
    first = descriptors.get("MemTotal_bytes", MetricKind.GAUGE)
    size = len(descriptors)

    node.families(node.collect_once())

    assert descriptors.get("MemTotal_bytes", MetricKind.GAUGE) is first
    assert len(descriptors) == size
    assert "Active_anon_bytes" in descriptors


def test_descriptor_cache_keeps_first_stored_entry() -> None:
    """
    A descriptor stored by a concurrent scrape between lookup and insert wins
    """
    descriptors = DescriptorCache("node", "memory")
    stored = descriptors.get("MemFree_bytes", MetricKind.GAUGE)

    class _StaleLookup(dict):
        def get(self, key, default=None):
            return default

    descriptors._descs = _StaleLookup(descriptors._descs)

    assert descriptors.get("MemFree_bytes", MetricKind.GAUGE) is stored
    assert len(descriptors) == 1


def test_registry_scrape() -> None:
    """
    Registered with a CollectorRegistry, every scrape runs a fresh pass
    """
    registry = CollectorRegistry()
    registry.register(_node_collector(ExporterConfig(procfs=FIXTURES / "proc", platform="linux")))

    text = generate_latest(registry).decode("utf-8")

    assert "# TYPE node_memory_MemTotal_bytes gauge" in text
    assert "# TYPE node_memory_HugePages_Total gauge" in text
    assert 'node_scrape_collector_success{collector="meminfo"} 1.0' in text


def test_registry_rejects_unknown_and_unsupported() -> None:
    with pytest.raises(ValueError, match="unknown collector: cpu"):
        build_collectors(ExporterConfig(platform="linux", collectors=frozenset({"cpu"})))

    with pytest.raises(ValueError, match="not supported on darwin"):
        build_collectors(ExporterConfig(platform="darwin", collectors=frozenset({"meminfo_numa"})))
