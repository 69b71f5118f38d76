"""
meminfo_exporter.exporter
AUTHOR: carter-vin

prometheus_client bridge

Per scrape:
- run every enabled collector, failure captured as data
- fold records into metric families via each collector's descriptor cache
- report node_scrape_collector_{success,duration_seconds} per collector

A failed collector contributes no memory families for that scrape.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

from meminfo_exporter.collectors.base import Collector, CollectorOutcome, run_collector
from meminfo_exporter.descriptors import DescriptorCache
from meminfo_exporter.logging import emit_event
from meminfo_exporter.model import MetricKind, MetricRecord, build_fq_name


def build_families(descriptors: DescriptorCache, records: Iterable[MetricRecord]) -> list:
    """
    Group records by name into one family each, first-seen order

    Label values come from the record's node when the collector is labelled.
    """
    families: dict[str, GaugeMetricFamily | CounterMetricFamily] = {}

    for record in records:
        family = families.get(record.name)
        if family is None:
            desc = descriptors.get(record.name, record.kind)
            if desc.kind is MetricKind.COUNTER:
                family = CounterMetricFamily(desc.fq_name, desc.documentation, labels=list(desc.labels))
            else:
                family = GaugeMetricFamily(desc.fq_name, desc.documentation, labels=list(desc.labels))
            families[record.name] = family

        label_values = [record.node] if descriptors.labels else []
        family.add_metric(label_values, record.value)

    return list(families.values())


class NodeCollector:
    """
    Custom prometheus_client collector wrapping the enabled memory collectors
    """

    def __init__(
        self,
        collectors: Mapping[str, Collector],
        *,
        namespace: str,
        exporter_version: str,
    ) -> None:
        self.collectors = dict(collectors)
        self.namespace = namespace
        self.exporter_version = exporter_version

    def collect_once(self) -> dict[str, CollectorOutcome]:
        """
        Run each collector once; emit one event per collector
        """
        outcomes: dict[str, CollectorOutcome] = {}

        for name, collector in self.collectors.items():
            outcome = run_collector(name, collector.collect_records)
            outcomes[name] = outcome

            if outcome.ok:
                emit_event(
                    "collector_succeeded",
                    exporter_version=self.exporter_version,
                    collector=name,
                    records=len(outcome.value),
                    elapsed_ms=int(outcome.elapsed_s * 1000),
                )
            else:
                emit_event(
                    "collector_failed",
                    exporter_version=self.exporter_version,
                    collector=name,
                    error_type=outcome.error_type,
                    message=outcome.error_message,
                )

        return outcomes

    def families(self, outcomes: Mapping[str, CollectorOutcome]) -> list:
        result: list = []

        duration = GaugeMetricFamily(
            build_fq_name(self.namespace, "scrape", "collector_duration_seconds"),
            "Duration of a collector scrape.",
            labels=["collector"],
        )
        success = GaugeMetricFamily(
            build_fq_name(self.namespace, "scrape", "collector_success"),
            "Whether a collector succeeded.",
            labels=["collector"],
        )

        for name, outcome in outcomes.items():
            if outcome.ok:
                result.extend(build_families(self.collectors[name].descriptors, outcome.value))
            duration.add_metric([name], outcome.elapsed_s)
            success.add_metric([name], 1.0 if outcome.ok else 0.0)

        result.append(duration)
        result.append(success)
        return result

    def collect(self):
        outcomes = self.collect_once()
        families = self.families(outcomes)

        emit_event(
            "scrape_completed",
            exporter_version=self.exporter_version,
            collectors=len(outcomes),
            failed=sorted(name for name, outcome in outcomes.items() if not outcome.ok),
        )

        yield from families


class _StaticCollector:
    def __init__(self, families: list) -> None:
        self._families = families

    def collect(self):
        return iter(self._families)


def render_exposition(families: list) -> str:
    """
    Render pre-built families in the Prometheus text format
    """
    registry = CollectorRegistry()
    registry.register(_StaticCollector(families))
    return generate_latest(registry).decode("utf-8")
