"""
meminfo_exporter.descriptors
AUTHOR: carter-vin

Per-collector metric descriptor cache

- keyed by record name, grown as new names appear across scrapes
- entries are immutable; values are never cached
"""

from __future__ import annotations

from dataclasses import dataclass

from meminfo_exporter.model import MetricKind, build_fq_name


@dataclass(frozen=True)
class MetricDesc:
    fq_name: str
    documentation: str
    kind: MetricKind
    labels: tuple[str, ...] = ()


class DescriptorCache:
    """
    name -> MetricDesc for one collector instance
    """

    def __init__(self, namespace: str, subsystem: str, labels: tuple[str, ...] = ()) -> None:
        self.namespace = namespace
        self.subsystem = subsystem
        self.labels = labels
        self._descs: dict[str, MetricDesc] = {}

    def get(self, name: str, kind: MetricKind) -> MetricDesc:
        desc = self._descs.get(name)
        if desc is None:
            desc = MetricDesc(
                fq_name=build_fq_name(self.namespace, self.subsystem, name),
                documentation=f"Memory information field {name}.",
                kind=kind,
                labels=self.labels,
            )
            # Unlocked; concurrent scrapes may build twice, first stored wins
            desc = self._descs.setdefault(name, desc)
        return desc

    def __len__(self) -> int:
        return len(self._descs)

    def __contains__(self, name: object) -> bool:
        return name in self._descs
