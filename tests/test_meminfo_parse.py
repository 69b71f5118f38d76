"""
Contract tests for /proc/meminfo parsing

The parser either returns the full mapping or raises; it never returns a
partial result.
"""

from pathlib import Path

import pytest

from meminfo_exporter.collectors.meminfo import MeminfoCollector, ProcMeminfoSource, parse_meminfo
from meminfo_exporter.config import ExporterConfig
from meminfo_exporter.errors import CollectorError, MalformedLineError, MalformedValueError
from meminfo_exporter.model import MetricKind

FIXTURES = Path(__file__).parent / "fixtures"


def test_unit_normalization() -> None:
    """
    No unit -> value as-is; kB -> value * 1024 and `_bytes` suffix
    """
    assert parse_meminfo(["MemTotal: 1234"]) == {"MemTotal": 1234.0}
    assert parse_meminfo(["MemTotal: 1234 kB"]) == {"MemTotal_bytes": 1263616.0}


def test_blank_lines_are_ignored() -> None:
    """
    Blank lines anywhere parse identically to the same stream without them
    """
    lines = ["MemTotal: 100 kB", "MemFree: 50 kB", "HugePages_Total: 0"]
    with_blanks = ["", "MemTotal: 100 kB", "   ", "\n", "MemFree: 50 kB", "", "HugePages_Total: 0", ""]

    assert parse_meminfo(with_blanks) == parse_meminfo(lines)


def test_too_many_fields_is_rejected() -> None:
    with pytest.raises(MalformedLineError, match="invalid line in meminfo: MemTotal: 1 kB extra"):
        parse_meminfo(["MemFree: 1 kB", "MemTotal: 1 kB extra"])


def test_single_field_is_rejected() -> None:
    with pytest.raises(MalformedLineError):
        parse_meminfo(["MemTotal:"])


def test_non_numeric_value_is_rejected() -> None:
    with pytest.raises(MalformedValueError) as excinfo:
        parse_meminfo(["MemFree: 1 kB", "MemTotal: abc kB"])

    assert excinfo.value.source == "meminfo"
    assert excinfo.value.value == "abc"


@pytest.mark.parametrize("token", ["1_000", "١٢", "0x10", "12,5"])
def test_nonstandard_value_tokens_are_rejected(token: str) -> None:
    """
    Digit separators, non-ASCII digits and hex are not plain decimals
    """
    with pytest.raises(MalformedValueError) as excinfo:
        parse_meminfo([f"MemTotal: {token} kB"])

    assert excinfo.value.value == token


def test_decimal_forms_are_accepted() -> None:
    values = parse_meminfo(["A: 1.5", "B: -2", "C: 1e3", "D: .5"])

    assert values == {"A": 1.5, "B": -2.0, "C": 1000.0, "D": 0.5}


def test_duplicate_key_last_wins() -> None:
    values = parse_meminfo(["MemFree: 1 kB", "MemFree: 2 kB"])

    assert values == {"MemFree_bytes": 2048.0}


def test_parse_fixture_file() -> None:
    """
    Real-world /proc/meminfo sample (with a stray blank line)
    """
    source = ProcMeminfoSource(ExporterConfig(procfs=FIXTURES / "proc"))
    values = source.get_meminfo()

    assert values["MemTotal_bytes"] == 16286804 * 1024
    assert values["Active_anon_bytes"] == 5832036 * 1024
    assert values["Inactive_file_bytes"] == 5030864 * 1024
    assert values["HugePages_Total"] == 0
    assert values["VmallocTotal_bytes"] == 34359738367 * 1024
    assert not any("(" in key for key in values)


def test_collector_classifies_by_name() -> None:
    """
    Every assembled record: counter iff name ends in _total
    """

    class _Source:
        name = "fake"

        def get_meminfo(self) -> dict[str, float]:
            return {"MemTotal_bytes": 1.0, "pgfault_total": 5.0, "HugePages_Total": 0.0}

    collector = MeminfoCollector(ExporterConfig(), source=_Source())
    records = {record.name: record for record in collector.collect_records()}

    assert records["pgfault_total"].kind is MetricKind.COUNTER
    assert records["MemTotal_bytes"].kind is MetricKind.GAUGE
    assert records["HugePages_Total"].kind is MetricKind.GAUGE
    for record in records.values():
        assert (record.kind is MetricKind.COUNTER) == record.name.endswith("_total")
        assert record.node == ""


def test_collector_wraps_missing_file(tmp_path: Path) -> None:
    collector = MeminfoCollector(ExporterConfig(procfs=tmp_path, platform="linux"))

    with pytest.raises(CollectorError, match="couldn't get meminfo") as excinfo:
        collector.collect_records()

    assert isinstance(excinfo.value.__cause__, FileNotFoundError)
