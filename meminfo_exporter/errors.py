"""
meminfo_exporter.errors
AUTHOR: carter-vin

Failure taxonomy for memory collection

Rules:
- every detected anomaly aborts the whole pass (no skip, no default)
- I/O failures are NOT wrapped here; OSError propagates unchanged
"""

from __future__ import annotations


class MeminfoError(Exception):
    """Base class for memory parsing and query failures."""


class MalformedValueError(MeminfoError, ValueError):
    """
    A numeric field failed to parse

    - source: which format was being parsed (meminfo, numastat)
    - value: the raw token that failed
    """

    def __init__(self, source: str, value: str) -> None:
        super().__init__(f"invalid value in {source}: {value!r}")
        self.source = source
        self.value = value


class MalformedLineError(MeminfoError, ValueError):
    """A line's field count matches no recognized shape."""

    def __init__(self, message: str, *, line: str) -> None:
        super().__init__(f"{message}: {line}")
        self.line = line


class NodePathError(MeminfoError, ValueError):
    """A discovered NUMA node directory does not match the node id pattern."""

    def __init__(self, path: str) -> None:
        super().__init__(f"device node string didn't match regexp: {path}")
        self.path = path


class NativeQueryError(MeminfoError, RuntimeError):
    """
    A native OS statistics query failed

    - query: name of the failed call (host_statistics64, hw.memsize, ...)
    - status: native return code or errno
    """

    def __init__(self, query: str, status: int) -> None:
        super().__init__(f"couldn't get {query}, native call returned {status}")
        self.query = query
        self.status = status


class CollectorError(RuntimeError):
    """A collector pass failed; the underlying cause is chained."""
