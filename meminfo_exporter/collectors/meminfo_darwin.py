"""
meminfo_exporter.collectors.meminfo_darwin
AUTHOR: carter-vin

macOS memory source
- mach host_statistics64 for page counters
- sysctl hw.memsize / vm.swapusage for totals
- ctypes only; libSystem is loaded when MachHost is built, not at import

Page counts are scaled by the host page size; totals and swap are bytes
already.
"""

from __future__ import annotations

import ctypes
import ctypes.util
from dataclasses import dataclass
from typing import Optional, Protocol

from meminfo_exporter.errors import NativeQueryError

KERN_SUCCESS = 0
HOST_VM_INFO64 = 4

natural_t = ctypes.c_uint


class VMStatistics64(ctypes.Structure):
    """mach/vm_statistics.h: struct vm_statistics64"""

    _fields_ = [
        ("free_count", natural_t),
        ("active_count", natural_t),
        ("inactive_count", natural_t),
        ("wire_count", natural_t),
        ("zero_fill_count", ctypes.c_uint64),
        ("reactivations", ctypes.c_uint64),
        ("pageins", ctypes.c_uint64),
        ("pageouts", ctypes.c_uint64),
        ("faults", ctypes.c_uint64),
        ("cow_faults", ctypes.c_uint64),
        ("lookups", ctypes.c_uint64),
        ("hits", ctypes.c_uint64),
        ("purges", ctypes.c_uint64),
        ("purgeable_count", natural_t),
        ("speculative_count", natural_t),
        ("decompressions", ctypes.c_uint64),
        ("compressions", ctypes.c_uint64),
        ("swapins", ctypes.c_uint64),
        ("swapouts", ctypes.c_uint64),
        ("compressor_page_count", natural_t),
        ("throttled_count", natural_t),
        ("external_page_count", natural_t),
        ("internal_page_count", natural_t),
        ("total_uncompressed_pages_in_compressor", ctypes.c_uint64),
    ]


class XswUsage(ctypes.Structure):
    """sys/sysctl.h: struct xsw_usage"""

    _fields_ = [
        ("xsu_total", ctypes.c_uint64),
        ("xsu_avail", ctypes.c_uint64),
        ("xsu_used", ctypes.c_uint64),
        ("xsu_pagesize", ctypes.c_uint32),
        ("xsu_encrypted", ctypes.c_int),
    ]


HOST_VM_INFO64_COUNT = ctypes.sizeof(VMStatistics64) // ctypes.sizeof(ctypes.c_int)


@dataclass(frozen=True)
class VMStats:
    """Page counters used by the exporter (counts, not bytes)."""

    active_count: int
    inactive_count: int
    wire_count: int
    free_count: int
    compressor_page_count: int
    internal_page_count: int
    purgeable_count: int
    pageins: int
    pageouts: int


@dataclass(frozen=True)
class SwapUsage:
    total_bytes: int
    used_bytes: int


class NativeHost(Protocol):
    def vm_statistics(self) -> VMStats:
        ...

    def page_size(self) -> int:
        ...

    def memsize(self) -> int:
        ...

    def swap_usage(self) -> SwapUsage:
        ...


class MachHost:
    """
    ctypes bindings to the handful of mach/sysctl calls needed here
    """

    def __init__(self, libc: Optional[ctypes.CDLL] = None) -> None:
        if libc is None:
            path = ctypes.util.find_library("c")
            if path is None:
                raise OSError("libc not found")
            libc = ctypes.CDLL(path, use_errno=True)
        self._libc = libc

        self._libc.mach_host_self.restype = ctypes.c_uint
        self._libc.mach_host_self.argtypes = []
        self._libc.host_statistics64.restype = ctypes.c_int
        self._libc.host_statistics64.argtypes = [
            ctypes.c_uint,
            ctypes.c_int,
            ctypes.c_void_p,
            ctypes.POINTER(ctypes.c_uint),
        ]
        self._libc.host_page_size.restype = ctypes.c_int
        self._libc.host_page_size.argtypes = [ctypes.c_uint, ctypes.POINTER(ctypes.c_size_t)]
        self._libc.sysctlbyname.restype = ctypes.c_int
        self._libc.sysctlbyname.argtypes = [
            ctypes.c_char_p,
            ctypes.c_void_p,
            ctypes.POINTER(ctypes.c_size_t),
            ctypes.c_void_p,
            ctypes.c_size_t,
        ]

        self._host = self._libc.mach_host_self()

    def vm_statistics(self) -> VMStats:
        vmstat = VMStatistics64()
        count = ctypes.c_uint(HOST_VM_INFO64_COUNT)
        ret = self._libc.host_statistics64(
            self._host,
            HOST_VM_INFO64,
            ctypes.byref(vmstat),
            ctypes.byref(count),
        )
        if ret != KERN_SUCCESS:
            raise NativeQueryError("memory statistics (host_statistics64)", ret)

        return VMStats(
            active_count=vmstat.active_count,
            inactive_count=vmstat.inactive_count,
            wire_count=vmstat.wire_count,
            free_count=vmstat.free_count,
            compressor_page_count=vmstat.compressor_page_count,
            internal_page_count=vmstat.internal_page_count,
            purgeable_count=vmstat.purgeable_count,
            pageins=vmstat.pageins,
            pageouts=vmstat.pageouts,
        )

    def page_size(self) -> int:
        size = ctypes.c_size_t(0)
        ret = self._libc.host_page_size(self._host, ctypes.byref(size))
        if ret != KERN_SUCCESS:
            raise NativeQueryError("page size (host_page_size)", ret)
        return size.value

    def _sysctl(self, name: str, buf) -> None:
        size = ctypes.c_size_t(ctypes.sizeof(buf))
        ret = self._libc.sysctlbyname(name.encode("ascii"), ctypes.byref(buf), ctypes.byref(size), None, 0)
        if ret != 0:
            raise NativeQueryError(f"sysctl {name}", ctypes.get_errno())

    def memsize(self) -> int:
        total = ctypes.c_uint64(0)
        self._sysctl("hw.memsize", total)
        return total.value

    def swap_usage(self) -> SwapUsage:
        swap = XswUsage()
        self._sysctl("vm.swapusage", swap)
        return SwapUsage(total_bytes=swap.xsu_total, used_bytes=swap.xsu_used)


def assemble_darwin_meminfo(vmstat: VMStats, page_size: int, total: int, swap: SwapUsage) -> dict[str, float]:
    """
    Build the canonical name -> bytes mapping

    swapped_in/out are cumulative page-in/page-out counters (hence _total)
    """
    ps = float(page_size)
    return {
        "active_bytes": ps * vmstat.active_count,
        "compressed_bytes": ps * vmstat.compressor_page_count,
        "inactive_bytes": ps * vmstat.inactive_count,
        "wired_bytes": ps * vmstat.wire_count,
        "free_bytes": ps * vmstat.free_count,
        "swapped_in_bytes_total": ps * vmstat.pageins,
        "swapped_out_bytes_total": ps * vmstat.pageouts,
        "internal_bytes": ps * vmstat.internal_page_count,
        "purgeable_bytes": ps * vmstat.purgeable_count,
        "total_bytes": float(total),
        "swap_used_bytes": float(swap.used_bytes),
        "swap_total_bytes": float(swap.total_bytes),
    }


def collect_darwin_meminfo(host: NativeHost) -> dict[str, float]:
    """
    Query every native source; the first failure aborts the pass
    """
    vmstat = host.vm_statistics()
    total = host.memsize()
    swap = host.swap_usage()
    page_size = host.page_size()
    return assemble_darwin_meminfo(vmstat, page_size, total, swap)


class DarwinMeminfoSource:
    """Native-query variant of MemorySource."""

    name = "darwin"

    def __init__(self, host: Optional[NativeHost] = None) -> None:
        self._host = host

    def get_meminfo(self) -> dict[str, float]:
        if self._host is None:
            self._host = MachHost()
        return collect_darwin_meminfo(self._host)
