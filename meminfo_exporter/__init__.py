"""meminfo_exporter: OS memory statistics as Prometheus metrics."""

__version__ = "0.1.0"
