"""
meminfo_exporter.collectors.values
AUTHOR: carter-vin

Numeric value tokens shared by the line parsers

Accepted: plain ASCII decimal floats (optional sign, fraction, exponent)
and inf / infinity / nan. Digit separators and non-ASCII digits are
rejected even though float() would take them.
"""

from __future__ import annotations

import re

from meminfo_exporter.errors import MalformedValueError

_VALUE_RE = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


def parse_value(source: str, token: str) -> float:
    """
    Parse one value column

    Raises MalformedValueError naming the source format on any other token
    """
    if _VALUE_RE.fullmatch(token) is None:
        raise MalformedValueError(source, token)
    return float(token)
