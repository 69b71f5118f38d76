"""
meminfo_exporter.collectors.keys
AUTHOR: carter-vin

Raw field label -> canonical metric name fragment
"""

from __future__ import annotations

import re

# Active(anon) -> Active_anon
_PARENS_RE = re.compile(r"\((.*)\)")


def canonical_key(raw: str) -> str:
    """
    Drop one trailing ":" and rewrite a parenthesized qualifier

    Only a single "(X)" group is supported; anything else passes through
    the substitution as-is.
    """
    if raw.endswith(":"):
        raw = raw[:-1]
    return _PARENS_RE.sub(r"_\1", raw)
