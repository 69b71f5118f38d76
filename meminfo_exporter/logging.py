"""
meminfo_exporter.logging
AUTHOR: carter-vin

Structured JSON event logging for ops ingestion

Contract:
- One JSON object per line, stderr by default (stdout carries exposition output)
- Stable event vocabulary (allowlist), each event with a fixed level
- UTC timestamps only
"""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

# Event type -> level
EVENT_LEVELS = {
    "exporter_start": "info",
    "exporter_shutdown": "info",
    "collector_succeeded": "debug",
    "collector_failed": "error",
    "scrape_completed": "debug",
    "oneshot_written": "info",
}

MESSAGE_LIMIT = 200


def _truncate_message(value: str, *, limit: int = MESSAGE_LIMIT) -> str:
    if len(value) <= limit:
        return value
    return value[:limit] + f"...[truncated {len(value) - limit} chars]"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def emit_event(
    event_type: str,
    *,
    exporter_version: str,
    stream: TextIO | None = None,
    **fields: Any,
) -> None:
    """
    Write one event line

    Rules:
    - event_type must be in EVENT_LEVELS
    - event_type, level, exporter_version, utc_now always present
    - non-JSON values (paths, exceptions) are rendered with str()
    """
    level = EVENT_LEVELS.get(event_type)
    if level is None:
        raise ValueError(f"invalid event_type: {event_type}")

    if isinstance(fields.get("message"), str):
        # Parse errors quote whole lines; keep events compact
        fields["message"] = _truncate_message(fields["message"])

    payload: dict[str, Any] = {
        **fields,
        "event_type": event_type,
        "level": level,
        "utc_now": utc_now_iso(),
        "exporter_version": exporter_version,
    }

    line = json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    print(line, file=stream if stream is not None else sys.stderr)
