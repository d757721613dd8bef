"""
keepalive.logging
AUTHOR: carter-vin

Structured JSON event logging for ops ingestion

Contract:
- One JSON object per line to stdout
- Stable event vocabulary (allowlist)
- UTC timestamps only
- API keys never appear in events
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from keepalive.model import TOOL_VERSION

# Event types
VALID_EVENT_TYPES = {
    "keepalive_start",
    "config_loaded",
    "config_invalid",
    "resource_created",
    "attributes_pending",
    "heartbeat_sent",
    "keepalive_failed",
    "provision_step",
    "keepalive_summary",
    "keepalive_shutdown",
}

# Field names that must never be emitted
_REDACTED_FIELDS = {"api_key", "apiKey", "key"}


def _truncate_message(value: str, *, limit: int = 200) -> str:
    """
    Cap message length to keep events compact
    """
    if len(value) <= limit:
        return value
    return value[:limit] + f"...[truncated {len(value) - limit} chars]"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def emit_event(event_type: str, *, tool_version: str = TOOL_VERSION, **fields: Any) -> None:
    """
    Emit structured event line to stdout

    Rules:
    - event_type in VALID_EVENT_TYPES
    - event_type, tool_version, utc_now always present
    - secret-looking fields are dropped
    - sort_keys + compact separators for format
    """
    if event_type not in VALID_EVENT_TYPES:
        raise ValueError(f"invalid event_type: {event_type}")

    if "message" in fields and isinstance(fields["message"], str):
        fields["message"] = _truncate_message(fields["message"])

    for name in _REDACTED_FIELDS:
        fields.pop(name, None)

    payload: dict[str, Any] = {
        "event_type": event_type,
        "utc_now": utc_now_iso(),
        "tool_version": tool_version,
        **fields,
    }

    print(
        json.dumps(
            payload,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        )
    )
