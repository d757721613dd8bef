"""
keepalive.model
AUTHOR: carter-vin

Shared constants, result types + deterministic serialization primitives.

Design goals:
- Fixed resource identifiers (same database/collection/document everywhere)
- Explicit structure (no accidental serialization via __dict__)
- Stable JSON output (sorted keys, compact separators)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

TOOL_VERSION = "1.0.0"

# Resource identifiers
DATABASE_ID = "_keepalive"
DATABASE_NAME = "Keepalive"
COLLECTION_ID = "heartbeats"
COLLECTION_NAME = "Heartbeats"
DOCUMENT_ID = "status"

HEARTBEAT_SOURCE = "github-actions"
SOURCE_ATTRIBUTE_SIZE = 64

ACTION_UPDATED = "updated"
ACTION_CREATED = "created"


@dataclass(frozen=True)
class ProjectConfig:
    """
    Credentials for one Appwrite project
    - endpoint: API endpoint (e.g. https://cloud.appwrite.io/v1)
    - api_key: needs databases.read/write scopes
    - name: optional friendly name for logs
    """

    endpoint: str
    project_id: str
    api_key: str
    name: str | None = None

    @property
    def label(self) -> str:
        return self.name or self.project_id

    def __repr__(self) -> str:
        # Keep the API key out of tracebacks and debug output
        return (
            f"ProjectConfig(endpoint={self.endpoint!r}, project_id={self.project_id!r}, "
            f"api_key='***', name={self.name!r})"
        )


@dataclass(frozen=True)
class KeepaliveResult:
    """
    Outcome of one keepalive pass against one project
    - action: "updated" | "created" when success, None on failure
    """

    project_id: str
    name: str | None
    success: bool
    message: str
    timestamp: str
    action: str | None = None

    @property
    def label(self) -> str:
        return self.name or self.project_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_id": self.project_id,
            "name": self.name,
            "success": self.success,
            "message": self.message,
            "timestamp": self.timestamp,
            "action": self.action,
        }


def utc_now_iso() -> str:
    """
    Current time in ISO 8601 (UTC)
    """
    return datetime.now(timezone.utc).isoformat()


def to_json(payload: dict[str, Any]) -> str:
    """
    Serialize a payload to a single-line JSON string

    Rules:
    - sort_keys=True ensures stable key order
    - separators remove whitespace to avoid formatting drift
    - ensure_ascii=False keeps UTF-8 project names readable
    """
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
