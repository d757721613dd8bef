"""
keepalive.runner
AUTHOR: carter-vin

Per-project keepalive pass

Flow (per project, strictly sequential):
- ensure database exists (create on not-found)
- ensure collection + attributes exist (create on not-found)
- update heartbeat document; create it only when the update says not-found

Failure semantics:
- keepalive_project never raises; failure is returned as data
- one project's failure never stops the remaining projects
"""

from __future__ import annotations

import time
from typing import Callable, Iterable

from appwrite.client import Client
from appwrite.permission import Permission
from appwrite.role import Role
from appwrite.services.databases import Databases

from keepalive.errors import is_not_found
from keepalive.logging import emit_event
from keepalive.model import (
    ACTION_CREATED,
    ACTION_UPDATED,
    COLLECTION_ID,
    COLLECTION_NAME,
    DATABASE_ID,
    DATABASE_NAME,
    DOCUMENT_ID,
    HEARTBEAT_SOURCE,
    SOURCE_ATTRIBUTE_SIZE,
    KeepaliveResult,
    ProjectConfig,
    utc_now_iso,
)

DEFAULT_ATTRIBUTE_WAIT_S = 2.0
ATTRIBUTE_POLL_INTERVAL_S = 0.5

HEARTBEAT_ATTRIBUTES = ("timestamp", "source")

DatabasesFactory = Callable[[ProjectConfig], Databases]


def databases_for(config: ProjectConfig) -> Databases:
    client = Client()
    client.set_endpoint(config.endpoint).set_project(config.project_id).set_key(config.api_key)
    return Databases(client)


def ensure_database(databases: Databases, *, project: str) -> bool:
    """
    Create the keepalive database if missing

    Returns True when it was created
    """
    try:
        databases.get(DATABASE_ID)
        return False
    except Exception as e:
        if not is_not_found(e):
            raise

    databases.create(DATABASE_ID, DATABASE_NAME)
    emit_event("resource_created", project=project, resource="database", id=DATABASE_ID)
    return True


def create_heartbeat_attributes(databases: Databases) -> None:
    databases.create_datetime_attribute(DATABASE_ID, COLLECTION_ID, "timestamp", required=True)
    databases.create_string_attribute(
        DATABASE_ID,
        COLLECTION_ID,
        "source",
        size=SOURCE_ATTRIBUTE_SIZE,
        required=True,
    )


def _attribute_status(attr) -> str | None:
    if isinstance(attr, dict):
        return attr.get("status")
    return getattr(attr, "status", None)


def wait_for_attributes(
    databases: Databases,
    *,
    project: str,
    timeout_s: float,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """
    Poll until the heartbeat attributes are "available"

    Appwrite builds attributes asynchronously; writes fail until they are ready.
    Returns False on timeout (the caller carries on; the write reports the real error).
    """
    if timeout_s <= 0:
        return True

    deadline = clock() + timeout_s
    pending = list(HEARTBEAT_ATTRIBUTES)

    while True:
        still_pending = []
        for key in pending:
            try:
                attr = databases.get_attribute(DATABASE_ID, COLLECTION_ID, key)
            except Exception:
                # Lookup errors while polling only mean "not ready yet"
                still_pending.append(key)
                continue
            if _attribute_status(attr) != "available":
                still_pending.append(key)
        pending = still_pending

        if not pending:
            return True

        remaining = deadline - clock()
        if remaining <= 0:
            emit_event("attributes_pending", project=project, attributes=pending)
            return False

        sleep(min(ATTRIBUTE_POLL_INTERVAL_S, remaining))


def ensure_collection(
    databases: Databases,
    *,
    project: str,
    attribute_wait_s: float = DEFAULT_ATTRIBUTE_WAIT_S,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """
    Create the heartbeats collection (and its attributes) if missing

    Returns True when it was created
    """
    try:
        databases.get_collection(DATABASE_ID, COLLECTION_ID)
        return False
    except Exception as e:
        if not is_not_found(e):
            raise

    databases.create_collection(
        DATABASE_ID,
        COLLECTION_ID,
        COLLECTION_NAME,
        permissions=[Permission.read(Role.any()), Permission.write(Role.any())],
        document_security=False,
        enabled=True,
    )
    create_heartbeat_attributes(databases)
    emit_event("resource_created", project=project, resource="collection", id=COLLECTION_ID)

    wait_for_attributes(databases, project=project, timeout_s=attribute_wait_s, sleep=sleep)
    return True


def write_heartbeat(databases: Databases, data: dict[str, str]) -> str:
    """
    Update the status document, creating it only on not-found

    Returns the action taken ("updated" | "created")
    """
    try:
        databases.update_document(DATABASE_ID, COLLECTION_ID, DOCUMENT_ID, data)
        return ACTION_UPDATED
    except Exception as e:
        if not is_not_found(e):
            raise

    databases.create_document(
        DATABASE_ID,
        COLLECTION_ID,
        DOCUMENT_ID,
        data,
        permissions=[Permission.read(Role.any())],
    )
    return ACTION_CREATED


def keepalive_project(
    config: ProjectConfig,
    *,
    databases_factory: DatabasesFactory = databases_for,
    source: str = HEARTBEAT_SOURCE,
    attribute_wait_s: float = DEFAULT_ATTRIBUTE_WAIT_S,
    sleep: Callable[[float], None] = time.sleep,
) -> KeepaliveResult:
    """
    Run one keepalive pass and collect the outcome as data
    """
    timestamp = utc_now_iso()
    label = config.label

    try:
        databases = databases_factory(config)

        ensure_database(databases, project=label)
        ensure_collection(
            databases,
            project=label,
            attribute_wait_s=attribute_wait_s,
            sleep=sleep,
        )

        action = write_heartbeat(databases, {"timestamp": timestamp, "source": source})

    except Exception as e:
        emit_event(
            "keepalive_failed",
            project=label,
            error_type=type(e).__name__,
            message=str(e),
        )
        return KeepaliveResult(
            project_id=config.project_id,
            name=config.name,
            success=False,
            message=str(e),
            timestamp=timestamp,
        )

    emit_event("heartbeat_sent", project=label, action=action, heartbeat_at=timestamp)

    message = "Initial heartbeat created" if action == ACTION_CREATED else "Heartbeat sent successfully"
    return KeepaliveResult(
        project_id=config.project_id,
        name=config.name,
        success=True,
        message=message,
        timestamp=timestamp,
        action=action,
    )


def keepalive_all(projects: Iterable[ProjectConfig], **kwargs) -> list[KeepaliveResult]:
    """
    Run every project in input order; one result per project
    """
    return [keepalive_project(project, **kwargs) for project in projects]
