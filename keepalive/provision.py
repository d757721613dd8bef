"""
keepalive.provision
AUTHOR: carter-vin

One-time setup: create database, collection + attributes for one project.

Idempotent:
- "already exists" (409) is recorded as status=exists
- anything else propagates to the caller
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from appwrite.permission import Permission
from appwrite.role import Role
from appwrite.services.databases import Databases

from keepalive.errors import is_conflict
from keepalive.logging import emit_event
from keepalive.model import (
    COLLECTION_ID,
    COLLECTION_NAME,
    DATABASE_ID,
    DATABASE_NAME,
    SOURCE_ATTRIBUTE_SIZE,
    ProjectConfig,
)
from keepalive.runner import DatabasesFactory, databases_for

STATUS_CREATED = "created"
STATUS_EXISTS = "exists"


@dataclass(frozen=True)
class ProvisionStep:
    resource: str
    identifier: str
    status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "resource": self.resource,
            "identifier": self.identifier,
            "status": self.status,
        }


def _create_or_exists(resource: str, identifier: str, fn: Callable[[], Any], *, project: str) -> ProvisionStep:
    try:
        fn()
        status = STATUS_CREATED
    except Exception as e:
        if not is_conflict(e):
            raise
        status = STATUS_EXISTS

    emit_event("provision_step", project=project, resource=resource, id=identifier, status=status)
    return ProvisionStep(resource=resource, identifier=identifier, status=status)


def provision_project(
    config: ProjectConfig,
    *,
    databases_factory: DatabasesFactory = databases_for,
) -> list[ProvisionStep]:
    """
    Create every keepalive resource in order; return one step per resource
    """
    databases = databases_factory(config)
    label = config.label

    return [
        _create_or_exists(
            "database",
            DATABASE_ID,
            lambda: databases.create(DATABASE_ID, DATABASE_NAME),
            project=label,
        ),
        _create_or_exists(
            "collection",
            COLLECTION_ID,
            lambda: databases.create_collection(
                DATABASE_ID,
                COLLECTION_ID,
                COLLECTION_NAME,
                permissions=[Permission.read(Role.any()), Permission.write(Role.any())],
                document_security=False,
                enabled=True,
            ),
            project=label,
        ),
        _create_or_exists(
            "attribute",
            "timestamp",
            lambda: databases.create_datetime_attribute(
                DATABASE_ID, COLLECTION_ID, "timestamp", required=True
            ),
            project=label,
        ),
        _create_or_exists(
            "attribute",
            "source",
            lambda: databases.create_string_attribute(
                DATABASE_ID,
                COLLECTION_ID,
                "source",
                size=SOURCE_ATTRIBUTE_SIZE,
                required=True,
            ),
            project=label,
        ),
    ]
