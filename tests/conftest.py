"""
Shared in-memory Appwrite fakes
"""

from __future__ import annotations

import pytest

from appwrite.exception import AppwriteException


def not_found(what: str = "Document") -> AppwriteException:
    return AppwriteException(
        f"{what} with the requested ID could not be found.",
        code=404,
        type="document_not_found",
    )


def conflict(what: str = "Database") -> AppwriteException:
    return AppwriteException(
        f"{what} with the requested ID already exists.",
        code=409,
        type="database_already_exists",
    )


class FakeDatabases:
    """
    Databases stand-in with just enough server state

    `errors` maps method name -> exception raised on every call to it.
    """

    def __init__(self, *, database=False, collection=False, document=False, errors=None):
        self.database = database
        self.collection = collection
        self.attributes: dict[str, dict] = {}
        self.document: dict | None = {"timestamp": "old", "source": "old"} if document else None
        self.errors = dict(errors or {})
        self.calls: list[str] = []

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]

    def get(self, database_id):
        self._enter("get")
        if not self.database:
            raise not_found("Database")
        return {"$id": database_id}

    def create(self, database_id, name):
        self._enter("create")
        if self.database:
            raise conflict("Database")
        self.database = True
        return {"$id": database_id, "name": name}

    def get_collection(self, database_id, collection_id):
        self._enter("get_collection")
        if not self.collection:
            raise not_found("Collection")
        return {"$id": collection_id}

    def create_collection(self, database_id, collection_id, name, *, permissions=None, document_security=False, enabled=True):
        self._enter("create_collection")
        if self.collection:
            raise conflict("Collection")
        self.collection = True
        self.collection_permissions = list(permissions or [])
        return {"$id": collection_id}

    def create_datetime_attribute(self, database_id, collection_id, key, *, required):
        self._enter("create_datetime_attribute")
        if key in self.attributes:
            raise conflict("Attribute")
        self.attributes[key] = {"key": key, "type": "datetime", "status": "available"}
        return self.attributes[key]

    def create_string_attribute(self, database_id, collection_id, key, *, size, required):
        self._enter("create_string_attribute")
        if key in self.attributes:
            raise conflict("Attribute")
        self.attributes[key] = {"key": key, "type": "string", "size": size, "status": "available"}
        return self.attributes[key]

    def get_attribute(self, database_id, collection_id, key):
        self._enter("get_attribute")
        if key not in self.attributes:
            raise not_found("Attribute")
        return self.attributes[key]

    def update_document(self, database_id, collection_id, document_id, data):
        self._enter("update_document")
        if self.document is None:
            raise not_found("Document")
        self.document = dict(data)
        return {"$id": document_id, **data}

    def create_document(self, database_id, collection_id, document_id, data, *, permissions=None):
        self._enter("create_document")
        self.document = dict(data)
        self.document_permissions = list(permissions or [])
        return {"$id": document_id, **data}


@pytest.fixture
def fake_databases():
    """
    Factory fixture: fake_databases(**state) -> FakeDatabases
    """
    return FakeDatabases
