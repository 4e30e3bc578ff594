"""Pytest configuration and shared fixtures for the test suite."""

import asyncio
from typing import Any, AsyncGenerator, Optional

import pytest
from bson import encode
from pymongo.errors import DuplicateKeyError

from textstore.storage.config import StorageConfig
from textstore.storage.mongo_backend import MongoBackend
from textstore.storage.sqlite_backend import SQLiteBackend

# Configure pytest-asyncio to use auto mode
pytest_plugins = ["pytest_asyncio"]


class FakeInsertOneResult:
    def __init__(self, inserted_id: Any) -> None:
        self.inserted_id = inserted_id


class FakeDeleteResult:
    def __init__(self, deleted_count: int) -> None:
        self.deleted_count = deleted_count


class FakeCollection:
    """In-memory stand-in for an async MongoDB collection.

    ``delay`` makes every call sleep first and ``error`` makes every call
    raise, to exercise deadlines and driver failures.
    """

    def __init__(self) -> None:
        self.documents: dict[Any, dict[str, Any]] = {}
        self.delay: float = 0.0
        self.error: Optional[Exception] = None

    async def _enter(self, filter: Optional[dict] = None) -> None:
        if filter is not None:
            encode(filter)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

    async def find_one_and_update(
        self, filter: dict, update: dict, upsert: bool = False, return_document: Any = None
    ) -> Optional[dict]:
        await self._enter(filter)
        document = self.documents.get(filter["_id"])
        if document is None:
            if not upsert:
                return None
            document = {"_id": filter["_id"]}
            self.documents[filter["_id"]] = document
        for field, amount in update.get("$inc", {}).items():
            document[field] = document.get(field, 0) + amount
        return dict(document)

    async def insert_one(self, document: Any) -> FakeInsertOneResult:
        await self._enter()
        stored = dict(document)
        if stored["_id"] in self.documents:
            raise DuplicateKeyError(f"E11000 duplicate key error: {stored['_id']}")
        self.documents[stored["_id"]] = stored
        return FakeInsertOneResult(stored["_id"])

    async def find_one(self, filter: dict) -> Optional[dict]:
        await self._enter(filter)
        document = self.documents.get(filter["_id"])
        return dict(document) if document is not None else None

    async def find_one_and_replace(
        self, filter: dict, replacement: Any, return_document: Any = None
    ) -> Optional[dict]:
        await self._enter(filter)
        if filter["_id"] not in self.documents:
            return None
        self.documents[filter["_id"]] = dict(replacement)
        return dict(self.documents[filter["_id"]])

    async def delete_one(self, filter: dict) -> FakeDeleteResult:
        await self._enter(filter)
        removed = self.documents.pop(filter["_id"], None)
        return FakeDeleteResult(0 if removed is None else 1)


class FakeDatabase:
    def __init__(self, client: "FakeMongoClient") -> None:
        self._client = client
        self.collections: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())

    async def list_collection_names(self) -> list[str]:
        self._client.list_collection_calls += 1
        return [name for name, coll in self.collections.items() if coll.documents]

    async def command(self, name: str) -> dict:
        if self._client.ping_delay:
            await asyncio.sleep(self._client.ping_delay)
        if self._client.ping_error is not None:
            raise self._client.ping_error
        return {"ok": 1.0}


class FakeMongoClient:
    """In-memory stand-in for ``pymongo.AsyncMongoClient``.

    Databases appear in listings once one of their collections holds a
    document, as on a real server.
    """

    def __init__(self) -> None:
        self.databases: dict[str, FakeDatabase] = {}
        self.ping_error: Optional[Exception] = None
        self.ping_delay: float = 0.0
        self.list_database_calls = 0
        self.list_collection_calls = 0
        self.close_calls = 0

    def __getitem__(self, name: str) -> FakeDatabase:
        if name not in self.databases:
            self.databases[name] = FakeDatabase(self)
        return self.databases[name]

    @property
    def admin(self) -> FakeDatabase:
        return self["admin"]

    async def list_database_names(self) -> list[str]:
        self.list_database_calls += 1
        return [
            name
            for name, database in self.databases.items()
            if any(coll.documents for coll in database.collections.values())
        ]

    async def close(self) -> None:
        self.close_calls += 1

    @property
    def closed(self) -> bool:
        return self.close_calls > 0


@pytest.fixture
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def storage_config(tmp_path) -> StorageConfig:
    """Create a SQLite configuration pointing at a per-test file."""
    return StorageConfig(backend="sqlite", sqlite_path=str(tmp_path / "test.db"))


@pytest.fixture
async def sqlite_backend(storage_config: StorageConfig) -> AsyncGenerator[SQLiteBackend, None]:
    """Create a connected SQLite backend for each test.

    Yields:
        SQLiteBackend with the default table created
    """
    backend = await SQLiteBackend.connect(storage_config)
    yield backend
    await backend.close()


@pytest.fixture
def fake_mongo_client() -> FakeMongoClient:
    """Create an empty in-memory MongoDB client."""
    return FakeMongoClient()


@pytest.fixture
def mongo_config() -> StorageConfig:
    """Create a MongoDB configuration with short deadlines."""
    return StorageConfig(
        backend="mongo",
        mongo_uri="mongodb://localhost:27017",
        ping_timeout_seconds=0.2,
        operation_timeout_seconds=0.2,
        list_databases_timeout_seconds=0.2,
        list_collections_timeout_seconds=0.2,
        close_timeout_seconds=0.2,
    )


@pytest.fixture
async def mongo_backend(
    mongo_config: StorageConfig, fake_mongo_client: FakeMongoClient
) -> AsyncGenerator[MongoBackend, None]:
    """Create a MongoBackend connected to the in-memory client.

    Yields:
        Connected MongoBackend
    """
    backend = await MongoBackend.connect(mongo_config, client=fake_mongo_client)
    yield backend
    await backend.close()
