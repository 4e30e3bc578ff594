"""Integration tests for the storage routes."""

import asyncio
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from textstore.api.app import create_app
from textstore.api.routes.storage import NOTHING_DELETED_MESSAGE
from textstore.storage.config import StorageConfig
from textstore.storage.mongo_backend import MongoBackend


@pytest.fixture
def client(storage_config: StorageConfig) -> Generator[TestClient, None, None]:
    """Create a test client whose lifespan connects a SQLite backend.

    Yields:
        TestClient inside the application lifespan
    """
    with TestClient(create_app(config=storage_config)) as test_client:
        yield test_client


@pytest.fixture
def mongo_client(mongo_config: StorageConfig, fake_mongo_client) -> Generator[TestClient, None, None]:
    """Create a test client serving a Mongo backend over the in-memory client.

    Yields:
        TestClient inside the application lifespan
    """
    backend = asyncio.run(MongoBackend.connect(mongo_config, client=fake_mongo_client))
    with TestClient(create_app(backend=backend)) as test_client:
        yield test_client


class TestSQLiteRoutes:
    """Storage routes against the SQLite backend."""

    def test_record_lifecycle(self, client: TestClient) -> None:
        """Create, read, update and delete should round through the API."""
        response = client.put("/storage/target", json={"database": "", "collection": "textfiles"})
        assert response.status_code == 200
        assert response.json() == {"message": "Successfully set the connection data"}

        response = client.post("/storage/records", json={"title": "hello", "text": "world"})
        assert response.status_code == 201
        assert response.json() == {"id": 1}

        response = client.get("/storage/records/1")
        assert response.status_code == 200
        assert response.json() == {"id": 1, "title": "hello", "text": "world"}

        response = client.put("/storage/records/1", json={"title": "hi", "text": "there"})
        assert response.status_code == 200
        assert response.json() == {"id": 1, "title": "hi", "text": "there"}

        response = client.delete("/storage/records/1")
        assert response.status_code == 204
        assert response.content == b""

        response = client.get("/storage/records/1")
        assert response.status_code == 500
        assert response.json()["code"] == "record_not_found"

    def test_create_ignores_body_id(self, client: TestClient) -> None:
        """An id in the create body should be ignored."""
        client.put("/storage/target", json={"collection": "textfiles"})

        response = client.post("/storage/records", json={"id": 77, "title": "a", "text": "b"})

        assert response.json() == {"id": 1}

    def test_get_target(self, client: TestClient) -> None:
        """The current target should be readable."""
        assert client.get("/storage/target").json() == {"database": "", "collection": ""}

        client.put("/storage/target", json={"database": "main", "collection": "textfiles"})

        assert client.get("/storage/target").json() == {
            "database": "main",
            "collection": "textfiles",
        }

    def test_records_require_target(self, client: TestClient) -> None:
        """Record routes without a target should fail with target_not_set."""
        response = client.get("/storage/records/1")

        assert response.status_code == 500
        assert response.json()["code"] == "target_not_set"

    def test_list_databases_unsupported(self, client: TestClient) -> None:
        """SQLite cannot list databases."""
        response = client.get("/storage/databases")

        assert response.status_code == 500
        assert response.json() == {
            "code": "unsupported_operation",
            "message": "By SQLite only a single database is supported",
        }

    def test_list_collections(self, client: TestClient) -> None:
        """The records table should be listed for any database name."""
        response = client.get("/storage/databases/whatever/collections")

        assert response.status_code == 200
        assert response.json() == ["textfiles"]

    def test_invalid_target(self, client: TestClient) -> None:
        """Non-identifier table names should be rejected."""
        response = client.put("/storage/target", json={"collection": "bad name"})

        assert response.status_code == 500
        assert response.json()["code"] == "invalid_target"

    def test_delete_missing_record(self, client: TestClient) -> None:
        """Deleting an unknown id should answer 200 with a message."""
        client.put("/storage/target", json={"collection": "textfiles"})

        response = client.delete("/storage/records/9")

        assert response.status_code == 200
        assert response.json() == {"message": NOTHING_DELETED_MESSAGE}

    def test_update_missing_record(self, client: TestClient) -> None:
        """Updating an unknown id should fail with record_not_found."""
        client.put("/storage/target", json={"collection": "textfiles"})

        response = client.put("/storage/records/9", json={"title": "x", "text": "y"})

        assert response.status_code == 500
        assert response.json() == {"code": "record_not_found", "message": "No document with id 9"}

    def test_non_integer_id_is_rejected(self, client: TestClient) -> None:
        """A path id that is not an integer should fail request validation."""
        response = client.get("/storage/records/abc")

        assert response.status_code == 422

    def test_id_beyond_int64_is_rejected(self, client: TestClient) -> None:
        """Path ids wider than 64 bits should fail validation, not reach the backend."""
        client.put("/storage/target", json={"collection": "textfiles"})
        oversized = 2**70

        assert client.get(f"/storage/records/{oversized}").status_code == 422
        assert client.delete(f"/storage/records/{oversized}").status_code == 422
        response = client.put(f"/storage/records/{oversized}", json={"title": "x"})
        assert response.status_code == 422

    def test_malformed_body_is_rejected(self, client: TestClient) -> None:
        """A body that is not a record should fail request validation."""
        client.put("/storage/target", json={"collection": "textfiles"})

        response = client.post("/storage/records", content=b"{not json")

        assert response.status_code == 422

    def test_responses_carry_correlation_id(self, client: TestClient) -> None:
        """A supplied correlation id should be echoed back."""
        response = client.get("/storage/target", headers={"X-Correlation-ID": "req-1"})

        assert response.headers["X-Correlation-ID"] == "req-1"


class TestMongoRoutes:
    """Storage routes against the Mongo backend."""

    def test_listing(self, mongo_client: TestClient) -> None:
        """Databases and collections should be listed after a create."""
        mongo_client.put("/storage/target", json={"database": "docs", "collection": "texts"})
        mongo_client.post("/storage/records", json={"title": "hello", "text": "world"})

        assert mongo_client.get("/storage/databases").json() == ["docs"]
        assert mongo_client.get("/storage/databases/docs/collections").json() == ["texts"]

    def test_listing_calls_backend_once(self, mongo_client: TestClient, fake_mongo_client) -> None:
        """Each listing request should make exactly one server call."""
        mongo_client.get("/storage/databases")
        mongo_client.get("/storage/databases/docs/collections")

        assert fake_mongo_client.list_database_calls == 1
        assert fake_mongo_client.list_collection_calls == 1

    def test_record_lifecycle(self, mongo_client: TestClient) -> None:
        """The same lifecycle should work against Mongo."""
        mongo_client.put("/storage/target", json={"database": "docs", "collection": "texts"})

        assert mongo_client.post("/storage/records", json={"title": "hello"}).json() == {"id": 1}
        assert mongo_client.get("/storage/records/1").json() == {
            "id": 1,
            "title": "hello",
            "text": "",
        }
        assert mongo_client.delete("/storage/records/1").status_code == 204
        assert mongo_client.delete("/storage/records/1").json() == {
            "message": NOTHING_DELETED_MESSAGE
        }

    def test_half_target_is_rejected_at_use(self, mongo_client: TestClient) -> None:
        """A target without a collection should fail record operations."""
        mongo_client.put("/storage/target", json={"database": "docs"})

        response = mongo_client.post("/storage/records", json={"title": "x"})

        assert response.status_code == 500
        assert response.json()["code"] == "target_not_set"

    def test_backend_closed_on_shutdown(
        self, mongo_config: StorageConfig, fake_mongo_client
    ) -> None:
        """Leaving the lifespan should close the client exactly once."""
        backend = asyncio.run(MongoBackend.connect(mongo_config, client=fake_mongo_client))

        with TestClient(create_app(backend=backend)):
            assert fake_mongo_client.closed is False

        assert fake_mongo_client.close_calls == 1
