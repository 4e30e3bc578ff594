"""MongoDB implementation of the storage contract.

Provides document storage over a multi-database, multi-collection MongoDB
deployment using pymongo's asyncio client. Records are stored as
``{"_id": <int>, "title": ..., "text": ...}`` documents.

Identifiers are allocated from a per-collection counter document kept in
the ``__textstore_counters`` collection of the target database, and must fit
in a signed 32-bit integer.
"""

import asyncio
from typing import Any, Mapping, Optional

from bson import encode
from bson.errors import InvalidDocument
from bson.raw_bson import RawBSONDocument
from pydantic import ValidationError
from pymongo import AsyncMongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from textstore.observability.logging import get_logger
from textstore.storage.base import BackendBase
from textstore.storage.config import StorageConfig
from textstore.storage.errors import BackendConnectionError, BackendError, RecordNotFoundError
from textstore.storage.models import BackendState, ConnectionTarget, Record

logger = get_logger(__name__)

COUNTERS_COLLECTION = "__textstore_counters"

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


def _encode(record_id: int, record: Record) -> RawBSONDocument:
    """Serialize a record to BSON, keyed by its identifier."""
    try:
        return RawBSONDocument(encode({"_id": record_id, "title": record.title, "text": record.text}))
    except (InvalidDocument, OverflowError) as e:
        raise BackendError(f"Can not serialize document: {e}", operation="encode") from e


def _decode(document: Mapping[str, Any]) -> Record:
    """Build a record from a stored document."""
    try:
        return Record(
            id=document["_id"],
            title=document.get("title", ""),
            text=document.get("text", ""),
        )
    except (KeyError, ValidationError) as e:
        raise BackendError(f"Can not decode document: {e}", operation="decode") from e


def _is_int32(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and INT32_MIN <= value <= INT32_MAX


class MongoBackend(BackendBase):
    """Storage backend over a MongoDB server.

    Every call runs under its own deadline: a long one for listing
    collections, short ones for everything else.

    Attributes:
        config: Storage configuration
    """

    name = "mongo"
    # bson raises OverflowError encoding integers wider than 64 bits
    driver_errors = (PyMongoError, OverflowError)

    def __init__(self, client: AsyncMongoClient, config: StorageConfig) -> None:
        """Initialize backend around a client. Use ``connect()`` instead.

        Args:
            client: Client owning the connection pool
            config: Storage configuration
        """
        super().__init__(config)
        self._client = client

    @classmethod
    async def connect(
        cls, config: StorageConfig, client: Optional[AsyncMongoClient] = None
    ) -> "MongoBackend":
        """Connect to the server and verify it answers a ping in time.

        Args:
            config: Storage configuration
            client: Pre-built client; one is created from ``config.mongo_uri`` if omitted

        Returns:
            Connected backend

        Raises:
            BackendConnectionError: If the client cannot be built or the ping fails
        """
        timeout_ms = int(config.connect_timeout_seconds * 1000)
        try:
            if client is None:
                client = AsyncMongoClient(
                    config.mongo_uri,
                    serverSelectionTimeoutMS=timeout_ms,
                    connectTimeoutMS=timeout_ms,
                )
        except PyMongoError as e:
            logger.error("backend_connect_failed", backend=cls.name, error=str(e))
            raise BackendConnectionError(f"Can not connect to Mongo Server! {e}") from e

        backend = cls(client, config)
        backend._state = BackendState.CONNECTING
        try:
            await asyncio.wait_for(
                client.admin.command("ping"), timeout=config.ping_timeout_seconds
            )
        except (PyMongoError, asyncio.TimeoutError) as e:
            backend._state = BackendState.FAILED
            logger.error("backend_connect_failed", backend=cls.name, error=str(e) or repr(e))
            try:
                await client.close()
            except PyMongoError as close_error:
                logger.warning("backend_close_failed", backend=cls.name, error=str(close_error))
            raise BackendConnectionError(f"Can not connect to Mongo Server! {e!r}") from e

        backend._state = BackendState.CONNECTED
        logger.info("backend_connected", backend=cls.name)
        return backend

    async def _close_handle(self) -> None:
        await self._client.close()

    # --- Listing ------------------------------------------------------------

    async def list_databases(self) -> list[str]:
        self._require_connected("list_databases")
        return await self._run(
            "list_databases",
            self._database_names(),
            self.config.list_databases_timeout_seconds,
        )

    async def _database_names(self) -> list[str]:
        return list(await self._client.list_database_names())

    async def list_collections(self, database: str) -> list[str]:
        self._require_connected("list_collections")
        return await self._run(
            "list_collections",
            self._collection_names(database),
            self.config.list_collections_timeout_seconds,
        )

    async def _collection_names(self, database: str) -> list[str]:
        names = await self._client[database].list_collection_names()
        return [name for name in names if name != COUNTERS_COLLECTION]

    # --- Records ------------------------------------------------------------

    def _collection(self, target: ConnectionTarget) -> Any:
        return self._client[target.database][target.collection]

    async def create(self, record: Record) -> int:
        target = self._snapshot_target("create")
        record_id = await self._run(
            "create", self._insert(target, record), self.config.operation_timeout_seconds
        )
        logger.info(
            "record_created",
            backend=self.name,
            database=target.database,
            collection=target.collection,
            id=record_id,
        )
        return record_id

    async def _insert(self, target: ConnectionTarget, record: Record) -> int:
        counter = await self._client[target.database][COUNTERS_COLLECTION].find_one_and_update(
            {"_id": target.collection},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        result = await self._collection(target).insert_one(_encode(counter["seq"], record))
        if not _is_int32(result.inserted_id):
            raise BackendError(
                f"Fail by creating document on mongodb: inserted id "
                f"{result.inserted_id!r} is not a 32-bit integer",
                operation="create",
            )
        return int(result.inserted_id)

    async def get(self, record_id: int) -> Record:
        target = self._snapshot_target("get")
        document = await self._run(
            "get",
            self._find_one(target, record_id),
            self.config.operation_timeout_seconds,
        )
        if document is None:
            raise RecordNotFoundError(record_id)
        return _decode(document)

    async def _find_one(
        self, target: ConnectionTarget, record_id: int
    ) -> Optional[Mapping[str, Any]]:
        return await self._collection(target).find_one({"_id": record_id})

    async def update(self, record: Record) -> Record:
        target = self._snapshot_target("update")
        document = await self._run(
            "update", self._replace(target, record), self.config.operation_timeout_seconds
        )
        if document is None:
            raise RecordNotFoundError(record.id)
        logger.info(
            "record_updated",
            backend=self.name,
            database=target.database,
            collection=target.collection,
            id=record.id,
        )
        return _decode(document)

    async def _replace(
        self, target: ConnectionTarget, record: Record
    ) -> Optional[Mapping[str, Any]]:
        return await self._collection(target).find_one_and_replace(
            {"_id": record.id},
            _encode(record.id, record),
            return_document=ReturnDocument.AFTER,
        )

    async def delete(self, record_id: int) -> bool:
        target = self._snapshot_target("delete")
        deleted_count = await self._run(
            "delete", self._delete_one(target, record_id), self.config.operation_timeout_seconds
        )
        deleted = deleted_count > 0
        logger.info(
            "record_deleted",
            backend=self.name,
            database=target.database,
            collection=target.collection,
            id=record_id,
            deleted=deleted,
        )
        return deleted

    async def _delete_one(self, target: ConnectionTarget, record_id: int) -> int:
        result = await self._collection(target).delete_one({"_id": record_id})
        return result.deleted_count
