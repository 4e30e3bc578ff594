"""SQLite implementation of the storage contract.

Provides single-file relational storage using the SQLAlchemy async engine
with the aiosqlite driver. Records live in one table whose ``name`` column
holds the record's ``text``.

Capability limits compared to the contract:
    - There is exactly one implicit database. ``list_databases`` always
      raises ``UnsupportedOperationError`` and the ``database`` argument of
      ``list_collections`` is ignored.
    - ``set_target`` is accepted, but only the collection part has effect:
      it selects the table. A database name is logged as ignored, and a
      target counts as set as soon as its collection is non-empty.
"""

import asyncio
import re
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from textstore.observability.logging import get_logger
from textstore.storage.base import BackendBase
from textstore.storage.config import StorageConfig
from textstore.storage.database import Database, DatabaseConfig, discard_database_file
from textstore.storage.errors import (
    BackendConnectionError,
    BackendError,
    InvalidTargetError,
    RecordNotFoundError,
    UnsupportedOperationError,
)
from textstore.storage.models import BackendState, ConnectionTarget, Record

logger = get_logger(__name__)

# Table names are interpolated into SQL, so only plain identifiers are allowed
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_LIST_TABLES = (
    "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
)


class SQLiteBackend(BackendBase):
    """Storage backend over a single local SQLite file.

    Every write runs inside an explicit transaction that commits on success
    and rolls back on any failure, so callers never observe partial writes.

    Attributes:
        config: Storage configuration
    """

    name = "sqlite"
    # sqlite3 raises OverflowError binding integers wider than 64 bits
    driver_errors = (SQLAlchemyError, OverflowError)

    def __init__(self, database: Database, config: StorageConfig) -> None:
        """Initialize backend around an engine. Use ``connect()`` instead.

        Args:
            database: Engine wrapper owning the connection handle
            config: Storage configuration
        """
        super().__init__(config)
        self._db = database

    @classmethod
    async def connect(cls, config: StorageConfig) -> "SQLiteBackend":
        """Open the database file and make sure the records table exists.

        Args:
            config: Storage configuration

        Returns:
            Connected backend

        Raises:
            BackendConnectionError: If the file cannot be opened or initialised
        """
        if not _IDENTIFIER.match(config.sqlite_table):
            raise BackendConnectionError(
                f"Configured table name '{config.sqlite_table}' is not a valid identifier"
            )

        backend = cls(Database(DatabaseConfig.for_sqlite_file(config.sqlite_path)), config)
        backend._state = BackendState.CONNECTING
        try:
            if config.sqlite_reset_on_connect and discard_database_file(config.sqlite_path):
                logger.info("sqlite_file_discarded", path=config.sqlite_path)
            await asyncio.wait_for(backend._initialise(), timeout=config.connect_timeout_seconds)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            backend._state = BackendState.FAILED
            logger.error("backend_connect_failed", backend=cls.name, error=str(e) or repr(e))
            await backend._db.close()
            raise BackendConnectionError(f"Can not connect to sqlite db! {e!r}") from e

        backend._state = BackendState.CONNECTED
        logger.info("backend_connected", backend=cls.name, path=config.sqlite_path)
        return backend

    async def _initialise(self) -> None:
        tables = await self._fetch_table_names()
        table = self.config.sqlite_table
        if table not in tables:
            async with self._db.transaction() as conn:
                await conn.execute(
                    text(
                        f'CREATE TABLE "{table}" '
                        "(id integer not null primary key, title text, name text)"
                    )
                )
            logger.info("sqlite_table_created", table=table)
        await self._db.health_check()

    async def _fetch_table_names(self) -> list[str]:
        async with self._db.connection() as conn:
            result = await conn.execute(text(_LIST_TABLES))
            return [row[0] for row in result]

    async def _close_handle(self) -> None:
        await self._db.close()

    # --- Listing ------------------------------------------------------------

    async def list_databases(self) -> list[str]:
        raise UnsupportedOperationError("By SQLite only a single database is supported")

    async def list_collections(self, database: str) -> list[str]:
        self._require_connected("list_collections")
        return await self._run(
            "list_collections",
            self._fetch_table_names(),
            self.config.list_collections_timeout_seconds,
        )

    # --- Target -------------------------------------------------------------

    def _validate_target(self, target: ConnectionTarget) -> None:
        if target.collection and not _IDENTIFIER.match(target.collection):
            raise InvalidTargetError(
                f"Table name '{target.collection}' is not a valid SQL identifier"
            )
        if target.database:
            logger.warning("sqlite_target_database_ignored", database=target.database)

    def _target_is_usable(self, target: ConnectionTarget) -> bool:
        return bool(target.collection)

    # --- Records ------------------------------------------------------------

    async def create(self, record: Record) -> int:
        target = self._snapshot_target("create")
        record_id = await self._run(
            "create",
            self._insert(target.collection, record),
            self.config.operation_timeout_seconds,
        )
        logger.info("record_created", backend=self.name, collection=target.collection, id=record_id)
        return record_id

    async def _insert(self, table: str, record: Record) -> int:
        statement = text(f'INSERT INTO "{table}" (title, name) VALUES (:title, :name)')
        async with self._db.transaction() as conn:
            result = await conn.execute(statement, {"title": record.title, "name": record.text})
            return int(result.lastrowid)

    async def get(self, record_id: int) -> Record:
        target = self._snapshot_target("get")
        rows = await self._run(
            "get",
            self._select(target.collection, record_id),
            self.config.operation_timeout_seconds,
        )
        if len(rows) > 1:
            raise BackendError(
                f"Identifier {record_id} matched {len(rows)} rows in '{target.collection}'",
                operation="get",
            )
        if not rows:
            raise RecordNotFoundError(record_id)

        row = rows[0]
        record = Record(id=row["id"] or 0, title=row["title"] or "", text=row["name"] or "")
        if not record.is_persisted:
            raise RecordNotFoundError(record_id)
        return record

    async def _select(self, table: str, record_id: int) -> list[Any]:
        statement = text(f'SELECT id, title, name FROM "{table}" WHERE id = :id')
        async with self._db.connection() as conn:
            result = await conn.execute(statement, {"id": record_id})
            return list(result.mappings().all())

    async def update(self, record: Record) -> Record:
        target = self._snapshot_target("update")
        affected = await self._run(
            "update",
            self._update(target.collection, record),
            self.config.operation_timeout_seconds,
        )
        if affected == 0:
            raise RecordNotFoundError(record.id)
        logger.info("record_updated", backend=self.name, collection=target.collection, id=record.id)
        return Record(id=record.id, title=record.title, text=record.text)

    async def _update(self, table: str, record: Record) -> int:
        statement = text(f'UPDATE "{table}" SET title = :title, name = :name WHERE id = :id')
        async with self._db.transaction() as conn:
            result = await conn.execute(
                statement, {"title": record.title, "name": record.text, "id": record.id}
            )
            return result.rowcount

    async def delete(self, record_id: int) -> bool:
        target = self._snapshot_target("delete")
        affected = await self._run(
            "delete",
            self._delete(target.collection, record_id),
            self.config.operation_timeout_seconds,
        )
        deleted = affected > 0
        logger.info(
            "record_deleted",
            backend=self.name,
            collection=target.collection,
            id=record_id,
            deleted=deleted,
        )
        return deleted

    async def _delete(self, table: str, record_id: int) -> int:
        statement = text(f'DELETE FROM "{table}" WHERE id = :id')
        async with self._db.transaction() as conn:
            result = await conn.execute(statement, {"id": record_id})
            return result.rowcount
