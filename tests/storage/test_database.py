"""Tests for the async engine wrapper."""

import pytest
from sqlalchemy import text

from textstore.storage.database import Database, DatabaseConfig, discard_database_file


@pytest.fixture
async def db(tmp_path):
    """Create a file-backed database for each test."""
    database = Database(DatabaseConfig.for_sqlite_file(str(tmp_path / "engine.db")))
    yield database
    await database.close()


class TestDatabaseConfig:
    """Tests for DatabaseConfig."""

    def test_default_is_in_memory(self) -> None:
        """The default URL should be an in-memory database."""
        assert DatabaseConfig().url == "sqlite+aiosqlite:///:memory:"

    def test_for_sqlite_file(self) -> None:
        """File paths should use the aiosqlite driver."""
        config = DatabaseConfig.for_sqlite_file("/data/text.db", echo=True)

        assert config.url == "sqlite+aiosqlite:////data/text.db"
        assert config.echo is True


class TestDatabase:
    """Tests for Database."""

    async def test_health_check(self, db: Database) -> None:
        """A reachable database should report healthy."""
        assert await db.health_check() is True

    async def test_transaction_commits(self, db: Database) -> None:
        """Statements in a successful transaction should persist."""
        async with db.transaction() as conn:
            await conn.execute(text("CREATE TABLE t (v integer)"))
            await conn.execute(text("INSERT INTO t (v) VALUES (1)"))

        async with db.connection() as conn:
            assert (await conn.execute(text("SELECT count(*) FROM t"))).scalar() == 1

    async def test_transaction_rolls_back_on_error(self, db: Database) -> None:
        """A failing transaction should leave no partial writes."""
        async with db.transaction() as conn:
            await conn.execute(text("CREATE TABLE t (v integer)"))

        with pytest.raises(RuntimeError):
            async with db.transaction() as conn:
                await conn.execute(text("INSERT INTO t (v) VALUES (1)"))
                raise RuntimeError("abort")

        async with db.connection() as conn:
            assert (await conn.execute(text("SELECT count(*) FROM t"))).scalar() == 0


class TestDiscardDatabaseFile:
    """Tests for discard_database_file."""

    def test_removes_existing_file(self, tmp_path) -> None:
        """An existing file should be removed."""
        path = tmp_path / "old.db"
        path.write_bytes(b"")

        assert discard_database_file(str(path)) is True
        assert not path.exists()

    def test_missing_file(self, tmp_path) -> None:
        """A missing file should be reported as not removed."""
        assert discard_database_file(str(tmp_path / "none.db")) is False

    def test_memory_database(self) -> None:
        """In-memory databases have no file to remove."""
        assert discard_database_file(":memory:") is False
