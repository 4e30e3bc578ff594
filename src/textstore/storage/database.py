"""Database configuration and connection management.

This module wraps the SQLAlchemy async engine that backs the single-file
relational store. The engine is the backend's one connection handle: it is
created once, shared by all concurrent callers, and disposed once.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, create_async_engine


class DatabaseConfig:
    """Database configuration.

    Attributes:
        url: Async database connection URL
        echo: Whether to log SQL statements (default: False)
    """

    def __init__(self, url: str = "sqlite+aiosqlite:///:memory:", echo: bool = False):
        self.url = url
        self.echo = echo

    @classmethod
    def for_sqlite_file(cls, path: str, echo: bool = False) -> "DatabaseConfig":
        """Build a configuration for a local SQLite file.

        Args:
            path: Filesystem path of the database file
            echo: Whether to log SQL statements

        Returns:
            DatabaseConfig using the aiosqlite driver
        """
        return cls(url=f"sqlite+aiosqlite:///{path}", echo=echo)


class Database:
    """Async engine lifecycle manager.

    Example:
        >>> db = Database(DatabaseConfig.for_sqlite_file("./text.db"))
        >>> async with db.transaction() as conn:
        ...     await conn.execute(text("DELETE FROM textfiles"))
    """

    def __init__(self, config: DatabaseConfig):
        """Initialize database with configuration.

        Args:
            config: Database configuration
        """
        self.config = config
        self.engine = create_async_engine(config.url, echo=config.echo)

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncConnection, None]:
        """Open a connection inside an explicit transaction.

        Commits when the block exits normally and rolls back if it raises.

        Yields:
            Connection bound to the open transaction
        """
        async with self.engine.begin() as conn:
            yield conn

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[AsyncConnection, None]:
        """Open a connection for read-only statements.

        Yields:
            Connection without an explicit transaction
        """
        async with self.engine.connect() as conn:
            yield conn

    async def close(self) -> None:
        """Close database engine and connections."""
        await self.engine.dispose()

    async def health_check(self) -> bool:
        """Check database connectivity.

        Returns:
            True if database is healthy

        Raises:
            Exception if database connection fails
        """
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True


def discard_database_file(path: str) -> bool:
    """Remove a SQLite database file if it exists.

    Args:
        path: Filesystem path of the database file

    Returns:
        True if a file was removed
    """
    if path == ":memory:" or not os.path.exists(path):
        return False
    os.remove(path)
    return True
