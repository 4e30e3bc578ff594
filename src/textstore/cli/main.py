"""Main CLI entry point for textstore.

Provides commands for serving the API and checking backend connectivity.
"""

import asyncio
import os
from typing import Optional

import click
import uvicorn
from rich.console import Console
from rich.table import Table

from textstore.api.app import create_app
from textstore.storage.config import StorageConfig, load_config_from_env
from textstore.storage.errors import BackendConnectionError, StorageError
from textstore.storage.factory import connect_backend

console = Console()

BACKEND_CHOICE = click.Choice(["mongo", "sqlite"], case_sensitive=False)


def resolve_config(backend: Optional[str]) -> StorageConfig:
    """Load configuration from the environment, overriding the backend if given.

    Args:
        backend: Backend name from the CLI flag

    Returns:
        Storage configuration to use
    """
    config = load_config_from_env()
    if backend:
        config = config.model_copy(update={"backend": backend.lower()})
    return config


async def _list_collections(config: StorageConfig, database: str) -> tuple[str, list[str]]:
    backend = await connect_backend(config)
    try:
        return backend.name, await backend.list_collections(database)
    finally:
        await backend.close()


@click.group()
@click.version_option(version="0.1.0", prog_name="textstore")
def cli() -> None:
    """textstore - document CRUD over pluggable storage backends."""
    pass


@cli.command()
@click.option("--backend", type=BACKEND_CHOICE, default=None, help="Storage backend to serve")
@click.option("--host", default="0.0.0.0", show_default=True, help="Interface to bind")
@click.option("--port", default=10000, show_default=True, type=int, help="Port to listen on")
@click.option("--reload", is_flag=True, help="Restart the server when source files change")
def serve(backend: Optional[str], host: str, port: int, reload: bool) -> None:
    """Serve the storage API."""
    config = resolve_config(backend)
    console.print(f"Server starting on port {port} with the {config.backend} backend...")
    if reload:
        # The reloader imports the app itself, so the backend travels via the environment
        os.environ["TEXTSTORE_BACKEND"] = config.backend
        uvicorn.run("textstore.api.app:app", host=host, port=port, reload=True)
        return
    uvicorn.run(create_app(config=config), host=host, port=port)


@cli.command()
@click.option("--backend", type=BACKEND_CHOICE, default=None, help="Storage backend to check")
@click.option(
    "--database", default="", help="Database whose collections to list (required for mongo)"
)
def check(backend: Optional[str], database: str) -> None:
    """Connect to the backend and list its collections."""
    config = resolve_config(backend)
    if config.backend == "mongo" and not database:
        raise click.UsageError("--database is required for the mongo backend")
    try:
        name, collections = asyncio.run(_list_collections(config, database))
    except BackendConnectionError as e:
        raise click.ClickException(f"Backend connection failed: {e.message}")
    except StorageError as e:
        raise click.ClickException(f"[{e.code}] {e.message}")

    table = Table(title=f"{name} collections")
    table.add_column("Collection", style="cyan")
    for collection in collections:
        table.add_row(collection)
    console.print(table)


def main() -> None:
    """CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
