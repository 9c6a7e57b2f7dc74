"""
CLI: serve the orders service or create its database schema.
Settings come from the environment (see orderdesk.core.config.Settings).
"""
import asyncio
from typing import Optional

import typer

from orderdesk.core import Settings, configure_logging
from orderdesk.main import build_app
from orderdesk.orders.sql import SqlOrderStore

app = typer.Typer(help="orderdesk: orders service.")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: ORDERS_HOST)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default: ORDERS_PORT)"),
) -> None:
    """Run the RPC server. Creates missing tables on startup."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    build_app(settings).run(host=host or settings.host, port=port or settings.port, log_level=settings.log_level)


@app.command()
def init_db(
    database_url: Optional[str] = typer.Option(None, "--database-url", help="Default: ORDERS_DATABASE_URL"),
) -> None:
    """Create the orders schema."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    store = SqlOrderStore.from_url(database_url or settings.database_url)

    async def create() -> None:
        try:
            await store.connect()
        finally:
            await store.close()

    asyncio.run(create())
    typer.echo(f"Schema ready: {database_url or settings.database_url}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
