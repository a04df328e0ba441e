"""Database setup command."""

from typing import Optional

import typer

from ..db import create_db_engine, init_db
from .context import console, load_settings


def init_db_command(
    database_url: Optional[str] = typer.Option(None, "--database-url", help="Override SHOPMATA_DATABASE_URL"),
):
    """Create the database tables."""
    settings = load_settings(database_url)
    try:
        init_db(create_db_engine(settings.database_url))
    except Exception as e:
        console.print(f"[red]✗[/red] Failed to initialize database: {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Database ready at {settings.database_url}")
