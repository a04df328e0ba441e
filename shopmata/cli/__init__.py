"""Command-line interface for shopmata."""

import logging
from typing import Optional

import typer

from shopmata.cli.chat import chat_command
from shopmata.cli.db import init_db_command
from shopmata.cli.suggestions import suggestions_app
from shopmata.cli.tools import tools_app
from shopmata.cli.usage import usage_command

app = typer.Typer(help="Shopmata - store assistant tools, chat and AI suggestions")


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", envvar="SHOPMATA_LOG_LEVEL", help="Python log level (DEBUG, INFO, ...)"
    ),
):
    """Configure logging before any command runs."""
    level = getattr(logging, (log_level or "WARNING").upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# Register main commands
app.command(name="init-db")(init_db_command)
app.command(name="chat")(chat_command)
app.command(name="usage")(usage_command)

# Register subcommand groups
app.add_typer(tools_app, name="tools")
app.add_typer(suggestions_app, name="suggestions")


def main():
    """Main CLI entry point."""
    app()


__all__ = ["app", "main"]
