"""Commands for inspecting and running assistant tools."""

import json
from typing import Optional

import typer
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich import box

from ..tools import ToolRegistry, create_default_registry
from .context import console, event_logger, load_settings, open_database

tools_app = typer.Typer(help="Inspect and run assistant tools")


def _registry(database_url: Optional[str] = None, verbose: bool = False) -> ToolRegistry:
    settings = load_settings(database_url)
    return create_default_registry(open_database(settings), event_logger=event_logger(settings, verbose))


def _print_json(data, title: str) -> None:
    console.print(Panel(
        Syntax(json.dumps(data, indent=2, default=str), "json", theme="monokai"),
        title=title,
        border_style="cyan",
    ))


@tools_app.command(name="list")
def list_command():
    """List registered tools."""
    registry = _registry()

    table = Table(title=f"Tools ({len(registry)})", box=box.ROUNDED)
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Required", style="yellow")
    for tool in registry:
        description = tool.description if len(tool.description) <= 90 else tool.description[:87] + "..."
        table.add_row(tool.name, description, ", ".join(tool.required) or "-")
    console.print(table)


@tools_app.command(name="show")
def show_command(name: str = typer.Argument(..., help="Tool name")):
    """Show a tool's definition and parameter schema."""
    registry = _registry()
    if not registry.has(name):
        console.print(f"[red]✗[/red] Unknown tool: {name}")
        raise typer.Exit(code=1)
    _print_json(registry.get(name).definition(), name)


@tools_app.command(name="run")
def run_command(
    name: str = typer.Argument(..., help="Tool name"),
    store_id: int = typer.Option(..., "--store-id", help="Store to run the tool for"),
    params: str = typer.Option("{}", "--params", help="Tool parameters as a JSON object"),
    database_url: Optional[str] = typer.Option(None, "--database-url", help="Override SHOPMATA_DATABASE_URL"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show tool events"),
):
    """Run a tool for a store and print its result."""
    try:
        arguments = json.loads(params)
    except json.JSONDecodeError as e:
        console.print(f"[red]✗[/red] --params is not valid JSON: {e}")
        raise typer.Exit(code=1)
    if not isinstance(arguments, dict):
        console.print("[red]✗[/red] --params must be a JSON object")
        raise typer.Exit(code=1)

    registry = _registry(database_url, verbose)
    result = registry.execute(name, arguments, store_id)
    _print_json(result, name)
    if "error" in result:
        raise typer.Exit(code=1)
