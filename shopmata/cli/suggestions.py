"""Commands for the AI suggestion review queue."""

from typing import Optional

import typer
from rich.table import Table
from rich import box

from ..exceptions import ShopmataError
from ..suggestions import SuggestionService
from .context import console, event_logger, format_timestamp, load_settings, open_database

suggestions_app = typer.Typer(help="Review AI suggestions")


def _service(verbose: bool = False) -> SuggestionService:
    settings = load_settings()
    return SuggestionService(open_database(settings), event_logger=event_logger(settings, verbose))


@suggestions_app.command(name="list")
def list_command(
    store_id: int = typer.Option(..., "--store-id", help="Store to list suggestions for"),
    type: Optional[str] = typer.Option(None, "--type", help="Filter by suggestion type"),
    limit: int = typer.Option(50, help="Maximum suggestions to show"),
):
    """List pending suggestions."""
    suggestions = _service().pending(store_id, type=type, limit=limit)
    if not suggestions:
        console.print(f"[yellow]No pending suggestions for store {store_id}[/yellow]")
        return

    table = Table(title=f"Pending suggestions ({len(suggestions)})", box=box.ROUNDED)
    table.add_column("ID", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Product", justify="right")
    table.add_column("Platform")
    table.add_column("Suggestion")
    table.add_column("Created")
    for s in suggestions:
        content = " ".join(s.suggested_content.split())
        table.add_row(
            str(s.id),
            s.type,
            str(s.suggestable_id),
            s.platform or "-",
            content if len(content) <= 60 else content[:57] + "...",
            format_timestamp(s.created_at),
        )
    console.print(table)


@suggestions_app.command(name="accept")
def accept_command(
    suggestion_id: int = typer.Argument(..., help="Suggestion ID"),
    store_id: int = typer.Option(..., "--store-id", help="Store the suggestion belongs to"),
    apply: bool = typer.Option(True, help="Write the suggestion to the product"),
):
    """Accept a suggestion."""
    try:
        suggestion = _service().accept(suggestion_id, store_id, apply=apply)
    except ShopmataError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Accepted {suggestion.type} suggestion {suggestion.id}")


@suggestions_app.command(name="reject")
def reject_command(
    suggestion_id: int = typer.Argument(..., help="Suggestion ID"),
    store_id: int = typer.Option(..., "--store-id", help="Store the suggestion belongs to"),
):
    """Reject a suggestion."""
    try:
        suggestion = _service().reject(suggestion_id, store_id)
    except ShopmataError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Rejected {suggestion.type} suggestion {suggestion.id}")
