"""AI usage report command."""

from typing import Optional

import typer
from rich.table import Table
from rich import box
from sqlalchemy import func, select

from ..db import AiUsageLog, session_scope
from .context import console, format_timestamp, load_settings, open_database


def usage_command(
    store_id: int = typer.Option(..., "--store-id", help="Store to report on"),
    feature: Optional[str] = typer.Option(None, help="Only show one feature"),
    limit: int = typer.Option(20, help="Number of recent calls to list"),
):
    """Show recent AI calls and totals for a store."""
    settings = load_settings()
    session_factory = open_database(settings)

    filters = [AiUsageLog.store_id == store_id]
    if feature:
        filters.append(AiUsageLog.feature == feature)

    with session_scope(session_factory) as session:
        rows = session.scalars(
            select(AiUsageLog).where(*filters).order_by(AiUsageLog.id.desc()).limit(limit)
        ).all()
        totals = session.execute(
            select(
                func.count(AiUsageLog.id),
                func.coalesce(func.sum(AiUsageLog.input_tokens + AiUsageLog.output_tokens), 0),
                func.coalesce(func.sum(AiUsageLog.cost_usd), 0),
            ).where(*filters)
        ).one()

    if not rows:
        console.print(f"[yellow]No AI usage recorded for store {store_id}[/yellow]")
        return

    table = Table(title=f"AI usage · store {store_id}", box=box.ROUNDED)
    table.add_column("When")
    table.add_column("Feature", style="cyan")
    table.add_column("Model")
    table.add_column("Tokens", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("ms", justify="right")
    table.add_column("OK", justify="center")

    for row in rows:
        table.add_row(
            format_timestamp(row.created_at),
            row.feature or "-",
            row.model,
            str(row.total_tokens),
            f"${row.cost_usd:.4f}" if row.cost_usd is not None else "-",
            str(row.duration_ms),
            "[green]✓[/green]" if row.success else "[red]✗[/red]",
        )

    console.print(table)
    calls, tokens, cost = totals
    console.print(f"[bold]Total:[/bold] {calls} calls, {tokens} tokens, ${cost:.4f}")
