"""Chat command."""

import json
from typing import Optional

import typer

from ..chat import ChatService
from ..exceptions import ShopmataError
from ..tools import create_default_registry
from .context import console, event_logger, load_settings, open_database


def chat_command(
    message: str = typer.Argument(..., help="Message for the store assistant"),
    store_id: int = typer.Option(..., "--store-id", help="Store the conversation belongs to"),
    user_id: int = typer.Option(..., "--user-id", help="User sending the message"),
    session_id: Optional[str] = typer.Option(None, "--session-id", help="Continue an existing session"),
    model: Optional[str] = typer.Option(None, help="Model identifier (litellm format)"),
    show_results: bool = typer.Option(False, "--results", help="Print raw tool results"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show tool and model events"),
):
    """Send one message to the store assistant."""
    settings = load_settings()
    if model:
        settings.chat_model = model
    session_factory = open_database(settings)
    events = event_logger(settings, verbose)

    service = ChatService(
        settings,
        create_default_registry(session_factory, event_logger=events),
        session_factory,
        event_logger=events,
    )

    try:
        chat = service.get_or_create_session(session_id, store_id, user_id)
        for event in service.stream_message(chat.id, store_id, message):
            if event["type"] == "token":
                console.print(event["content"], end="", markup=False)
            elif event["type"] == "tool_use":
                console.print(f"\n[dim]{event['status']}[/dim]")
            elif event["type"] == "tool_result" and show_results:
                console.print_json(json.dumps(event["result"], default=str))
            elif event["type"] == "error":
                console.print(f"\n[red]✗[/red] {event['message']}")
            elif event["type"] == "done":
                console.print(f"\n\n[dim]session {event['session_id']} · {event['tokens_used']} tokens[/dim]")
    except ShopmataError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
