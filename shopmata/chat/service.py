"""Store assistant chat with tool calling."""

import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional

import litellm
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from ..config import Settings
from ..db import ChatMessage, ChatSession, Store, session_scope
from ..exceptions import NotFoundError
from ..logging import Logger, NullLogger
from ..tools import ToolRegistry

logger = logging.getLogger(__name__)

TITLE_LENGTH = 50

SYSTEM_PROMPT = """You are a helpful AI assistant for {store_name}, an inventory management system. You help store staff understand their business performance by answering questions about sales, orders, inventory, and customers.

GUIDELINES:
1. Be conversational and friendly, but concise
2. When presenting numbers, format them nicely (use currency symbols, percentages, etc.)
3. Provide context and insights when sharing data (e.g., "That's a 15% increase from yesterday")
4. If you don't have enough data to answer, say so clearly
5. Focus only on business data from this store - don't discuss other topics
6. Use the available tools to fetch real data rather than making assumptions

AVAILABLE DATA:
- Sales and revenue metrics
- Order status and counts
- Inventory levels and alerts
- Customer information and insights
- Product performance data

When users ask about performance, sales, or "how we're doing", use the get_sales_summary tool to get actual data."""


def session_title(message: str) -> str:
    message = " ".join(message.split())
    if len(message) <= TITLE_LENGTH:
        return message
    return message[:TITLE_LENGTH].rstrip() + "..."


def _tokens(response: Any) -> int:
    usage = getattr(response, "usage", None)
    if usage is None:
        return 0
    total = getattr(usage, "total_tokens", None)
    if total is None:
        total = (getattr(usage, "prompt_tokens", 0) or 0) + (getattr(usage, "completion_tokens", 0) or 0)
    return int(total or 0)


class ChatService:
    """
    Runs one chat turn for a store user.

    The model sees the store's tools in OpenAI function format. Tool calls
    are dispatched through the :class:`ToolRegistry` with the session's
    ``store_id``; results go back to the model until it answers in plain
    text or ``max_tool_rounds`` is reached, after which one last call is
    made without tools so the model has to answer.
    """

    def __init__(
        self,
        settings: Settings,
        registry: ToolRegistry,
        session_factory: sessionmaker,
        completion: Callable[..., Any] = litellm.completion,
        event_logger: Optional[Logger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings
        self.registry = registry
        self.session_factory = session_factory
        self.completion = completion
        self.event_logger = event_logger or NullLogger()
        self.clock = clock or datetime.now

    def get_or_create_session(self, session_id: Optional[str], store_id: int, user_id: int) -> ChatSession:
        """Reuse the user's session when it exists in this store, else start a new one."""
        with session_scope(self.session_factory) as session:
            if session_id:
                chat = session.scalars(
                    select(ChatSession).where(
                        ChatSession.id == session_id,
                        ChatSession.store_id == store_id,
                        ChatSession.user_id == user_id,
                    )
                ).first()
                if chat is not None:
                    return chat

            chat = ChatSession(store_id=store_id, user_id=user_id)
            session.add(chat)
            session.flush()
            logger.debug(f"Started chat session {chat.id} for user {user_id} in store {store_id}")
            return chat

    def recent_sessions(self, store_id: int, user_id: int, limit: int = 10) -> List[ChatSession]:
        with session_scope(self.session_factory) as session:
            return list(session.scalars(
                select(ChatSession)
                .where(
                    ChatSession.store_id == store_id,
                    ChatSession.user_id == user_id,
                    ChatSession.title.is_not(None),
                )
                .order_by(ChatSession.last_message_at.desc())
                .limit(limit)
            ).all())

    def system_prompt(self, store_id: int) -> str:
        with session_scope(self.session_factory) as session:
            store = session.get(Store, store_id)
            if store is None:
                raise NotFoundError(f"Store {store_id} not found")
            return SYSTEM_PROMPT.format(store_name=store.name)

    def history(self, session_id: str) -> List[Dict[str, Any]]:
        """The most recent messages of a session, oldest first."""
        with session_scope(self.session_factory) as session:
            rows = session.scalars(
                select(ChatMessage)
                .where(ChatMessage.chat_session_id == session_id)
                .order_by(ChatMessage.id.desc())
                .limit(self.settings.chat_history_limit)
            ).all()
            return [{"role": row.role, "content": row.content} for row in reversed(rows)]

    def stream_message(self, session_id: str, store_id: int, user_message: str) -> Iterator[Dict[str, Any]]:
        """
        Run a chat turn and yield events as they happen.

        Events:
            ``{"type": "token", "content": str}``
            ``{"type": "tool_use", "tool": str, "status": str}``
            ``{"type": "tool_result", "tool": str, "result": dict}``
            ``{"type": "error", "message": str}``
            ``{"type": "done", "session_id": str, "tokens_used": int}``

        Raises:
            NotFoundError: If the session does not belong to ``store_id``
        """
        self._record_user_message(session_id, store_id, user_message)

        messages: List[Dict[str, Any]] = [{"role": "system", "content": self.system_prompt(store_id)}]
        messages.extend(self.history(session_id))

        full_response = ""
        tool_calls: List[Dict[str, Any]] = []
        total_tokens = 0
        max_rounds = self.settings.max_tool_rounds

        for round_number in range(max_rounds + 1):
            kwargs: Dict[str, Any] = {
                "model": self.settings.chat_model,
                "messages": messages,
                "max_tokens": self.settings.chat_max_tokens,
            }
            if round_number < max_rounds:
                kwargs["tools"] = self.registry.openai_definitions()

            logger.debug(f"Chat round {round_number + 1}/{max_rounds + 1} for session {session_id}")
            try:
                response = self.completion(**kwargs)
            except Exception as e:
                logger.error(f"Chat completion failed for session {session_id}: {e}")
                self.event_logger.error("chat.failed", "AI service request failed", {"store_id": store_id, "error": str(e)})
                yield {"type": "error", "message": "Failed to connect to AI service"}
                break

            total_tokens += _tokens(response)
            message = response.choices[0].message

            if message.content:
                full_response += message.content
                yield {"type": "token", "content": message.content}

            if not message.tool_calls:
                break

            messages.append({
                "role": "assistant",
                "content": message.content,
                "tool_calls": [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.function.name, "arguments": call.function.arguments},
                    }
                    for call in message.tool_calls
                ],
            })

            for call in message.tool_calls:
                tool_name = call.function.name
                yield {"type": "tool_use", "tool": tool_name, "status": self.registry.description(tool_name)}

                try:
                    tool_args = json.loads(call.function.arguments or "{}")
                except json.JSONDecodeError as e:
                    logger.error(f"Failed to parse tool arguments for {tool_name}: {e}")
                    tool_args = None
                    result: Dict[str, Any] = {"error": f"Invalid JSON arguments: {e}"}
                else:
                    result = self.registry.execute(tool_name, tool_args, store_id)

                tool_calls.append({"id": call.id, "name": tool_name, "input": tool_args})
                yield {"type": "tool_result", "tool": tool_name, "result": result}

                messages.append({
                    "tool_call_id": call.id,
                    "role": "tool",
                    "name": tool_name,
                    "content": json.dumps(result, default=str),
                })

        if full_response or tool_calls:
            with session_scope(self.session_factory) as session:
                session.add(ChatMessage(
                    chat_session_id=session_id,
                    role="assistant",
                    content=full_response,
                    tool_calls=tool_calls or None,
                    tokens_used=total_tokens,
                ))

        self.event_logger.info(
            "chat.completed",
            f"Chat turn finished with {len(tool_calls)} tool call(s)",
            {"store_id": store_id, "session_id": session_id, "tokens": total_tokens},
        )
        yield {"type": "done", "session_id": session_id, "tokens_used": total_tokens}

    def send_message(self, session_id: str, store_id: int, user_message: str) -> Dict[str, Any]:
        """Run a chat turn to completion and collect its events."""
        content = ""
        tools: List[Dict[str, Any]] = []
        errors: List[str] = []
        tokens_used = 0
        for event in self.stream_message(session_id, store_id, user_message):
            if event["type"] == "token":
                content += event["content"]
            elif event["type"] == "tool_result":
                tools.append({"tool": event["tool"], "result": event["result"]})
            elif event["type"] == "error":
                errors.append(event["message"])
            elif event["type"] == "done":
                tokens_used = event["tokens_used"]
        return {"content": content, "tools": tools, "errors": errors, "tokens_used": tokens_used}

    def _record_user_message(self, session_id: str, store_id: int, content: str) -> None:
        with session_scope(self.session_factory) as session:
            chat = session.scalars(
                select(ChatSession).where(ChatSession.id == session_id, ChatSession.store_id == store_id)
            ).first()
            if chat is None:
                raise NotFoundError(f"Chat session {session_id} not found in store {store_id}")

            session.add(ChatMessage(chat_session_id=session_id, role="user", content=content))
            chat.last_message_at = self.clock()
            if not chat.title:
                chat.title = session_title(content)
