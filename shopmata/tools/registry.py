"""Tool registry and dispatch for the chat assistant."""

import logging
import time
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import sessionmaker

from ..exceptions import ToolNotFoundError, ToolRegistrationError
from ..logging import Logger, NullLogger
from .base import ChatTool, Clock

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Name -> tool map that the chat loop dispatches through.

    Each call is executed once. Failures become ``{"error": ...}`` results so
    the model can read them and recover.
    """

    def __init__(self, event_logger: Optional[Logger] = None):
        self._tools: Dict[str, ChatTool] = {}
        self.event_logger = event_logger or NullLogger()

    def register(self, tool: ChatTool) -> ChatTool:
        if not tool.name:
            raise ToolRegistrationError(f"{type(tool).__name__} has no name")
        if tool.name in self._tools:
            raise ToolRegistrationError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool
        return tool

    def has(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> ChatTool:
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def names(self) -> List[str]:
        return list(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self):
        return iter(self._tools.values())

    def definitions(self) -> List[Dict[str, Any]]:
        return [tool.definition() for tool in self._tools.values()]

    def openai_definitions(self) -> List[Dict[str, Any]]:
        return [tool.openai_definition() for tool in self._tools.values()]

    def description(self, name: str) -> str:
        """Short status line shown while the tool runs."""
        tool = self._tools.get(name)
        return tool.status_message if tool else "Processing..."

    def execute(self, name: str, params: Optional[Mapping[str, Any]], store_id: int) -> Dict[str, Any]:
        """
        Execute a tool by name for a store.

        Args:
            name: Registered tool name
            params: Arguments supplied by the model
            store_id: Store the call is scoped to

        Returns:
            The tool result, or ``{"error": ...}``
        """
        tool = self._tools.get(name)
        if tool is None:
            self.event_logger.warning(
                "tool.unknown", f"Unknown tool requested: {name}", {"tool": name, "store_id": store_id}
            )
            return {"error": f"Unknown tool: {name}"}

        self.event_logger.info(
            "tool.started", tool.status_message, {"tool": name, "store_id": store_id}
        )
        started = time.time()

        try:
            result = tool.execute(params, store_id)
        except Exception as e:
            logger.exception(f"Tool {name} failed for store {store_id}")
            self.event_logger.error(
                "tool.failed",
                f"Tool {name} failed",
                {"tool": name, "store_id": store_id, "error": str(e)},
            )
            return {"error": f"Tool {name} failed: {e}"}

        data = {"tool": name, "store_id": store_id, "duration_ms": int((time.time() - started) * 1000)}
        if "error" in result:
            data["error"] = result["error"]
        self.event_logger.info("tool.completed", f"Tool {name} completed", data)
        return result


def create_default_registry(
    session_factory: sessionmaker,
    clock: Optional[Clock] = None,
    event_logger: Optional[Logger] = None,
) -> ToolRegistry:
    """Registry with every built-in tool registered."""
    from . import BUILTIN_TOOLS
    from .send_report import SendReportTool

    registry = ToolRegistry(event_logger=event_logger)
    for tool_cls in BUILTIN_TOOLS:
        registry.register(tool_cls(session_factory, clock=clock))
    registry.register(SendReportTool(session_factory, clock=clock, registry=registry))
    return registry
