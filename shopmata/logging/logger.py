"""Structured event logging for shopmata.

Library code logs free-form diagnostics through ``logging.getLogger(__name__)``.
Events that describe what the assistant did for a store (a tool ran, a model
was called, a chat turn finished) go through a :class:`Logger` so they can be
rendered on the console or kept as JSON lines.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from enum import Enum
from datetime import datetime
import json
import sys


class LogLevel(str, Enum):
    """Log severity levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


LEVEL_ORDER = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
    LogLevel.CRITICAL: 4,
}


class Logger(ABC):
    """Abstract base class for event logging."""

    @abstractmethod
    def log(
        self,
        level: LogLevel,
        event: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an event with optional data.

        Args:
            level: Log severity level
            event: Dotted event name, e.g. ``tool.completed``
            message: Human-readable message
            data: Optional metadata dictionary
        """
        pass

    def debug(self, event: str, message: str = "", data: Optional[Dict[str, Any]] = None) -> None:
        """Log debug event."""
        self.log(LogLevel.DEBUG, event, message, data)

    def info(self, event: str, message: str = "", data: Optional[Dict[str, Any]] = None) -> None:
        """Log info event."""
        self.log(LogLevel.INFO, event, message, data)

    def warning(self, event: str, message: str = "", data: Optional[Dict[str, Any]] = None) -> None:
        """Log warning event."""
        self.log(LogLevel.WARNING, event, message, data)

    def error(self, event: str, message: str = "", data: Optional[Dict[str, Any]] = None) -> None:
        """Log error event."""
        self.log(LogLevel.ERROR, event, message, data)

    def critical(self, event: str, message: str = "", data: Optional[Dict[str, Any]] = None) -> None:
        """Log critical event."""
        self.log(LogLevel.CRITICAL, event, message, data)


class ConsoleLogger(Logger):
    """Console logger with colored output and one line per event."""

    COLORS = {
        LogLevel.DEBUG: "\033[36m",      # Cyan
        LogLevel.INFO: "\033[32m",       # Green
        LogLevel.WARNING: "\033[33m",    # Yellow
        LogLevel.ERROR: "\033[31m",      # Red
        LogLevel.CRITICAL: "\033[35m",   # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    ICONS = {
        "chat.started": "💬",
        "chat.completed": "✅",
        "chat.failed": "❌",
        "tool.started": "🔧",
        "tool.completed": "✓",
        "tool.failed": "⚠️",
        "tool.unknown": "❓",
        "ai.request": "🤖",
        "ai.failed": "❌",
        "suggestion.created": "✨",
        "suggestion.accepted": "👍",
        "suggestion.rejected": "👎",
        "template.created": "🧩",
        "report.queued": "📧",
    }

    def __init__(
        self,
        min_level: LogLevel = LogLevel.INFO,
        colored: bool = True,
        show_timestamp: bool = False,
        show_data: bool = True,
    ):
        """
        Initialize console logger.

        Args:
            min_level: Minimum log level to display
            colored: Whether to use colored output
            show_timestamp: Whether to show timestamps
            show_data: Whether to show the key fields of ``data``
        """
        self.min_level = min_level
        self.colored = colored and sys.stdout.isatty()
        self.show_timestamp = show_timestamp
        self.show_data = show_data

    def log(
        self,
        level: LogLevel,
        event: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log an event to the console."""
        if LEVEL_ORDER[level] < LEVEL_ORDER[self.min_level]:
            return

        parts = []

        if self.show_timestamp:
            timestamp = datetime.now().strftime("%H:%M:%S")
            parts.append(self._dim(timestamp))

        parts.append(self.ICONS.get(event, "•"))

        text = message or event
        if self.colored:
            text = f"{self.COLORS.get(level, '')}{text}{self.RESET}"
        parts.append(text)

        if data and self.show_data:
            key_data = self._extract_key_data(data)
            if key_data:
                parts.append(self._dim(f"({key_data})"))

        # Chat turns are top-level; tools and model calls are nested under them
        indent = "" if event.startswith("chat.") else "  "
        print(indent + " ".join(parts))

    def _dim(self, text: str) -> str:
        return f"{self.DIM}{text}{self.RESET}" if self.colored else text

    def _extract_key_data(self, data: Dict[str, Any]) -> str:
        """Extract the most useful fields for a one-line display."""
        priority = ["store_id", "tool", "model", "tokens", "duration_ms", "error"]

        key_items = []
        for key in priority:
            if key in data:
                value = data[key]
                if isinstance(value, str) and len(value) > 50:
                    value = value[:47] + "..."
                key_items.append(f"{key}={value}")

        return ", ".join(key_items)


class NullLogger(Logger):
    """Logger that does nothing (for tests or when events are not wanted)."""

    def log(
        self,
        level: LogLevel,
        event: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        """Do nothing."""
        pass


class FileLogger(Logger):
    """Logger that appends JSON lines to a file."""

    def __init__(self, file_path: str, min_level: LogLevel = LogLevel.INFO):
        """
        Initialize file logger.

        Args:
            file_path: Path to log file
            min_level: Minimum log level to write
        """
        self.file_path = file_path
        self.min_level = min_level

    def log(
        self,
        level: LogLevel,
        event: str,
        message: str = "",
        data: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log an event to file as JSON."""
        if LEVEL_ORDER[level] < LEVEL_ORDER[self.min_level]:
            return

        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level.value,
            "event": event,
            "message": message,
        }

        if data:
            log_entry["data"] = data

        with open(self.file_path, 'a') as f:
            f.write(json.dumps(log_entry, default=str) + '\n')
