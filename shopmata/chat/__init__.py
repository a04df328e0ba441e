"""Store assistant chat."""

from .service import ChatService, session_title

__all__ = ["ChatService", "session_title"]
