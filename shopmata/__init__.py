"""Shopmata - AI assistant for retail and pawn store data."""

__version__ = "0.1.0"

from . import db
from . import tools
from . import ai
from . import suggestions
from . import chat
from . import tables

__all__ = [
    "db",
    "tools",
    "ai",
    "suggestions",
    "chat",
    "tables",
]
