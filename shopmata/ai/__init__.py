"""AI provider access for prompt-based features."""

from .client import (
    Completion,
    ModelClient,
    AnthropicClient,
    OpenAIClient,
    LiteLLMClient,
    create_client,
)
from .manager import AIManager, estimate_cost
from .response import AIResponse, strip_markdown_fences

__all__ = [
    "Completion",
    "ModelClient",
    "AnthropicClient",
    "OpenAIClient",
    "LiteLLMClient",
    "create_client",
    "AIManager",
    "AIResponse",
    "estimate_cost",
    "strip_markdown_fences",
]
