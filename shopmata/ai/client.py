"""Provider clients used by the AI manager."""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..config import DEFAULT_MODELS


@dataclass
class Completion:
    """Text returned by a provider plus the token usage it reported."""
    text: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


class ModelClient(ABC):
    """Abstract base class for AI model clients."""

    provider: str = ""
    model: str = ""

    @abstractmethod
    def chat(self, messages: List[Dict[str, str]], system: Optional[str] = None, **kwargs) -> Completion:
        """
        Generate a response from chat messages.

        Args:
            messages: List of message dictionaries with 'role' and 'content'
            system: Optional system prompt
            **kwargs: Additional model parameters (temperature, max_tokens, ...)

        Returns:
            Completion with text and token usage
        """
        pass

    def generate(self, prompt: str, system: Optional[str] = None, **kwargs) -> Completion:
        """Generate a response to a single user prompt."""
        return self.chat([{"role": "user", "content": prompt}], system=system, **kwargs)


class AnthropicClient(ModelClient):
    """Client for Anthropic Claude models."""

    provider = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODELS["anthropic"],
        timeout: float = 120.0,
    ):
        """
        Initialize Anthropic client.

        Args:
            api_key: API key (defaults to ANTHROPIC_API_KEY env var)
            model: Model identifier
            timeout: Request timeout in seconds
        """
        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic package not installed. "
                "Install it with: pip install anthropic"
            )

        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError("API key required (set ANTHROPIC_API_KEY or pass api_key)")

        self.model = model
        self.client = anthropic.Anthropic(api_key=self.api_key, timeout=timeout)

    def chat(self, messages: List[Dict[str, str]], system: Optional[str] = None, **kwargs) -> Completion:
        """Generate response from chat messages."""
        max_tokens = kwargs.pop("max_tokens", 4096)
        temperature = kwargs.pop("temperature", 1.0)
        if system:
            kwargs["system"] = system

        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=messages,
            **kwargs,
        )

        text = "".join(block.text for block in response.content if getattr(block, "type", "text") == "text")
        return Completion(
            text=text,
            model=getattr(response, "model", self.model),
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )


class OpenAIClient(ModelClient):
    """Client for OpenAI models."""

    provider = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODELS["openai"],
        timeout: float = 120.0,
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: API key (defaults to OPENAI_API_KEY env var)
            model: Model identifier
            timeout: Request timeout in seconds
        """
        try:
            import openai
        except ImportError:
            raise ImportError(
                "openai package not installed. Install it with: pip install openai"
            )

        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError("API key required (set OPENAI_API_KEY or pass api_key)")

        self.model = model
        self.client = openai.OpenAI(api_key=self.api_key, timeout=timeout)

    def chat(self, messages: List[Dict[str, str]], system: Optional[str] = None, **kwargs) -> Completion:
        """Generate response from chat messages."""
        temperature = kwargs.pop("temperature", 1.0)
        max_tokens = kwargs.pop("max_tokens", None)

        if system:
            messages = [{"role": "system", "content": system}, *messages]

        completion_kwargs = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            **kwargs,
        }

        if max_tokens:
            completion_kwargs["max_tokens"] = max_tokens

        response = self.client.chat.completions.create(**completion_kwargs)

        usage = response.usage
        return Completion(
            text=response.choices[0].message.content or "",
            model=getattr(response, "model", self.model),
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )


class LiteLLMClient(ModelClient):
    """Client routing through litellm (any provider/model string litellm supports)."""

    provider = "litellm"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODELS["litellm"],
        timeout: float = 120.0,
    ):
        import litellm

        self._completion = litellm.completion
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def chat(self, messages: List[Dict[str, str]], system: Optional[str] = None, **kwargs) -> Completion:
        """Generate response from chat messages."""
        if system:
            messages = [{"role": "system", "content": system}, *messages]

        completion_kwargs = {
            "model": self.model,
            "messages": messages,
            "timeout": self.timeout,
            **kwargs,
        }
        if self.api_key:
            completion_kwargs["api_key"] = self.api_key

        response = self._completion(**completion_kwargs)

        usage = getattr(response, "usage", None)
        return Completion(
            text=response.choices[0].message.content or "",
            model=getattr(response, "model", None) or self.model,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )


CLIENTS = {
    "anthropic": AnthropicClient,
    "openai": OpenAIClient,
    "litellm": LiteLLMClient,
}


def create_client(
    provider: str = "anthropic",
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    timeout: float = 120.0,
) -> ModelClient:
    """
    Factory function to create a model client.

    Args:
        provider: Model provider ('anthropic', 'openai' or 'litellm')
        api_key: Optional API key
        model: Optional model identifier
        timeout: Request timeout in seconds

    Returns:
        ModelClient instance
    """
    client_cls = CLIENTS.get(provider.lower())
    if client_cls is None:
        raise ValueError(f"Unknown provider: {provider}. Use one of: {', '.join(CLIENTS)}")

    kwargs = {"api_key": api_key, "timeout": timeout}
    if model:
        kwargs["model"] = model
    return client_cls(**kwargs)
