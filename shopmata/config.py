"""Runtime configuration.

Configuration is read from the environment once and then passed explicitly
into the objects that need it. Per-store AI overrides are applied with
:meth:`AIConfig.with_store_overrides` when a request for that store starts.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4o",
    "litellm": "anthropic/claude-sonnet-4-20250514",
}

API_KEY_ENV = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


@dataclass
class AIConfig:
    """Configuration for the AI provider used by prompt services."""
    provider: str = "anthropic"
    model: Optional[str] = None
    api_key: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 2048
    timeout: float = 120.0

    def __post_init__(self):
        self.provider = self.provider.lower()
        if not self.model:
            self.model = DEFAULT_MODELS.get(self.provider)

    @classmethod
    def from_env(cls) -> "AIConfig":
        """Build configuration from ``SHOPMATA_AI_*`` and provider key variables."""
        provider = os.getenv("SHOPMATA_AI_PROVIDER", "anthropic").lower()
        key_var = API_KEY_ENV.get(provider)
        return cls(
            provider=provider,
            model=os.getenv("SHOPMATA_AI_MODEL") or None,
            api_key=os.getenv(key_var) if key_var else None,
            temperature=float(os.getenv("SHOPMATA_AI_TEMPERATURE", "0.7")),
            max_tokens=int(os.getenv("SHOPMATA_AI_MAX_TOKENS", "2048")),
            timeout=float(os.getenv("SHOPMATA_AI_TIMEOUT", "120")),
        )

    def with_store_overrides(self, store_settings: Optional[Mapping[str, Any]]) -> "AIConfig":
        """
        Return a copy with the store's ``settings["ai"]`` overrides applied.

        Switching provider without naming a model resets the model to that
        provider's default; a store key only replaces the global key when set.
        """
        overrides = dict((store_settings or {}).get("ai") or {})
        if not overrides:
            return self

        provider = str(overrides.get("provider") or self.provider).lower()
        model = overrides.get("model")
        if not model:
            model = self.model if provider == self.provider else DEFAULT_MODELS.get(provider)

        return replace(
            self,
            provider=provider,
            model=model,
            api_key=overrides.get("api_key") or (self.api_key if provider == self.provider else None),
            temperature=float(overrides.get("temperature", self.temperature)),
            max_tokens=int(overrides.get("max_tokens", self.max_tokens)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (the API key is never included)."""
        return {
            "provider": self.provider,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
            "has_api_key": bool(self.api_key),
        }


@dataclass
class Settings:
    """Top-level application settings."""
    database_url: str = "sqlite:///shopmata.db"
    ai: AIConfig = field(default_factory=AIConfig)
    chat_model: str = "anthropic/claude-sonnet-4-20250514"
    chat_max_tokens: int = 2048
    chat_history_limit: int = 10
    max_tool_rounds: int = 5
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``SHOPMATA_*`` environment variables."""
        return cls(
            database_url=os.getenv("SHOPMATA_DATABASE_URL", "sqlite:///shopmata.db"),
            ai=AIConfig.from_env(),
            chat_model=os.getenv("SHOPMATA_CHAT_MODEL", "anthropic/claude-sonnet-4-20250514"),
            chat_max_tokens=int(os.getenv("SHOPMATA_CHAT_MAX_TOKENS", "2048")),
            chat_history_limit=int(os.getenv("SHOPMATA_CHAT_HISTORY_LIMIT", "10")),
            max_tool_rounds=int(os.getenv("SHOPMATA_MAX_TOOL_ROUNDS", "5")),
            log_level=os.getenv("SHOPMATA_LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("SHOPMATA_LOG_FILE") or None,
        )
