"""AI manager: provider selection, prompt round trips and usage accounting."""

import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import litellm
from sqlalchemy.orm import sessionmaker

from ..config import AIConfig
from ..db import AiUsageLog, Store, session_scope
from ..exceptions import AIProviderError
from ..logging import Logger, NullLogger
from .client import Completion, ModelClient, create_client
from .response import AIResponse

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., ModelClient]

JSON_INSTRUCTIONS = (
    "Respond with a single JSON object that matches this JSON schema. "
    "Do not include any text outside the JSON.\n\n{schema}"
)


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> Optional[float]:
    """USD cost from litellm's price table, or None for models it does not know."""
    try:
        prompt_cost, completion_cost = litellm.cost_per_token(
            model=model, prompt_tokens=input_tokens, completion_tokens=output_tokens
        )
    except Exception as e:
        logger.debug(f"No cost data for model {model}: {e}")
        return None
    return round(prompt_cost + completion_cost, 6)


class AIManager:
    """
    Runs prompts against the configured provider for a store.

    Store-level overrides in ``Store.settings["ai"]`` are resolved once per
    store and reused until :meth:`clear`. Every call, successful or not,
    writes an :class:`AiUsageLog` row.
    """

    def __init__(
        self,
        config: AIConfig,
        session_factory: sessionmaker,
        client_factory: ClientFactory = create_client,
        event_logger: Optional[Logger] = None,
    ):
        self.config = config
        self.session_factory = session_factory
        self.client_factory = client_factory
        self.event_logger = event_logger or NullLogger()
        self._store_configs: Dict[int, AIConfig] = {}

    def for_store(self, store_id: Optional[int]) -> AIConfig:
        """Configuration with the store's overrides applied."""
        if store_id is None:
            return self.config
        if store_id not in self._store_configs:
            with session_scope(self.session_factory) as session:
                store = session.get(Store, store_id)
                settings = dict(store.settings or {}) if store else {}
            self._store_configs[store_id] = self.config.with_store_overrides(settings)
        return self._store_configs[store_id]

    def clear(self, store_id: Optional[int] = None) -> None:
        """Forget resolved store overrides so the next call re-reads ``Store.settings``."""
        if store_id is None:
            self._store_configs.clear()
        else:
            self._store_configs.pop(store_id, None)

    def has_credentials(self, store_id: Optional[int] = None) -> bool:
        config = self.for_store(store_id)
        # litellm reads provider keys from the environment itself
        return config.provider == "litellm" or bool(config.api_key)

    def chat_with_system(
        self,
        system: str,
        user: str,
        store_id: Optional[int] = None,
        feature: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AIResponse:
        """
        Send a system + user prompt and return the model's reply.

        Raises:
            AIProviderError: If the provider call fails
        """
        return self.chat(
            [{"role": "user", "content": user}],
            system=system,
            store_id=store_id,
            feature=feature,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    def generate_json(
        self,
        prompt: str,
        schema: Dict[str, Any],
        store_id: Optional[int] = None,
        feature: Optional[str] = None,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AIResponse:
        """
        Ask for a JSON object matching ``schema``.

        Call :meth:`AIResponse.to_json` on the result to parse it.
        """
        instructions = JSON_INSTRUCTIONS.format(schema=json.dumps(schema, indent=2))
        system_prompt = f"{system}\n\n{instructions}" if system else instructions
        return self.chat(
            [{"role": "user", "content": prompt}],
            system=system_prompt,
            store_id=store_id,
            feature=feature,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    def chat(
        self,
        messages: List[Dict[str, str]],
        system: Optional[str] = None,
        store_id: Optional[int] = None,
        feature: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> AIResponse:
        config = self.for_store(store_id)
        started = time.time()

        self.event_logger.debug(
            "ai.request",
            f"Calling {config.provider}",
            {"store_id": store_id, "model": config.model, "feature": feature},
        )

        try:
            client = self.client_factory(
                provider=config.provider,
                api_key=config.api_key,
                model=config.model,
                timeout=config.timeout,
            )
            completion: Completion = client.chat(
                messages,
                system=system,
                temperature=config.temperature if temperature is None else temperature,
                max_tokens=config.max_tokens if max_tokens is None else max_tokens,
            )
        except Exception as e:
            duration_ms = int((time.time() - started) * 1000)
            logger.error(f"AI request failed for store {store_id} ({config.provider}/{config.model}): {e}")
            self._log_usage(config, store_id, feature, duration_ms, success=False, error=str(e))
            self.event_logger.error(
                "ai.failed",
                f"{config.provider} request failed",
                {"store_id": store_id, "model": config.model, "error": str(e)},
            )
            raise AIProviderError(config.provider, str(e)) from e

        duration_ms = int((time.time() - started) * 1000)
        self._log_usage(
            config,
            store_id,
            feature,
            duration_ms,
            success=True,
            model=completion.model,
            input_tokens=completion.input_tokens,
            output_tokens=completion.output_tokens,
        )
        self.event_logger.info(
            "ai.request",
            f"{feature or 'chat'} completed",
            {
                "store_id": store_id,
                "model": completion.model,
                "tokens": completion.input_tokens + completion.output_tokens,
                "duration_ms": duration_ms,
            },
        )

        return AIResponse(
            content=completion.text,
            model=completion.model,
            provider=config.provider,
            input_tokens=completion.input_tokens,
            output_tokens=completion.output_tokens,
            duration_ms=duration_ms,
        )

    def _log_usage(
        self,
        config: AIConfig,
        store_id: Optional[int],
        feature: Optional[str],
        duration_ms: int,
        success: bool,
        model: Optional[str] = None,
        input_tokens: int = 0,
        output_tokens: int = 0,
        error: Optional[str] = None,
    ) -> None:
        model = model or config.model or "unknown"
        cost = estimate_cost(model, input_tokens, output_tokens) if success else None
        with session_scope(self.session_factory) as session:
            session.add(AiUsageLog(
                store_id=store_id,
                provider=config.provider,
                model=model,
                feature=feature,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                cost_usd=cost,
                duration_ms=duration_ms,
                success=success,
                error=error,
            ))
