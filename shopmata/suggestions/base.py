"""Shared plumbing for the suggestion generators."""

import logging
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from ..ai import AIManager, AIResponse
from ..db import AiSuggestion, Product, session_scope
from ..exceptions import AIResponseError, NotFoundError

logger = logging.getLogger(__name__)

PRODUCT_TYPE = "product"

ReplyT = TypeVar("ReplyT", bound="ModelReply")


class ModelReply(BaseModel):
    """Base for the JSON objects the generators ask the model for."""

    model_config = ConfigDict(extra="ignore")


def parse_reply(response: AIResponse, reply_model: Type[ReplyT]) -> ReplyT:
    """
    Parse and validate a JSON model response.

    Raises:
        AIResponseError: If the response is not JSON or does not match ``reply_model``
    """
    data = response.to_json()
    try:
        return reply_model.model_validate(data)
    except ValidationError as e:
        fields = sorted({".".join(map(str, err["loc"])) for err in e.errors() if err.get("loc")})
        logger.warning(f"Rejected {reply_model.__name__} from {response.model}: bad fields {fields}")
        raise AIResponseError(
            f"Model response is missing or has invalid fields: {', '.join(fields)}",
            content=response.content,
        ) from e


class SuggestionGenerator:
    """Base for services that turn an AI response into an :class:`AiSuggestion`."""

    def __init__(self, ai: AIManager):
        self.ai = ai

    @property
    def session_factory(self):
        return self.ai.session_factory

    def load_product(self, session: Session, product_id: int, store_id: int) -> Product:
        product = session.scalars(
            select(Product)
            .options(joinedload(Product.category))
            .where(Product.id == product_id, Product.store_id == store_id)
        ).first()
        if product is None:
            raise NotFoundError(f"Product {product_id} not found in store {store_id}")
        return product

    def save_suggestion(
        self,
        product: Product,
        type: str,
        suggested_content: str,
        response: AIResponse,
        original_content: Optional[str] = None,
        platform: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AiSuggestion:
        """Persist a pending suggestion for ``product``."""
        meta = dict(metadata or {})
        meta.update({"tokens_used": response.total_tokens(), "model": response.model})

        suggestion = AiSuggestion(
            store_id=product.store_id,
            suggestable_type=PRODUCT_TYPE,
            suggestable_id=product.id,
            type=type,
            platform=platform,
            original_content=original_content,
            suggested_content=suggested_content,
            meta=meta,
        )
        with session_scope(self.session_factory) as session:
            session.add(suggestion)

        logger.info(f"Created {type} suggestion {suggestion.id} for product {product.id}")
        self.ai.event_logger.info(
            "suggestion.created",
            f"{type} suggestion ready",
            {"store_id": product.store_id, "model": response.model, "tokens": response.total_tokens()},
        )
        return suggestion


def product_facts(product: Product, include_description: bool = True) -> str:
    """Lines describing a product for a prompt."""
    lines = [f"Title: {product.title}"]
    if product.brand:
        lines.append(f"Brand: {product.brand}")
    if product.category:
        lines.append(f"Category: {product.category.name}")
    if include_description and product.description:
        lines.append(f"Current Description: {product.description}")
    if product.price is not None:
        lines.append(f"Price: ${product.price:.2f}")
    if product.sku:
        lines.append(f"SKU: {product.sku}")
    return "\n".join(lines) + "\n"
