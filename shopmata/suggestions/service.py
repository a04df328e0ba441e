"""Review queue for AI suggestions."""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from ..db import AiSuggestion, Category, Product, session_scope
from ..exceptions import NotFoundError, ShopmataError
from ..logging import Logger, NullLogger
from .base import PRODUCT_TYPE

logger = logging.getLogger(__name__)


def _apply_description(session: Session, product: Product, suggestion: AiSuggestion) -> None:
    product.description = suggestion.suggested_content


def _apply_title(session: Session, product: Product, suggestion: AiSuggestion) -> None:
    product.title = suggestion.suggested_content


def _apply_tags(session: Session, product: Product, suggestion: AiSuggestion) -> None:
    product.tags = list(suggestion.meta.get("tags") or [])


def _apply_price(session: Session, product: Product, suggestion: AiSuggestion) -> None:
    price = suggestion.meta.get("suggested_price")
    if price is None:
        raise ShopmataError(f"Suggestion {suggestion.id} has no suggested price")
    product.price = float(price)


def _apply_category(session: Session, product: Product, suggestion: AiSuggestion) -> None:
    category_id = suggestion.meta.get("suggested_category_id")
    category = session.get(Category, category_id) if category_id is not None else None
    if category is None or category.store_id != product.store_id:
        raise NotFoundError(f"Category {category_id} not found in store {product.store_id}")
    product.category_id = category.id


APPLIERS = {
    "description": _apply_description,
    "title": _apply_title,
    "tags": _apply_tags,
    "price": _apply_price,
    "category": _apply_category,
}


class SuggestionService:
    """Lists, accepts and rejects suggestions within one store."""

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Optional[Callable[[], datetime]] = None,
        event_logger: Optional[Logger] = None,
    ):
        self.session_factory = session_factory
        self.clock = clock or datetime.now
        self.event_logger = event_logger or NullLogger()

    def pending(self, store_id: int, type: Optional[str] = None, limit: int = 50) -> List[AiSuggestion]:
        stmt = select(AiSuggestion).where(
            AiSuggestion.store_id == store_id, AiSuggestion.status == AiSuggestion.STATUS_PENDING
        )
        if type:
            stmt = stmt.where(AiSuggestion.type == type)
        stmt = stmt.order_by(AiSuggestion.created_at.desc(), AiSuggestion.id.desc()).limit(limit)
        with session_scope(self.session_factory) as session:
            return list(session.scalars(stmt).all())

    def get(self, suggestion_id: int, store_id: int) -> AiSuggestion:
        with session_scope(self.session_factory) as session:
            return self._load(session, suggestion_id, store_id)

    def accept(self, suggestion_id: int, store_id: int, apply: bool = True) -> AiSuggestion:
        """
        Mark a suggestion accepted.

        With ``apply`` the suggested content is written to the product for
        the suggestion types that map onto a product column; other types are
        only marked.
        """
        with session_scope(self.session_factory) as session:
            suggestion = self._load(session, suggestion_id, store_id)
            applied = False
            applier = APPLIERS.get(suggestion.type)
            if apply and applier and suggestion.suggestable_type == PRODUCT_TYPE:
                product = session.scalars(
                    select(Product).where(Product.id == suggestion.suggestable_id, Product.store_id == store_id)
                ).first()
                if product is None:
                    raise NotFoundError(f"Product {suggestion.suggestable_id} not found in store {store_id}")
                applier(session, product, suggestion)
                applied = True
            self._review(suggestion, AiSuggestion.STATUS_ACCEPTED)

        logger.info(f"Accepted suggestion {suggestion_id} for store {store_id} (applied={applied})")
        self.event_logger.info(
            "suggestion.accepted",
            f"{suggestion.type} suggestion accepted",
            {"store_id": store_id, "suggestion_id": suggestion_id, "applied": applied},
        )
        return suggestion

    def reject(self, suggestion_id: int, store_id: int) -> AiSuggestion:
        with session_scope(self.session_factory) as session:
            suggestion = self._load(session, suggestion_id, store_id)
            self._review(suggestion, AiSuggestion.STATUS_REJECTED)

        logger.info(f"Rejected suggestion {suggestion_id} for store {store_id}")
        self.event_logger.info(
            "suggestion.rejected",
            f"{suggestion.type} suggestion rejected",
            {"store_id": store_id, "suggestion_id": suggestion_id},
        )
        return suggestion

    def _load(self, session: Session, suggestion_id: int, store_id: int) -> AiSuggestion:
        suggestion = session.scalars(
            select(AiSuggestion).where(AiSuggestion.id == suggestion_id, AiSuggestion.store_id == store_id)
        ).first()
        if suggestion is None:
            raise NotFoundError(f"Suggestion {suggestion_id} not found in store {store_id}")
        return suggestion

    def _review(self, suggestion: AiSuggestion, status: str) -> None:
        if suggestion.status != AiSuggestion.STATUS_PENDING:
            raise ShopmataError(f"Suggestion {suggestion.id} was already {suggestion.status}")
        suggestion.status = status
        suggestion.reviewed_at = self.clock()
