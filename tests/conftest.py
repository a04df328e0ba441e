import os

# Use litellm's bundled model cost map instead of fetching it over the network at import.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest

from shopmata.ai import AIManager, Completion, ModelClient
from shopmata.config import AIConfig
from shopmata.db import (
    Category,
    Customer,
    Inventory,
    MetalPrice,
    Order,
    OrderItem,
    Product,
    Store,
    create_db_engine,
    create_session_factory,
    init_db,
    session_scope,
)
from shopmata.logging import Logger

# A Wednesday afternoon; the week started on Monday June 10.
NOW = datetime(2024, 6, 12, 15, 0)


class RecordingLogger(Logger):
    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    def log(self, level, event, message="", data=None):
        self.events.append({"level": level, "event": event, "message": message, "data": data or {}})

    def names(self) -> List[str]:
        return [e["event"] for e in self.events]


class FakeClient(ModelClient):
    """Returns queued replies and remembers what it was asked."""

    provider = "fake"

    def __init__(self, replies: Optional[List[Any]] = None, model: str = "fake-model"):
        self.replies = list(replies or [])
        self.model = model
        self.calls: List[Dict[str, Any]] = []

    def chat(self, messages, system=None, **kwargs):
        self.calls.append({"messages": messages, "system": system, **kwargs})
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return Completion(text=reply, model=self.model, input_tokens=12, output_tokens=8)


class Seeder:
    """Inserts rows with explicit timestamps relative to ``NOW``."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def add(self, obj):
        with session_scope(self.session_factory) as session:
            session.add(obj)
        return obj

    def store(self, name: str = "Main Street Pawn", settings: Optional[Dict[str, Any]] = None) -> Store:
        return self.add(Store(name=name, settings=settings or {}))

    def category(self, store: Store, name: str) -> Category:
        return self.add(Category(store_id=store.id, name=name, created_at=NOW - timedelta(days=365)))

    def customer(
        self,
        store: Store,
        first_name: str,
        last_name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        created_at: datetime = NOW - timedelta(days=400),
    ) -> Customer:
        return self.add(Customer(
            store_id=store.id,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            created_at=created_at,
        ))

    def product(
        self,
        store: Store,
        title: str,
        price: Optional[float] = 100.0,
        cost: Optional[float] = None,
        status: str = Product.STATUS_ACTIVE,
        quantity: int = 1,
        category: Optional[Category] = None,
        sku: Optional[str] = None,
        description: Optional[str] = None,
        created_at: datetime = NOW - timedelta(days=10),
    ) -> Product:
        return self.add(Product(
            store_id=store.id,
            title=title,
            price=price,
            cost=cost,
            status=status,
            quantity=quantity,
            category_id=category.id if category else None,
            sku=sku,
            description=description,
            created_at=created_at,
            updated_at=created_at,
        ))

    def order(
        self,
        store: Store,
        total: float,
        created_at: datetime = NOW - timedelta(hours=2),
        status: str = Order.STATUS_COMPLETED,
        customer: Optional[Customer] = None,
        items=(),
        order_number: Optional[str] = None,
        deleted_at: Optional[datetime] = None,
    ) -> Order:
        """``items`` is a sequence of ``(product, price, quantity)``."""
        order = Order(
            store_id=store.id,
            customer_id=customer.id if customer else None,
            total=total,
            status=status,
            order_number=order_number,
            created_at=created_at,
            deleted_at=deleted_at,
        )
        for product, price, quantity in items:
            order.items.append(OrderItem(
                product_id=product.id if product else None,
                title=product.title if product else None,
                price=price,
                quantity=quantity,
                created_at=created_at,
            ))
        return self.add(order)

    def inventory(self, store: Store, product: Product, quantity: int, reorder_point: Optional[int] = None) -> Inventory:
        return self.add(Inventory(
            store_id=store.id, product_id=product.id, quantity=quantity, reorder_point=reorder_point
        ))

    def metal_price(self, metal: str, per_gram: float, effective_at: datetime = NOW - timedelta(hours=1)) -> MetalPrice:
        return self.add(MetalPrice(
            metal=metal,
            price_per_gram=per_gram,
            price_per_ounce=per_gram * MetalPrice.GRAMS_PER_TROY_OUNCE,
            effective_at=effective_at,
        ))


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)


@pytest.fixture
def store(seed):
    return seed.store()


@pytest.fixture
def other_store(seed):
    return seed.store(name="Uptown Jewelers")


@pytest.fixture
def events():
    return RecordingLogger()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def ai(session_factory, fake_client, events):
    """AI manager with credentials whose every call goes to ``fake_client``."""
    config = AIConfig(provider="anthropic", api_key="test-key", model="claude-test")
    return AIManager(config, session_factory, client_factory=lambda **kwargs: fake_client, event_logger=events)
