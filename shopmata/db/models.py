"""ORM models for store data, AI suggestions, usage logs and chat history."""

import uuid
from datetime import datetime, date
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    select,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)


class Store(TimestampMixin, Base):
    __tablename__ = "stores"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    settings: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)


class Category(TimestampMixin, Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    slug: Mapped[Optional[str]] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    parent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"))
    template_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_templates.id"))


class Customer(TimestampMixin, Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(50))

    notes: Mapped[List["CustomerNote"]] = relationship(back_populates="customer")

    @property
    def name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p).strip()


class CustomerNote(TimestampMixin, Base):
    __tablename__ = "customer_notes"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"))
    content: Mapped[str] = mapped_column(Text)

    customer: Mapped[Customer] = relationship(back_populates="notes")


class Product(TimestampMixin, Base):
    __tablename__ = "products"

    STATUS_DRAFT = "draft"
    STATUS_ACTIVE = "active"
    STATUS_SOLD = "sold"
    STATUS_IN_REPAIR = "in_repair"
    STATUS_IN_MEMO = "in_memo"
    STATUS_ARCHIVE = "archive"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"))
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    sku: Mapped[Optional[str]] = mapped_column(String(100))
    brand: Mapped[Optional[str]] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(String(50), default=STATUS_ACTIVE)
    price: Mapped[Optional[float]] = mapped_column(Float)
    cost: Mapped[Optional[float]] = mapped_column(Float)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    tags: Mapped[Optional[List[str]]] = mapped_column(JSON)

    category: Mapped[Optional[Category]] = relationship()


class Warehouse(TimestampMixin, Base):
    __tablename__ = "warehouses"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))


class Inventory(TimestampMixin, Base):
    __tablename__ = "inventory"

    DEFAULT_REORDER_POINT = 5

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"))
    warehouse_id: Mapped[Optional[int]] = mapped_column(ForeignKey("warehouses.id"))
    variant: Mapped[Optional[str]] = mapped_column(String(255))
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    reorder_point: Mapped[Optional[int]] = mapped_column(Integer)

    product: Mapped[Product] = relationship()
    warehouse: Mapped[Optional[Warehouse]] = relationship()


class Order(TimestampMixin, Base):
    __tablename__ = "orders"

    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_PROCESSING = "processing"
    STATUS_SHIPPED = "shipped"
    STATUS_DELIVERED = "delivered"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"
    STATUS_REFUNDED = "refunded"

    PAID_STATUSES = (
        STATUS_CONFIRMED,
        STATUS_PROCESSING,
        STATUS_SHIPPED,
        STATUS_DELIVERED,
        STATUS_COMPLETED,
    )
    FULFILLED_STATUSES = (STATUS_COMPLETED, STATUS_SHIPPED, STATUS_DELIVERED)

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("customers.id"))
    order_number: Mapped[Optional[str]] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(50), default=STATUS_PENDING)
    total: Mapped[float] = mapped_column(Float, default=0)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    customer: Mapped[Optional[Customer]] = relationship()
    items: Mapped[List["OrderItem"]] = relationship(back_populates="order")


class OrderItem(TimestampMixin, Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    product_id: Mapped[Optional[int]] = mapped_column(ForeignKey("products.id"))
    title: Mapped[Optional[str]] = mapped_column(String(255))
    price: Mapped[float] = mapped_column(Float, default=0)
    quantity: Mapped[int] = mapped_column(Integer, default=1)

    order: Mapped[Order] = relationship(back_populates="items")
    product: Mapped[Optional[Product]] = relationship()


class ProductReturn(TimestampMixin, Base):
    __tablename__ = "returns"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    order_id: Mapped[Optional[int]] = mapped_column(ForeignKey("orders.id"))
    status: Mapped[str] = mapped_column(String(50), default="pending")
    refund_amount: Mapped[float] = mapped_column(Float, default=0)
    refund_method: Mapped[Optional[str]] = mapped_column(String(50))


class Payment(TimestampMixin, Base):
    __tablename__ = "payments"

    CARD_METHODS = ("credit", "debit", "card")

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    order_id: Mapped[Optional[int]] = mapped_column(ForeignKey("orders.id"))
    method: Mapped[str] = mapped_column(String(50))
    amount: Mapped[float] = mapped_column(Float, default=0)
    status: Mapped[str] = mapped_column(String(50), default="completed")


class Transaction(TimestampMixin, Base):
    """A buy: the store paying a customer for goods."""

    __tablename__ = "transactions"

    PAID_OUT_STATUSES = ("payment_processed", "completed")

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("customers.id"))
    status: Mapped[str] = mapped_column(String(50), default="pending")
    total: Mapped[float] = mapped_column(Float, default=0)


class Layaway(TimestampMixin, Base):
    __tablename__ = "layaways"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("customers.id"))
    status: Mapped[str] = mapped_column(String(50), default="active")
    balance_remaining: Mapped[float] = mapped_column(Float, default=0)

    customer: Mapped[Optional[Customer]] = relationship()
    schedules: Mapped[List["LayawaySchedule"]] = relationship(
        back_populates="layaway", order_by="LayawaySchedule.due_date"
    )


class LayawaySchedule(TimestampMixin, Base):
    __tablename__ = "layaway_schedules"

    id: Mapped[int] = mapped_column(primary_key=True)
    layaway_id: Mapped[int] = mapped_column(ForeignKey("layaways.id"), index=True)
    due_date: Mapped[date] = mapped_column(Date)
    amount: Mapped[float] = mapped_column(Float, default=0)
    status: Mapped[str] = mapped_column(String(50), default="pending")

    layaway: Mapped[Layaway] = relationship(back_populates="schedules")


class StoreMarketplace(TimestampMixin, Base):
    __tablename__ = "store_marketplaces"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    platform: Mapped[str] = mapped_column(String(50))
    name: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(50), default="active")

    @property
    def label(self) -> str:
        return self.name or self.platform.replace("_", " ").title()


class PlatformOrder(TimestampMixin, Base):
    __tablename__ = "platform_orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    store_marketplace_id: Mapped[int] = mapped_column(ForeignKey("store_marketplaces.id"), index=True)
    total: Mapped[float] = mapped_column(Float, default=0)
    ordered_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    line_items: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON)


class MetalPrice(Base):
    """Spot price of a precious metal. Market data shared by all stores."""

    __tablename__ = "metal_prices"

    GRAMS_PER_TROY_OUNCE = 31.1035
    GRAMS_PER_DWT = 1.555

    PURITY_RATIOS = {
        "gold_10k": 0.417,
        "gold_14k": 0.583,
        "gold_18k": 0.750,
        "gold_22k": 0.917,
        "gold_24k": 0.999,
        "silver": 0.925,
        "platinum": 0.950,
        "palladium": 0.950,
    }

    id: Mapped[int] = mapped_column(primary_key=True)
    metal: Mapped[str] = mapped_column(String(50), index=True)
    price_per_ounce: Mapped[float] = mapped_column(Float)
    price_per_gram: Mapped[float] = mapped_column(Float)
    effective_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    @staticmethod
    def base_metal(metal_type: str) -> str:
        """``gold_14k`` -> ``gold``."""
        return "gold" if metal_type.startswith("gold") else metal_type

    @classmethod
    def latest(cls, session: Session, metal: str) -> Optional["MetalPrice"]:
        return session.scalars(
            select(cls).where(cls.metal == metal).order_by(cls.effective_at.desc()).limit(1)
        ).first()


class ChatSession(TimestampMixin, Base):
    __tablename__ = "chat_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    title: Mapped[Optional[str]] = mapped_column(String(255))
    last_message_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    messages: Mapped[List["ChatMessage"]] = relationship(
        back_populates="session", order_by="ChatMessage.id"
    )


class ChatMessage(TimestampMixin, Base):
    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(primary_key=True)
    chat_session_id: Mapped[str] = mapped_column(ForeignKey("chat_sessions.id"), index=True)
    role: Mapped[str] = mapped_column(String(20))
    content: Mapped[str] = mapped_column(Text, default="")
    tool_calls: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON)
    tokens_used: Mapped[int] = mapped_column(Integer, default=0)

    session: Mapped[ChatSession] = relationship(back_populates="messages")


class AiSuggestion(TimestampMixin, Base):
    __tablename__ = "ai_suggestions"

    STATUS_PENDING = "pending"
    STATUS_ACCEPTED = "accepted"
    STATUS_REJECTED = "rejected"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    suggestable_type: Mapped[str] = mapped_column(String(100))
    suggestable_id: Mapped[int] = mapped_column(Integer)
    type: Mapped[str] = mapped_column(String(50))
    platform: Mapped[Optional[str]] = mapped_column(String(50))
    original_content: Mapped[Optional[str]] = mapped_column(Text)
    suggested_content: Mapped[str] = mapped_column(Text)
    # "metadata" is reserved on declarative classes
    meta: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, default=dict)
    status: Mapped[str] = mapped_column(String(20), default=STATUS_PENDING)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)


class AiUsageLog(Base):
    __tablename__ = "ai_usage_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[Optional[int]] = mapped_column(ForeignKey("stores.id"), index=True)
    provider: Mapped[str] = mapped_column(String(50))
    model: Mapped[str] = mapped_column(String(100))
    feature: Mapped[Optional[str]] = mapped_column(String(100))
    input_tokens: Mapped[int] = mapped_column(Integer, default=0)
    output_tokens: Mapped[int] = mapped_column(Integer, default=0)
    cost_usd: Mapped[Optional[float]] = mapped_column(Float)
    duration_ms: Mapped[int] = mapped_column(Integer, default=0)
    success: Mapped[bool] = mapped_column(Boolean, default=True)
    error: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    @property
    def total_tokens(self) -> int:
        return (self.input_tokens or 0) + (self.output_tokens or 0)


class ReportDelivery(TimestampMixin, Base):
    __tablename__ = "report_deliveries"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    report: Mapped[str] = mapped_column(String(100))
    recipient: Mapped[str] = mapped_column(String(255))
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    status: Mapped[str] = mapped_column(String(20), default="queued")


class ProductTemplate(TimestampMixin, Base):
    __tablename__ = "product_templates"

    id: Mapped[int] = mapped_column(primary_key=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    ai_generated: Mapped[bool] = mapped_column(Boolean, default=False)
    generation_prompt: Mapped[Optional[str]] = mapped_column(Text)

    fields: Mapped[List["ProductTemplateField"]] = relationship(
        back_populates="template", order_by="ProductTemplateField.sort_order"
    )


class ProductTemplateField(Base):
    __tablename__ = "product_template_fields"

    id: Mapped[int] = mapped_column(primary_key=True)
    template_id: Mapped[int] = mapped_column(ForeignKey("product_templates.id"), index=True)
    name: Mapped[str] = mapped_column(String(100))
    canonical_name: Mapped[Optional[str]] = mapped_column(String(100))
    label: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(30), default="text")
    placeholder: Mapped[Optional[str]] = mapped_column(String(255))
    help_text: Mapped[Optional[str]] = mapped_column(Text)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False)
    is_searchable: Mapped[bool] = mapped_column(Boolean, default=False)
    is_filterable: Mapped[bool] = mapped_column(Boolean, default=False)
    group_name: Mapped[Optional[str]] = mapped_column(String(100))
    width_class: Mapped[str] = mapped_column(String(20), default="full")
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    options: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON)
    platform_mappings: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON)
    ai_generated: Mapped[bool] = mapped_column(Boolean, default=False)

    template: Mapped[ProductTemplate] = relationship(back_populates="fields")
