"""Persistence layer."""

from .models import (
    Base,
    Store,
    Category,
    Customer,
    CustomerNote,
    Product,
    Warehouse,
    Inventory,
    Order,
    OrderItem,
    ProductReturn,
    Payment,
    Transaction,
    Layaway,
    LayawaySchedule,
    StoreMarketplace,
    PlatformOrder,
    MetalPrice,
    ChatSession,
    ChatMessage,
    AiSuggestion,
    AiUsageLog,
    ReportDelivery,
    ProductTemplate,
    ProductTemplateField,
)
from .session import create_db_engine, create_session_factory, init_db, session_scope

__all__ = [
    "Base",
    "Store",
    "Category",
    "Customer",
    "CustomerNote",
    "Product",
    "Warehouse",
    "Inventory",
    "Order",
    "OrderItem",
    "ProductReturn",
    "Payment",
    "Transaction",
    "Layaway",
    "LayawaySchedule",
    "StoreMarketplace",
    "PlatformOrder",
    "MetalPrice",
    "ChatSession",
    "ChatMessage",
    "AiSuggestion",
    "AiUsageLog",
    "ReportDelivery",
    "ProductTemplate",
    "ProductTemplateField",
    "create_db_engine",
    "create_session_factory",
    "init_db",
    "session_scope",
]
