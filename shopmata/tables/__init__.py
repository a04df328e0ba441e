"""Paginated, store-scoped table widgets."""

from .base import Table, headline
from .orders import OrdersTable
from .products import ProductsTable

__all__ = ["Table", "headline", "OrdersTable", "ProductsTable"]
