from typing import Any, Dict, List, Mapping

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import joinedload, selectinload

from ..db import Customer, Order
from ..periods import end_of_day, start_of_day
from .base import Field, Table, parse_date, status_options

STATUS_LABELS = {
    Order.STATUS_PENDING: "Pending",
    Order.STATUS_CONFIRMED: "Confirmed",
    Order.STATUS_PROCESSING: "Processing",
    Order.STATUS_SHIPPED: "Shipped",
    Order.STATUS_DELIVERED: "Delivered",
    Order.STATUS_COMPLETED: "Completed",
    Order.STATUS_CANCELLED: "Cancelled",
    Order.STATUS_REFUNDED: "Refunded",
}

STATUS_VARIANTS = {
    Order.STATUS_PENDING: "warning",
    Order.STATUS_CONFIRMED: "info",
    Order.STATUS_PROCESSING: "primary",
    Order.STATUS_SHIPPED: "info",
    Order.STATUS_DELIVERED: "success",
    Order.STATUS_COMPLETED: "success",
    Order.STATUS_CANCELLED: "danger",
    Order.STATUS_REFUNDED: "secondary",
}


class OrdersTable(Table):
    """Orders of a store, searchable by order number or customer."""

    title = "Orders"
    component = "DataTable"
    model = Order
    has_checkbox = True
    is_searchable = True
    no_data_message = "No orders found. Create your first order to get started."

    def fields(self) -> List[Field]:
        return [
            {"key": "order_number", "label": "Order #", "sortable": True},
            {"key": "created_at", "label": "Date", "sortable": True},
            {"key": "customer", "label": "Customer", "sortable": True},
            {"key": "items_count", "label": "Items", "sortable": False},
            {"key": "total", "label": "Total", "sortable": True},
            {"key": "status", "label": "Status", "sortable": True},
        ]

    def query(self, filter: Mapping[str, Any]) -> Select:
        stmt = (
            select(Order)
            .outerjoin(Customer, Order.customer_id == Customer.id)
            .options(joinedload(Order.customer), selectinload(Order.items))
            .where(Order.store_id == self.store_id(filter), Order.deleted_at.is_(None))
        )

        term = filter.get("term")
        if term:
            pattern = f"%{term}%"
            stmt = stmt.where(or_(
                Order.order_number.ilike(pattern),
                Customer.first_name.ilike(pattern),
                Customer.last_name.ilike(pattern),
                Customer.email.ilike(pattern),
            ))

        status = filter.get("status")
        if status:
            stmt = stmt.where(Order.status == status)

        date_from = parse_date(filter.get("date_from"))
        if date_from:
            stmt = stmt.where(Order.created_at >= start_of_day(date_from))
        date_to = parse_date(filter.get("date_to"))
        if date_to:
            stmt = stmt.where(Order.created_at <= end_of_day(date_to))

        return stmt

    def sort_expression(self, key: str) -> Any:
        if key == "customer":
            return func.coalesce(Customer.first_name, "") + " " + func.coalesce(Customer.last_name, "")
        return super().sort_expression(key)

    def row(self, order: Order) -> Dict[str, Any]:
        customer = order.customer
        return {
            "id": {"data": order.id},
            "order_number": {
                "type": "link",
                "href": f"/orders/{order.id}",
                "data": order.order_number or f"Order #{order.id}",
            },
            "created_at": {"data": order.created_at.strftime("%b %d, %Y") if order.created_at else None},
            "customer": {
                "type": "link",
                "href": f"/customers/{customer.id}" if customer else None,
                "data": customer.name if customer else "Walk-in Customer",
            },
            "items_count": {"data": len(order.items)},
            "total": {"type": "currency", "data": order.total or 0, "currency": "USD"},
            "status": {
                "type": "badge",
                "data": STATUS_LABELS.get(order.status, order.status),
                "variant": STATUS_VARIANTS.get(order.status, "secondary"),
            },
        }

    def table_filter(self, filter: Mapping[str, Any]) -> Dict[str, Any]:
        return {"statuses": status_options(STATUS_LABELS, list(STATUS_LABELS))}
