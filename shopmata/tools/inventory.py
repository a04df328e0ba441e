"""Stock level alerts and aging inventory."""

from datetime import timedelta
from typing import Any, Dict, List, Literal

from pydantic import Field
from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session, joinedload

from ..db import Inventory, Product
from ..formatting import format_money
from .base import ChatTool, ToolParams

MAX_LIMIT = 25
SLOW_MOVING_DAYS = 90
DEAD_STOCK_DAYS = 180

AlertType = Literal["all", "low_stock", "out_of_stock", "needs_reorder", "slow_moving", "dead_stock"]

MESSAGES = {
    "low_stock": (
        "These items are running low and may need restocking soon.",
        "No low stock items found.",
    ),
    "out_of_stock": (
        "These items are completely out of stock and need immediate attention.",
        "No out of stock items. Great job keeping inventory stocked!",
    ),
    "needs_reorder": (
        "These items have reached their reorder point.",
        "No items need reordering at this time.",
    ),
    "slow_moving": (
        f"These items have been listed for {SLOW_MOVING_DAYS}+ days without selling. Consider a markdown.",
        "No slow-moving items.",
    ),
    "dead_stock": (
        f"These items have sat for {DEAD_STOCK_DAYS}+ days. Consider clearance or scrapping for metal value.",
        "No dead stock.",
    ),
}

OUT_OF_STOCK = Inventory.quantity <= 0
LOW_STOCK = and_(
    Inventory.quantity > 0,
    Inventory.quantity <= func.coalesce(Inventory.reorder_point, Inventory.DEFAULT_REORDER_POINT),
)
NEEDS_REORDER = and_(Inventory.reorder_point > 0, Inventory.quantity <= Inventory.reorder_point)


def health_status(out_of_stock: int, low_stock: int) -> str:
    if out_of_stock + low_stock == 0:
        return "excellent"
    if out_of_stock == 0 and low_stock < 5:
        return "good"
    if out_of_stock < 5:
        return "needs_attention"
    return "critical"


class InventoryAlertsParams(ToolParams):
    alert_type: AlertType = Field("all", description="Type of inventory alert to retrieve")
    limit: int = Field(10, description="Maximum number of items to return (default 10, max 25)")


class InventoryAlertsTool(ChatTool):
    name = "get_inventory_alerts"
    description = (
        "Get inventory alerts including low stock items, out of stock items, items needing reorder, "
        "and aging stock (slow-moving after 90 days, dead stock after 180 days). Use this when users "
        "ask about stock levels or inventory issues."
    )
    params_model = InventoryAlertsParams
    required = ("alert_type",)
    status_message = "Checking inventory levels..."

    def run(self, params: InventoryAlertsParams, store_id: int) -> Dict[str, Any]:
        limit = max(1, min(params.limit, MAX_LIMIT))

        with self.session() as session:
            if params.alert_type == "all":
                return self._all_alerts(session, store_id, limit)

            if params.alert_type in ("slow_moving", "dead_stock"):
                items = self._aging_items(session, store_id, limit, params.alert_type)
            else:
                items = self._stock_items(session, store_id, limit, params.alert_type)

        found, empty = MESSAGES[params.alert_type]
        return {
            "alert_type": params.alert_type,
            "count": len(items),
            "items": items,
            "message": found if items else empty,
        }

    def _count(self, session: Session, store_id: int, condition) -> int:
        return session.scalar(
            select(func.count(Inventory.id)).where(Inventory.store_id == store_id, condition)
        ) or 0

    def _all_alerts(self, session: Session, store_id: int, limit: int) -> Dict[str, Any]:
        out_of_stock = self._count(session, store_id, OUT_OF_STOCK)
        low_stock = self._count(session, store_id, LOW_STOCK)
        needs_reorder = self._count(session, store_id, NEEDS_REORDER)

        top_items = session.scalars(
            select(Inventory)
            .options(joinedload(Inventory.product))
            .where(Inventory.store_id == store_id, or_(OUT_OF_STOCK, LOW_STOCK))
            .order_by(Inventory.quantity)
            .limit(limit)
        ).all()

        status = health_status(out_of_stock, low_stock)
        return {
            "summary": {
                "total_alerts": out_of_stock + low_stock,
                "out_of_stock": out_of_stock,
                "low_stock": low_stock,
                "needs_reorder": needs_reorder,
            },
            "top_items": [
                {
                    "product": inventory.product.title if inventory.product else "Unknown Product",
                    "sku": (inventory.product.sku if inventory.product else None) or "N/A",
                    "quantity": inventory.quantity,
                    "status": "out_of_stock" if inventory.quantity <= 0 else "low_stock",
                }
                for inventory in top_items
            ],
            "health_status": status,
            "message": "Inventory levels look healthy." if status == "excellent" else (
                f"{out_of_stock} out of stock, {low_stock} running low."
            ),
        }

    def _stock_items(self, session: Session, store_id: int, limit: int, alert_type: str) -> List[Dict[str, Any]]:
        condition = {
            "out_of_stock": OUT_OF_STOCK,
            "low_stock": LOW_STOCK,
            "needs_reorder": NEEDS_REORDER,
        }[alert_type]

        rows = session.scalars(
            select(Inventory)
            .options(joinedload(Inventory.product), joinedload(Inventory.warehouse))
            .where(Inventory.store_id == store_id, condition)
            .order_by(Inventory.quantity)
            .limit(limit)
        ).all()

        return [
            {
                "product": inventory.product.title if inventory.product else "Unknown Product",
                "sku": (inventory.product.sku if inventory.product else None) or "N/A",
                "variant": inventory.variant or "Default",
                "warehouse": inventory.warehouse.name if inventory.warehouse else "Default",
                "quantity": inventory.quantity,
                "reorder_point": inventory.reorder_point or 0,
            }
            for inventory in rows
        ]

    def _aging_items(self, session: Session, store_id: int, limit: int, alert_type: str) -> List[Dict[str, Any]]:
        now = self.now()
        slow_cutoff = now - timedelta(days=SLOW_MOVING_DAYS)
        dead_cutoff = now - timedelta(days=DEAD_STOCK_DAYS)

        if alert_type == "dead_stock":
            age = Product.created_at <= dead_cutoff
        else:
            age = and_(Product.created_at <= slow_cutoff, Product.created_at > dead_cutoff)

        products = session.scalars(
            select(Product)
            .where(
                Product.store_id == store_id,
                Product.status == Product.STATUS_ACTIVE,
                Product.quantity > 0,
                age,
            )
            .order_by(Product.created_at)
            .limit(limit)
        ).all()

        return [
            {
                "product": product.title,
                "sku": product.sku or "N/A",
                "price": round(product.price or 0, 2),
                "price_formatted": format_money(product.price),
                "cost": round(product.cost, 2) if product.cost is not None else None,
                "days_listed": (now - product.created_at).days,
                "quantity": product.quantity,
            }
            for product in products
        ]
