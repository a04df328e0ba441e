"""Best sellers by revenue or quantity."""

from typing import Any, Dict, Literal

from pydantic import Field
from sqlalchemy import distinct, func, select

from ..db import Order, OrderItem, Product
from ..formatting import format_money, share
from ..periods import period_label, resolve_period
from .base import ChatTool, ToolParams
from .queries import paid_orders

MAX_LIMIT = 20


class TopProductsParams(ToolParams):
    metric: Literal["revenue", "quantity"] = Field(
        "revenue", description="Rank products by revenue or quantity sold"
    )
    period: Literal["today", "this_week", "this_month", "last_30_days", "all_time"] = Field(
        "this_month", description="Time period to analyze"
    )
    limit: int = Field(10, description="Number of products to return (default 10, max 20)")


class TopProductsTool(ChatTool):
    name = "get_top_products"
    description = (
        "Get top performing products by revenue or quantity sold. Use this when users ask "
        "about best sellers, top products, or product performance."
    )
    params_model = TopProductsParams
    required = ("metric", "period")
    status_message = "Finding your best sellers..."

    def run(self, params: TopProductsParams, store_id: int) -> Dict[str, Any]:
        limit = max(1, min(params.limit, MAX_LIMIT))
        date_range = resolve_period(params.period, self.now(), default="this_month")
        paid = paid_orders(store_id, date_range)

        total_quantity = func.sum(OrderItem.quantity).label("total_quantity")
        total_revenue = func.sum(OrderItem.price * OrderItem.quantity).label("total_revenue")
        order_count = func.count(distinct(Order.id)).label("order_count")
        rank_by = total_revenue if params.metric == "revenue" else total_quantity

        with self.session() as session:
            rows = session.execute(
                select(Product.title, total_quantity, total_revenue, order_count)
                .select_from(OrderItem)
                .join(Order, Order.id == OrderItem.order_id)
                .join(Product, Product.id == OrderItem.product_id)
                .where(*paid)
                .group_by(OrderItem.product_id, Product.title)
                .order_by(rank_by.desc())
                .limit(limit)
            ).all()

            revenue, orders = session.execute(
                select(func.coalesce(func.sum(Order.total), 0), func.count(Order.id)).where(*paid)
            ).one()

            unique_products = session.scalar(
                select(func.count(distinct(OrderItem.product_id)))
                .join(Order, Order.id == OrderItem.order_id)
                .where(*paid)
            ) or 0

        listed_revenue = sum(row.total_revenue or 0 for row in rows)
        products = []
        for index, row in enumerate(rows):
            products.append({
                "rank": index + 1,
                "product_name": row.title or "Unknown Product",
                "quantity_sold": int(row.total_quantity or 0),
                "revenue": round(row.total_revenue or 0, 2),
                "revenue_formatted": format_money(row.total_revenue, 2),
                "order_count": int(row.order_count),
                "percentage_of_total": f"{share(row.total_revenue or 0, listed_revenue)}%",
                "avg_order_quantity": round((row.total_quantity or 0) / max(row.order_count, 1), 1),
            })

        result = {
            "metric": params.metric,
            "period": period_label(params.period),
            **date_range.to_dict(),
            "products": products,
            "totals": {
                "total_revenue": round(float(revenue or 0), 2),
                "total_revenue_formatted": format_money(revenue, 2),
                "total_orders": int(orders or 0),
                "unique_products_sold": unique_products,
            },
        }
        if not products:
            result["message"] = f"No products sold {period_label(params.period).lower()}."
        return result
