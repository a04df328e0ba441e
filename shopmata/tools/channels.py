"""Cross-channel sales performance (in-store vs. marketplaces)."""

from collections import defaultdict
from typing import Any, Dict, List, Literal

from pydantic import Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db import Order, OrderItem, PlatformOrder, Product, StoreMarketplace
from ..formatting import format_money, share
from ..periods import DateRange, resolve_period
from .base import ChatTool, ToolParams
from .queries import as_date, day_of, in_range

LOCAL_CHANNEL = "Local/POS"
TREND_DAYS = 7


def local_orders(store_id: int, date_range: DateRange) -> list:
    return [
        Order.store_id == store_id,
        Order.status.in_(Order.FULFILLED_STATUSES),
        Order.deleted_at.is_(None),
        *in_range(Order.created_at, date_range),
    ]


class ChannelPerformanceParams(ToolParams):
    period: Literal["today", "yesterday", "7_days", "30_days", "90_days", "this_month", "last_month"] = Field(
        "30_days", description="The time period to analyze."
    )
    metric: Literal["overview", "revenue", "orders", "aov", "top_products"] = Field(
        "overview",
        description=(
            "The type of analysis: overview (all metrics), revenue, orders (order counts), "
            "aov (average order value), top_products (best sellers by channel)."
        ),
    )


class ChannelPerformanceTool(ChatTool):
    name = "channel_performance"
    description = (
        "Get performance metrics across all sales channels. Use when users ask about sales by channel, "
        "marketplace performance, cross-channel analytics, or want to compare Amazon, Walmart, Shopify, "
        "etc. performance."
    )
    params_model = ChannelPerformanceParams
    status_message = "Comparing sales channels..."

    def run(self, params: ChannelPerformanceParams, store_id: int) -> Dict[str, Any]:
        date_range = resolve_period(params.period, self.now(), default="30_days")
        label = f"{date_range.start:%b} {date_range.start.day} - {date_range.end:%b} {date_range.end.day}, {date_range.end.year}"

        with self.session() as session:
            marketplaces = session.scalars(
                select(StoreMarketplace).where(
                    StoreMarketplace.store_id == store_id, StoreMarketplace.status == "active"
                )
            ).all()

            if params.metric == "top_products":
                channels = self._top_products(session, store_id, marketplaces, date_range)
                result = {"period": label, "channels": channels}
                if not any(c["top_products"] for c in channels):
                    result["message"] = "No products sold on any channel in this period."
                return result

            overview = self._overview(session, store_id, marketplaces, date_range)
            overview["period"] = label

            if params.metric == "revenue":
                result = {
                    "period": label,
                    "total_revenue": overview["total_revenue"],
                    "by_channel": [
                        {"channel": c["channel"], "revenue": c["revenue"], "percent": c["revenue_percent"]}
                        for c in overview["channels"]
                    ],
                    "daily_trend": self._daily_trend(session, store_id, date_range),
                }
            elif params.metric == "orders":
                result = {
                    "period": label,
                    "total_orders": overview["total_orders"],
                    "by_channel": [
                        {"channel": c["channel"], "orders": c["orders"], "percent": c["order_percent"]}
                        for c in overview["channels"]
                    ],
                }
            elif params.metric == "aov":
                result = {
                    "period": label,
                    "overall_aov": overview["average_order_value"],
                    "by_channel": [
                        {"channel": c["channel"], "aov": c["aov"], "orders": c["orders"]}
                        for c in overview["channels"]
                    ],
                }
            else:
                return overview

            if "message" in overview:
                result["message"] = overview["message"]
            return result

    def _overview(
        self, session: Session, store_id: int, marketplaces: List[StoreMarketplace], date_range: DateRange
    ) -> Dict[str, Any]:
        channels = []

        orders, revenue = session.execute(
            select(func.count(Order.id), func.coalesce(func.sum(Order.total), 0))
            .where(*local_orders(store_id, date_range))
        ).one()
        channels.append(self._channel_entry(LOCAL_CHANNEL, orders, revenue))

        for marketplace in marketplaces:
            orders, revenue = session.execute(
                select(func.count(PlatformOrder.id), func.coalesce(func.sum(PlatformOrder.total), 0)).where(
                    PlatformOrder.store_id == store_id,
                    PlatformOrder.store_marketplace_id == marketplace.id,
                    *in_range(PlatformOrder.ordered_at, date_range),
                )
            ).one()
            channels.append(self._channel_entry(marketplace.label, orders, revenue))

        total_revenue = sum(c["revenue"] for c in channels)
        total_orders = sum(c["orders"] for c in channels)
        for channel in channels:
            channel["revenue_percent"] = share(channel["revenue"], total_revenue)
            channel["order_percent"] = share(channel["orders"], total_orders)

        channels.sort(key=lambda c: c["revenue"], reverse=True)

        result = {
            "total_revenue": round(total_revenue, 2),
            "total_revenue_formatted": format_money(total_revenue, 2),
            "total_orders": total_orders,
            "average_order_value": round(total_revenue / total_orders, 2) if total_orders else 0,
            "channels": channels,
        }
        if total_orders == 0:
            result["message"] = "No channel sales in this period."
        return result

    @staticmethod
    def _channel_entry(name: str, orders: int, revenue: float) -> Dict[str, Any]:
        revenue = float(revenue or 0)
        return {
            "channel": name,
            "orders": int(orders or 0),
            "revenue": round(revenue, 2),
            "aov": round(revenue / orders, 2) if orders else 0,
        }

    def _daily_trend(self, session: Session, store_id: int, date_range: DateRange) -> List[Dict[str, Any]]:
        day = day_of(Order.created_at).label("day")
        rows = session.execute(
            select(day, func.sum(Order.total).label("revenue"))
            .where(*local_orders(store_id, date_range))
            .group_by(day)
            .order_by(day)
        ).all()
        trend = [{"date": as_date(row.day).isoformat(), "revenue": round(row.revenue or 0, 2)} for row in rows]
        return trend[-TREND_DAYS:]

    def _top_products(
        self, session: Session, store_id: int, marketplaces: List[StoreMarketplace], date_range: DateRange
    ) -> List[Dict[str, Any]]:
        revenue = func.sum(OrderItem.price * OrderItem.quantity).label("revenue")
        local = session.execute(
            select(Product.title, func.sum(OrderItem.quantity).label("units"), revenue)
            .select_from(OrderItem)
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .where(*local_orders(store_id, date_range))
            .group_by(Product.id, Product.title)
            .order_by(revenue.desc())
            .limit(5)
        ).all()

        results = [{
            "channel": LOCAL_CHANNEL,
            "top_products": [
                {"title": row.title, "units": int(row.units or 0), "revenue": round(row.revenue or 0, 2)}
                for row in local
            ],
        }]

        for marketplace in marketplaces:
            platform_orders = session.scalars(
                select(PlatformOrder).where(
                    PlatformOrder.store_id == store_id,
                    PlatformOrder.store_marketplace_id == marketplace.id,
                    *in_range(PlatformOrder.ordered_at, date_range),
                )
            ).all()

            totals = defaultdict(lambda: {"units": 0, "revenue": 0.0})
            for order in platform_orders:
                for item in order.line_items or []:
                    entry = totals[item.get("title") or "Unknown"]
                    entry["units"] += int(item.get("quantity") or 0)
                    entry["revenue"] += float(item.get("total") or 0)

            ranked = sorted(totals.items(), key=lambda kv: kv[1]["revenue"], reverse=True)[:5]
            results.append({
                "channel": marketplace.label,
                "top_products": [
                    {"title": title, "units": data["units"], "revenue": round(data["revenue"], 2)}
                    for title, data in ranked
                ],
            })

        return results
