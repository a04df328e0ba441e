"""Sales summary and verbal sales report tools."""

from typing import Any, Dict, Literal, Optional

from pydantic import Field
from sqlalchemy import distinct, func, select
from sqlalchemy.orm import Session

from ..db import Category, Customer, Order, OrderItem, Product, ProductReturn
from ..formatting import format_money, percent_change, share
from ..periods import (
    DateRange,
    comparison_label,
    period_label,
    previous_period,
    resolve_period,
)
from .base import ChatTool, ToolParams, scalar_or_zero
from .queries import as_date, day_of, in_range, paid_orders

SummaryPeriod = Literal[
    "today", "yesterday", "this_week", "last_week", "this_month", "last_month", "this_year", "last_30_days"
]
ReportPeriod = Literal["today", "yesterday", "this_week", "last_week", "this_month", "last_month", "this_year"]

BEST_DAY_PERIODS = ("this_week", "last_week", "this_month", "last_month", "this_year")


class SalesSummaryParams(ToolParams):
    period: SummaryPeriod = Field("today", description="The time period to summarize")


class SalesReportParams(ToolParams):
    period: ReportPeriod = Field("today", description="The time period for the report")


def sales_metrics(session: Session, store_id: int, date_range: DateRange) -> Dict[str, Any]:
    """Revenue, order count, average order and customer counts for a window."""
    paid = paid_orders(store_id, date_range)

    revenue, order_count = session.execute(
        select(func.coalesce(func.sum(Order.total), 0), func.count(Order.id)).where(*paid)
    ).one()
    revenue = float(revenue or 0)

    new_customers = session.scalar(
        select(func.count(Customer.id)).where(
            Customer.store_id == store_id, *in_range(Customer.created_at, date_range)
        )
    ) or 0

    returning_customers = 0
    if date_range.start is not None:
        returning_customers = session.scalar(
            select(func.count(distinct(Order.customer_id)))
            .join(Customer, Customer.id == Order.customer_id)
            .where(*paid, Customer.created_at < date_range.start)
        ) or 0

    return {
        "revenue": revenue,
        "order_count": order_count,
        "average_order": revenue / order_count if order_count else 0,
        "new_customers": new_customers,
        "returning_customers": returning_customers,
    }


class SalesSummaryTool(ChatTool):
    name = "get_sales_summary"
    description = (
        "Get a summary of sales for a period: revenue, number of orders, average order value, "
        "items sold and new customers. Use this for quick questions like \"what are sales today\" "
        "or \"how many orders this week\"."
    )
    params_model = SalesSummaryParams
    status_message = "Looking up sales data..."

    def run(self, params: SalesSummaryParams, store_id: int) -> Dict[str, Any]:
        date_range = resolve_period(params.period, self.now())

        with self.session() as session:
            metrics = sales_metrics(session, store_id, date_range)

            items_sold = scalar_or_zero(
                session,
                select(func.sum(OrderItem.quantity))
                .join(Order, Order.id == OrderItem.order_id)
                .where(*paid_orders(store_id, date_range)),
            )

            by_status = session.execute(
                select(Order.status, func.count(Order.id))
                .where(
                    Order.store_id == store_id,
                    Order.deleted_at.is_(None),
                    *in_range(Order.created_at, date_range),
                )
                .group_by(Order.status)
            ).all()

        revenue = round(metrics["revenue"], 2)
        result = {
            "period": params.period,
            "period_label": period_label(params.period),
            **date_range.to_dict(),
            "revenue": revenue,
            "revenue_formatted": format_money(revenue, 2),
            "total_orders": metrics["order_count"],
            "average_order_value": round(metrics["average_order"], 2),
            "average_order_value_formatted": format_money(metrics["average_order"], 2),
            "items_sold": int(items_sold),
            "new_customers": metrics["new_customers"],
            "orders_by_status": {status: count for status, count in by_status},
        }
        if metrics["order_count"] == 0:
            result["message"] = f"No paid orders {period_label(params.period).lower()}."
        return result


class SalesReportTool(ChatTool):
    name = "get_sales_report"
    description = (
        "Get a comprehensive sales report for verbal delivery. Use this for questions like "
        "\"how did we do today\", \"give me the weekly report\", \"what happened this month\", "
        "or any sales performance questions. Returns all metrics needed for a verbal sales briefing."
    )
    params_model = SalesReportParams
    required = ("period",)
    status_message = "Pulling the sales report..."

    def run(self, params: SalesReportParams, store_id: int) -> Dict[str, Any]:
        period = params.period
        now = self.now()
        current = resolve_period(period, now)
        previous = previous_period(period, current, now)

        with self.session() as session:
            current_metrics = sales_metrics(session, store_id, current)
            previous_metrics = sales_metrics(session, store_id, previous)
            top_sale = self._top_sale(session, store_id, current)
            top_categories = self._top_categories(session, store_id, current, current_metrics["revenue"])
            best_day = self._best_day(session, store_id, current) if period in BEST_DAY_PERIODS else None
            returns = self._returns(session, store_id, current)

        revenue_change = percent_change(previous_metrics["revenue"], current_metrics["revenue"])
        orders_change = percent_change(previous_metrics["order_count"], current_metrics["order_count"])

        result = {
            "period": period,
            "period_label": period_label(period),
            "date_range": {
                "start": f"{current.start:%b} {current.start.day}",
                "end": f"{current.end:%b} {current.end.day}, {current.end.year}",
            },
            "revenue": round(current_metrics["revenue"], 2),
            "revenue_formatted": format_money(current_metrics["revenue"]),
            "previous_revenue": round(previous_metrics["revenue"], 2),
            "previous_revenue_formatted": format_money(previous_metrics["revenue"]),
            "revenue_change_percent": revenue_change,
            "revenue_trend": "up" if revenue_change >= 0 else "down",
            "transaction_count": current_metrics["order_count"],
            "previous_transaction_count": previous_metrics["order_count"],
            "transactions_change_percent": orders_change,
            "average_ticket": round(current_metrics["average_order"], 2),
            "average_ticket_formatted": format_money(current_metrics["average_order"]),
            "new_customers": current_metrics["new_customers"],
            "returning_customers": current_metrics["returning_customers"],
            "top_sale": top_sale,
            "top_categories": top_categories,
            "best_day": best_day,
            "returns": returns,
            "comparison_period": comparison_label(period),
        }
        if current_metrics["order_count"] == 0:
            result["message"] = f"No sales recorded {period_label(period).lower()}."
        return result

    def _top_sale(self, session: Session, store_id: int, date_range: DateRange) -> Optional[Dict[str, Any]]:
        order = session.scalars(
            select(Order).where(*paid_orders(store_id, date_range)).order_by(Order.total.desc()).limit(1)
        ).first()
        if order is None:
            return None
        return {
            "amount": round(order.total, 2),
            "amount_formatted": format_money(order.total),
            "customer_name": (order.customer.name if order.customer else "") or "Walk-in",
            "item_count": len(order.items),
        }

    def _top_categories(self, session: Session, store_id: int, date_range: DateRange, revenue: float) -> list:
        total_sales = func.sum(OrderItem.price * OrderItem.quantity).label("total_sales")
        rows = session.execute(
            select(Category.name, total_sales)
            .select_from(OrderItem)
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .outerjoin(Category, Category.id == Product.category_id)
            .where(*paid_orders(store_id, date_range))
            .group_by(Category.id, Category.name)
            .order_by(total_sales.desc())
            .limit(3)
        ).all()

        return [
            {
                "name": name or "Uncategorized",
                "total": round(total or 0, 2),
                "total_formatted": format_money(total),
                "percentage": round(share(total or 0, revenue, 0)),
            }
            for name, total in rows
        ]

    def _best_day(self, session: Session, store_id: int, date_range: DateRange) -> Optional[Dict[str, Any]]:
        day = day_of(Order.created_at).label("day")
        daily_total = func.sum(Order.total).label("daily_total")
        row = session.execute(
            select(day, daily_total)
            .where(*paid_orders(store_id, date_range))
            .group_by(day)
            .order_by(daily_total.desc())
            .limit(1)
        ).first()
        if row is None:
            return None

        best = as_date(row.day)
        return {
            "date": best.strftime("%A"),
            "date_full": f"{best:%b} {best.day}",
            "total": round(row.daily_total, 2),
            "total_formatted": format_money(row.daily_total),
        }

    def _returns(self, session: Session, store_id: int, date_range: DateRange) -> Dict[str, Any]:
        count, refunded = session.execute(
            select(func.count(ProductReturn.id), func.coalesce(func.sum(ProductReturn.refund_amount), 0)).where(
                ProductReturn.store_id == store_id,
                *in_range(ProductReturn.created_at, date_range),
            )
        ).one()
        return {
            "count": count,
            "total_refunded": round(float(refunded or 0), 2),
            "total_refunded_formatted": format_money(refunded),
        }
