"""Customer insight tools: store-wide statistics and single-customer intelligence."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db import Category, Customer, CustomerNote, Order, OrderItem, Product
from ..formatting import format_money, percent_change, share, time_ago
from ..periods import period_label, previous_period, resolve_period, start_of_day, start_of_month
from .base import ChatTool, ToolParams
from .queries import digits, in_range, paid_orders

MAX_LIMIT = 20

TIERS = (
    (10000, "VIP"),
    (5000, "Gold"),
    (1000, "Silver"),
)


def customer_tier(lifetime_spend: float) -> str:
    """VIP / Gold / Silver / Bronze / New by lifetime spend."""
    for threshold, tier in TIERS:
        if lifetime_spend >= threshold:
            return tier
    return "Bronze" if lifetime_spend > 0 else "New"


def full_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return f"{first_name or ''} {last_name or ''}".strip() or "Unknown"


class CustomerInsightsParams(ToolParams):
    insight_type: Literal["top_customers", "new_customers", "overview"] = Field(
        "overview", description="Type of customer insight to retrieve"
    )
    period: Optional[Literal["this_week", "this_month", "last_30_days", "last_90_days", "all_time"]] = Field(
        None,
        description="Time period for analysis (default: all_time for top_customers, last_30_days for new_customers)",
    )
    limit: int = Field(10, description="Number of customers to return (default 10, max 20)")


class CustomerInsightsTool(ChatTool):
    name = "get_customer_insights"
    description = (
        "Get customer insights including top customers, new customer acquisition, and customer "
        "statistics. Use this when users ask about their best customers, customer growth, or customer data."
    )
    params_model = CustomerInsightsParams
    required = ("insight_type",)
    status_message = "Analyzing customer data..."

    def run(self, params: CustomerInsightsParams, store_id: int) -> Dict[str, Any]:
        limit = max(1, min(params.limit, MAX_LIMIT))
        default_period = "last_30_days" if params.insight_type == "new_customers" else "all_time"
        period = params.period or default_period

        with self.session() as session:
            if params.insight_type == "top_customers":
                return self._top_customers(session, store_id, period, limit)
            if params.insight_type == "new_customers":
                return self._new_customers(session, store_id, period, limit)
            return self._overview(session, store_id)

    def _top_customers(self, session: Session, store_id: int, period: str, limit: int) -> Dict[str, Any]:
        date_range = resolve_period(period, self.now(), default="all_time")
        total_spent = func.sum(Order.total).label("total_spent")
        order_count = func.count(Order.id).label("order_count")

        rows = session.execute(
            select(Customer.first_name, Customer.last_name, Customer.email, total_spent, order_count)
            .join(Order, Order.customer_id == Customer.id)
            .where(Customer.store_id == store_id, *paid_orders(store_id, date_range))
            .group_by(Customer.id, Customer.first_name, Customer.last_name, Customer.email)
            .order_by(total_spent.desc())
            .limit(limit)
        ).all()

        total_revenue = sum(row.total_spent or 0 for row in rows)
        result = {
            "insight_type": "top_customers",
            "period": period_label(period),
            "customers": [
                {
                    "rank": index + 1,
                    "name": full_name(row.first_name, row.last_name),
                    "email": row.email,
                    "total_spent": round(row.total_spent, 2),
                    "total_spent_formatted": format_money(row.total_spent, 2),
                    "order_count": row.order_count,
                    "avg_order_value": format_money(row.total_spent / max(row.order_count, 1), 2),
                    "percentage_of_revenue": f"{share(row.total_spent, total_revenue)}%",
                }
                for index, row in enumerate(rows)
            ],
            "summary": {
                "top_customers_revenue": format_money(total_revenue, 2),
                "average_per_top_customer": format_money(total_revenue / max(len(rows), 1), 2),
            },
        }
        if not rows:
            result["message"] = "No customers with paid orders in this period."
        return result

    def _new_customers(self, session: Session, store_id: int, period: str, limit: int) -> Dict[str, Any]:
        now = self.now()
        date_range = resolve_period(period, now, default="last_30_days")
        in_period = [Customer.store_id == store_id, *in_range(Customer.created_at, date_range)]

        new_count = session.scalar(select(func.count(Customer.id)).where(*in_period)) or 0

        previous_count = 0
        if date_range.start is not None:
            previous = previous_period(period, date_range, now)
            previous_count = session.scalar(
                select(func.count(Customer.id)).where(
                    Customer.store_id == store_id, *in_range(Customer.created_at, previous)
                )
            ) or 0

        recent = session.scalars(
            select(Customer).where(*in_period).order_by(Customer.created_at.desc()).limit(limit)
        ).all()

        recent_customers = []
        for customer in recent:
            orders, spent = session.execute(
                select(func.count(Order.id), func.coalesce(func.sum(Order.total), 0)).where(
                    *paid_orders(store_id), Order.customer_id == customer.id
                )
            ).one()
            recent_customers.append({
                "name": full_name(customer.first_name, customer.last_name),
                "email": customer.email,
                "joined": time_ago(customer.created_at, now),
                "orders": orders,
                "total_spent": format_money(spent, 2),
            })

        result = {
            "insight_type": "new_customers",
            "period": period_label(period),
            "new_customer_count": new_count,
            "growth_from_previous": f"{percent_change(previous_count, new_count)}%",
            "previous_period_count": previous_count,
            "recent_customers": recent_customers,
        }
        if new_count == 0:
            result["message"] = "No new customers in this period."
        return result

    def _overview(self, session: Session, store_id: int) -> Dict[str, Any]:
        now = self.now()
        paid = paid_orders(store_id)

        total_customers = session.scalar(
            select(func.count(Customer.id)).where(Customer.store_id == store_id)
        ) or 0

        orders_per_customer = (
            select(Order.customer_id, func.count(Order.id).label("orders"))
            .where(*paid, Order.customer_id.is_not(None))
            .group_by(Order.customer_id)
            .subquery()
        )
        customers_with_orders = session.scalar(select(func.count()).select_from(orders_per_customer)) or 0
        repeat_customers = session.scalar(
            select(func.count()).select_from(orders_per_customer).where(orders_per_customer.c.orders >= 2)
        ) or 0

        new_this_month = session.scalar(
            select(func.count(Customer.id)).where(
                Customer.store_id == store_id,
                Customer.created_at >= start_of_day(start_of_month(now.date())),
            )
        ) or 0

        avg_order_value = session.scalar(select(func.avg(Order.total)).where(*paid)) or 0

        result = {
            "insight_type": "overview",
            "total_customers": total_customers,
            "customers_with_orders": customers_with_orders,
            "new_this_month": new_this_month,
            "repeat_customers": repeat_customers,
            "repeat_rate": f"{share(repeat_customers, customers_with_orders)}%",
            "average_order_value": format_money(avg_order_value, 2),
            "conversion_rate": f"{share(customers_with_orders, total_customers)}%",
        }
        if total_customers == 0:
            result["message"] = "This store has no customers yet."
        return result


class CustomerIntelligenceParams(ToolParams):
    customer_name: Optional[str] = Field(None, description="Customer name to search for")
    customer_id: Optional[int] = Field(None, description="Customer ID if known")
    phone: Optional[str] = Field(None, description="Customer phone number")
    email: Optional[str] = Field(None, description="Customer email")


class CustomerIntelligenceTool(ChatTool):
    name = "get_customer_intelligence"
    description = (
        "Get detailed intelligence about a specific customer. Use when user mentions a customer name, "
        "says \"customer check in\", \"who is this customer\", or \"tell me about [name]\". Returns "
        "purchase history, preferences, and insights."
    )
    params_model = CustomerIntelligenceParams
    status_message = "Looking up customer..."

    def run(self, params: CustomerIntelligenceParams, store_id: int) -> Dict[str, Any]:
        now = self.now()

        with self.session() as session:
            customer = self._find_customer(session, params, store_id)
            if customer is None:
                return {
                    "found": False,
                    "message": "Customer not found",
                    "searched": params.model_dump(exclude_none=True),
                }

            paid = [*paid_orders(store_id), Order.customer_id == customer.id]

            order_count, lifetime_spend, avg_order = session.execute(
                select(func.count(Order.id), func.coalesce(func.sum(Order.total), 0), func.avg(Order.total))
                .where(*paid)
            ).one()
            lifetime_spend = float(lifetime_spend or 0)
            avg_order = float(avg_order or 0)

            recent_orders = session.scalars(
                select(Order).where(*paid).order_by(Order.created_at.desc()).limit(5)
            ).all()
            first_order_at = session.scalar(select(func.min(Order.created_at)).where(*paid))

            purchase_count = func.count(OrderItem.id).label("purchase_count")
            favorite_categories = session.execute(
                select(Category.name, purchase_count, func.sum(OrderItem.price * OrderItem.quantity).label("total_spent"))
                .select_from(OrderItem)
                .join(Order, Order.id == OrderItem.order_id)
                .join(Product, Product.id == OrderItem.product_id)
                .outerjoin(Category, Category.id == Product.category_id)
                .where(*paid)
                .group_by(Category.id, Category.name)
                .order_by(purchase_count.desc())
                .limit(3)
            ).all()

            notes = session.scalars(
                select(CustomerNote)
                .where(CustomerNote.store_id == store_id, CustomerNote.customer_id == customer.id)
                .order_by(CustomerNote.created_at.desc())
                .limit(3)
            ).all()

            last_order = recent_orders[0] if recent_orders else None
            days_since_last_visit = (now - last_order.created_at).days if last_order else None

            avg_days_between = None
            if first_order_at and order_count > 1:
                avg_days_between = round((now - first_order_at).days / (order_count - 1))

            categories = [
                {
                    "name": name or "Uncategorized",
                    "purchase_count": count,
                    "total_spent": round(total or 0, 2),
                }
                for name, count, total in favorite_categories
            ]

            return {
                "found": True,
                "customer": {
                    "id": customer.id,
                    "name": customer.name,
                    "email": customer.email,
                    "phone": customer.phone,
                    "member_since": customer.created_at.strftime("%b %Y"),
                    "tier": customer_tier(lifetime_spend),
                },
                "lifetime_stats": {
                    "total_orders": order_count,
                    "lifetime_spend": round(lifetime_spend, 2),
                    "lifetime_spend_formatted": format_money(lifetime_spend),
                    "average_order": round(avg_order, 2),
                    "average_order_formatted": format_money(avg_order),
                },
                "last_visit": {
                    "date": f"{last_order.created_at:%b} {last_order.created_at.day}, {last_order.created_at.year}",
                    "days_ago": days_since_last_visit,
                    "amount": round(last_order.total, 2),
                    "amount_formatted": format_money(last_order.total),
                    "items": [item.title for item in last_order.items],
                } if last_order else None,
                "preferences": {
                    "favorite_categories": categories,
                    "avg_days_between_purchases": avg_days_between,
                },
                "recent_purchases": [
                    {
                        "date": f"{order.created_at:%b} {order.created_at.day}",
                        "total": round(order.total, 2),
                        "items": ", ".join(item.title or "" for item in order.items),
                    }
                    for order in recent_orders
                ],
                "notes": [
                    {"content": note.content, "date": f"{note.created_at:%b} {note.created_at.day}"}
                    for note in notes
                ],
                "insights": self._insights(
                    lifetime_spend, avg_order, order_count, days_since_last_visit, avg_days_between, categories
                ),
            }

    def _find_customer(
        self, session: Session, params: CustomerIntelligenceParams, store_id: int
    ) -> Optional[Customer]:
        query = select(Customer).where(Customer.store_id == store_id)

        if params.customer_id:
            query = query.where(Customer.id == params.customer_id)
        elif params.phone and digits(params.phone):
            query = query.where(Customer.phone.like(f"%{digits(params.phone)}%"))
        elif params.email:
            query = query.where(Customer.email == params.email)
        elif params.customer_name:
            name = func.coalesce(Customer.first_name, "") + " " + func.coalesce(Customer.last_name, "")
            query = query.where(name.ilike(f"%{params.customer_name.strip()}%"))
        else:
            return None

        return session.scalars(query.limit(1)).first()

    @staticmethod
    def _insights(
        lifetime_spend: float,
        avg_order: float,
        order_count: int,
        days_since_last_visit: Optional[int],
        avg_days_between: Optional[int],
        categories: List[Dict[str, Any]],
    ) -> List[str]:
        insights = []

        if lifetime_spend >= 5000:
            insights.append("High-value customer - consider VIP treatment")

        if avg_days_between and days_since_last_visit and days_since_last_visit > avg_days_between * 1.5:
            overdue = days_since_last_visit - avg_days_between
            insights.append(f"Usually visits every {avg_days_between} days - overdue by {overdue} days")

        if categories:
            insights.append(f"Loves {categories[0]['name']} - show them new arrivals in this category")

        if avg_order >= 500:
            insights.append("High-ticket buyer - comfortable with premium items")

        if order_count >= 10:
            insights.append("Frequent buyer - loyal customer")

        return insights
