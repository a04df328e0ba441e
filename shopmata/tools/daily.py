"""Daily operations: end-of-day reconciliation and the morning briefing."""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from pydantic import Field
from sqlalchemy import exists, func, select
from sqlalchemy.orm import joinedload

from ..db import (
    Customer,
    Layaway,
    LayawaySchedule,
    MetalPrice,
    Order,
    Payment,
    Product,
    ProductReturn,
    Transaction,
)
from ..formatting import format_money, pluralize, time_ago
from ..periods import DateRange, end_of_day, resolve_period, start_of_day, start_of_week
from .base import ChatTool, NoParams, ToolParams
from .queries import in_range, paid_orders

HOLD_DAYS = 30
SLOW_MOVER_DAYS = 90
SLOW_MOVER_MIN_PRICE = 100
BRIEFING_METALS = ("gold", "silver", "platinum")


class EndOfDayParams(ToolParams):
    date: Optional[str] = Field(None, description="Date to reconcile (default today). Format: YYYY-MM-DD")


class EndOfDayTool(ChatTool):
    name = "get_end_of_day_report"
    description = (
        "Get end of day reconciliation report. Use when user says \"close out\", \"end of day\", "
        "\"daily close\", \"cash out\", or \"reconcile\". Returns complete daily summary with cash breakdown."
    )
    params_model = EndOfDayParams
    status_message = "Running end-of-day numbers..."

    def run(self, params: EndOfDayParams, store_id: int) -> Dict[str, Any]:
        now = self.now()
        if params.date:
            try:
                day = date.fromisoformat(params.date.strip())
            except ValueError:
                return {"error": f"Invalid date '{params.date}'. Use the format YYYY-MM-DD."}
        else:
            day = now.date()

        window = DateRange(start_of_day(day), end_of_day(day))

        with self.session() as session:
            total_sales, sales_count = session.execute(
                select(func.coalesce(func.sum(Order.total), 0), func.count(Order.id))
                .where(*paid_orders(store_id, window))
            ).one()

            payments = session.scalars(
                select(Payment).where(
                    Payment.store_id == store_id,
                    Payment.status == "completed",
                    *in_range(Payment.created_at, window),
                )
            ).all()

            total_buys, buy_count = session.execute(
                select(func.coalesce(func.sum(Transaction.total), 0), func.count(Transaction.id)).where(
                    Transaction.store_id == store_id,
                    Transaction.status.in_(Transaction.PAID_OUT_STATUSES),
                    *in_range(Transaction.created_at, window),
                )
            ).one()

            returns = session.scalars(
                select(ProductReturn).where(
                    ProductReturn.store_id == store_id,
                    ProductReturn.status.in_(("completed", "processed")),
                    *in_range(ProductReturn.created_at, window),
                )
            ).all()

        total_sales = float(total_sales or 0)
        total_buys = float(total_buys or 0)
        total_refunds = sum(r.refund_amount or 0 for r in returns)

        by_method: Dict[str, Dict[str, Any]] = {}
        for payment in payments:
            entry = by_method.setdefault(payment.method, {"count": 0, "total": 0.0})
            entry["count"] += 1
            entry["total"] += payment.amount or 0
        payments_by_method = {
            method: {
                "count": entry["count"],
                "total": round(entry["total"], 2),
                "total_formatted": format_money(entry["total"]),
            }
            for method, entry in by_method.items()
        }

        cash_in = sum(p.amount or 0 for p in payments if p.method == "cash")
        cash_refunds = sum(r.refund_amount or 0 for r in returns if r.refund_method == "cash")
        # Buys are paid out of the drawer
        net_cash = cash_in - total_buys - cash_refunds

        card_payments = [p for p in payments if p.method in Payment.CARD_METHODS]
        card_total = sum(p.amount or 0 for p in card_payments)

        avg_ticket = total_sales / sales_count if sales_count else 0
        avg_buy = total_buys / buy_count if buy_count else 0
        is_today = day == now.date()
        day_phrase = "today" if is_today else f"on {day:%B} {day.day}"

        result = {
            "date": f"{day:%A, %B} {day.day}, {day.year}",
            "is_today": is_today,
            "sales": {
                "total": round(total_sales, 2),
                "total_formatted": format_money(total_sales),
                "count": sales_count,
                "average_ticket": round(avg_ticket, 2),
                "average_ticket_formatted": format_money(avg_ticket),
            },
            "buys": {
                "total": round(total_buys, 2),
                "total_formatted": format_money(total_buys),
                "count": buy_count,
                "average": round(avg_buy, 2),
                "average_formatted": format_money(avg_buy),
            },
            "returns": {
                "total": round(total_refunds, 2),
                "total_formatted": format_money(total_refunds),
                "count": len(returns),
            },
            "payments_by_method": payments_by_method,
            "cash_reconciliation": {
                "cash_in": round(cash_in, 2),
                "cash_in_formatted": format_money(cash_in),
                "cash_out_buys": round(total_buys, 2),
                "cash_out_buys_formatted": format_money(total_buys),
                "cash_refunds": round(cash_refunds, 2),
                "cash_refunds_formatted": format_money(cash_refunds),
                "net_cash": round(net_cash, 2),
                "net_cash_formatted": format_money(net_cash, signed=True),
            },
            "card_total": {
                "amount": round(card_total, 2),
                "amount_formatted": format_money(card_total),
                "transaction_count": len(card_payments),
            },
            "net_revenue": {
                "amount": round(total_sales - total_refunds, 2),
                "amount_formatted": format_money(total_sales - total_refunds),
            },
            "summary": self._summary(
                day_phrase, total_sales, sales_count, total_buys, buy_count, total_refunds, len(returns), net_cash
            ),
            "checklist": [
                f"Count the cash drawer and verify against expected: {format_money(net_cash)}",
                f"Verify card batch total matches: {format_money(card_total)}",
                "Review any pending orders or holds",
                "Check for items needing price updates",
                "Backup any important data",
            ],
        }
        if not (sales_count or buy_count or returns or payments):
            result["message"] = f"No sales, buys, returns or payments recorded {day_phrase}."
        return result

    @staticmethod
    def _summary(
        day_phrase: str,
        total_sales: float,
        sales_count: int,
        total_buys: float,
        buy_count: int,
        total_refunds: float,
        return_count: int,
        net_cash: float,
    ) -> str:
        parts = []
        if sales_count:
            parts.append(f"You made {format_money(total_sales)} in sales across {pluralize(sales_count, 'transaction')}")
        else:
            parts.append(f"No sales {day_phrase}")

        if buy_count:
            parts.append(f"Bought {pluralize(buy_count, 'item')} for {format_money(total_buys)}")

        if return_count:
            parts.append(f"{pluralize(return_count, 'return')} totaling {format_money(total_refunds)}")

        direction = "up" if net_cash >= 0 else "down"
        parts.append(f"Your drawer should be {direction} {format_money(abs(net_cash))} from where you started")
        return ". ".join(parts) + "."


class MorningBriefingTool(ChatTool):
    name = "get_morning_briefing"
    description = (
        "Get the morning briefing for store opening. Use when user says \"morning briefing\", "
        "\"what do I need to know today\", \"open the store\", or \"start my day\". Returns everything "
        "the owner needs to know when opening."
    )
    params_model = NoParams
    status_message = "Putting together your briefing..."

    def run(self, params: NoParams, store_id: int) -> Dict[str, Any]:
        now = self.now()
        today = now.date()
        yesterday = resolve_period("yesterday", now)
        week = DateRange(start_of_day(start_of_week(today)), now)
        hold_day = today - timedelta(days=HOLD_DAYS)

        with self.session() as session:
            yesterday_revenue, yesterday_count = session.execute(
                select(func.coalesce(func.sum(Order.total), 0), func.count(Order.id))
                .where(*paid_orders(store_id, yesterday))
            ).one()

            week_revenue, week_count = session.execute(
                select(func.coalesce(func.sum(Order.total), 0), func.count(Order.id))
                .where(*paid_orders(store_id, week))
            ).one()

            new_customers = session.scalar(
                select(func.count(Customer.id)).where(
                    Customer.store_id == store_id, *in_range(Customer.created_at, yesterday)
                )
            ) or 0

            hold_expiring = session.scalar(
                select(func.count(Transaction.id)).where(
                    Transaction.store_id == store_id,
                    Transaction.status == "payment_processed",
                    Transaction.created_at >= start_of_day(hold_day),
                    Transaction.created_at <= end_of_day(hold_day),
                )
            ) or 0

            def pending_due(before_today: bool):
                cutoff = LayawaySchedule.due_date < today if before_today else LayawaySchedule.due_date <= today
                return exists().where(
                    LayawaySchedule.layaway_id == Layaway.id,
                    LayawaySchedule.status == "pending",
                    cutoff,
                )

            active_layaways = [Layaway.store_id == store_id, Layaway.status == "active"]
            layaways_due = session.scalar(
                select(func.count(Layaway.id)).where(*active_layaways, pending_due(False))
            ) or 0

            overdue = session.scalars(
                select(Layaway)
                .options(joinedload(Layaway.customer))
                .where(*active_layaways, pending_due(True))
                .limit(5)
            ).all()
            overdue_layaways = [self._overdue_entry(layaway, today) for layaway in overdue]

            slow_movers = session.scalars(
                select(Product)
                .where(
                    Product.store_id == store_id,
                    Product.status == Product.STATUS_ACTIVE,
                    Product.quantity > 0,
                    Product.price >= SLOW_MOVER_MIN_PRICE,
                    Product.created_at < now - timedelta(days=SLOW_MOVER_DAYS),
                )
                .order_by(Product.price.desc())
                .limit(5)
            ).all()

            metal_prices = {}
            for metal in BRIEFING_METALS:
                price = MetalPrice.latest(session, metal)
                if price is not None:
                    metal_prices[metal] = {
                        "per_oz": round(price.price_per_ounce, 2),
                        "per_gram": round(price.price_per_gram, 2),
                        "updated": time_ago(price.effective_at, now),
                    }

            pending_returns = session.scalar(
                select(func.count(ProductReturn.id)).where(
                    ProductReturn.store_id == store_id,
                    ProductReturn.status.in_(("pending", "approved")),
                )
            ) or 0

            slow_movers_to_push = [
                {
                    "title": product.title,
                    "sku": product.sku,
                    "price": round(product.price, 2),
                    "price_formatted": format_money(product.price),
                    "days_in_inventory": (now - product.created_at).days,
                }
                for product in slow_movers
            ]

        yesterday_revenue = float(yesterday_revenue or 0)
        week_revenue = float(week_revenue or 0)

        result = {
            "greeting": self._greeting(now.hour),
            "date": f"{today:%A, %B} {today.day}",
            "yesterday": {
                "revenue": round(yesterday_revenue, 2),
                "revenue_formatted": format_money(yesterday_revenue),
                "transactions": yesterday_count,
                "new_customers": new_customers,
            },
            "week_to_date": {
                "revenue": round(week_revenue, 2),
                "revenue_formatted": format_money(week_revenue),
                "transactions": week_count,
                "days_in": today.weekday() + 1,
            },
            "action_items": {
                "hold_expiring_today": hold_expiring,
                "layaways_due_today": layaways_due,
                "pending_returns": pending_returns,
            },
            "overdue_layaways": overdue_layaways,
            "slow_movers_to_push": slow_movers_to_push,
            "metal_prices": metal_prices,
            "summary": self._summary(
                yesterday_revenue, yesterday_count, hold_expiring, layaways_due, len(overdue_layaways)
            ),
        }
        quiet = not (
            yesterday_count or week_count or hold_expiring or layaways_due or pending_returns
            or overdue_layaways or slow_movers_to_push
        )
        if quiet:
            result["message"] = "No sales this week and nothing waiting on you yet."
        return result

    @staticmethod
    def _overdue_entry(layaway: Layaway, today: date) -> Dict[str, Any]:
        pending = [s for s in layaway.schedules if s.status == "pending"]
        next_due = pending[0] if pending else None
        return {
            "customer_name": (layaway.customer.name if layaway.customer else "") or "Unknown",
            "amount_due": round(next_due.amount, 2) if next_due else 0,
            "days_overdue": (today - next_due.due_date).days if next_due else 0,
            "total_balance": round(layaway.balance_remaining or 0, 2),
        }

    @staticmethod
    def _greeting(hour: int) -> str:
        if hour < 12:
            return "Good morning"
        if hour < 17:
            return "Good afternoon"
        return "Good evening"

    @staticmethod
    def _summary(
        yesterday_revenue: float,
        yesterday_count: int,
        hold_expiring: int,
        layaways_due: int,
        overdue_layaways: int,
    ) -> str:
        parts = []
        if yesterday_revenue > 0:
            parts.append(
                f"Yesterday you did {format_money(yesterday_revenue)} across {pluralize(yesterday_count, 'transaction')}"
            )
        else:
            parts.append("No sales yesterday")

        action_items: List[str] = []
        if hold_expiring:
            action_items.append(f"{pluralize(hold_expiring, 'item')} coming off hold")
        if layaways_due:
            action_items.append(f"{pluralize(layaways_due, 'layaway payment')} due")
        if overdue_layaways:
            action_items.append(f"{overdue_layaways} overdue layaways need attention")

        parts.append("Today: " + ", ".join(action_items) if action_items else "No urgent items today")
        return ". ".join(parts) + "."
