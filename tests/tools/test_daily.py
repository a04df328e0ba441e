from datetime import date, datetime, timedelta

import pytest

from shopmata.db import Layaway, LayawaySchedule, Payment, ProductReturn, Transaction
from shopmata.tools import EndOfDayTool, MorningBriefingTool
from tests.conftest import NOW


@pytest.fixture
def end_of_day(session_factory, clock):
    return EndOfDayTool(session_factory, clock=clock)


@pytest.fixture
def briefing(session_factory, clock):
    return MorningBriefingTool(session_factory, clock=clock)


@pytest.fixture
def busy_day(seed, store):
    earlier = NOW - timedelta(hours=3)
    order = seed.order(store, 500.0, created_at=earlier)
    seed.add(Payment(store_id=store.id, order_id=order.id, method="cash", amount=300.0, created_at=earlier))
    seed.add(Payment(store_id=store.id, order_id=order.id, method="credit", amount=200.0, created_at=earlier))
    seed.add(Payment(store_id=store.id, method="cash", amount=999.0, status="voided", created_at=earlier))
    seed.add(Transaction(store_id=store.id, status="payment_processed", total=100.0, created_at=earlier))
    seed.add(Transaction(store_id=store.id, status="pending", total=70.0, created_at=earlier))
    seed.add(ProductReturn(
        store_id=store.id, status="completed", refund_amount=50.0, refund_method="cash", created_at=earlier
    ))


def test_end_of_day_reconciliation(end_of_day, busy_day, store):
    result = end_of_day.execute({}, store.id)

    assert result["date"] == "Wednesday, June 12, 2024"
    assert result["is_today"] is True
    assert result["sales"]["total"] == 500.0
    assert result["sales"]["count"] == 1
    assert result["buys"]["total"] == 100.0
    assert result["buys"]["count"] == 1
    assert result["returns"] == {"total": 50.0, "total_formatted": "$50", "count": 1}
    assert result["payments_by_method"]["cash"] == {"count": 1, "total": 300.0, "total_formatted": "$300"}
    assert result["payments_by_method"]["credit"]["total"] == 200.0
    assert result["cash_reconciliation"]["net_cash"] == 150.0
    assert result["cash_reconciliation"]["net_cash_formatted"] == "+$150"
    assert result["card_total"] == {"amount": 200.0, "amount_formatted": "$200", "transaction_count": 1}
    assert result["net_revenue"]["amount"] == 450.0
    assert result["summary"] == (
        "You made $500 in sales across 1 transaction. Bought 1 item for $100. "
        "1 return totaling $50. Your drawer should be up $150 from where you started."
    )


def test_end_of_day_for_a_quiet_past_date(end_of_day, busy_day, store):
    result = end_of_day.execute({"date": "2024-06-11"}, store.id)

    assert result["is_today"] is False
    assert result["sales"]["count"] == 0
    assert result["summary"] == "No sales on June 11. Your drawer should be up $0 from where you started."
    assert result["message"] == "No sales, buys, returns or payments recorded on June 11."


def test_end_of_day_rejects_bad_date(end_of_day, store):
    result = end_of_day.execute({"date": "June 11th"}, store.id)

    assert result == {"error": "Invalid date 'June 11th'. Use the format YYYY-MM-DD."}


def test_drawer_down_when_buys_exceed_cash(end_of_day, seed, store):
    seed.add(Transaction(store_id=store.id, status="completed", total=80.0, created_at=NOW - timedelta(hours=1)))

    result = end_of_day.execute({}, store.id)

    assert result["cash_reconciliation"]["net_cash_formatted"] == "-$80"
    assert result["summary"].endswith("Your drawer should be down $80 from where you started.")


def test_morning_briefing(briefing, seed, store):
    customer = seed.customer(store, "Dana", "Reyes")
    seed.order(store, 250.0, created_at=datetime(2024, 6, 11, 14, 0))
    seed.order(store, 100.0, created_at=datetime(2024, 6, 12, 10, 0))
    seed.order(store, 900.0, created_at=datetime(2024, 6, 7, 10, 0))

    layaway = Layaway(store_id=store.id, customer_id=customer.id, status="active", balance_remaining=300.0)
    layaway.schedules.append(LayawaySchedule(due_date=date(2024, 6, 5), amount=75.0))
    layaway.schedules.append(LayawaySchedule(due_date=date(2024, 7, 5), amount=75.0))
    seed.add(layaway)

    seed.metal_price("gold", 60.0, effective_at=NOW - timedelta(hours=2))

    result = briefing.execute({}, store.id)

    assert result["greeting"] == "Good afternoon"
    assert result["date"] == "Wednesday, June 12"
    assert result["yesterday"]["revenue"] == 250.0
    assert result["yesterday"]["transactions"] == 1
    assert result["week_to_date"]["revenue"] == 350.0
    assert result["week_to_date"]["days_in"] == 3
    assert result["action_items"]["layaways_due_today"] == 1
    assert result["overdue_layaways"] == [{
        "customer_name": "Dana Reyes",
        "amount_due": 75.0,
        "days_overdue": 7,
        "total_balance": 300.0,
    }]
    assert result["metal_prices"]["gold"]["per_gram"] == 60.0
    assert result["metal_prices"]["gold"]["updated"] == "2 hours ago"
    assert "silver" not in result["metal_prices"]
    assert result["summary"] == (
        "Yesterday you did $250 across 1 transaction. "
        "Today: 1 layaway payment due, 1 overdue layaways need attention."
    )


def test_morning_briefing_slow_movers_and_holds(briefing, seed, store):
    seed.product(store, "Vintage Rolex", price=4500.0, created_at=NOW - timedelta(days=120))
    seed.product(store, "Cheap Charm", price=20.0, created_at=NOW - timedelta(days=120))
    seed.add(Transaction(store_id=store.id, status="payment_processed", total=60.0, created_at=NOW - timedelta(days=30)))

    result = briefing.execute({}, store.id)

    assert [p["title"] for p in result["slow_movers_to_push"]] == ["Vintage Rolex"]
    assert result["slow_movers_to_push"][0]["days_in_inventory"] == 120
    assert result["action_items"]["hold_expiring_today"] == 1
    assert result["summary"] == "No sales yesterday. Today: 1 item coming off hold."


def test_end_of_day_ignores_other_stores(end_of_day, busy_day, other_store):
    result = end_of_day.execute({}, other_store.id)

    assert result["sales"]["count"] == 0
    assert result["buys"]["count"] == 0
    assert result["returns"]["count"] == 0
    assert result["payments_by_method"] == {}
    assert result["summary"] == "No sales today. Your drawer should be up $0 from where you started."
    assert result["message"] == "No sales, buys, returns or payments recorded today."


def test_busy_day_has_no_empty_message(end_of_day, busy_day, store):
    assert "message" not in end_of_day.execute({}, store.id)


def test_morning_briefing_ignores_other_stores(briefing, seed, store, other_store):
    customer = seed.customer(store, "Dana", "Reyes", created_at=datetime(2024, 6, 11, 9, 0))
    seed.order(store, 250.0, created_at=datetime(2024, 6, 11, 14, 0), customer=customer)
    seed.product(store, "Vintage Rolex", price=4500.0, created_at=NOW - timedelta(days=120))
    seed.add(ProductReturn(store_id=store.id, status="pending", refund_amount=10.0, created_at=NOW))

    result = briefing.execute({}, other_store.id)

    assert result["yesterday"] == {"revenue": 0.0, "revenue_formatted": "$0", "transactions": 0, "new_customers": 0}
    assert result["week_to_date"]["transactions"] == 0
    assert result["action_items"] == {"hold_expiring_today": 0, "layaways_due_today": 0, "pending_returns": 0}
    assert result["slow_movers_to_push"] == []
    assert result["summary"] == "No sales yesterday. No urgent items today."
    assert result["message"] == "No sales this week and nothing waiting on you yet."
