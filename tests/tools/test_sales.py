from datetime import datetime, timedelta

import pytest

from shopmata.db import Order
from shopmata.tools import SalesReportTool, SalesSummaryTool
from tests.conftest import NOW


@pytest.fixture
def summary(session_factory, clock):
    return SalesSummaryTool(session_factory, clock=clock)


@pytest.fixture
def report(session_factory, clock):
    return SalesReportTool(session_factory, clock=clock)


def test_summary_for_today(summary, seed, store, other_store):
    ring = seed.product(store, "14k Gold Ring")
    chain = seed.product(store, "Silver Chain")
    seed.order(store, 150.0, items=[(ring, 100.0, 1), (chain, 25.0, 2)])
    seed.order(store, 40.0, status=Order.STATUS_PENDING)
    seed.order(other_store, 999.0)

    result = summary.execute({"period": "today"}, store.id)

    assert result["revenue"] == 150.0
    assert result["revenue_formatted"] == "$150.00"
    assert result["total_orders"] == 1
    assert result["average_order_value"] == 150.0
    assert result["items_sold"] == 3
    assert result["orders_by_status"] == {"completed": 1, "pending": 1}
    assert result["start_date"] == "2024-06-12"
    assert "message" not in result


def test_summary_with_no_orders_reports_zero_with_message(summary, store):
    result = summary.execute({}, store.id)

    assert result["revenue"] == 0
    assert result["revenue_formatted"] == "$0.00"
    assert result["total_orders"] == 0
    assert result["average_order_value"] == 0
    assert result["message"] == "No paid orders today."


def test_summary_ignores_deleted_and_unpaid_orders(summary, seed, store):
    seed.order(store, 80.0, deleted_at=NOW - timedelta(hours=1))
    seed.order(store, 60.0, status=Order.STATUS_CANCELLED)
    seed.order(store, 70.0, status=Order.STATUS_REFUNDED)

    result = summary.execute({"period": "today"}, store.id)

    assert result["revenue"] == 0
    assert result["orders_by_status"] == {"cancelled": 1, "refunded": 1}


def test_summary_counts_new_customers(summary, seed, store):
    seed.customer(store, "Ann", "Smith", created_at=NOW - timedelta(hours=3))
    seed.customer(store, "Bob", "Jones", created_at=NOW - timedelta(days=1))

    assert summary.execute({"period": "today"}, store.id)["new_customers"] == 1
    assert summary.execute({"period": "this_week"}, store.id)["new_customers"] == 2


def test_summary_invalid_period_falls_back_to_default(summary, seed, store):
    seed.order(store, 10.0)

    result = summary.execute({"period": "fortnight"}, store.id)

    assert result["period"] == "today"
    assert result["revenue"] == 10.0


def test_weekly_report_compares_with_last_week(report, seed, store):
    seed.order(store, 100.0, created_at=datetime(2024, 6, 10, 10, 0))
    seed.order(store, 300.0, created_at=datetime(2024, 6, 11, 12, 0))
    seed.order(store, 50.0, created_at=datetime(2024, 6, 12, 9, 0))
    seed.order(store, 200.0, created_at=datetime(2024, 6, 5, 11, 0))

    result = report.execute({"period": "this_week"}, store.id)

    assert result["revenue"] == 450.0
    assert result["revenue_formatted"] == "$450"
    assert result["previous_revenue"] == 200.0
    assert result["revenue_change_percent"] == 125.0
    assert result["revenue_trend"] == "up"
    assert result["transaction_count"] == 3
    assert result["transactions_change_percent"] == 200.0
    assert result["comparison_period"] == "last week"
    assert result["date_range"] == {"start": "Jun 10", "end": "Jun 12, 2024"}
    assert result["best_day"]["date"] == "Tuesday"
    assert result["best_day"]["date_full"] == "Jun 11"
    assert result["best_day"]["total"] == 300.0
    assert result["top_sale"]["amount"] == 300.0
    assert result["top_sale"]["customer_name"] == "Walk-in"


def test_daily_report_has_no_best_day(report, seed, store):
    seed.order(store, 75.0)

    result = report.execute({"period": "today"}, store.id)

    assert result["best_day"] is None
    assert result["comparison_period"] == "yesterday"
    assert result["revenue_change_percent"] == 100.0


def test_report_top_categories_and_returning_customers(report, seed, store):
    rings = seed.category(store, "Rings")
    ring = seed.product(store, "Diamond Ring", category=rings)
    loose = seed.product(store, "Loose Stone")
    regular = seed.customer(store, "Ann", "Smith", created_at=NOW - timedelta(days=90))

    seed.order(store, 400.0, customer=regular, items=[(ring, 300.0, 1), (loose, 100.0, 1)])

    result = report.execute({"period": "this_month"}, store.id)

    assert result["returning_customers"] == 1
    assert result["top_sale"]["customer_name"] == "Ann Smith"
    assert result["top_sale"]["item_count"] == 2
    categories = {c["name"]: c for c in result["top_categories"]}
    assert categories["Rings"]["total"] == 300.0
    assert categories["Rings"]["percentage"] == 75
    assert categories["Uncategorized"]["total"] == 100.0


def test_report_with_no_sales(report, store):
    result = report.execute({"period": "yesterday"}, store.id)

    assert result["revenue"] == 0
    assert result["top_sale"] is None
    assert result["top_categories"] == []
    assert result["returns"] == {"count": 0, "total_refunded": 0.0, "total_refunded_formatted": "$0"}
    assert result["message"] == "No sales recorded yesterday."


def test_report_is_scoped_to_store(report, seed, store, other_store):
    seed.order(other_store, 500.0)

    result = report.execute({"period": "today"}, store.id)

    assert result["revenue"] == 0
    assert result["transaction_count"] == 0
