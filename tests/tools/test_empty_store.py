import json
from datetime import date, timedelta

import pytest

from shopmata.db import (
    CustomerNote,
    Layaway,
    LayawaySchedule,
    Payment,
    PlatformOrder,
    Product,
    ProductReturn,
    StoreMarketplace,
    Transaction,
)
from shopmata.tools import BUILTIN_TOOLS, create_default_registry
from tests.conftest import NOW

# Enough to make each tool a valid call; every one of them reads rows the store does not have
CALLS = {
    "get_sales_summary": {},
    "get_sales_report": {"period": "this_week"},
    "get_top_products": {},
    "get_customer_insights": {},
    "get_customer_intelligence": {"customer_name": "Zelda"},
    "get_inventory_alerts": {},
    "calculate_metal_value": {"metal_type": "gold_14k", "weight": 10},
    "get_negotiation_advice": {"item_type": "ring"},
    "get_end_of_day_report": {},
    "get_morning_briefing": {},
    "channel_performance": {},
    "send_report": {"report": "get_sales_summary"},
}

# Works from market prices only, so there is nothing for it to report as missing
CALCULATIONS = {"calculate_metal_value"}


@pytest.fixture
def registry(session_factory, clock):
    return create_default_registry(session_factory, clock=clock)


@pytest.fixture
def busy_neighbour(seed, other_store):
    """A second store with rows every tool would pick up if it ignored store_id."""
    zelda = seed.customer(other_store, "Zelda", "Quartermaine", created_at=NOW - timedelta(days=3))
    seed.add(CustomerNote(store_id=other_store.id, customer_id=zelda.id, content="Collects Quartermaine brooches"))
    tiara = seed.product(other_store, "Quartermaine Tiara", price=987.65, cost=400.0, quantity=1,
                         created_at=NOW - timedelta(days=200))
    seed.product(other_store, "Quartermaine Gold Ring", price=987.65, status=Product.STATUS_SOLD)
    seed.inventory(other_store, tiara, quantity=0, reorder_point=2)

    for hours in (2, 26):
        order = seed.order(other_store, 987.65, created_at=NOW - timedelta(hours=hours), customer=zelda,
                           items=[(tiara, 987.65, 1)])
        seed.add(Payment(store_id=other_store.id, order_id=order.id, method="cash", amount=987.65,
                         created_at=NOW - timedelta(hours=hours)))

    seed.add(Transaction(store_id=other_store.id, status="payment_processed", total=987.65,
                         created_at=NOW - timedelta(days=30)))
    seed.add(ProductReturn(store_id=other_store.id, status="pending", refund_amount=987.65,
                           created_at=NOW - timedelta(hours=1)))

    layaway = Layaway(store_id=other_store.id, customer_id=zelda.id, status="active", balance_remaining=987.65)
    layaway.schedules.append(LayawaySchedule(due_date=date(2024, 6, 1), amount=987.65))
    seed.add(layaway)

    marketplace = seed.add(StoreMarketplace(store_id=other_store.id, platform="ebay", name="Quartermaine eBay"))
    seed.add(PlatformOrder(
        store_id=other_store.id,
        store_marketplace_id=marketplace.id,
        total=987.65,
        ordered_at=NOW - timedelta(hours=5),
        line_items=[{"title": "Quartermaine Tiara", "quantity": 1, "total": 987.65}],
    ))

    seed.metal_price("gold", 60.0)


def test_every_registered_tool_is_covered(registry):
    assert set(registry.names()) == set(CALLS)
    assert {tool.name for tool in BUILTIN_TOOLS} | {"send_report"} == set(CALLS)


@pytest.mark.parametrize("name", sorted(CALLS))
def test_tool_on_an_empty_store(registry, busy_neighbour, store, name):
    result = registry.execute(name, CALLS[name], store.id)

    assert isinstance(result, dict)
    assert "error" not in result
    if name not in CALCULATIONS:
        assert result.get("message"), f"{name} returned no message"

    dumped = json.dumps(result, default=str)
    assert "Quartermaine" not in dumped
    assert "987.65" not in dumped


def test_neighbour_rows_are_visible_to_their_own_store(registry, busy_neighbour, other_store):
    summary = registry.execute("get_sales_summary", {}, other_store.id)
    customer = registry.execute("get_customer_intelligence", {"customer_name": "Zelda"}, other_store.id)

    assert summary["revenue"] == 987.65
    assert customer["found"] is True
