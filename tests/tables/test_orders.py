from datetime import datetime, timedelta

import pytest

from shopmata.db import Order
from shopmata.tables import OrdersTable
from tests.conftest import NOW


@pytest.fixture
def table(session_factory):
    return OrdersTable(session_factory)


@pytest.fixture
def orders(seed, store, other_store):
    dana = seed.customer(store, "Dana", "Reyes", email="dana@example.com")
    ring = seed.product(store, "Gold Ring")
    first = seed.order(
        store, 250.0, created_at=datetime(2024, 6, 1, 10, 0), customer=dana,
        items=[(ring, 200.0, 1), (ring, 25.0, 2)], order_number="ORD-1001",
    )
    second = seed.order(store, 80.0, created_at=datetime(2024, 6, 10, 10, 0), order_number="ORD-1002",
                        status=Order.STATUS_PENDING)
    third = seed.order(store, 40.0, created_at=datetime(2024, 6, 11, 10, 0), order_number="ORD-1003")
    seed.order(store, 999.0, order_number="ORD-0000", deleted_at=NOW)
    seed.order(other_store, 10.0, order_number="ORD-9999")
    return first, second, third


def ids(result):
    return [row["id"]["data"] for row in result["items"]]


def test_store_id_is_required(table):
    with pytest.raises(ValueError, match="requires a store_id"):
        table.data({})


def test_newest_first_excluding_deleted_and_other_stores(table, orders, store):
    first, second, third = orders

    result = table.data({"store_id": store.id})

    assert ids(result) == [third.id, second.id, first.id]
    assert result["total"] == 3


def test_row_cells(table, orders, store):
    first, second, _ = orders

    rows = {row["id"]["data"]: row for row in table.data({"store_id": store.id})["items"]}

    assert rows[first.id]["order_number"] == {"type": "link", "href": f"/orders/{first.id}", "data": "ORD-1001"}
    assert rows[first.id]["customer"]["data"] == "Dana Reyes"
    assert rows[first.id]["items_count"] == {"data": 2}
    assert rows[first.id]["created_at"] == {"data": "Jun 01, 2024"}
    assert rows[first.id]["total"] == {"type": "currency", "data": 250.0, "currency": "USD"}
    assert rows[second.id]["customer"] == {"type": "link", "href": None, "data": "Walk-in Customer"}
    assert rows[second.id]["status"] == {"type": "badge", "data": "Pending", "variant": "warning"}


@pytest.mark.parametrize("term", ["ORD-1001", "dana", "REYES", "@example.com"])
def test_search_term(table, orders, store, term):
    first = orders[0]

    assert ids(table.data({"store_id": store.id, "term": term})) == [first.id]


def test_status_and_date_filters(table, orders, store):
    first, second, third = orders

    assert ids(table.data({"store_id": store.id, "status": "pending"})) == [second.id]
    assert ids(table.data({"store_id": store.id, "date_from": "2024-06-10"})) == [third.id, second.id]
    assert ids(table.data({"store_id": store.id, "date_to": "2024-06-10"})) == [second.id, first.id]


def test_bad_date_filter(table, orders, store):
    with pytest.raises(ValueError, match="Invalid date"):
        table.data({"store_id": store.id, "date_from": "last tuesday"})


def test_sorting(table, orders, store):
    first, second, third = orders

    assert ids(table.data({"store_id": store.id, "sort_by": "total", "sort_direction": "asc"})) == [
        third.id, second.id, first.id,
    ]
    # Walk-in customers sort as an empty name
    assert ids(table.data({"store_id": store.id, "sort_by": "customer", "sort_direction": "desc"}))[0] == first.id
    # Only sortable columns are honored
    assert ids(table.data({"store_id": store.id, "sort_by": "items_count", "sort_direction": "asc"})) == [
        first.id, second.id, third.id,
    ]


def test_pagination(table, seed, store):
    for i in range(17):
        seed.order(store, 10.0 + i, created_at=NOW - timedelta(hours=i))

    page_two = table.data({"store_id": store.id, "page": 2})

    assert page_two["count"] == 2
    assert page_two["total"] == 17
    assert table.pagination() == {
        "total": 17,
        "per_page": 15,
        "current_page": 2,
        "last_page": 2,
        "from": 16,
        "to": 17,
        "show_pagination": True,
    }

    everything = table.data({"store_id": store.id, "show_all": True})
    assert everything["count"] == 17
    assert table.pagination()["per_page"] == 17
    assert table.pagination()["last_page"] == 1


def test_empty_pagination(table, store):
    assert table.pagination()["total"] == 0

    result = table.data({"store_id": store.id, "per_page": "abc"})

    assert result == {"count": 0, "total": 0, "items": []}
    assert table.pagination()["from"] == 0
    assert table.pagination()["per_page"] == 15


def test_config(table, orders, store):
    config = table.config({"store_id": store.id, "per_page": 2})

    assert config["title"] == "Orders"
    assert config["component"] == "DataTable"
    assert config["fields"][0] == ("order_number", "Order #", True)
    assert ("items_count", "Items", False) in config["fields"]
    assert config["has_checkbox"] is True
    assert config["is_searchable"] is True
    assert len(config["data"]["items"]) == 2
    assert config["data"]["options"]["per_page"] == 2
    assert config["pagination"]["last_page"] == 2
    assert config["no_data"] == "No orders found. Create your first order to get started."
    assert len(config["filter"]["statuses"]) == 8
    assert config["filter"]["statuses"][0] == {"value": "pending", "label": "Pending"}
