from __future__ import annotations

from decimal import Decimal

from storefront.app.models.cart import Product
from storefront.app.models.orders import Category, Order
from storefront.app.services.order_history import build_order_detail, status_label, summarize_orders


def _order(oid, status, price, created=None, lines=()):
    return Order.model_validate({
        "_id": oid,
        "CART_USER_ID": "u1",
        "CART_PRODUCT": [{"PRODUCT_ID": p, "PRODUCT_QUANTITY": q} for p, q in lines],
        "CART_PRICE": price,
        "CART_STATUS": status,
        "createdAt": created,
    })


def test_status_labels():
    assert status_label("active") == "Pending"
    assert status_label("completed") == "Completed"
    assert status_label("canceled") == "Canceled"
    assert status_label("refunded") == "Unknown"


def test_summarize_counts_and_values():
    history = summarize_orders([
        _order("a", "active", "10.50", "2024-01-01T10:00:00Z"),
        _order("b", "completed", "20", "2024-01-03T10:00:00Z"),
        _order("c", "completed", "5.25", "2024-01-02T10:00:00Z"),
        _order("d", "canceled", "99", "2024-01-04T10:00:00Z"),
        _order("e", "mystery", "1"),
    ])
    s = history.stats
    assert (s.active_count, s.completed_count, s.canceled_count, s.total_transactions) == (1, 2, 1, 5)
    assert s.total_completed_value == Decimal("25.25")
    assert s.total_active_value == Decimal("10.50")


def test_latest_is_newest_first_and_limited():
    orders = [
        _order("old", "active", 1, "2024-01-01T00:00:00Z"),
        _order("undated", "active", 1),
        _order("new", "active", 1, "2024-03-01T00:00:00Z"),
        _order("mid", "active", 1, "2024-02-01T00:00:00+00:00"),
    ]
    assert [o.order_id for o in summarize_orders(orders, latest_limit=3).latest] == ["new", "mid", "old"]
    assert [o.order_id for o in summarize_orders(orders, latest_limit=10).latest][-1] == "undated"


def test_empty_history():
    history = summarize_orders([])
    assert history.stats.total_transactions == 0
    assert history.latest == []


def test_order_detail_joins_catalog():
    order = _order("o1", "completed", "13.00", lines=[("p1", 2), ("gone", 1)])
    products = [Product.model_validate({"_id": "p1", "PRODUCT_NAME": "Bread", "PRODUCT_PRICE": "6.50",
                                        "PRODUCT_CATEGORY": "c1"})]
    categories = [Category.model_validate({"_id": "c1", "CATEGORY_NAME": "Bakery"})]

    detail = build_order_detail(order, products, categories)

    assert detail.status_label == "Completed"
    first, second = detail.lines
    assert (first.name, first.category, first.quantity, first.unit_price) == ("Bread", "Bakery", 2, Decimal("6.50"))
    assert (second.product_id, second.name, second.quantity) == ("gone", None, 1)
