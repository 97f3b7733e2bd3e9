from __future__ import annotations

from decimal import Decimal

from storefront.app.models.cart import MAX_QUANTITY, LineItem
from storefront.app.services.cart_state import CartState
from storefront.app.services.persistent_store import MemoryStore
from storefront.tests.factories import product

P1 = product("p1", "10.00")
P2 = product("p2", "5.00")


def _snapshot(cart: CartState):
    return [(it.product_id, it.quantity) for it in cart.items()]


def test_total_and_item_count(memory_store):
    cart = CartState(memory_store)
    cart.add_item(P1)
    cart.set_quantity("p1", 2)
    cart.add_item(P2)

    assert cart.total() == Decimal("25.00")
    assert cart.item_count() == 3
    assert len(cart) == 2


def test_add_twice_then_decrement_twice_stops_at_one(memory_store):
    cart = CartState(memory_store)
    cart.add_item(P1)
    cart.add_item(P1)
    cart.decrement_quantity("p1")
    cart.decrement_quantity("p1")

    assert cart.get("p1").quantity == 1
    assert len(cart) == 1


def test_adding_existing_product_never_duplicates(memory_store):
    cart = CartState(memory_store)
    for _ in range(3):
        cart.add_item(P1)
    assert _snapshot(cart) == [("p1", 3)]


def test_add_at_cap_is_noop(memory_store):
    cart = CartState(memory_store)
    cart.add_item(P1)
    cart.set_quantity("p1", MAX_QUANTITY)
    version = cart.version

    item = cart.add_item(P1)
    assert item.quantity == MAX_QUANTITY
    assert cart.version == version


def test_set_quantity_clamps_both_ends(memory_store):
    cart = CartState(memory_store)
    cart.add_item(P1)
    assert cart.set_quantity("p1", 0).quantity == 1
    assert cart.set_quantity("p1", -5).quantity == 1
    assert cart.set_quantity("p1", 1000).quantity == MAX_QUANTITY
    assert cart.increment_quantity("p1").quantity == MAX_QUANTITY


def test_unknown_product_mutations_are_noops(memory_store):
    cart = CartState(memory_store)
    assert cart.set_quantity("nope", 3) is None
    assert cart.increment_quantity("nope") is None
    assert cart.decrement_quantity("nope") is None
    assert cart.remove_item("nope") is False
    assert memory_store.load("cartItems") is None


def test_every_mutation_is_visible_after_reload(memory_store):
    cart = CartState(memory_store)
    steps = [
        lambda: cart.add_item(P1),
        lambda: cart.add_item(P2),
        lambda: cart.increment_quantity("p1"),
        lambda: cart.set_quantity("p2", 7),
        lambda: cart.decrement_quantity("p2"),
        lambda: cart.remove_item("p1"),
    ]
    for step in steps:
        step()
        assert _snapshot(CartState(memory_store)) == _snapshot(cart)


def test_persisted_items_use_browser_field_names(memory_store):
    cart = CartState(memory_store)
    cart.add_item(P1)
    saved = memory_store.load("cartItems")
    assert saved["version"] == 1
    assert saved["items"] == [
        {"_id": "p1", "PRODUCT_NAME": "P1", "PRODUCT_PRICE": "10.00", "PRODUCT_QUANTITY": 1}
    ]


def test_clear_removes_persisted_cart(memory_store):
    cart = CartState(memory_store)
    cart.add_item(P1)
    cart.clear()
    assert cart.is_empty()
    assert memory_store.load("cartItems") is None
    assert CartState(memory_store).is_empty()


def test_loads_bare_list_and_merges_duplicates():
    store = MemoryStore()
    store.save("cartItems", [
        {"_id": "p1", "PRODUCT_NAME": "A", "PRODUCT_PRICE": 10, "PRODUCT_QUANTITY": 2},
        {"_id": "p1", "PRODUCT_NAME": "A", "PRODUCT_PRICE": 10, "PRODUCT_QUANTITY": "3"},
    ])
    cart = CartState(store)
    assert _snapshot(cart) == [("p1", 5)]
    assert cart.version == 0


def test_malformed_entries_are_dropped():
    store = MemoryStore()
    store.save("cartItems", {"version": 4, "items": [
        {"PRODUCT_NAME": "no id", "PRODUCT_PRICE": 1},
        {"_id": "neg", "PRODUCT_PRICE": -1},
        {"_id": "word", "PRODUCT_PRICE": 1, "PRODUCT_QUANTITY": "lots"},
        {"_id": "inf", "PRODUCT_PRICE": 1, "PRODUCT_QUANTITY": float("inf")},
        {"_id": "nan", "PRODUCT_PRICE": 1, "PRODUCT_QUANTITY": float("nan")},
        {"_id": "ok", "PRODUCT_PRICE": "2.50", "PRODUCT_QUANTITY": 500},
        "garbage",
    ]})
    cart = CartState(store)
    assert _snapshot(cart) == [("ok", MAX_QUANTITY)]
    assert cart.version == 4


def test_unexpected_snapshot_type_starts_empty():
    store = MemoryStore()
    store.save("cartItems", "oops")
    assert CartState(store).is_empty()


def test_is_stale_after_another_writer_saves(memory_store):
    a = CartState(memory_store)
    b = CartState(memory_store)
    a.add_item(P1)

    assert b.is_stale()
    assert not a.is_stale()
    b.reload()
    assert not b.is_stale()
    assert _snapshot(b) == [("p1", 1)]


def test_version_keeps_growing_across_writers(memory_store):
    a = CartState(memory_store)
    b = CartState(memory_store)
    a.add_item(P1)
    a.add_item(P1)
    b.add_item(P2)  # b never reloaded: last write wins, version still moves forward
    assert b.version == 3
    assert _snapshot(CartState(memory_store)) == [("p2", 1)]


def test_line_item_quantity_validation():
    assert LineItem.model_validate({"_id": "x", "PRODUCT_PRICE": 1, "PRODUCT_QUANTITY": 2.0}).quantity == 2
    assert LineItem.model_validate({"_id": "x", "PRODUCT_PRICE": 1, "PRODUCT_QUANTITY": None}).quantity == 1
    assert LineItem.model_validate({"_id": "x", "PRODUCT_PRICE": 1}).line_total == Decimal("1")


def test_huge_quantity_text_clamps_instead_of_failing():
    item = LineItem.model_validate({"_id": "x", "PRODUCT_PRICE": 1, "PRODUCT_QUANTITY": "9" * 5000})
    assert item.quantity == MAX_QUANTITY


def test_clear_by_another_writer_is_detected(memory_store):
    a = CartState(memory_store)
    b = CartState(memory_store)
    a.add_item(P1)
    b.reload()

    a.clear()
    assert b.is_stale()
    assert not a.is_stale()
    b.reload()
    assert b.is_empty()
    assert not b.is_stale()
