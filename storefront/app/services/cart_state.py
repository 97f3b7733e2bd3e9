# storefront/app/services/cart_state.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from storefront.app.core.config import settings
from storefront.app.models.cart import (
    MAX_QUANTITY,
    MIN_QUANTITY,
    LineItem,
    Product,
)
from storefront.app.services.persistent_store import PersistentStore

logger = logging.getLogger(__name__)

ProductLike = Union[Product, Mapping[str, Any]]


def _version_of(raw: Any) -> int:
    if not isinstance(raw, dict):
        return 0
    try:
        return max(0, int(raw.get("version") or 0))
    except (TypeError, ValueError):
        return 0


class CartState:
    """
    The session's cart.

    Every mutating method writes the full snapshot to the store before it
    returns, so a reload right after any call observes that call.

    Snapshot layout::

        {"version": <int>, "items": [{"_id", "PRODUCT_NAME", "PRODUCT_PRICE", "PRODUCT_QUANTITY"}, ...]}

    A bare list of items (what the browser client writes) is accepted on load.
    The version grows with every save and restarts from 0 when the cart is
    cleared (the key is removed). `is_stale()` tells whether some other writer
    (another tab/process sharing the store) saved or cleared after us. A clear
    followed by as many fresh saves as we had made is not detected. Writes are
    still last-write-wins.
    """

    def __init__(self, store: PersistentStore, *, key: Optional[str] = None) -> None:
        self._store = store
        self._key = key or settings.cart_key
        self._items: Dict[str, LineItem] = {}
        self._version = 0
        self.reload()

    # ---------- reads ----------

    @property
    def key(self) -> str:
        return self._key

    @property
    def version(self) -> int:
        return self._version

    def items(self) -> List[LineItem]:
        return list(self._items.values())

    def get(self, product_id: str) -> Optional[LineItem]:
        return self._items.get(product_id)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._items

    def is_empty(self) -> bool:
        return not self._items

    def total(self) -> Decimal:
        return sum((it.line_total for it in self._items.values()), Decimal("0"))

    def item_count(self) -> int:
        return sum(it.quantity for it in self._items.values())

    # ---------- mutations ----------

    def add_item(self, product: ProductLike, default_quantity: int = MIN_QUANTITY) -> LineItem:
        """Append the product, or bump an existing line by one (no-op at the cap)."""
        if not isinstance(product, Product):
            product = Product.model_validate(product)

        existing = self._items.get(product.product_id)
        if existing is None:
            item = LineItem.from_product(product, default_quantity)
            self._items[item.product_id] = item
            self._persist()
            return item
        if existing.quantity >= MAX_QUANTITY:
            return existing
        return self._replace(existing, existing.quantity + 1)

    def set_quantity(self, product_id: str, quantity: int) -> Optional[LineItem]:
        item = self._items.get(product_id)
        if item is None:
            return None
        return self._replace(item, quantity)

    def increment_quantity(self, product_id: str) -> Optional[LineItem]:
        item = self._items.get(product_id)
        if item is None:
            return None
        return self._replace(item, item.quantity + 1)

    def decrement_quantity(self, product_id: str) -> Optional[LineItem]:
        # floor is 1; removing is remove_item()
        item = self._items.get(product_id)
        if item is None:
            return None
        return self._replace(item, item.quantity - 1)

    def remove_item(self, product_id: str) -> bool:
        if product_id not in self._items:
            return False
        del self._items[product_id]
        self._persist()
        return True

    def clear(self) -> None:
        self._items.clear()
        self._version = 0
        self._store.remove(self._key)

    # ---------- store sync ----------

    def reload(self) -> None:
        """Replace the in-memory cart with whatever the store holds."""
        self._version, self._items = self._parse(self._store.load(self._key))

    def is_stale(self) -> bool:
        raw = self._store.load(self._key)
        if raw is None:
            # removed by someone else's clear()
            return self._version > 0
        return _version_of(raw) > self._version

    def _replace(self, item: LineItem, quantity: int) -> LineItem:
        updated = item.with_quantity(quantity)
        if updated.quantity == item.quantity:
            return item
        self._items[item.product_id] = updated
        self._persist()
        return updated

    def _persist(self) -> None:
        stored = _version_of(self._store.load(self._key))
        self._version = max(self._version, stored) + 1
        self._store.save(
            self._key,
            {"version": self._version, "items": [it.to_storage() for it in self._items.values()]},
        )

    def _parse(self, raw: Any) -> Tuple[int, Dict[str, LineItem]]:
        if raw is None:
            return 0, {}
        if isinstance(raw, list):
            version, entries = 0, raw
        elif isinstance(raw, dict):
            version, entries = _version_of(raw), raw.get("items") or []
        else:
            logger.warning("cart: unexpected snapshot type %s under %r; starting empty", type(raw).__name__, self._key)
            return 0, {}

        items: Dict[str, LineItem] = {}
        for entry in entries:
            try:
                item = LineItem.model_validate(entry)
            except ValidationError as exc:
                logger.warning("cart: dropping malformed line item %r (%d errors)", entry, exc.error_count())
                continue
            prev = items.get(item.product_id)
            items[item.product_id] = item if prev is None else prev.with_quantity(prev.quantity + item.quantity)
        return version, items
