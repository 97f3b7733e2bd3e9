# storefront/app/views/cart_view.py
from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel

from storefront.app.models.cart import MAX_QUANTITY, MIN_QUANTITY, LineItem, SubmissionState, parse_quantity_text
from storefront.app.services.cart_state import CartState, ProductLike
from storefront.app.services.checkout import CheckoutOutcome, CheckoutSubmitter

logger = logging.getLogger(__name__)


# ----------------------------
# Render models
# ----------------------------

class CartBadge(BaseModel):
    count: int
    visible: bool


class LineItemRow(BaseModel):
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    can_decrement: bool
    can_increment: bool


class TotalsPanel(BaseModel):
    total: Decimal
    item_count: int
    can_checkout: bool
    submission_state: SubmissionState


class CartPage(BaseModel):
    badge: CartBadge
    rows: List[LineItemRow]
    totals: TotalsPanel


def parse_quantity_input(raw: Any) -> Optional[int]:
    """
    What the quantity box accepts: an int, or a string of digits (optionally
    signed, surrounding whitespace ignored). None means "leave it as it was".
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        return parse_quantity_text(raw)
    return None


def _row(item: LineItem) -> LineItemRow:
    return LineItemRow(
        product_id=item.product_id,
        name=item.name,
        unit_price=item.unit_price,
        quantity=item.quantity,
        line_total=item.line_total,
        can_decrement=item.quantity > MIN_QUANTITY,
        can_increment=item.quantity < MAX_QUANTITY,
    )


class CartView:
    """Projects CartState for rendering and turns UI gestures into cart/checkout calls."""

    def __init__(self, cart: CartState, submitter: CheckoutSubmitter) -> None:
        self._cart = cart
        self._submitter = submitter

    # ---------- projections ----------

    def badge(self) -> CartBadge:
        count = self._cart.item_count()
        return CartBadge(count=count, visible=count > 0)

    def rows(self) -> List[LineItemRow]:
        return [_row(it) for it in self._cart.items()]

    def totals(self) -> TotalsPanel:
        return TotalsPanel(
            total=self._cart.total(),
            item_count=self._cart.item_count(),
            can_checkout=self._submitter.can_submit(),
            submission_state=self._submitter.state,
        )

    def render(self) -> CartPage:
        return CartPage(badge=self.badge(), rows=self.rows(), totals=self.totals())

    # ---------- gestures ----------

    def on_add(self, product: ProductLike) -> LineItem:
        return self._cart.add_item(product)

    def on_increment(self, product_id: str) -> Optional[LineItem]:
        return self._cart.increment_quantity(product_id)

    def on_decrement(self, product_id: str) -> Optional[LineItem]:
        return self._cart.decrement_quantity(product_id)

    def on_quantity_input(self, product_id: str, raw: Any) -> bool:
        """Typed quantity. Non-numeric input is ignored; returns whether it was applied."""
        quantity = parse_quantity_input(raw)
        if quantity is None:
            logger.debug("cart view: ignoring non-numeric quantity %r for %s", raw, product_id)
            return False
        return self._cart.set_quantity(product_id, quantity) is not None

    def on_remove(self, product_id: str) -> bool:
        return self._cart.remove_item(product_id)

    def on_clear(self) -> None:
        self._cart.clear()

    def on_finalize(self) -> Optional["asyncio.Task[CheckoutOutcome]"]:
        """The "finalize order" button. Must run inside the event loop."""
        if not self._submitter.can_submit():
            return None
        return self._submitter.submit()
