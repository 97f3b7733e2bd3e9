# storefront/app/api/routes_cart.py
from __future__ import annotations

from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from storefront.app.api.deps import get_session
from storefront.app.models.cart import Accepted, Product
from storefront.app.services.session import StorefrontSession
from storefront.app.views.cart_view import CartPage, TotalsPanel

router = APIRouter(prefix="/api", tags=["cart"])

# Handlers must stay async: cart mutations and the checkout task share the event loop thread.


# ---------- Schemas ----------

class QuantityIn(BaseModel):
    quantity: Union[int, str, None] = Field(default=None, description="Raw quantity box content")


class CheckoutAccepted(BaseModel):
    state: str
    totals: TotalsPanel


# ---------- Routes ----------

@router.get("/cart", response_model=CartPage)
async def get_cart(session: StorefrontSession = Depends(get_session)) -> CartPage:
    """Badge, rows and totals panel for the current cart."""
    return session.view.render()


@router.post("/cart/items", response_model=CartPage)
async def add_item(product: Product, session: StorefrontSession = Depends(get_session)) -> CartPage:
    session.view.on_add(product)
    return session.view.render()


@router.post("/cart/items/{product_id}/increment", response_model=CartPage)
async def increment_item(product_id: str, session: StorefrontSession = Depends(get_session)) -> CartPage:
    session.view.on_increment(product_id)
    return session.view.render()


@router.post("/cart/items/{product_id}/decrement", response_model=CartPage)
async def decrement_item(product_id: str, session: StorefrontSession = Depends(get_session)) -> CartPage:
    session.view.on_decrement(product_id)
    return session.view.render()


@router.put("/cart/items/{product_id}", response_model=CartPage)
async def set_item_quantity(
    product_id: str,
    body: QuantityIn,
    session: StorefrontSession = Depends(get_session),
) -> CartPage:
    """Typed quantity; non-numeric input leaves the line untouched."""
    session.view.on_quantity_input(product_id, body.quantity)
    return session.view.render()


@router.delete("/cart/items/{product_id}", response_model=CartPage)
async def remove_item(product_id: str, session: StorefrontSession = Depends(get_session)) -> CartPage:
    session.view.on_remove(product_id)
    return session.view.render()


@router.delete("/cart", response_model=CartPage)
async def clear_cart(session: StorefrontSession = Depends(get_session)) -> CartPage:
    session.view.on_clear()
    return session.view.render()


@router.post(
    "/cart/checkout",
    response_model=CheckoutAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Finalize the order",
)
async def checkout(session: StorefrontSession = Depends(get_session)) -> CheckoutAccepted:
    """
    Starts the submission and returns immediately. Watch `/api/stream` (or poll
    `/api/checkout`) for the outcome.
    """
    if session.submitter.is_pending:
        raise HTTPException(status_code=409, detail="an order submission is already pending")
    if session.cart.item_count() <= 0:
        raise HTTPException(status_code=400, detail="cart is empty")
    session.view.on_finalize()
    return CheckoutAccepted(state=session.submitter.state.value, totals=session.view.totals())


@router.get("/checkout")
async def checkout_status(session: StorefrontSession = Depends(get_session)) -> Dict[str, Any]:
    sub = session.submitter
    out = sub.last_outcome
    last: Optional[Dict[str, Any]] = None
    if out is not None:
        last = {
            "state": out.state.value,
            "order_id": out.result.order_id if isinstance(out.result, Accepted) else None,
            "notification": out.notification.to_dict(),
        }
    return {"state": sub.state.value, "last_outcome": last}
