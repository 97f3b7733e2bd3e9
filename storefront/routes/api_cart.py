import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from storefront.routes.api_products import MOCK_PRODUCTS
from storefront.routes.auth import MockApiError, require_user

# Orders live under /cart on the remote API (a submitted cart *is* the order).
router = APIRouter(tags=["cart"])


class CartLineIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="PRODUCT_ID")
    quantity: int = Field(alias="PRODUCT_QUANTITY", ge=1, le=99)


class CartCreateIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="CART_USER_ID")
    items: List[CartLineIn] = Field(default_factory=list, alias="CART_PRODUCT")


class StatusIn(BaseModel):
    status: str


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _orders(request: Request) -> List[Dict[str, Any]]:
    return request.app.state.mock.orders


@router.post("/cart/create", status_code=201)
def create_cart(body: CartCreateIn, request: Request, user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    if body.user_id != user["_id"]:
        raise MockApiError(403, "Forbidden", "Orders can only be placed for the signed-in user.")
    if not body.items:
        raise MockApiError(400, "Empty cart", "Add at least one product before ordering.")

    prices = {p["_id"]: Decimal(str(p["PRODUCT_PRICE"])) for p in MOCK_PRODUCTS}
    unknown = [it.product_id for it in body.items if it.product_id not in prices]
    if unknown:
        raise MockApiError(404, "Product not found", f"Unknown products: {', '.join(unknown)}")

    orders = _orders(request)
    if any(o["CART_USER_ID"] == user["_id"] and o["CART_STATUS"] == "active" for o in orders):
        raise MockApiError(409, "Pending order", "You already have an order awaiting payment.")

    total = sum((prices[it.product_id] * it.quantity for it in body.items), Decimal("0"))
    now = _now_iso()
    order = {
        "_id": uuid.uuid4().hex[:24],
        "CART_USER_ID": user["_id"],
        "CART_PRODUCT": [
            {"PRODUCT_ID": it.product_id, "PRODUCT_QUANTITY": it.quantity, "_id": uuid.uuid4().hex[:24]}
            for it in body.items
        ],
        "CART_PRICE": float(total),
        "CART_STATUS": "active",
        "createdAt": now,
        "updatedAt": now,
        "__v": 0,
    }
    orders.append(order)
    return order


@router.get("/cart/user/{user_id}")
def list_user_carts(user_id: str, request: Request, _user: Dict[str, Any] = Depends(require_user)) -> List[Dict[str, Any]]:
    found = [o for o in _orders(request) if o["CART_USER_ID"] == user_id]
    if not found:
        raise MockApiError(404, "Not found", "No orders for this user.")
    return found


@router.get("/cart/{order_id}")
def get_cart(order_id: str, request: Request, _user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    for o in _orders(request):
        if o["_id"] == order_id:
            return o
    raise MockApiError(404, "Not found", f"Order {order_id} does not exist.")


@router.patch("/cart/{order_id}/status")
def set_cart_status(
    order_id: str,
    body: StatusIn,
    request: Request,
    _user: Dict[str, Any] = Depends(require_user),
) -> Dict[str, Any]:
    """Settle an order (completed/canceled) so the user can place another one."""
    if body.status not in ("active", "completed", "canceled"):
        raise MockApiError(400, "Invalid status", f"Unknown status {body.status!r}.")
    order = get_cart(order_id, request, _user)
    order["CART_STATUS"] = body.status
    order["updatedAt"] = _now_iso()
    return order
