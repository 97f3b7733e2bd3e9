from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from storefront.app.api.deps import api_error_to_http, get_session
from storefront.app.integrations.storefront_api.client import StorefrontApiError
from storefront.app.models.orders import OrderDetail
from storefront.app.services.session import StorefrontSession

router = APIRouter(prefix="/api", tags=["orders"])


@router.get("/orders")
async def order_dashboard(
    latest: int = Query(default=0, ge=0, le=100, description="How many recent orders (0 = configured default)"),
    session: StorefrontSession = Depends(get_session),
) -> Dict[str, Any]:
    """Order stats and latest orders for the signed-in user, plus the cart badge."""
    try:
        history = await session.order_history(latest or None)
    except StorefrontApiError as exc:
        raise api_error_to_http(exc) from exc
    return {
        "history": history.model_dump(mode="json"),
        "cart": session.view.badge().model_dump(),
    }


@router.get("/orders/{order_id}", response_model=OrderDetail)
async def order_detail(order_id: str, session: StorefrontSession = Depends(get_session)) -> OrderDetail:
    try:
        return await session.order_detail(order_id)
    except StorefrontApiError as exc:
        raise api_error_to_http(exc) from exc
