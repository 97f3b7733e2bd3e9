# storefront/app/services/session.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from storefront.app.core.config import settings
from storefront.app.core.notifications import NotificationBusBase, new_notification_bus
from storefront.app.integrations.storefront_api.client import StorefrontApiClient, StorefrontApiError
from storefront.app.models.orders import OrderDetail, OrderHistory, User
from storefront.app.services.cart_state import CartState
from storefront.app.services.checkout import CheckoutSubmitter
from storefront.app.services.order_history import build_order_detail, summarize_orders
from storefront.app.services.persistent_store import PersistentStore, get_store
from storefront.app.views.cart_view import CartView

logger = logging.getLogger(__name__)


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


@dataclass
class StorefrontSession:
    """Everything one browser session owns, wired together."""
    store: PersistentStore
    cart: CartState
    client: StorefrontApiClient
    submitter: CheckoutSubmitter
    view: CartView
    bus: NotificationBusBase
    token_key: str = "token"
    user_id_key: str = "userId"

    # ---------- credentials ----------

    def token(self) -> Optional[str]:
        return _as_str(self.store.load(self.token_key))

    def user_id(self) -> Optional[str]:
        return _as_str(self.store.load(self.user_id_key))

    def set_token(self, token: str) -> None:
        self.store.save(self.token_key, token)

    async def refresh_user(self) -> User:
        """Ask the API who the token belongs to and remember the user id."""
        user = await self.client.get_me()
        self.store.save(self.user_id_key, user.user_id)
        logger.info("session: signed in as user=%s", user.user_id)
        return user

    # ---------- order reads ----------

    async def order_history(self, latest_limit: Optional[int] = None) -> OrderHistory:
        user_id = self.user_id()
        if not user_id:
            raise StorefrontApiError("No user id in this session; sign in first", status_code=401)
        orders = await self.client.list_orders_for_user(user_id)
        return summarize_orders(orders, latest_limit)

    async def order_detail(self, order_id: str) -> OrderDetail:
        order, products, categories = await asyncio.gather(
            self.client.get_order(order_id),
            self.client.list_products(),
            self.client.list_categories(),
        )
        return build_order_detail(order, products, categories)

    async def aclose(self) -> None:
        await self.client.aclose()


def build_session(
    *,
    store: Optional[PersistentStore] = None,
    bus: Optional[NotificationBusBase] = None,
    base_url: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    checkout_timeout_seconds: Optional[float] = None,
) -> StorefrontSession:
    store = store if store is not None else get_store()
    bus = bus if bus is not None else new_notification_bus()
    token_key, user_id_key = settings.token_key, settings.user_id_key

    cart = CartState(store, key=settings.cart_key)
    client = StorefrontApiClient(
        base_url,
        token_provider=lambda: _as_str(store.load(token_key)),
        transport=transport,
    )
    submitter = CheckoutSubmitter(
        cart,
        client,
        bus,
        user_id_provider=lambda: _as_str(store.load(user_id_key)),
        timeout_seconds=checkout_timeout_seconds,
    )
    return StorefrontSession(
        store=store,
        cart=cart,
        client=client,
        submitter=submitter,
        view=CartView(cart, submitter),
        bus=bus,
        token_key=token_key,
        user_id_key=user_id_key,
    )
