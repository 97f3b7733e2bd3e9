# storefront/app/integrations/storefront_api/client.py
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Tuple, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from storefront.app.core.config import settings
from storefront.app.models.cart import (
    Accepted,
    OrderRequest,
    OrderResult,
    Product,
    Rejected,
    RejectionKind,
)
from storefront.app.models.orders import Category, Order, User

logger = logging.getLogger(__name__)

GENERIC_TITLE = "Request failed"
GENERIC_MESSAGE = "Could not complete the request. Please try again."
NETWORK_MESSAGE = "Could not reach the store. Please check your connection and try again."
MALFORMED_MESSAGE = "The store returned an unexpected response."
CONFLICT_TITLE = "Order conflict"
CONFLICT_MESSAGE = "Another order is already in progress for this account."

TokenProvider = Callable[[], Optional[str]]
M = TypeVar("M", bound=BaseModel)


class StorefrontApiError(RuntimeError):
    """Raised by read calls when the remote API cannot give us what we asked for."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, title: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.title = title or GENERIC_TITLE


def _error_body(resp: httpx.Response) -> Tuple[Optional[str], Optional[str]]:
    """Pull `{error, message}` out of an error response, if it has one."""
    try:
        body = resp.json()
    except ValueError:
        return None, None
    if not isinstance(body, dict):
        return None, None
    title = body.get("error")
    message = body.get("message")
    return (
        title if isinstance(title, str) and title.strip() else None,
        message if isinstance(message, str) and message.strip() else None,
    )


def _order_id(resp: httpx.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    raw = body.get("_id", body.get("id"))
    if isinstance(raw, (str, int)) and not isinstance(raw, bool) and str(raw).strip():
        return str(raw)
    return None


def _parse_many(model: Type[M], data: Any, what: str) -> List[M]:
    if not isinstance(data, list):
        raise StorefrontApiError(f"{what}: expected a list, got {type(data).__name__}")
    try:
        return [model.model_validate(x) for x in data]
    except ValidationError as exc:
        raise StorefrontApiError(f"{what}: {exc.error_count()} invalid entries") from exc


def _parse_one(model: Type[M], data: Any, what: str) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise StorefrontApiError(f"{what}: {exc.error_count()} invalid fields") from exc


class StorefrontApiClient:
    """
    Async client for the remote storefront API.

    Every call carries `Authorization: Bearer <token>` when the token provider
    returns one. `create_order` never raises: all outcomes map onto
    `OrderResult`. Reads raise `StorefrontApiError` and are retried on
    transport errors; order creation is not idempotent and is sent once.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        token_provider: Optional[TokenProvider] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_root,
            timeout=timeout or settings.api_timeout_seconds,
            transport=transport,
        )
        self._token_provider: TokenProvider = token_provider or (lambda: None)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict:
        token = self._token_provider()
        return {"Authorization": f"Bearer {token}"} if token else {}

    # ---------- order creation ----------

    async def create_order(self, request: OrderRequest) -> OrderResult:
        try:
            resp = await self._client.post("/cart/create", json=request.to_payload(), headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("create_order: transport error: %s", exc)
            return Rejected(kind=RejectionKind.FAILURE, title=GENERIC_TITLE, message=NETWORK_MESSAGE)

        if resp.status_code == 409:
            title, message = _error_body(resp)
            return Rejected(
                kind=RejectionKind.CONFLICT,
                title=title or CONFLICT_TITLE,
                message=message or CONFLICT_MESSAGE,
                status_code=409,
            )
        if not resp.is_success:
            title, message = _error_body(resp)
            logger.warning("create_order: HTTP %s (%s)", resp.status_code, title or "no error body")
            return Rejected(
                kind=RejectionKind.FAILURE,
                title=title or GENERIC_TITLE,
                message=message or GENERIC_MESSAGE,
                status_code=resp.status_code,
            )

        order_id = _order_id(resp)
        if order_id is None:
            logger.warning("create_order: HTTP %s without an order id", resp.status_code)
            return Rejected(
                kind=RejectionKind.FAILURE,
                title=GENERIC_TITLE,
                message=MALFORMED_MESSAGE,
                status_code=resp.status_code,
            )
        return Accepted(order_id=order_id)

    # ---------- reads ----------

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        stop=stop_after_attempt(settings.api_read_attempts),
        reraise=True,
    )
    async def _get(self, path: str) -> httpx.Response:
        return await self._client.get(path, headers=self._headers())

    async def _get_json(self, path: str, *, allow_404: bool = False) -> Any:
        try:
            resp = await self._get(path)
        except httpx.HTTPError as exc:
            raise StorefrontApiError(f"GET {path} failed: {exc}") from exc

        if allow_404 and resp.status_code == 404:
            return None
        if not resp.is_success:
            title, message = _error_body(resp)
            raise StorefrontApiError(
                message or f"GET {path} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                title=title,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise StorefrontApiError(f"GET {path}: {MALFORMED_MESSAGE}", status_code=resp.status_code) from exc

    async def get_order(self, order_id: str) -> Order:
        data = await self._get_json(f"/cart/{quote(order_id, safe='')}")
        return _parse_one(Order, data, "order")

    async def list_orders_for_user(self, user_id: str) -> List[Order]:
        """Orders placed by a user. A 404 means the user has none yet."""
        data = await self._get_json(f"/cart/user/{quote(user_id, safe='')}", allow_404=True)
        if data is None:
            return []
        return _parse_many(Order, data, "orders")

    async def list_products(self) -> List[Product]:
        return _parse_many(Product, await self._get_json("/product"), "products")

    async def list_categories(self) -> List[Category]:
        return _parse_many(Category, await self._get_json("/category"), "categories")

    async def get_me(self) -> User:
        return _parse_one(User, await self._get_json("/user/me"), "user")
