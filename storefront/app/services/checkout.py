# storefront/app/services/checkout.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional, Protocol

from storefront.app.core.config import settings
from storefront.app.core.notifications import Notification, NotificationBusBase
from storefront.app.integrations.storefront_api.client import GENERIC_MESSAGE, GENERIC_TITLE
from storefront.app.models.cart import (
    Accepted,
    OrderRequest,
    OrderResult,
    Rejected,
    RejectionKind,
    SubmissionState,
)
from storefront.app.services.cart_state import CartState

logger = logging.getLogger(__name__)

SUCCESS_TITLE = "Order placed"
SUCCESS_MESSAGE = "Your order was placed successfully."
TIMEOUT_TITLE = "Request timed out"
TIMEOUT_MESSAGE = "The store took too long to answer. Your cart was kept, please try again."


class OrderCreator(Protocol):
    async def create_order(self, request: OrderRequest) -> OrderResult: ...


@dataclass(frozen=True)
class CheckoutOutcome:
    state: SubmissionState          # SUCCEEDED or FAILED, the state passed through
    request: OrderRequest
    result: OrderResult
    notification: Notification


class CheckoutSubmitter:
    """
    One-shot submission of the cart to the order-creation endpoint.

    idle --submit()--> pending --accepted--> succeeded --> idle   (cart cleared)
                               --rejected--> failed    --> idle   (cart kept)

    `submit()` snapshots the cart into an `OrderRequest` synchronously, then
    schedules the network call as a task and returns it without awaiting.
    Until the task has published its outcome and returned to idle (so also
    while succeeded/failed) further `submit()` calls are no-ops, so at most
    one order creation is ever in flight. Edits made while pending go to
    the live cart, never to the in-flight request.
    """

    def __init__(
        self,
        cart: CartState,
        client: OrderCreator,
        bus: NotificationBusBase,
        *,
        user_id_provider: Optional[Callable[[], Optional[str]]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._cart = cart
        self._client = client
        self._bus = bus
        self._user_id_provider = user_id_provider or (lambda: None)
        self._timeout = timeout_seconds or settings.checkout_timeout_seconds
        self._state = SubmissionState.IDLE
        self._task: Optional["asyncio.Task[CheckoutOutcome]"] = None
        self.last_outcome: Optional[CheckoutOutcome] = None

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def is_pending(self) -> bool:
        """True from submit() until the outcome has been published."""
        return self._task is not None

    @property
    def pending_task(self) -> Optional["asyncio.Task[CheckoutOutcome]"]:
        return self._task

    def can_submit(self) -> bool:
        return not self.is_pending and self._cart.item_count() > 0

    def submit(self) -> Optional["asyncio.Task[CheckoutOutcome]"]:
        """Start a submission; returns the task, or None when the call was a no-op."""
        if self.is_pending:
            logger.info("checkout: submission already pending; ignoring submit")
            return None
        if self._cart.item_count() <= 0:
            logger.info("checkout: cart is empty; nothing to submit")
            return None

        loop = asyncio.get_running_loop()
        request = OrderRequest.from_line_items(self._user_id_provider(), self._cart.items())
        snapshot_total = self._cart.total()

        self._state = SubmissionState.PENDING
        logger.info(
            "checkout: submitting %d lines", len(request.items),
            extra={"user_id": request.user_id, "total": str(snapshot_total)},
        )
        self._task = loop.create_task(self._run(request, snapshot_total))
        return self._task

    async def _run(self, request: OrderRequest, snapshot_total: Decimal) -> CheckoutOutcome:
        try:
            result = await self._send(request)
            if isinstance(result, Accepted):
                outcome = await self._succeed(request, result, snapshot_total)
            else:
                outcome = await self._fail(request, result)
            self.last_outcome = outcome
            return outcome
        finally:
            if self._task is asyncio.current_task():
                self._state = SubmissionState.IDLE
                self._task = None

    async def _send(self, request: OrderRequest) -> OrderResult:
        try:
            return await asyncio.wait_for(self._client.create_order(request), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("checkout: no answer within %.1fs", self._timeout)
            return Rejected(kind=RejectionKind.FAILURE, title=TIMEOUT_TITLE, message=TIMEOUT_MESSAGE)
        except Exception:
            logger.exception("checkout: order client raised")
            return Rejected(kind=RejectionKind.FAILURE, title=GENERIC_TITLE, message=GENERIC_MESSAGE)

    async def _succeed(self, request: OrderRequest, result: Accepted, snapshot_total: Decimal) -> CheckoutOutcome:
        self._state = SubmissionState.SUCCEEDED
        total = self._cart.total()
        self._cart.clear()
        logger.info("checkout: order accepted", extra={"order_id": result.order_id, "total": str(total)})
        note = Notification(
            kind="success",
            title=SUCCESS_TITLE,
            message=SUCCESS_MESSAGE,
            total=str(total),
            order_id=result.order_id,
            data={"ordered_total": str(snapshot_total), "lines": len(request.items)},
        )
        await self._publish(note)
        return CheckoutOutcome(SubmissionState.SUCCEEDED, request, result, note)

    async def _fail(self, request: OrderRequest, result: Rejected) -> CheckoutOutcome:
        self._state = SubmissionState.FAILED
        logger.warning(
            "checkout: order rejected: %s", result.title,
            extra={"rejection": result.kind.value, "status_code": result.status_code},
        )
        note = Notification(
            kind="conflict" if result.kind is RejectionKind.CONFLICT else "error",
            title=result.title,
            message=result.message,
            data={"status_code": result.status_code},
        )
        await self._publish(note)
        return CheckoutOutcome(SubmissionState.FAILED, request, result, note)

    async def _publish(self, note: Notification) -> None:
        try:
            await self._bus.publish(note)
        except Exception:
            logger.exception("checkout: could not publish notification %r", note.title)
