from __future__ import annotations

import asyncio

import pytest

from storefront.app.api.sse import to_event_payload
from storefront.app.core.notifications import MemoryNotificationBus, Notification


@pytest.mark.asyncio
async def test_subscribers_receive_published_notifications():
    bus = MemoryNotificationBus()
    events = bus.subscribe()

    async def first():
        return await events.__anext__()

    pending = asyncio.ensure_future(first())
    await asyncio.sleep(0)

    await bus.publish(Notification(kind="success", title="Order placed", total="25.00", order_id="o-1"))
    got = await asyncio.wait_for(pending, timeout=1)
    await events.aclose()

    assert got["title"] == "Order placed"
    assert got["total"] == "25.00"
    assert bus.recent()[-1]["order_id"] == "o-1"


@pytest.mark.asyncio
async def test_recent_is_bounded():
    bus = MemoryNotificationBus(history=2)
    for i in range(3):
        await bus.publish(Notification(kind="error", title=f"t{i}"))
    assert [n["title"] for n in bus.recent()] == ["t1", "t2"]


def test_event_payload_shape():
    payload = to_event_payload({"kind": "conflict", "title": "Pending order", "message": "m", "ts": 0, "data": None})
    assert payload["kind"] == "conflict"
    assert payload["title"] == "Pending order"
    assert payload["total"] is None
    assert payload["data"] == {}
    assert payload["ts"].endswith("+00:00")
