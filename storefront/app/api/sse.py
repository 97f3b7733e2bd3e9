# storefront/app/api/sse.py
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sse_starlette.sse import EventSourceResponse

from storefront.app.api.deps import get_session
from storefront.app.services.session import StorefrontSession

router = APIRouter(prefix="/api", tags=["sse"])

_PASSTHROUGH_KEYS = ("title", "message", "total", "order_id")


def _ts_iso(ts: Optional[float] = None) -> str:
    dt = datetime.fromtimestamp(ts, timezone.utc) if ts else datetime.now(timezone.utc)
    return dt.isoformat(timespec="seconds")


def to_event_payload(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a bus notification for the browser toast."""
    payload: Dict[str, Any] = {"ts": _ts_iso(raw.get("ts")), "kind": raw.get("kind") or "info"}
    for k in _PASSTHROUGH_KEYS:
        payload[k] = raw.get(k)
    data = raw.get("data")
    payload["data"] = data if isinstance(data, dict) else {}
    return payload


@router.get("/notifications")
async def recent_notifications(session: StorefrontSession = Depends(get_session)) -> List[Dict[str, Any]]:
    """Recent notifications, oldest first (polling alternative to the stream)."""
    return [to_event_payload(n) for n in session.bus.recent()]


@router.get("/stream")
async def stream_notifications(
    kind: Optional[str] = Query(default=None, description="Only this kind (success|conflict|error)"),
    ping: float = Query(default=10.0, ge=1.0, le=60.0, description="Keepalive ping seconds"),
    session: StorefrontSession = Depends(get_session),
):
    """
    Server-Sent Events endpoint. Each `notification` event's data is JSON:
      {"ts", "kind", "title", "message", "total", "order_id", "data"}
    Heartbeat comments go out every ~`ping` seconds.
    """
    bus = session.bus

    async def event_generator() -> AsyncGenerator[Dict, None]:
        async for raw in bus.subscribe():
            if kind and raw.get("kind") != kind:
                continue
            yield {"event": "notification", "data": json.dumps(to_event_payload(raw), ensure_ascii=False)}

    return EventSourceResponse(event_generator(), ping=ping)
