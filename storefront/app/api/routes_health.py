from __future__ import annotations

from fastapi import APIRouter, Depends

from storefront.app.api.deps import get_session
from storefront.app.core import redis_conn
from storefront.app.core.config import settings
from storefront.app.services.session import StorefrontSession

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health(session: StorefrontSession = Depends(get_session)):
    redis_probe = "skip"
    if settings.uses_redis:
        redis_probe = "ok" if redis_conn.ping() else "fail"

    return {
        "service": settings.service_name,
        "version": settings.version,
        "env": {
            "environment": settings.environment,
            "api_base_url": settings.api_root,
            "store_backend": settings.store_backend,
            "notifications_backend": settings.notifications_backend,
        },
        "cart": {
            "lines": len(session.cart),
            "item_count": session.cart.item_count(),
            "submission_state": session.submitter.state.value,
            "signed_in": session.token() is not None,
        },
        "probes": {"redis": redis_probe},
        "status": "ok",
    }
