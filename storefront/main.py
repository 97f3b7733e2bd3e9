# storefront/main.py
from __future__ import annotations

import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.app.core import redis_conn
from storefront.app.core.config import settings
from storefront.app.core.logging import setup_logging
from storefront.app.services.session import StorefrontSession, build_session

from storefront.app.api.routes_health import router as health_router
from storefront.app.api.routes_cart import router as cart_router
from storefront.app.api.routes_orders import router as orders_router
from storefront.app.api.routes_session import router as session_router
from storefront.app.api.sse import router as sse_router

logger = logging.getLogger(__name__)


def create_app(session: Optional[StorefrontSession] = None) -> FastAPI:
    """
    Session app: serves the cart views/gestures for one browser session.
    Pass `session` to inject a pre-wired one (tests, embedding); otherwise it
    is built from settings.
    """
    # Initialize logging early so all imports use correct handlers/levels
    setup_logging(settings.log_level, settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.session.aclose()
        if settings.uses_redis:
            await redis_conn.close_clients()

    app = FastAPI(
        title=settings.service_name or "storefront",
        version=settings.version or "0.1.0",
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.session = session if session is not None else build_session()

    # --- Global JSON error handler: convert unexpected 500s to JSON ---
    @app.exception_handler(Exception)
    async def _unhandled_exc_to_json(request: Request, exc: Exception):
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        logger.error("unhandled exception on %s %s\n%s", request.method, request.url.path, tb)
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "detail": str(exc),
                "path": str(request.url),
                "method": request.method,
            },
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins or ["*"],
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods or ["*"],
        allow_headers=settings.cors_allow_headers or ["*"],
    )

    app.include_router(health_router)
    app.include_router(session_router)
    app.include_router(cart_router)
    app.include_router(orders_router)
    app.include_router(sse_router)

    # Friendly root
    @app.get("/")
    def root():
        return {
            "service": settings.service_name,
            "version": settings.version,
            "environment": settings.environment,
            "docs": "/docs",
            "tips": {
                "cart": "GET /api/cart",
                "add": "POST /api/cart/items",
                "checkout": "POST /api/cart/checkout",
                "notifications": "/api/stream",
                "orders": "GET /api/orders",
                "sign_in": "PUT /api/session",
            },
        }

    return app


app = create_app()
