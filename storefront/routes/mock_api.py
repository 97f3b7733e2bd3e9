# storefront/routes/mock_api.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.routes.api_cart import router as cart_router
from storefront.routes.api_products import router as products_router
from storefront.routes.api_user import router as user_router
from storefront.routes.auth import MockApiError

DEMO_TOKEN = "demo-token"
DEMO_USER = {"_id": "u-demo", "USER_NAME": "Demo Shopper", "USER_EMAIL": "demo@example.com", "USER_DELETED": False}


@dataclass
class MockState:
    users: Dict[str, Dict[str, Any]] = field(default_factory=lambda: {DEMO_TOKEN: dict(DEMO_USER)})
    orders: List[Dict[str, Any]] = field(default_factory=list)


def create_mock_api(state: Optional[MockState] = None) -> FastAPI:
    """
    In-process stand-in for the remote storefront API (local runs and tests).
    Each app gets its own state, so tests never see each other's orders.
    """
    app = FastAPI(title="storefront-api (stub)", docs_url=None, redoc_url=None)
    app.state.mock = state or MockState()

    @app.exception_handler(MockApiError)
    async def _mock_error(request: Request, exc: MockApiError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.title, "message": exc.message})

    app.include_router(products_router)
    app.include_router(user_router)
    app.include_router(cart_router)
    return app


# uvicorn storefront.routes.mock_api:app --port 3333  (matches the default API_BASE_URL)
app = create_mock_api()
