from __future__ import annotations

from fastapi import HTTPException, Request

from storefront.app.integrations.storefront_api.client import StorefrontApiError
from storefront.app.services.session import StorefrontSession


def get_session(request: Request) -> StorefrontSession:
    return request.app.state.session


def api_error_to_http(exc: StorefrontApiError) -> HTTPException:
    """Auth/not-found pass through; anything else is the upstream's fault (502)."""
    status = exc.status_code if exc.status_code in (401, 403, 404) else 502
    return HTTPException(status_code=status, detail={"error": exc.title, "message": exc.message})
