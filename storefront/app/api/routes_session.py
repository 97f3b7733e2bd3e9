from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from storefront.app.api.deps import api_error_to_http, get_session
from storefront.app.integrations.storefront_api.client import StorefrontApiError
from storefront.app.services.session import StorefrontSession

router = APIRouter(prefix="/api", tags=["session"])


class TokenIn(BaseModel):
    token: str = Field(..., min_length=1, description="Bearer token issued by the auth service")


@router.put("/session")
async def sign_in(body: TokenIn, session: StorefrontSession = Depends(get_session)) -> Dict[str, Any]:
    """Store the bearer token, then resolve and remember who it belongs to."""
    session.set_token(body.token.strip())
    try:
        user = await session.refresh_user()
    except StorefrontApiError as exc:
        raise api_error_to_http(exc) from exc
    return {"user_id": user.user_id, "name": user.name, "email": user.email, "deleted": user.deleted}


@router.delete("/session")
async def sign_out(session: StorefrontSession = Depends(get_session)) -> Dict[str, Any]:
    """Forget the credentials. The cart stays (it belongs to the browser, not the account)."""
    session.store.remove(session.token_key)
    session.store.remove(session.user_id_key)
    return {"signed_out": True}
