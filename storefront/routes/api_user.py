from typing import Any, Dict

from fastapi import APIRouter, Depends

from storefront.routes.auth import require_user

router = APIRouter(tags=["user"])


@router.get("/user/me")
def me(user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    return user
