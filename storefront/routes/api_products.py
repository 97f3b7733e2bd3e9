from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from storefront.routes.auth import require_user

router = APIRouter(tags=["products"])

MOCK_CATEGORIES = [
    {"_id": "c-bakery", "CATEGORY_NAME": "Bakery", "CATEGORY_DELETED": False},
    {"_id": "c-dairy", "CATEGORY_NAME": "Dairy", "CATEGORY_DELETED": False},
    {"_id": "c-drinks", "CATEGORY_NAME": "Drinks", "CATEGORY_DELETED": False},
]

MOCK_PRODUCTS = [
    {"_id": "p-bread", "PRODUCT_NAME": "Sourdough loaf", "PRODUCT_CATEGORY": "c-bakery",
     "PRODUCT_PRICE": 6.50, "PRODUCT_QUANTITY": 40, "PRODUCT_DELETED": False},
    {"_id": "p-milk", "PRODUCT_NAME": "Whole milk 1L", "PRODUCT_CATEGORY": "c-dairy",
     "PRODUCT_PRICE": 4.99, "PRODUCT_QUANTITY": 120, "PRODUCT_DELETED": False},
    {"_id": "p-cheese", "PRODUCT_NAME": "Cheddar 200g", "PRODUCT_CATEGORY": "c-dairy",
     "PRODUCT_PRICE": 12.75, "PRODUCT_QUANTITY": 25, "PRODUCT_DELETED": False},
    {"_id": "p-juice", "PRODUCT_NAME": "Orange juice 1L", "PRODUCT_CATEGORY": "c-drinks",
     "PRODUCT_PRICE": 8.00, "PRODUCT_QUANTITY": 60, "PRODUCT_DELETED": False},
]


@router.get("/product")
def list_products(_user: Dict[str, Any] = Depends(require_user)) -> List[Dict[str, Any]]:
    return [p for p in MOCK_PRODUCTS if not p["PRODUCT_DELETED"]]


@router.get("/category")
def list_categories(_user: Dict[str, Any] = Depends(require_user)) -> List[Dict[str, Any]]:
    return [c for c in MOCK_CATEGORIES if not c["CATEGORY_DELETED"]]
