# storefront/app/models/cart.py
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_QUANTITY = 1
MAX_QUANTITY = 99

_INT_RE = re.compile(r"[+-]?[0-9]+")


def clamp_quantity(value: int) -> int:
    """Pin a quantity into [MIN_QUANTITY, MAX_QUANTITY]."""
    return max(MIN_QUANTITY, min(MAX_QUANTITY, int(value)))


def parse_quantity_text(raw: str) -> Optional[int]:
    """
    Signed decimal integer text, or None. Values with more than three
    significant digits come back as the nearest bound instead of being
    converted.
    """
    s = raw.strip()
    if not _INT_RE.fullmatch(s):
        return None
    if len(s.lstrip("+-").lstrip("0")) > 3:
        return MIN_QUANTITY if s.startswith("-") else MAX_QUANTITY
    return int(s)


# ----------------------------
# Catalog / cart line items
# ----------------------------

class Product(BaseModel):
    """Catalog entry as served by the remote API (only what the cart needs)."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    product_id: str = Field(alias="_id", min_length=1)
    name: str = Field(default="", alias="PRODUCT_NAME")
    unit_price: Decimal = Field(alias="PRODUCT_PRICE", ge=0)
    category: Optional[str] = Field(default=None, alias="PRODUCT_CATEGORY")
    stock: Optional[int] = Field(default=None, alias="PRODUCT_QUANTITY")


class LineItem(BaseModel):
    """
    One product in the cart. Frozen: CartState swaps whole items instead of
    mutating them, so nothing outside CartState can change a quantity.

    Serialized with the browser client's field names (`_id`, `PRODUCT_*`).
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    product_id: str = Field(alias="_id", min_length=1)
    name: str = Field(default="", alias="PRODUCT_NAME")
    unit_price: Decimal = Field(alias="PRODUCT_PRICE", ge=0)
    quantity: int = Field(default=MIN_QUANTITY, alias="PRODUCT_QUANTITY")

    @field_validator("quantity", mode="before")
    @classmethod
    def _clamp_quantity_before(cls, v: Any) -> int:
        """
        Accepts ints, integral floats and digit strings; clamps into [1, 99].
        Anything else is rejected (the caller decides whether to skip the item).
        """
        if v is None:
            return MIN_QUANTITY
        if isinstance(v, bool):
            raise ValueError("quantity must be an integer")
        if isinstance(v, float) and not math.isfinite(v):
            raise ValueError("quantity must be a finite number")
        if isinstance(v, (int, float)):
            return clamp_quantity(int(v))
        if isinstance(v, str):
            parsed = parse_quantity_text(v)
            if parsed is not None:
                return clamp_quantity(parsed)
        raise ValueError("quantity must be an integer")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_product(cls, product: Product, quantity: int = MIN_QUANTITY) -> "LineItem":
        return cls(
            product_id=product.product_id,
            name=product.name,
            unit_price=product.unit_price,
            quantity=clamp_quantity(quantity),
        )

    def with_quantity(self, quantity: int) -> "LineItem":
        # model_copy skips validation, so clamp here
        return self.model_copy(update={"quantity": clamp_quantity(quantity)})

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ----------------------------
# Order request (submit-time snapshot)
# ----------------------------

class OrderLine(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    product_id: str = Field(alias="PRODUCT_ID")
    quantity: int = Field(alias="PRODUCT_QUANTITY", ge=MIN_QUANTITY, le=MAX_QUANTITY)


class OrderRequest(BaseModel):
    """Immutable copy of the cart taken when the user finalizes."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="CART_USER_ID")
    items: Tuple[OrderLine, ...] = Field(alias="CART_PRODUCT")

    @classmethod
    def from_line_items(cls, user_id: Optional[str], items: Iterable[LineItem]) -> "OrderRequest":
        return cls(
            user_id=user_id,
            items=tuple(OrderLine(product_id=it.product_id, quantity=it.quantity) for it in items),
        )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ----------------------------
# Submission outcome
# ----------------------------

class SubmissionState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RejectionKind(str, Enum):
    CONFLICT = "conflict"   # 409: competing/duplicate order
    FAILURE = "failure"     # transport error, other non-2xx, malformed body, timeout


@dataclass(frozen=True)
class Accepted:
    order_id: str


@dataclass(frozen=True)
class Rejected:
    kind: RejectionKind
    title: str
    message: str
    status_code: Optional[int] = None


OrderResult = Union[Accepted, Rejected]
