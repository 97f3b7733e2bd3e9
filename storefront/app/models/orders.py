# storefront/app/models/orders.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELED = "canceled"


class OrderLineRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    product_id: str = Field(alias="PRODUCT_ID")
    quantity: int = Field(default=1, alias="PRODUCT_QUANTITY")


class Order(BaseModel):
    """An order as returned by the remote API (`/cart/...`)."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    order_id: str = Field(alias="_id")
    user_id: Optional[str] = Field(default=None, alias="CART_USER_ID")
    lines: List[OrderLineRecord] = Field(default_factory=list, alias="CART_PRODUCT")
    price: Decimal = Field(default=Decimal("0"), alias="CART_PRICE")
    # kept as str: the server may grow statuses we don't know yet
    status: str = Field(default=OrderStatus.ACTIVE.value, alias="CART_STATUS")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class Category(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    category_id: str = Field(alias="_id")
    name: str = Field(default="", alias="CATEGORY_NAME")
    deleted: bool = Field(default=False, alias="CATEGORY_DELETED")


class User(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_id: str = Field(alias="_id")
    name: str = Field(default="", alias="USER_NAME")
    email: str = Field(default="", alias="USER_EMAIL")
    deleted: bool = Field(default=False, alias="USER_DELETED")


# ----------------------------
# Derived read models
# ----------------------------

class OrderStats(BaseModel):
    active_count: int = 0
    completed_count: int = 0
    canceled_count: int = 0
    total_completed_value: Decimal = Decimal("0")
    total_active_value: Decimal = Decimal("0")
    total_transactions: int = 0


class OrderHistory(BaseModel):
    stats: OrderStats
    latest: List[Order] = Field(default_factory=list)


class OrderDetailLine(BaseModel):
    product_id: str
    quantity: int
    name: Optional[str] = None
    category: Optional[str] = None
    unit_price: Optional[Decimal] = None


class OrderDetail(BaseModel):
    order: Order
    status_label: str
    lines: List[OrderDetailLine] = Field(default_factory=list)
