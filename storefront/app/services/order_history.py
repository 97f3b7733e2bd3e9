# storefront/app/services/order_history.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from storefront.app.core.config import settings
from storefront.app.models.cart import Product
from storefront.app.models.orders import (
    Category,
    Order,
    OrderDetail,
    OrderDetailLine,
    OrderHistory,
    OrderStats,
    OrderStatus,
)

_STATUS_LABELS: Dict[str, str] = {
    OrderStatus.ACTIVE.value: "Pending",
    OrderStatus.COMPLETED.value: "Completed",
    OrderStatus.CANCELED.value: "Canceled",
}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def status_label(status: str) -> str:
    return _STATUS_LABELS.get(status, "Unknown")


def _created(order: Order) -> datetime:
    ts = order.created_at
    if ts is None:
        return _EPOCH
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def summarize_orders(orders: Iterable[Order], latest_limit: Optional[int] = None) -> OrderHistory:
    """Dashboard numbers plus the newest `latest_limit` orders (newest first)."""
    orders = list(orders)
    limit = latest_limit or settings.history_latest_limit

    stats = OrderStats(total_transactions=len(orders))
    for o in orders:
        if o.status == OrderStatus.ACTIVE.value:
            stats.active_count += 1
            stats.total_active_value += o.price
        elif o.status == OrderStatus.COMPLETED.value:
            stats.completed_count += 1
            stats.total_completed_value += o.price
        elif o.status == OrderStatus.CANCELED.value:
            stats.canceled_count += 1

    latest = sorted(orders, key=_created, reverse=True)[:limit]
    return OrderHistory(stats=stats, latest=latest)


def build_order_detail(
    order: Order,
    products: Iterable[Product],
    categories: Iterable[Category] = (),
) -> OrderDetail:
    """
    Join the order's lines with catalog data. Category ids are swapped for
    names where known; the quantity always comes from the order line.
    """
    category_names = {c.category_id: c.name for c in categories}
    by_id = {p.product_id: p for p in products}

    lines: List[OrderDetailLine] = []
    for line in order.lines:
        product = by_id.get(line.product_id)
        if product is None:
            lines.append(OrderDetailLine(product_id=line.product_id, quantity=line.quantity))
            continue
        category = product.category
        lines.append(
            OrderDetailLine(
                product_id=line.product_id,
                quantity=line.quantity,
                name=product.name,
                category=category_names.get(category, category) if category else None,
                unit_price=product.unit_price,
            )
        )
    return OrderDetail(order=order, status_label=status_label(order.status), lines=lines)
