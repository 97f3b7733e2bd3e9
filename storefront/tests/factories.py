from __future__ import annotations


def product(pid: str, price: str, name: str = "") -> dict:
    """Catalog payload as the remote API serves it."""
    return {"_id": pid, "PRODUCT_NAME": name or pid.upper(), "PRODUCT_PRICE": price}
