# backend/ndizi/services/products_service.py
"""
Products Service

All product reads are scoped to the owning account and, when given, to one
of the account's stores.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import Product


PRODUCT_SYNC_FIELDS = {
    "code", "name", "category", "quantity", "unit", "price", "gst",
    "low_stock_threshold", "expiry", "description",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_SYNC_FIELDS:
            continue
        setattr(p, k, v)


def products_query(user_id: str, store_id: str | None = None):
    query = db.session.query(Product).filter(Product.user_id == user_id)
    if store_id:
        query = query.filter(Product.store_id == store_id)
    return query


def list_products(user_id: str, store_id: str | None = None, *, changed_since: datetime | None = None) -> list[Product]:
    """
    Account products, newest first.

    changed_since keeps only rows whose updated_at (created_at when never
    updated) is strictly later than the given watermark.
    """
    query = products_query(user_id, store_id)
    if changed_since is not None:
        query = query.filter(func.coalesce(Product.updated_at, Product.created_at) > changed_since)
    return query.order_by(Product.created_at.desc(), Product.id.asc()).all()
