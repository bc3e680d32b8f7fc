# Overview: Device inventory state; product CRUD over the local store plus derived views.

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import date, timedelta

from ndizi.client.local_store import LocalStore
from ndizi.models import Product
from ndizi.services.sync_service import PRODUCT_SYNC_POLICY
from ndizi.time_utils import parse_iso_date, to_utc_z, utcnow
from ndizi.validation import enforce_rules_product, validate_payload

ALL_CATEGORIES = "All Categories"


@dataclass(frozen=True)
class InventoryState:
    products: tuple = ()
    search_query: str = ""
    selected_category: str = ""
    loading: bool = False


def check_product(product: dict) -> None:
    """
    Apply the rules the cloud applies to pushed products, so a record that
    would be rejected on push is never saved on the device.

    Raises:
        ValidationError: missing code/name/price, unknown field, or a value
            out of range
    """
    patch = validate_payload(model=Product, payload=product, policy=PRODUCT_SYNC_POLICY, partial=False)
    enforce_rules_product(patch)


def load_products(state: InventoryState, store: LocalStore) -> InventoryState:
    return replace(state, products=tuple(store.get_products()), loading=False)


def add_product(state: InventoryState, store: LocalStore, data: dict) -> tuple[InventoryState, dict]:
    """New products get a fresh uuid and createdAt = updatedAt = now."""
    now = to_utc_z(utcnow())
    product = {
        **data,
        "id": str(uuid.uuid4()),
        "createdAt": now,
        "updatedAt": now,
    }
    product.setdefault("quantity", 0)
    product.setdefault("gst", 0)
    check_product(product)
    store.save_product(product)
    return replace(state, products=state.products + (product,)), product


def update_product(state: InventoryState, store: LocalStore, product_id: str, updates: dict) -> InventoryState:
    """Merge updates into the product and bump updatedAt. Unknown ids are ignored."""
    for index, existing in enumerate(state.products):
        if existing["id"] != product_id:
            continue
        updated = {**existing, **updates, "id": product_id, "updatedAt": to_utc_z(utcnow())}
        check_product(updated)
        store.save_product(updated)
        products = list(state.products)
        products[index] = updated
        return replace(state, products=tuple(products))
    return state


def delete_product(state: InventoryState, store: LocalStore, product_id: str) -> InventoryState:
    """Local only; sync never deletes on the server."""
    store.delete_product(product_id)
    return replace(state, products=tuple(p for p in state.products if p["id"] != product_id))


def adjust_stock(state: InventoryState, store: LocalStore, product_id: str, delta: int) -> InventoryState:
    """
    Add delta to a product's quantity, flooring at zero.

    The stored record is the base, so a stale or unloaded state cannot lose
    a stock movement. Unknown ids are ignored.
    """
    product = store.get_product(product_id)
    if product is None:
        return state
    quantity = max(0, int(product.get("quantity") or 0) + delta)
    updated = {**product, "quantity": quantity, "updatedAt": to_utc_z(utcnow())}
    store.save_product(updated)
    return replace(
        state,
        products=tuple(updated if p["id"] == product_id else p for p in state.products),
    )


def get_product(state: InventoryState, product_id: str) -> dict | None:
    return next((p for p in state.products if p["id"] == product_id), None)


def get_product_by_code(state: InventoryState, code: str) -> dict | None:
    return next((p for p in state.products if p.get("code") == code), None)


def low_stock_products(state: InventoryState) -> list[dict]:
    return [p for p in state.products if p.get("quantity", 0) <= (p.get("lowStockThreshold") or 0)]


def expiring_products(state: InventoryState, days: int = 30, *, today: date | None = None) -> list[dict]:
    today = today or utcnow().date()
    horizon = today + timedelta(days=days)
    result = []
    for p in state.products:
        expiry = parse_iso_date(p.get("expiry"))
        if expiry is not None and today <= expiry <= horizon:
            result.append(p)
    return result


def set_search_query(state: InventoryState, query: str) -> InventoryState:
    return replace(state, search_query=query)


def set_selected_category(state: InventoryState, category: str) -> InventoryState:
    return replace(state, selected_category=category)


def categories(state: InventoryState) -> list[str]:
    return sorted({p["category"] for p in state.products if p.get("category")})


def filtered_products(state: InventoryState) -> list[dict]:
    query = state.search_query.lower()
    category = state.selected_category

    def matches(product: dict) -> bool:
        if query:
            haystack = [product.get("name") or "", product.get("code") or "", product.get("category") or ""]
            if not any(query in value.lower() for value in haystack):
                return False
        if category and category != ALL_CATEGORIES:
            return product.get("category") == category
        return True

    return [p for p in state.products if matches(p)]
