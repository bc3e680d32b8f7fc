# Overview: Service-layer operations for device sync; reconciles pushed records and serves pulls.

"""
Device Sync Service

WHY: Devices sell offline and keep their own copy of products and invoices.
This service is the cloud side of that arrangement.

PULL:
- Returns every product/transaction whose updated_at (created_at fallback)
  is strictly newer than the device's watermark.
- The returned syncedAt is taken BEFORE reading, so a row committed while the
  pull is running is picked up by the next pull instead of being skipped.
- No pagination.

PUSH:
- Products upsert by id. Ids are minted on devices and kept on insert.
- Transactions are inserted once per invoice number (per account, per store
  when storeId is given). Replays are skipped, which makes a push idempotent.
- Client totals are stored as sent; nothing is recomputed.
- The whole push commits once. Products carry an optimistic version counter,
  so a concurrent update to the same row fails with StaleDataError and the
  push is re-run from scratch by run_with_retry.
- An insert that loses a primary-key race to a concurrent push is re-run as
  an update, so the same new product is never reported as created twice.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, Store, Transaction, User
from ..models.accounts import new_id
from ..services.concurrency import run_with_retry
from ..services.products_service import apply_product_patch, list_products
from ..services.sales_service import get_invoice_numbers, list_transactions
from ..time_utils import parse_iso_datetime, to_utc_z, utcnow
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    enforce_rules_transaction,
    validate_payload,
)


PRODUCT_SYNC_POLICY = ModelValidationPolicy(
    writable_fields={
        "code", "name", "category", "quantity", "unit", "price", "gst",
        "low_stock_threshold", "expiry", "description",
    },
    required_on_create={"code", "name", "price"},
    readonly_fields={"id", "user_id", "store_id", "version_id", "created_at", "updated_at"},
)

TRANSACTION_SYNC_POLICY = ModelValidationPolicy(
    writable_fields={"invoice_number", "items", "subtotal", "gst", "total", "returned_items", "created_at"},
    required_on_create={"invoice_number", "items", "subtotal", "gst", "total"},
    readonly_fields={"id", "user_id", "store_id", "updated_at"},
)


class SyncServiceError(Exception):
    """Raised when a sync request refers to something that does not exist."""
    pass


@dataclass(frozen=True)
class SyncRecord:
    """A validated record from a push payload: client id plus column patch."""
    id: str | None
    patch: dict


def _record_id(record: dict) -> str | None:
    raw = record.get("id")
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise ValidationError("id must be a string")
    if len(raw) > 36:
        raise ValidationError("id exceeds max length 36")
    return raw


def validate_records(records, *, kind: str) -> list[SyncRecord]:
    """
    Validate every record up front so a bad payload is rejected before any
    row is written.
    """
    if records is None:
        return []
    if not isinstance(records, list):
        raise ValidationError(f"{kind} must be a list")

    if kind == "products":
        model, policy, rules = Product, PRODUCT_SYNC_POLICY, enforce_rules_product
    else:
        model, policy, rules = Transaction, TRANSACTION_SYNC_POLICY, enforce_rules_transaction

    validated: list[SyncRecord] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValidationError(f"{kind}[{index}] must be an object")
        try:
            patch = validate_payload(model=model, payload=record, policy=policy, partial=False)
            rules(patch)
            validated.append(SyncRecord(id=_record_id(record), patch=patch))
        except ValidationError as exc:
            raise ValidationError(f"{kind}[{index}]: {exc}") from exc
    return validated


def parse_watermark(value) -> datetime | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError("lastSyncAt must be an ISO-8601 datetime")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError("lastSyncAt must be an ISO-8601 datetime")


def require_store_for_user(user: User, store_id: str | None) -> None:
    if not store_id:
        return
    store = db.session.get(Store, store_id)
    if store is None or store.user_id != user.id:
        raise SyncServiceError("Store not found")


def pull_changes(user: User, *, last_sync_at: datetime | None = None, store_id: str | None = None) -> dict:
    require_store_for_user(user, store_id)

    synced_at = utcnow()
    products = list_products(user.id, store_id, changed_since=last_sync_at)
    transactions = list_transactions(user.id, store_id, changed_since=last_sync_at)

    return {
        "products": [p.to_dict() for p in products],
        "transactions": [t.to_dict() for t in transactions],
        "syncedAt": to_utc_z(synced_at),
    }


def _apply_push(
    user_id: str,
    products: list[SyncRecord],
    transactions: list[SyncRecord],
    store_id: str | None,
) -> dict:
    results = {
        "productsCreated": 0,
        "productsUpdated": 0,
        "transactionsCreated": 0,
    }

    # Existing rows are fetched once; the version counter and the retry wrapper
    # cover anything that changes underneath us before commit.
    product_ids = [r.id for r in products if r.id]
    existing: dict[str, Product] = {}
    if product_ids:
        for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all():
            if p.user_id != user_id:
                raise ConflictError(f"Product {p.id} belongs to another account")
            existing[p.id] = p

    for record in products:
        product = existing.get(record.id) if record.id else None
        if product is not None:
            apply_product_patch(product, record.patch)
            results["productsUpdated"] += 1
            continue

        product = Product(id=record.id or new_id(), user_id=user_id, store_id=store_id)
        apply_product_patch(product, record.patch)
        db.session.add(product)
        # Same id twice in one payload: later copies update the first
        existing[product.id] = product
        results["productsCreated"] += 1

    invoice_numbers = get_invoice_numbers(user_id, store_id)
    transaction_ids = [r.id for r in transactions if r.id]
    known_ids: set[str] = set()
    if transaction_ids:
        rows = db.session.query(Transaction.id).filter(Transaction.id.in_(transaction_ids)).all()
        known_ids = {row[0] for row in rows}

    for record in transactions:
        invoice_number = record.patch["invoice_number"]
        if invoice_number in invoice_numbers or (record.id and record.id in known_ids):
            continue

        txn = Transaction(
            id=record.id or new_id(),
            user_id=user_id,
            store_id=store_id,
            invoice_number=invoice_number,
            items=record.patch["items"],
            subtotal=record.patch["subtotal"],
            gst=record.patch["gst"],
            total=record.patch["total"],
            returned_items=record.patch.get("returned_items"),
        )
        if record.patch.get("created_at") is not None:
            txn.created_at = record.patch["created_at"]
        db.session.add(txn)
        invoice_numbers.add(invoice_number)
        known_ids.add(txn.id)
        results["transactionsCreated"] += 1

    user = db.session.get(User, user_id)
    user.last_sync_at = utcnow()
    return results


def push_changes(
    user: User,
    *,
    products=None,
    transactions=None,
    store_id: str | None = None,
) -> dict:
    """
    Reconcile a device's full product/transaction set against the account.

    Returns:
        {"success": True, "results": {...counts}, "syncedAt": ...}

    Raises:
        ValidationError: malformed payload (nothing written)
        SyncServiceError: storeId does not belong to the account
        ConflictError: a pushed product id belongs to another account
    """
    product_records = validate_records(products, kind="products")
    transaction_records = validate_records(transactions, kind="transactions")
    require_store_for_user(user, store_id)
    user_id = user.id

    def _op():
        try:
            results = _apply_push(user_id, product_records, transaction_records, store_id)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            # A concurrent push inserted one of our new ids first. The second
            # pass sees that row and updates it instead.
            results = _apply_push(user_id, product_records, transaction_records, store_id)
            db.session.commit()
        return results

    results = run_with_retry(_op)
    return {
        "success": True,
        "results": results,
        "syncedAt": to_utc_z(utcnow()),
    }
