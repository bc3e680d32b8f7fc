# backend/ndizi/services/sales_service.py
"""
Transactions (invoices) recorded by devices.

Invoice numbers are minted on the device; get_next_invoice_number mirrors the
device-side rule so a freshly installed device can continue an account's
sequence.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..invoicing import next_invoice_number
from ..models import Transaction


def transactions_query(user_id: str, store_id: str | None = None):
    query = db.session.query(Transaction).filter(Transaction.user_id == user_id)
    if store_id:
        query = query.filter(Transaction.store_id == store_id)
    return query


def list_transactions(
    user_id: str,
    store_id: str | None = None,
    *,
    changed_since: datetime | None = None,
) -> list[Transaction]:
    query = transactions_query(user_id, store_id)
    if changed_since is not None:
        query = query.filter(func.coalesce(Transaction.updated_at, Transaction.created_at) > changed_since)
    return query.order_by(Transaction.created_at.desc(), Transaction.id.asc()).all()


def get_invoice_numbers(user_id: str, store_id: str | None = None) -> set[str]:
    rows = transactions_query(user_id, store_id).with_entities(Transaction.invoice_number).all()
    return {row[0] for row in rows}


def get_next_invoice_number(user_id: str, store_id: str | None = None) -> str:
    """
    NOTE: Count-based, so two concurrent callers can receive the same number.
    """
    count = transactions_query(user_id, store_id).count()
    return next_invoice_number(count)
