# Overview: Device transaction (invoice) state and sales reporting views.

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from ndizi.client.local_store import LocalStore
from ndizi.time_utils import parse_iso_datetime, to_utc_z, utcnow


@dataclass(frozen=True)
class TransactionState:
    # Newest first
    transactions: tuple = ()
    loading: bool = False


@dataclass(frozen=True)
class ReportStats:
    total_sales: float
    total_transactions: int
    average_bill: float

    def to_dict(self) -> dict:
        return {
            "totalSales": self.total_sales,
            "totalTransactions": self.total_transactions,
            "averageBill": self.average_bill,
        }


def _created_at(transaction: dict) -> datetime:
    return parse_iso_datetime(transaction.get("createdAt")) or datetime.min


def load_transactions(state: TransactionState, store: LocalStore) -> TransactionState:
    transactions = sorted(store.get_transactions(), key=_created_at, reverse=True)
    return replace(state, transactions=tuple(transactions), loading=False)


def add_transaction(
    state: TransactionState,
    store: LocalStore,
    items: list[dict],
    totals: dict,
) -> tuple[TransactionState, dict]:
    """
    Record a sale. items are cart lines (product snapshot + cartQuantity);
    totals is {"subtotal", "gst", "total"} as computed by the cart.

    Raises:
        DuplicateRecordError: the derived invoice number is already taken
    """
    transaction = {
        "id": str(uuid.uuid4()),
        "invoiceNumber": store.get_next_invoice_number(),
        "items": [dict(item) for item in items],
        "subtotal": totals["subtotal"],
        "gst": totals["gst"],
        "total": totals["total"],
        "createdAt": to_utc_z(utcnow()),
    }
    store.save_transaction(transaction)
    return replace(state, transactions=(transaction,) + state.transactions), transaction


def replace_transaction(state: TransactionState, transaction: dict) -> TransactionState:
    return replace(
        state,
        transactions=tuple(transaction if t["id"] == transaction["id"] else t for t in state.transactions),
    )


def recent_transactions(state: TransactionState, limit: int = 5) -> list[dict]:
    return list(state.transactions[:limit])


def transactions_between(state: TransactionState, start: datetime, end: datetime) -> list[dict]:
    """Both bounds inclusive."""
    return [t for t in state.transactions if start <= _created_at(t) <= end]


def todays_transactions(state: TransactionState, *, now: datetime | None = None) -> list[dict]:
    now = now or utcnow()
    start_of_day = datetime(now.year, now.month, now.day)
    end_of_day = start_of_day + timedelta(days=1)
    return [t for t in state.transactions if start_of_day <= _created_at(t) < end_of_day]


def transaction_by_invoice(state: TransactionState, invoice_number: str) -> dict | None:
    return next((t for t in state.transactions if t["invoiceNumber"] == invoice_number), None)


def report_stats(
    state: TransactionState,
    start: datetime | None = None,
    end: datetime | None = None,
    *,
    now: datetime | None = None,
) -> ReportStats:
    """
    Sales totals over a window. With no bounds every transaction counts;
    with one bound the other defaults to the first of this month / now.
    """
    if start is None and end is None:
        selected = list(state.transactions)
    else:
        now = now or utcnow()
        start = start or datetime(now.year, now.month, 1)
        end = end or now
        selected = transactions_between(state, start, end)

    total_sales = round(sum(float(t.get("total") or 0) for t in selected), 2)
    count = len(selected)
    average = round(total_sales / count, 2) if count else 0.0
    return ReportStats(total_sales=total_sales, total_transactions=count, average_bill=average)
