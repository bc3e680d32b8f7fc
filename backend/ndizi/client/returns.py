# Overview: Customer returns against recorded invoices; refunds and restocking.

"""
Returns

LIFECYCLE:
A return is created in one step and is immediately "completed": the refund
is computed, the goods go back into stock and the original transaction is
annotated with what came back.

RULES:
- Each return quantity must be > 0; lines not coming back are left out
- A line can never give back more than was sold, counting earlier returns
- Stock of each returned product rises by exactly the returned quantity
- refund = sum(price * qty * (1 + gst% / 100)), rounded to 2 places

Return records persist in the device settings collection under
RETURNS_SETTING_KEY.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from decimal import Decimal

from ndizi.client import inventory as inventory_ops
from ndizi.client import transactions as transaction_ops
from ndizi.client.inventory import InventoryState
from ndizi.client.local_store import LocalStore
from ndizi.client.pos import line_amounts, round_money
from ndizi.client.transactions import TransactionState
from ndizi.time_utils import to_utc_z, utcnow

RETURNS_SETTING_KEY = "returns-storage"

RETURN_STATUS_COMPLETED = "completed"


class ReturnError(Exception):
    """Raised for return operation errors."""
    pass


@dataclass(frozen=True)
class ReturnsState:
    returns: tuple = ()


@dataclass(frozen=True)
class ReturnOutcome:
    returns: ReturnsState
    inventory: InventoryState
    transactions: TransactionState
    record: dict


def load_returns(state: ReturnsState, store: LocalStore) -> ReturnsState:
    return replace(state, returns=tuple(store.get_setting(RETURNS_SETTING_KEY) or []))


def already_returned(transaction: dict) -> dict[str, int]:
    """Quantity already returned per product id on this transaction."""
    totals: dict[str, int] = {}
    for item in transaction.get("returnedItems") or []:
        totals[item["productId"]] = totals.get(item["productId"], 0) + int(item["returnQuantity"])
    return totals


def build_returned_items(transaction: dict, quantities: dict[str, int]) -> list[dict]:
    """
    Validate requested return quantities against the invoice lines.

    Raises:
        ReturnError: unknown product, non-positive quantity, or more than
            remains returnable on the line
    """
    lines = {item["id"]: item for item in transaction.get("items") or []}
    previous = already_returned(transaction)

    returned_items = []
    for product_id, quantity in quantities.items():
        line = lines.get(product_id)
        if line is None:
            raise ReturnError(f"Product {product_id} is not on invoice {transaction['invoiceNumber']}")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ReturnError("Return quantity must be a positive whole number")

        sold = int(line["cartQuantity"])
        returnable = sold - previous.get(product_id, 0)
        if quantity > returnable:
            raise ReturnError(
                f"Cannot return {quantity} of {line.get('name')}: only {returnable} of {sold} remain returnable"
            )

        returned_items.append({
            "productId": product_id,
            "name": line.get("name"),
            "code": line.get("code"),
            "price": line.get("price"),
            "gst": line.get("gst"),
            "quantity": sold,
            "returnQuantity": quantity,
        })

    if not returned_items:
        raise ReturnError("Please select items to return")
    return returned_items


def refund_amount(returned_items: list[dict]) -> float:
    total = Decimal(0)
    for item in returned_items:
        net, tax = line_amounts(item["price"], item["returnQuantity"], item["gst"])
        total += net + tax
    return round_money(total)


def process_return(
    returns: ReturnsState,
    inventory: InventoryState,
    transactions: TransactionState,
    store: LocalStore,
    *,
    transaction_id: str,
    quantities: dict[str, int],
    reason: str | None = None,
) -> ReturnOutcome:
    """
    Record a completed return and put the goods back on the shelf.

    Args:
        transaction_id: Transaction being returned against
        quantities: product id -> quantity coming back
        reason: Customer's reason for return

    Raises:
        ReturnError: transaction not found, quantities invalid, or a
            returned product no longer exists on this device
    """
    transaction = store.get_transaction(transaction_id)
    if transaction is None:
        raise ReturnError(f"Transaction {transaction_id} not found")

    returned_items = build_returned_items(transaction, quantities)
    for item in returned_items:
        if store.get_product(item["productId"]) is None:
            raise ReturnError(f"Product {item['name']} no longer exists; cannot restock")

    record = {
        "id": f"RET-{int(time.time() * 1000)}",
        "transactionId": transaction["id"],
        "invoiceNumber": transaction["invoiceNumber"],
        "returnedItems": returned_items,
        "refundAmount": refund_amount(returned_items),
        "reason": reason,
        "status": RETURN_STATUS_COMPLETED,
        "createdAt": to_utc_z(utcnow()),
    }

    # Append to the stored history, not the passed state
    all_returns = tuple(store.get_setting(RETURNS_SETTING_KEY) or []) + (record,)
    store.save_setting(RETURNS_SETTING_KEY, list(all_returns))

    # The returned-items annotation is the only change a transaction allows
    annotated = {
        **transaction,
        "returnedItems": list(transaction.get("returnedItems") or []) + returned_items,
    }
    store.save_transaction(annotated)

    for item in returned_items:
        inventory = inventory_ops.adjust_stock(inventory, store, item["productId"], item["returnQuantity"])

    return ReturnOutcome(
        returns=replace(returns, returns=all_returns),
        inventory=inventory,
        transactions=transaction_ops.replace_transaction(transactions, annotated),
        record=record,
    )


def returns_for_transaction(state: ReturnsState, transaction_id: str) -> list[dict]:
    return [r for r in state.returns if r["transactionId"] == transaction_id]


def all_returns(state: ReturnsState) -> list[dict]:
    return list(state.returns)
