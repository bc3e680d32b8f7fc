# Overview: Point-of-sale cart state, invoice arithmetic and checkout.

"""
POS Cart

Cart lines are product snapshots with a cartQuantity. Amounts are worked out
in Decimal and rounded to 2 places at the end:

    subtotal = sum(price * qty)
    gst      = sum(price * qty * gst% / 100)
    total    = subtotal + gst
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal

from ndizi.client import inventory as inventory_ops
from ndizi.client import transactions as transaction_ops
from ndizi.client.inventory import InventoryState
from ndizi.client.local_store import LocalStore
from ndizi.client.transactions import TransactionState

CENT = Decimal("0.01")
HUNDRED = Decimal(100)


class CheckoutError(Exception):
    """Raised when a cart cannot be turned into an invoice."""
    pass


class OutOfStockError(CheckoutError):
    """Raised when a cart line asks for more than is on hand."""
    pass


def to_decimal(value) -> Decimal:
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return Decimal(str(value or 0))


def round_money(value: Decimal) -> float:
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def line_amounts(price, quantity, gst_percent) -> tuple[Decimal, Decimal]:
    """(net, tax) for one line before rounding."""
    net = to_decimal(price) * to_decimal(quantity)
    tax = net * to_decimal(gst_percent) / HUNDRED
    return net, tax


@dataclass(frozen=True)
class CartTotals:
    subtotal: float
    gst: float
    total: float

    def to_dict(self) -> dict:
        return {"subtotal": self.subtotal, "gst": self.gst, "total": self.total}


@dataclass(frozen=True)
class Cart:
    items: tuple = ()
    search_query: str = ""


@dataclass(frozen=True)
class CheckoutResult:
    cart: Cart
    inventory: InventoryState
    transactions: TransactionState
    transaction: dict


def add_to_cart(cart: Cart, product: dict, quantity: int = 1) -> Cart:
    """Adding a product already in the cart raises its quantity."""
    items = list(cart.items)
    for index, item in enumerate(items):
        if item["id"] == product["id"]:
            items[index] = {**item, "cartQuantity": item["cartQuantity"] + quantity}
            return replace(cart, items=tuple(items))
    return replace(cart, items=cart.items + ({**product, "cartQuantity": quantity},))


def remove_from_cart(cart: Cart, product_id: str) -> Cart:
    return replace(cart, items=tuple(i for i in cart.items if i["id"] != product_id))


def update_quantity(cart: Cart, product_id: str, quantity: int) -> Cart:
    """Setting a quantity of zero or less removes the line."""
    if quantity <= 0:
        return remove_from_cart(cart, product_id)
    return replace(
        cart,
        items=tuple({**i, "cartQuantity": quantity} if i["id"] == product_id else i for i in cart.items),
    )


def clear_cart(cart: Cart) -> Cart:
    return replace(cart, items=())


def set_search_query(cart: Cart, query: str) -> Cart:
    return replace(cart, search_query=query)


def cart_totals(cart: Cart) -> CartTotals:
    subtotal = Decimal(0)
    gst_total = Decimal(0)
    for item in cart.items:
        net, tax = line_amounts(item.get("price"), item["cartQuantity"], item.get("gst"))
        subtotal += net
        gst_total += tax
    return CartTotals(
        subtotal=round_money(subtotal),
        gst=round_money(gst_total),
        total=round_money(subtotal + gst_total),
    )


def checkout(
    cart: Cart,
    inventory: InventoryState,
    transactions: TransactionState,
    store: LocalStore,
) -> CheckoutResult:
    """
    Turn the cart into an invoice and take the sold quantities out of stock.

    Raises:
        CheckoutError: empty cart
        OutOfStockError: a line asks for more than the product has on hand
    """
    if not cart.items:
        raise CheckoutError("Cart is empty")

    for item in cart.items:
        product = inventory_ops.get_product(inventory, item["id"])
        available = int(product.get("quantity") or 0) if product else 0
        if item["cartQuantity"] > available:
            raise OutOfStockError(f"Only {available} units of {item.get('name')} available")

    totals = cart_totals(cart)
    transactions, transaction = transaction_ops.add_transaction(
        transactions, store, list(cart.items), totals.to_dict()
    )

    for item in cart.items:
        inventory = inventory_ops.adjust_stock(inventory, store, item["id"], -item["cartQuantity"])

    return CheckoutResult(
        cart=clear_cart(cart),
        inventory=inventory,
        transactions=transactions,
        transaction=transaction,
    )
