"""Device inventory state."""

from datetime import date

import pytest

from ndizi.client import inventory as inventory_ops
from ndizi.client.inventory import ALL_CATEGORIES, InventoryState
from ndizi.client.sync import SyncClient
from ndizi.validation import ValidationError


def _seed(local_store):
    state = InventoryState()
    for data in (
        {"code": "RICE", "name": "Basmati Rice", "category": "Grains", "price": 90, "quantity": 2, "lowStockThreshold": 5},
        {"code": "MILK", "name": "Toned Milk", "category": "Dairy", "price": 27, "quantity": 30,
         "lowStockThreshold": 10, "expiry": "2026-10-25"},
        {"code": "DAL", "name": "Toor Dal", "category": "Grains", "price": 140, "quantity": 12,
         "lowStockThreshold": 5, "expiry": "2027-03-01"},
    ):
        state, _ = inventory_ops.add_product(state, local_store, data)
    return state


def test_add_product_assigns_id_and_timestamps(local_store):
    state, product = inventory_ops.add_product(InventoryState(), local_store, {"code": "X", "name": "X", "price": 1})
    assert product["id"]
    assert product["createdAt"] == product["updatedAt"]
    assert product["quantity"] == 0
    assert local_store.get_product(product["id"]) == product
    assert state.products == (product,)


def test_update_product_bumps_updated_at(local_store):
    state, product = inventory_ops.add_product(InventoryState(), local_store, {"code": "X", "name": "X", "price": 1})
    state = inventory_ops.update_product(state, local_store, product["id"], {"price": 2, "id": "hijack"})
    updated = inventory_ops.get_product(state, product["id"])
    assert updated["price"] == 2
    assert updated["updatedAt"] >= product["updatedAt"]
    assert local_store.get_product(product["id"])["price"] == 2
    assert local_store.get_product("hijack") is None


def test_update_unknown_product_is_noop(local_store):
    state = _seed(local_store)
    assert inventory_ops.update_product(state, local_store, "missing", {"price": 1}) is state


def test_delete_product(local_store):
    state = _seed(local_store)
    rice = inventory_ops.get_product_by_code(state, "RICE")
    state = inventory_ops.delete_product(state, local_store, rice["id"])
    assert inventory_ops.get_product_by_code(state, "RICE") is None
    assert local_store.get_product(rice["id"]) is None


def test_adjust_stock_floors_at_zero(local_store):
    state = _seed(local_store)
    rice = inventory_ops.get_product_by_code(state, "RICE")
    state = inventory_ops.adjust_stock(state, local_store, rice["id"], -5)
    assert inventory_ops.get_product(state, rice["id"])["quantity"] == 0
    state = inventory_ops.adjust_stock(state, local_store, rice["id"], 4)
    assert local_store.get_product(rice["id"])["quantity"] == 4


def test_load_products_reads_store(local_store):
    _seed(local_store)
    state = inventory_ops.load_products(InventoryState(loading=True), local_store)
    assert len(state.products) == 3
    assert state.loading is False


def test_low_stock_and_expiring(local_store):
    state = _seed(local_store)
    assert [p["code"] for p in inventory_ops.low_stock_products(state)] == ["RICE"]
    expiring = inventory_ops.expiring_products(state, today=date(2026, 10, 18))
    assert [p["code"] for p in expiring] == ["MILK"]


def test_categories_and_filters(local_store):
    state = _seed(local_store)
    assert inventory_ops.categories(state) == ["Dairy", "Grains"]

    state = inventory_ops.set_selected_category(state, "Grains")
    assert {p["code"] for p in inventory_ops.filtered_products(state)} == {"RICE", "DAL"}

    state = inventory_ops.set_search_query(state, "toor")
    assert [p["code"] for p in inventory_ops.filtered_products(state)] == ["DAL"]

    state = inventory_ops.set_selected_category(state, ALL_CATEGORIES)
    state = inventory_ops.set_search_query(state, "MILK")
    assert [p["code"] for p in inventory_ops.filtered_products(state)] == ["MILK"]


@pytest.mark.parametrize("data, message", [
    ({"code": "B", "name": "Bad", "price": -3}, "price must be >= 0"),
    ({"code": "B", "name": "Bad", "price": 3, "quantity": -2}, "quantity must be >= 0"),
    ({"code": "B", "name": "Bad", "price": 3, "gst": 150}, "gst must be between 0 and 100"),
    ({"name": "No Code", "price": 3}, "Missing required fields: code"),
    ({"code": "B", "name": "Bad", "price": 3, "colour": "red"}, "Field not allowed: colour"),
])
def test_add_product_rejects_what_the_cloud_would_reject(local_store, data, message):
    with pytest.raises(ValidationError, match=message):
        inventory_ops.add_product(InventoryState(), local_store, data)
    assert local_store.get_products() == []


def test_update_product_rejects_invalid_values(local_store):
    state, product = inventory_ops.add_product(InventoryState(), local_store, {"code": "X", "name": "X", "price": 1})

    with pytest.raises(ValidationError, match="quantity must be >= 0"):
        inventory_ops.update_product(state, local_store, product["id"], {"quantity": -4})

    assert local_store.get_product(product["id"])["quantity"] == 0


def test_rejected_product_never_blocks_sync(local_store, cloud_http, user_a):
    user = user_a.to_dict()
    local_store.save_user(user)
    state, _ = inventory_ops.add_product(InventoryState(), local_store, {"code": "OK", "name": "Fine", "price": 2})
    with pytest.raises(ValidationError):
        inventory_ops.add_product(state, local_store, {"code": "B", "price": -3, "quantity": -2, "gst": 150})

    result = SyncClient(local_store, http=cloud_http).bidirectional_sync(user)
    assert result.success is True


def test_adjust_stock_uses_stored_quantity(local_store):
    _, product = inventory_ops.add_product(
        InventoryState(), local_store, {"code": "X", "name": "X", "price": 1, "quantity": 5}
    )
    # A state that never loaded the product still moves stored stock
    state = inventory_ops.adjust_stock(InventoryState(), local_store, product["id"], 3)
    assert local_store.get_product(product["id"])["quantity"] == 8
    assert state.products == ()
