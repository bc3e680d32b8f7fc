"""Boundary validation for pushed records."""

import pytest

from ndizi.models import Product, Transaction
from ndizi.services.sync_service import (
    PRODUCT_SYNC_POLICY,
    TRANSACTION_SYNC_POLICY,
    parse_watermark,
    validate_records,
)
from ndizi.validation import (
    ValidationError,
    enforce_rules_product,
    to_column_key,
    validate_payload,
)


def test_camel_case_keys_map_to_columns():
    assert to_column_key("lowStockThreshold") == "low_stock_threshold"
    assert to_column_key("invoiceNumber") == "invoice_number"
    assert to_column_key("code") == "code"


def test_product_payload_is_normalized(app):
    patch = validate_payload(
        model=Product,
        payload={"code": "RICE", "name": "Rice", "price": "45.5", "quantity": 3.0,
                 "lowStockThreshold": "2", "id": "abc", "updatedAt": "whatever"},
        policy=PRODUCT_SYNC_POLICY,
        partial=False,
    )
    assert patch == {
        "code": "RICE",
        "name": "Rice",
        "price": 45.5,
        "quantity": 3,
        "low_stock_threshold": 2,
    }


def test_strings_kept_as_sent(app):
    patch = validate_payload(
        model=Product,
        payload={"name": "Rice ", "description": "line1\nline2\n"},
        policy=PRODUCT_SYNC_POLICY,
        partial=True,
    )
    assert patch == {"name": "Rice ", "description": "line1\nline2\n"}


@pytest.mark.parametrize("payload, message", [
    ({"name": 5}, "name must be a string"),
    ({"code": ["RICE"]}, "code must be a string"),
])
def test_non_string_text_rejected(app, payload, message):
    with pytest.raises(ValidationError, match=message):
        validate_payload(model=Product, payload=payload, policy=PRODUCT_SYNC_POLICY, partial=True)


def test_required_product_fields(app):
    with pytest.raises(ValidationError, match="Missing required fields: code, price"):
        validate_payload(model=Product, payload={"name": "Rice"}, policy=PRODUCT_SYNC_POLICY, partial=False)


def test_partial_skips_required(app):
    patch = validate_payload(model=Product, payload={"quantity": 4}, policy=PRODUCT_SYNC_POLICY, partial=True)
    assert patch == {"quantity": 4}


@pytest.mark.parametrize("value", ["1e3", "2.5", "", True])
def test_quantity_must_be_plain_integer(app, value):
    with pytest.raises(ValidationError):
        validate_payload(model=Product, payload={"quantity": value}, policy=PRODUCT_SYNC_POLICY, partial=True)


def test_non_nullable_blank_name(app):
    with pytest.raises(ValidationError, match="name cannot be blank"):
        validate_payload(model=Product, payload={"name": "   "}, policy=PRODUCT_SYNC_POLICY, partial=True)


def test_code_length_limit(app):
    with pytest.raises(ValidationError, match="code exceeds max length 64"):
        validate_payload(model=Product, payload={"code": "X" * 65}, policy=PRODUCT_SYNC_POLICY, partial=True)


def test_price_rules():
    enforce_rules_product({"price": 0})
    with pytest.raises(ValidationError, match="price must be >= 0"):
        enforce_rules_product({"price": -0.01})
    with pytest.raises(ValidationError, match="price cannot exceed"):
        enforce_rules_product({"price": 10_000_000})


def test_transaction_items_must_be_json_list_or_object(app):
    with pytest.raises(ValidationError, match="items must be a list or object"):
        validate_payload(
            model=Transaction,
            payload={"items": "two bags of rice"},
            policy=TRANSACTION_SYNC_POLICY,
            partial=True,
        )


def test_transaction_created_at_parsed(app):
    patch = validate_payload(
        model=Transaction,
        payload={"createdAt": "2026-03-01T05:30:00.000+05:30"},
        policy=TRANSACTION_SYNC_POLICY,
        partial=True,
    )
    assert patch["created_at"].isoformat() == "2026-03-01T00:00:00"


def test_validate_records_reports_position(app):
    with pytest.raises(ValidationError, match=r"^transactions\[0\]: items must be a list$"):
        validate_records(
            [{"invoiceNumber": "INV00001", "items": {"a": 1}, "subtotal": 1, "gst": 0, "total": 1}],
            kind="transactions",
        )


def test_validate_records_rejects_non_objects(app):
    with pytest.raises(ValidationError, match=r"products\[0\] must be an object"):
        validate_records(["RICE"], kind="products")


def test_record_id_length(app):
    with pytest.raises(ValidationError, match="id exceeds max length 36"):
        validate_records([{"id": "x" * 37, "code": "A", "name": "A", "price": 1}], kind="products")


def test_validate_records_none_is_empty():
    assert validate_records(None, kind="products") == []


def test_parse_watermark():
    assert parse_watermark(None) is None
    assert parse_watermark("") is None
    assert parse_watermark("2026-01-01T00:00:00.000Z").isoformat() == "2026-01-01T00:00:00"
    with pytest.raises(ValidationError):
        parse_watermark(1700000000)
