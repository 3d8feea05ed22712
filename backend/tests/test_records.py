"""
Row -> record mapping at the data-store boundary.
"""

from datetime import datetime

import pytest

from bakery_pos.datastore import RecordError
from bakery_pos.records import (
    CakeOrderRecord,
    CustomerDebtRecord,
    DebtTransactionRecord,
    InventoryLogRecord,
    OrderItemRecord,
    ProductRecord,
)


def test_product_null_stock_is_unlimited(product_rows):
    product = ProductRecord.from_row(product_rows[2])

    assert product.stock == "unlimited"
    assert product.to_dict()["stock"] == "unlimited"


def test_product_missing_price_rejected(product_rows):
    row = dict(product_rows[0])
    del row["price"]

    with pytest.raises(RecordError, match="price"):
        ProductRecord.from_row(row)


def test_product_string_price_rejected(product_rows):
    with pytest.raises(RecordError):
        ProductRecord.from_row({**product_rows[0], "price": "20000"})


def test_customer_unknown_status_rejected(customer_row):
    with pytest.raises(RecordError, match="status"):
        CustomerDebtRecord.from_row({**customer_row, "status": "late"})


def test_transaction_amount_must_be_positive():
    with pytest.raises(RecordError):
        DebtTransactionRecord.from_row({
            "id": 1, "customer_id": 1, "amount": 0, "type": "debt",
            "note": None, "created_at": datetime(2024, 5, 1),
        })


def test_order_item_quantity_at_least_one():
    with pytest.raises(RecordError):
        OrderItemRecord.from_row({"id": 1, "order_id": 1, "product_id": 1, "product_name": "X", "quantity": 0, "price": 1})


def test_timestamps_accept_z_strings_and_render_back():
    order = CakeOrderRecord.from_row({
        "id": 1, "customer_name": "A", "product_name": "B", "quantity": 1,
        "total_amount": 0, "deposit_amount": 0, "remaining_amount": 0,
        "delivery_date": "2024-05-03T01:00:00Z", "status": "pending",
    })

    assert order.delivery_date == datetime(2024, 5, 3, 1, 0)
    assert order.to_dict()["delivery_date"] == "2024-05-03T01:00:00Z"


def test_bad_timestamp_rejected():
    with pytest.raises(RecordError):
        DebtTransactionRecord.from_row({
            "id": 1, "customer_id": 1, "amount": 1, "type": "debt",
            "note": None, "created_at": "yesterday",
        })


def test_inventory_log_cost_and_rejects_negative_price():
    row = {"id": 1, "product_id": 4, "quantity": 3, "price": 30000, "created_at": "2024-05-02T01:00:00Z"}

    log = InventoryLogRecord.from_row(row)
    assert log.cost == 90000
    assert log.to_dict()["created_at"] == "2024-05-02T01:00:00Z"

    with pytest.raises(RecordError, match="price"):
        InventoryLogRecord.from_row({**row, "price": -1})
