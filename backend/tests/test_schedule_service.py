"""
Cake order scheduling tests.

Shop time is Asia/Ho_Chi_Minh (UTC+7). NOW is 09:00 local on 2024-05-02.
"""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from bakery_pos.records import CakeOrderRecord, ProductRecord
from bakery_pos.services import schedule_service
from bakery_pos.validation import ConflictError, NotFoundError, ValidationError

TZ = ZoneInfo("Asia/Ho_Chi_Minh")
NOW = datetime(2024, 5, 2, 2, 0)  # UTC-naive


def _order(order_id, delivery, status="pending", completed_at=None):
    return CakeOrderRecord.from_row({
        "id": order_id,
        "customer_name": f"Khách {order_id}",
        "product_name": "Bánh kem",
        "quantity": 1,
        "total_amount": 300000,
        "deposit_amount": 100000,
        "remaining_amount": 200000,
        "delivery_date": delivery,
        "status": status,
        "completed_at": completed_at,
    })


@pytest.fixture
def catalog(product_rows):
    return [ProductRecord.from_row(row) for row in product_rows]


def test_buckets_by_time_to_delivery():
    orders = [
        _order(1, NOW + timedelta(hours=1)),
        _order(2, NOW + timedelta(hours=5)),
        _order(3, NOW + timedelta(days=1)),
    ]

    buckets = schedule_service.bucket_pending_orders(orders, NOW, TZ)

    assert [o.id for o in buckets.urgent] == [1]
    assert [o.id for o in buckets.today] == [2]
    assert [o.id for o in buckets.future] == [3]


def test_exactly_two_hours_is_urgent_and_past_due_too():
    orders = [
        _order(1, NOW + timedelta(hours=2)),
        _order(2, NOW - timedelta(hours=3)),
    ]

    buckets = schedule_service.bucket_pending_orders(orders, NOW, TZ)

    assert [o.id for o in buckets.urgent] == [2, 1]


def test_today_uses_shop_calendar_not_utc():
    # 18:00 UTC is still 2024-05-02 in UTC but 01:00 on 05-03 in shop time
    late = _order(1, datetime(2024, 5, 2, 18, 0))

    buckets = schedule_service.bucket_pending_orders([late], NOW, TZ)

    assert buckets.today == ()
    assert [o.id for o in buckets.future] == [1]


def test_only_pending_orders_are_bucketed():
    orders = [
        _order(1, NOW + timedelta(hours=1), status="completed"),
        _order(2, NOW + timedelta(hours=1), status="canceled"),
    ]

    buckets = schedule_service.bucket_pending_orders(orders, NOW, TZ)

    assert buckets.to_dict()["counts"] == {"urgent": 0, "today": 0, "future": 0}


def test_buckets_sorted_by_delivery():
    orders = [
        _order(1, NOW + timedelta(days=3)),
        _order(2, NOW + timedelta(days=1)),
        _order(3, NOW + timedelta(days=2)),
    ]

    buckets = schedule_service.bucket_pending_orders(orders, NOW, TZ)

    assert [o.id for o in buckets.future] == [2, 3, 1]


def test_history_most_recent_completion_first():
    orders = [
        _order(1, NOW, status="completed", completed_at=NOW - timedelta(days=2)),
        _order(2, NOW, status="completed", completed_at=NOW - timedelta(hours=1)),
        _order(3, NOW, status="pending"),
    ]

    assert [o.id for o in schedule_service.completed_history(orders)] == [2, 1]


def test_default_delivery_time_is_five_am_shop_time():
    slot = schedule_service.default_delivery_time(NOW, TZ)

    # 05:00 +07:00 == 22:00 UTC the previous day
    assert slot == datetime(2024, 5, 1, 22, 0)


# ============================================================================
# Store-backed lifecycle
# ============================================================================

def test_create_from_catalog_product_prices_the_order(fake_store, catalog):
    order = schedule_service.create_cake_order(
        fake_store,
        {
            "customer_name": "Chị Mai",
            "product_id": 4,
            "quantity": 2,
            "deposit_amount": 20000,
            "delivery_date": "2024-05-03T01:00:00Z",
        },
        catalog,
        created_by="Thu ngân",
        now=NOW,
    )

    assert order.product_name == "Bánh bông lan"
    assert order.total_amount == 70000
    assert order.remaining_amount == 50000
    assert order.status == "pending"
    assert order.created_by == "Thu ngân"
    assert order.delivery_date == datetime(2024, 5, 3, 1, 0)


def test_create_custom_cake_uses_quoted_total(fake_store, catalog):
    order = schedule_service.create_cake_order(
        fake_store,
        {
            "customer_name": "Anh Hùng",
            "product_name": "Bánh kem 3 tầng",
            "total_amount": 850000,
            "deposit_amount": 300000,
            "delivery_date": "2024-05-04T10:00:00+07:00",
        },
        catalog,
        now=NOW,
    )

    assert order.product_id is None
    assert order.remaining_amount == 550000
    assert order.delivery_date == datetime(2024, 5, 4, 3, 0)


def test_create_reads_offsetless_delivery_as_shop_time(fake_store, catalog):
    order = schedule_service.create_cake_order(
        fake_store,
        {"customer_name": "Chị Mai", "product_id": 4, "delivery_date": "2024-05-03T05:00"},
        catalog,
        now=NOW,
        tz=TZ,
    )

    # 05:00 +07:00 on the 3rd == 22:00 UTC on the 2nd
    assert order.delivery_date == datetime(2024, 5, 2, 22, 0)
    buckets = schedule_service.bucket_pending_orders([order], NOW, TZ)
    assert [o.id for o in buckets.future] == [order.id]


def test_create_rejects_unparseable_delivery(fake_store, catalog):
    with pytest.raises(ValidationError, match="delivery_date"):
        schedule_service.create_cake_order(
            fake_store,
            {"customer_name": "A", "product_id": 4, "delivery_date": "ngày mai"},
            catalog,
            tz=TZ,
        )
    assert fake_store.writes == []


def test_create_requires_fields(fake_store, catalog):
    with pytest.raises(ValidationError, match="customer_name"):
        schedule_service.create_cake_order(fake_store, {"product_name": "Bánh kem"}, catalog)
    assert fake_store.writes == []


def test_deposit_cannot_exceed_total(fake_store, catalog):
    with pytest.raises(ValidationError, match="deposit"):
        schedule_service.create_cake_order(
            fake_store,
            {"customer_name": "A", "product_id": 2, "deposit_amount": 20000, "delivery_date": "2024-05-03T01:00:00Z"},
            catalog,
        )


def test_mark_delivered_then_again_conflicts(fake_store):
    fake_store.seed("cake_orders", {
        "id": 7, "customer_name": "Chị Mai", "product_name": "Bánh kem", "quantity": 1,
        "total_amount": 300000, "deposit_amount": 0, "remaining_amount": 300000,
        "delivery_date": NOW + timedelta(hours=1), "status": "pending", "completed_at": None,
    })

    delivered = schedule_service.mark_delivered(fake_store, 7, now=NOW)
    assert delivered.status == "completed"
    assert delivered.completed_at == NOW

    with pytest.raises(ConflictError):
        schedule_service.mark_delivered(fake_store, 7, now=NOW)
    with pytest.raises(ConflictError):
        schedule_service.cancel_cake_order(fake_store, 7)


def test_canceled_order_cannot_be_delivered(fake_store):
    fake_store.seed("cake_orders", {
        "id": 8, "customer_name": "Chị Mai", "product_name": "Bánh kem", "quantity": 1,
        "total_amount": 0, "deposit_amount": 0, "remaining_amount": 0,
        "delivery_date": NOW, "status": "pending", "completed_at": None,
    })
    schedule_service.cancel_cake_order(fake_store, 8)

    with pytest.raises(ConflictError):
        schedule_service.mark_delivered(fake_store, 8)


def test_missing_order(fake_store):
    with pytest.raises(NotFoundError):
        schedule_service.mark_delivered(fake_store, 404)


def test_list_rejects_unknown_status(fake_store):
    with pytest.raises(ValidationError):
        schedule_service.list_cake_orders(fake_store, "lost")
