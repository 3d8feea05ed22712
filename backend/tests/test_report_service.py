from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from bakery_pos.services import report_service
from bakery_pos.validation import ValidationError

TZ = ZoneInfo("Asia/Ho_Chi_Minh")
NOW = datetime(2024, 5, 2, 2, 0)  # 09:00 shop time


def _order(order_id, created_at, total, method="cash"):
    return {
        "id": order_id, "total_amount": total, "sub_total": total,
        "discount_percent": 0, "discount_amount": 0, "payment_method": method,
        "price_mode": "retail", "customer_id": None, "created_at": created_at,
    }


def test_today_window_is_shop_local_day():
    period = report_service.resolve_period(None, NOW, TZ)

    # 2024-05-02 00:00 +07:00 .. 2024-05-03 00:00 +07:00
    assert period.start == datetime(2024, 5, 1, 17, 0)
    assert period.end == datetime(2024, 5, 2, 17, 0)


def test_month_window_is_open_ended():
    period = report_service.resolve_period("month", NOW, TZ)

    assert period.start == datetime(2024, 4, 30, 17, 0)
    assert period.end is None


def test_bad_period_rejected():
    with pytest.raises(ValidationError):
        report_service.resolve_period("yesterday", NOW, TZ)


def test_revenue_report_totals_by_method(fake_store):
    fake_store.seed(
        "orders",
        _order(1, datetime(2024, 5, 1, 18, 0), 50000),            # 01:00 local, today
        _order(2, datetime(2024, 5, 2, 1, 0), 30000, "transfer"),  # 08:00 local, today
        _order(3, datetime(2024, 5, 1, 16, 59), 99000),           # 23:59 local yesterday
    )

    report = report_service.revenue_report(fake_store, None, NOW, TZ)

    assert report["count"] == 2
    assert report["total"] == 80000
    assert report["by_payment_method"] == {"cash": 50000, "transfer": 30000, "debt": 0}
    assert [o["id"] for o in report["orders"]] == [2, 1]


def test_debt_report_names_each_transaction(fake_store, customer_row):
    fake_store.seed("customer_debts", {**customer_row, "amount": 20000, "status": "pending"})
    fake_store.seed("debt_transactions", {
        "customer_id": 1, "amount": 20000, "type": "debt", "note": None,
        "order_id": None, "created_at": datetime(2024, 5, 2, 1, 0),
    })

    report = report_service.debt_report(fake_store, "2024-05-02", NOW, TZ)

    assert report["total_outstanding"] == 20000
    assert report["transactions"][0]["customer_name"] == "Chị Lan"


def test_inventory_report_total_cost(fake_store):
    fake_store.seed(
        "inventory_logs",
        {"product_id": 1, "quantity": 10, "price": 12000, "note": None, "created_at": NOW},
        {"product_id": 2, "quantity": 5, "price": 8000, "note": None, "created_at": NOW},
    )

    assert report_service.inventory_report(fake_store)["total_cost"] == 160000
