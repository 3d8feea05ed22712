# Overview: Cake pre-orders; dashboard urgency buckets and the delivery lifecycle.

"""
Cake Order Scheduling

LIFECYCLE: pending -> completed (mark_delivered) | canceled (cancel_cake_order).
Both end states are terminal; any further transition raises ConflictError.

BUCKETS (pending orders only, evaluated against `now`):
- urgent: delivery - now <= 2h (past-due pending orders land here too)
- today:  more than 2h away, same shop-local calendar date as now
- future: on or after the shop-local start of tomorrow
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Iterable, Optional

from ..datastore import DataStore
from ..records import CAKE_CANCELED as STATUS_CANCELED
from ..records import CAKE_COMPLETED as STATUS_COMPLETED
from ..records import CAKE_ORDER_STATUSES, CakeOrderRecord, ProductRecord
from ..records import CAKE_PENDING as STATUS_PENDING
from ..time_utils import local_time_today, parse_local_datetime, store_tz, to_local, to_utc_naive, utcnow
from ..validation import ConflictError, NotFoundError, ValidationError, coerce_int, MAX_AMOUNT

URGENT_WINDOW = timedelta(hours=2)
DEFAULT_DELIVERY_HOUR = 5


@dataclass(frozen=True)
class Buckets:
    urgent: tuple[CakeOrderRecord, ...]
    today: tuple[CakeOrderRecord, ...]
    future: tuple[CakeOrderRecord, ...]

    def to_dict(self) -> dict:
        return {
            "urgent": [o.to_dict() for o in self.urgent],
            "today": [o.to_dict() for o in self.today],
            "future": [o.to_dict() for o in self.future],
            "counts": {
                "urgent": len(self.urgent),
                "today": len(self.today),
                "future": len(self.future),
            },
        }


def _by_delivery(order: CakeOrderRecord):
    return (order.delivery_date, order.id)


def bucket_pending_orders(
    orders: Iterable[CakeOrderRecord],
    now: datetime,
    tz: tzinfo,
) -> Buckets:
    urgent, today, future = [], [], []
    today_date = to_local(now, tz).date()
    for order in orders:
        if order.status != STATUS_PENDING:
            continue
        if order.delivery_date - now <= URGENT_WINDOW:
            urgent.append(order)
        elif to_local(order.delivery_date, tz).date() == today_date:
            today.append(order)
        else:
            future.append(order)
    return Buckets(
        urgent=tuple(sorted(urgent, key=_by_delivery)),
        today=tuple(sorted(today, key=_by_delivery)),
        future=tuple(sorted(future, key=_by_delivery)),
    )


def completed_history(orders: Iterable[CakeOrderRecord]) -> list[CakeOrderRecord]:
    """Completed orders, most recent first (completed_at, else delivery_date)."""
    done = [o for o in orders if o.status == STATUS_COMPLETED]
    return sorted(done, key=lambda o: (o.completed_at or o.delivery_date, o.id), reverse=True)


def default_delivery_time(now: datetime | None = None, tz: tzinfo | None = None) -> datetime:
    """Prefilled delivery slot for the order form: today 05:00 shop time (UTC-naive)."""
    return local_time_today(now or utcnow(), tz or store_tz(), DEFAULT_DELIVERY_HOUR)


# ============================================================================
# Store-backed operations
# ============================================================================

def list_cake_orders(store: DataStore, status: str | None = None) -> list[CakeOrderRecord]:
    filters = {}
    if status is not None:
        if status not in CAKE_ORDER_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(CAKE_ORDER_STATUSES)}")
        filters["status"] = status
    rows = store.select("cake_orders", filters, order=["delivery_date"])
    return [CakeOrderRecord.from_row(row) for row in rows]


def get_cake_order(store: DataStore, order_id: int) -> CakeOrderRecord:
    row = store.first("cake_orders", {"id": order_id})
    if row is None:
        raise NotFoundError("Cake order not found")
    return CakeOrderRecord.from_row(row)


def dashboard(store: DataStore, now: datetime | None = None, tz: tzinfo | None = None) -> Buckets:
    return bucket_pending_orders(
        list_cake_orders(store, STATUS_PENDING),
        now or utcnow(),
        tz or store_tz(),
    )


def history(store: DataStore) -> list[CakeOrderRecord]:
    return completed_history(list_cake_orders(store, STATUS_COMPLETED))


def _transition(store: DataStore, order_id: int, target: str, patch: dict) -> CakeOrderRecord:
    order = get_cake_order(store, order_id)
    if order.status != STATUS_PENDING:
        raise ConflictError(f"Cake order is already {order.status}")
    rows = store.update(
        "cake_orders",
        {"id": order_id, "status": STATUS_PENDING},
        {"status": target, **patch},
    )
    if not rows:
        # Someone else moved it between our read and write
        raise ConflictError("Cake order is no longer pending")
    return CakeOrderRecord.from_row(rows[0])


def mark_delivered(store: DataStore, order_id: int, now: datetime | None = None) -> CakeOrderRecord:
    """pending -> completed, stamping completed_at. Terminal orders raise ConflictError."""
    return _transition(store, order_id, STATUS_COMPLETED, {"completed_at": now or utcnow()})


def cancel_cake_order(store: DataStore, order_id: int) -> CakeOrderRecord:
    return _transition(store, order_id, STATUS_CANCELED, {})


def _optional_str(payload: dict, key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value.strip() or None


def create_cake_order(
    store: DataStore,
    payload: dict,
    catalog: Iterable[ProductRecord],
    created_by: str | None = None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> CakeOrderRecord:
    """
    Take a pre-order.

    customer_name, a product (product_id or product_name) and delivery_date
    are required. With a catalog product the name is copied from it and
    total = price * quantity; a free-text product takes total_amount
    from the payload (default 0).
    remaining = total - deposit, and the deposit may not exceed the total.

    A delivery_date string without an offset is shop-local wall-clock time
    (what a datetime-local form field sends); datetime objects are taken as
    UTC-naive.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    customer_name = _optional_str(payload, "customer_name")
    delivery_raw = payload.get("delivery_date")
    product_id = payload.get("product_id")
    product_name = _optional_str(payload, "product_name")

    missing = []
    if not customer_name:
        missing.append("customer_name")
    if product_id in (None, "") and not product_name:
        missing.append("product_name")
    if delivery_raw in (None, ""):
        missing.append("delivery_date")
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    if isinstance(delivery_raw, datetime):
        delivery_date = to_utc_naive(delivery_raw)
    else:
        try:
            delivery_date = parse_local_datetime(str(delivery_raw), tz or store_tz())
        except ValueError:
            raise ValidationError("delivery_date must be an ISO-8601 datetime")

    quantity = coerce_int(payload.get("quantity", 1), "quantity")
    if quantity < 1:
        raise ValidationError("quantity must be at least 1")
    deposit = coerce_int(payload.get("deposit_amount", 0) or 0, "deposit_amount")
    if deposit < 0:
        raise ValidationError("deposit_amount must be >= 0")

    if product_id not in (None, ""):
        product_id = coerce_int(product_id, "product_id")
        product = {p.id: p for p in catalog}.get(product_id)
        if product is None:
            raise ValidationError(f"Unknown product: {product_id}")
        product_name = product.name
        total = product.price * quantity
    else:
        # Custom cake: the counter quotes the whole order
        product_id = None
        total = coerce_int(payload.get("total_amount", 0) or 0, "total_amount")
        if total < 0:
            raise ValidationError("total_amount must be >= 0")

    if total > MAX_AMOUNT:
        raise ValidationError(f"total_amount cannot exceed {MAX_AMOUNT:,}")
    if deposit > total:
        raise ValidationError("deposit_amount cannot exceed total_amount")

    row = store.insert("cake_orders", [{
        "customer_name": customer_name,
        "phone": _optional_str(payload, "phone"),
        "product_id": product_id,
        "product_name": product_name,
        "quantity": quantity,
        "total_amount": total,
        "deposit_amount": deposit,
        "remaining_amount": total - deposit,
        "delivery_date": delivery_date,
        "delivery_address": _optional_str(payload, "delivery_address"),
        "created_by": _optional_str(payload, "created_by") or created_by,
        "note": _optional_str(payload, "note"),
        "status": STATUS_PENDING,
        "created_at": now or utcnow(),
    }])[0]
    return CakeOrderRecord.from_row(row)
