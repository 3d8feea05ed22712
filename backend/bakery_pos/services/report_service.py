# Overview: Back-office reports (revenue, debt, inventory) over a shop-local day or month.

"""
Reporting Service

PERIODS:
- None          -> today (shop-local calendar day)
- "YYYY-MM-DD"  -> that shop-local day
- "month"       -> from the 1st of the current shop-local month until now

All boundaries are computed in STORE_TIMEZONE and queried as UTC.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, tzinfo
from typing import Optional

from ..datastore import DataStore
from ..records import PAYMENT_METHODS, CustomerDebtRecord, OrderRecord
from ..time_utils import local_day_bounds, local_month_start, store_tz, to_utc_z, utcnow
from ..validation import ValidationError
from . import debt_service
from .catalog_service import list_inventory_logs

MONTH = "month"
RECENT_LIMIT = 50


@dataclass(frozen=True)
class Period:
    label: str
    start: datetime
    end: Optional[datetime]

    def to_dict(self) -> dict:
        return {"label": self.label, "start": to_utc_z(self.start), "end": to_utc_z(self.end)}


def resolve_period(period: str | None, now: datetime | None = None, tz: tzinfo | None = None) -> Period:
    now = now or utcnow()
    tz = tz or store_tz()
    if period == MONTH:
        return Period(label=MONTH, start=local_month_start(now, tz), end=None)
    if period:
        try:
            day = date.fromisoformat(period)
        except ValueError:
            raise ValidationError("date must be YYYY-MM-DD or 'month'")
        start, end = local_day_bounds(datetime.combine(day, time(12), tzinfo=tz), tz)
        return Period(label=day.isoformat(), start=start, end=end)
    start, end = local_day_bounds(now, tz)
    return Period(label="today", start=start, end=end)


def _range_filter(period: Period):
    if period.end is None:
        return ("gte", period.start)
    return ("between", (period.start, period.end))


def revenue_report(store: DataStore, period: str | None = None, now: datetime | None = None, tz: tzinfo | None = None) -> dict:
    window = resolve_period(period, now, tz)
    rows = store.select("orders", {"created_at": _range_filter(window)}, order=["-created_at"])
    orders = [OrderRecord.from_row(r) for r in rows]

    by_method = {method: 0 for method in PAYMENT_METHODS}
    for order in orders:
        by_method[order.payment_method] += order.total_amount

    return {
        "period": window.to_dict(),
        "total": sum(o.total_amount for o in orders),
        "count": len(orders),
        "by_payment_method": by_method,
        "orders": [o.to_dict() for o in orders],
    }


def debt_report(store: DataStore, period: str | None = None, now: datetime | None = None, tz: tzinfo | None = None) -> dict:
    """All customers with the outstanding total, plus the period's ledger rows (latest 50 for a month)."""
    window = resolve_period(period, now, tz)
    customers: list[CustomerDebtRecord] = debt_service.list_customers(store)
    if window.label == MONTH:
        transactions = debt_service.list_transactions(store, limit=RECENT_LIMIT)
    else:
        transactions = debt_service.list_transactions(store, since=window.start, until=window.end)

    names = {c.id: c.name for c in customers}
    return {
        "period": window.to_dict(),
        "total_outstanding": sum(c.amount for c in customers),
        "customers": [c.to_dict() for c in customers],
        "transactions": [
            {**t.to_dict(), "customer_name": names.get(t.customer_id)}
            for t in transactions
        ],
    }


def inventory_report(store: DataStore) -> dict:
    logs = list_inventory_logs(store, limit=RECENT_LIMIT)
    return {
        "logs": [log.to_dict() for log in logs],
        "total_cost": sum(log.cost for log in logs),
    }
