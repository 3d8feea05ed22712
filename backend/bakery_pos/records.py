# Overview: Typed records for rows crossing the data-store boundary.

"""
Every dict row coming out of a DataStore is mapped to one of these frozen
dataclasses before business code reads it. A row that is missing required
keys, carries the wrong types, or breaks an entity invariant raises
RecordError instead of leaking loosely typed data further in.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Optional, Union

from .datastore import RecordError
from .time_utils import parse_iso_datetime, to_utc_naive, to_utc_z

UNLIMITED = "unlimited"

# "debt" is both a payment method and a ledger entry type.
CASH = "cash"
TRANSFER = "transfer"
DEBT = "debt"
REPAYMENT = "repayment"
PAYMENT_METHODS = (CASH, TRANSFER, DEBT)
TRANSACTION_TYPES = (DEBT, REPAYMENT)

RETAIL = "retail"
WHOLESALE = "wholesale"
PRICE_MODES = (RETAIL, WHOLESALE)

DEBT_PAID = "paid"
DEBT_PENDING = "pending"
DEBT_OVERDUE = "overdue"
DEBT_STATUSES = (DEBT_PAID, DEBT_PENDING, DEBT_OVERDUE)

CAKE_PENDING = "pending"
CAKE_COMPLETED = "completed"
CAKE_CANCELED = "canceled"
CAKE_ORDER_STATUSES = (CAKE_PENDING, CAKE_COMPLETED, CAKE_CANCELED)

SHIFT_STATUSES = ("active", "upcoming", "completed")


def _get(row: dict, key: str, entity: str) -> Any:
    if key not in row:
        raise RecordError(f"{entity} row missing '{key}'", details={"row": row})
    return row[key]


def _int(row: dict, key: str, entity: str, *, optional: bool = False) -> Optional[int]:
    value = row.get(key) if optional else _get(row, key, entity)
    if value is None and optional:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise RecordError(f"{entity}.{key} must be an integer, got {value!r}")
    return value


def _str(row: dict, key: str, entity: str, *, optional: bool = False) -> Optional[str]:
    value = row.get(key) if optional else _get(row, key, entity)
    if value is None and optional:
        return None
    if not isinstance(value, str):
        raise RecordError(f"{entity}.{key} must be a string, got {value!r}")
    return value


def _dt(row: dict, key: str, entity: str, *, optional: bool = False) -> Optional[datetime]:
    value = row.get(key) if optional else _get(row, key, entity)
    if value is None and optional:
        return None
    if isinstance(value, datetime):
        return to_utc_naive(value)
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise RecordError(f"{entity}.{key} must be an ISO-8601 datetime, got {value!r}")


def _choice(row: dict, key: str, entity: str, choices: tuple[str, ...]) -> str:
    value = _str(row, key, entity)
    if value not in choices:
        raise RecordError(f"{entity}.{key} must be one of {choices}, got {value!r}")
    return value


def _non_negative(value: Optional[int], entity: str, key: str) -> None:
    if value is not None and value < 0:
        raise RecordError(f"{entity}.{key} must be >= 0, got {value}")


class _Record:
    def to_dict(self) -> dict:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = to_utc_z(value)
        return data


@dataclass(frozen=True)
class ProductRecord(_Record):
    id: int
    name: str
    category: str
    price: int
    wholesale_price: Optional[int]
    stock: Union[int, str]
    image: Optional[str] = None
    base_product_id: Optional[int] = None

    @classmethod
    def from_row(cls, row: dict) -> "ProductRecord":
        entity = "Product"
        price = _int(row, "price", entity)
        wholesale = _int(row, "wholesale_price", entity, optional=True)
        _non_negative(price, entity, "price")
        _non_negative(wholesale, entity, "wholesale_price")
        stock = row.get("stock", UNLIMITED)
        if stock is None:
            stock = UNLIMITED
        if stock != UNLIMITED:
            stock = _int(row, "stock", entity)
            _non_negative(stock, entity, "stock")
        return cls(
            id=_int(row, "id", entity),
            name=_str(row, "name", entity),
            category=_str(row, "category", entity, optional=True) or "",
            price=price,
            wholesale_price=wholesale,
            stock=stock,
            image=_str(row, "image", entity, optional=True),
            base_product_id=_int(row, "base_product_id", entity, optional=True),
        )

    @property
    def is_unlimited(self) -> bool:
        return self.stock == UNLIMITED


@dataclass(frozen=True)
class CustomerDebtRecord(_Record):
    id: int
    name: str
    phone: Optional[str]
    amount: int
    status: str
    last_activity: Optional[datetime]
    address: Optional[str] = None
    image: Optional[str] = None
    initials: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "CustomerDebtRecord":
        entity = "CustomerDebt"
        return cls(
            id=_int(row, "id", entity),
            name=_str(row, "name", entity),
            phone=_str(row, "phone", entity, optional=True),
            amount=_int(row, "amount", entity),
            status=_choice(row, "status", entity, DEBT_STATUSES),
            last_activity=_dt(row, "last_activity", entity, optional=True),
            address=_str(row, "address", entity, optional=True),
            image=_str(row, "image", entity, optional=True),
            initials=_str(row, "initials", entity, optional=True),
        )


@dataclass(frozen=True)
class DebtTransactionRecord(_Record):
    id: int
    customer_id: int
    amount: int
    type: str
    note: Optional[str]
    created_at: datetime
    order_id: Optional[int] = None

    @classmethod
    def from_row(cls, row: dict) -> "DebtTransactionRecord":
        entity = "DebtTransaction"
        amount = _int(row, "amount", entity)
        if amount <= 0:
            raise RecordError(f"{entity}.amount must be positive, got {amount}")
        return cls(
            id=_int(row, "id", entity),
            customer_id=_int(row, "customer_id", entity),
            amount=amount,
            type=_choice(row, "type", entity, TRANSACTION_TYPES),
            note=_str(row, "note", entity, optional=True),
            created_at=_dt(row, "created_at", entity),
            order_id=_int(row, "order_id", entity, optional=True),
        )

    @property
    def signed_amount(self) -> int:
        return self.amount if self.type == DEBT else -self.amount


@dataclass(frozen=True)
class OrderRecord(_Record):
    id: int
    total_amount: int
    payment_method: str
    created_at: datetime
    customer_id: Optional[int] = None
    sub_total: Optional[int] = None
    discount_percent: int = 0
    discount_amount: int = 0
    price_mode: str = RETAIL
    customer_name: Optional[str] = None
    client_ref: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "OrderRecord":
        entity = "Order"
        price_mode = row.get("price_mode") or RETAIL
        if price_mode not in PRICE_MODES:
            raise RecordError(f"{entity}.price_mode must be one of {PRICE_MODES}, got {price_mode!r}")
        return cls(
            id=_int(row, "id", entity),
            total_amount=_int(row, "total_amount", entity),
            payment_method=_choice(row, "payment_method", entity, PAYMENT_METHODS),
            created_at=_dt(row, "created_at", entity),
            customer_id=_int(row, "customer_id", entity, optional=True),
            sub_total=_int(row, "sub_total", entity, optional=True),
            discount_percent=_int(row, "discount_percent", entity, optional=True) or 0,
            discount_amount=_int(row, "discount_amount", entity, optional=True) or 0,
            price_mode=price_mode,
            customer_name=_str(row, "customer_name", entity, optional=True),
            client_ref=_str(row, "client_ref", entity, optional=True),
        )


@dataclass(frozen=True)
class OrderItemRecord(_Record):
    id: int
    order_id: int
    product_id: Optional[int]
    product_name: str
    quantity: int
    price: int

    @classmethod
    def from_row(cls, row: dict) -> "OrderItemRecord":
        entity = "OrderItem"
        quantity = _int(row, "quantity", entity)
        if quantity < 1:
            raise RecordError(f"{entity}.quantity must be >= 1, got {quantity}")
        return cls(
            id=_int(row, "id", entity),
            order_id=_int(row, "order_id", entity),
            product_id=_int(row, "product_id", entity, optional=True),
            product_name=_str(row, "product_name", entity),
            quantity=quantity,
            price=_int(row, "price", entity),
        )

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


@dataclass(frozen=True)
class CakeOrderRecord(_Record):
    id: int
    customer_name: str
    product_name: str
    quantity: int
    total_amount: int
    deposit_amount: int
    remaining_amount: int
    delivery_date: datetime
    status: str
    phone: Optional[str] = None
    product_id: Optional[int] = None
    delivery_address: Optional[str] = None
    created_by: Optional[str] = None
    note: Optional[str] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "CakeOrderRecord":
        entity = "CakeOrder"
        return cls(
            id=_int(row, "id", entity),
            customer_name=_str(row, "customer_name", entity),
            product_name=_str(row, "product_name", entity),
            quantity=_int(row, "quantity", entity),
            total_amount=_int(row, "total_amount", entity),
            deposit_amount=_int(row, "deposit_amount", entity),
            remaining_amount=_int(row, "remaining_amount", entity),
            delivery_date=_dt(row, "delivery_date", entity),
            status=_choice(row, "status", entity, CAKE_ORDER_STATUSES),
            phone=_str(row, "phone", entity, optional=True),
            product_id=_int(row, "product_id", entity, optional=True),
            delivery_address=_str(row, "delivery_address", entity, optional=True),
            created_by=_str(row, "created_by", entity, optional=True),
            note=_str(row, "note", entity, optional=True),
            completed_at=_dt(row, "completed_at", entity, optional=True),
        )


@dataclass(frozen=True)
class ShiftRecord(_Record):
    id: int
    name: str
    role: str
    time: str
    status: str
    image: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "ShiftRecord":
        entity = "Shift"
        return cls(
            id=_int(row, "id", entity),
            name=_str(row, "name", entity),
            role=_str(row, "role", entity),
            time=_str(row, "time", entity),
            status=_choice(row, "status", entity, SHIFT_STATUSES),
            image=_str(row, "image", entity, optional=True),
        )


@dataclass(frozen=True)
class InventoryLogRecord(_Record):
    id: int
    product_id: int
    quantity: int
    price: int
    created_at: datetime
    note: Optional[str] = None
    created_by: Optional[int] = None
    product_name: Optional[str] = None
    created_by_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "InventoryLogRecord":
        entity = "InventoryLog"
        quantity = _int(row, "quantity", entity)
        if quantity < 1:
            raise RecordError(f"{entity}.quantity must be >= 1, got {quantity}")
        price = _int(row, "price", entity)
        _non_negative(price, entity, "price")
        return cls(
            id=_int(row, "id", entity),
            product_id=_int(row, "product_id", entity),
            quantity=quantity,
            price=price,
            created_at=_dt(row, "created_at", entity),
            note=_str(row, "note", entity, optional=True),
            created_by=_int(row, "created_by", entity, optional=True),
            product_name=_str(row, "product_name", entity, optional=True),
            created_by_name=_str(row, "created_by_name", entity, optional=True),
        )

    @property
    def cost(self) -> int:
        return self.quantity * self.price
