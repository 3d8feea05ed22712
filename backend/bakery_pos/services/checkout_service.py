# Overview: Checkout totals and settlement of a register cart into an order.

"""
Checkout / Settlement Service

WHY: A settlement touches several tables (order, its lines, and for debt
sales the ledger and the customer's cached balance). The register must
never clear its cart for a sale that did not land, and must be told
plainly when a sale landed only in part.

DESIGN:
- validate_settlement() raises ValidationError before any write
- settle() runs every write inside store.transaction() and returns a
  SettlementSuccess or a SettlementFailure naming the step that broke
- apply_settlement() turns the result into the next register state; a
  failure leaves the cart as it was

DOUBLE SUBMIT: the state carries a `settling` flag while a settlement is
in flight, and an optional client_ref is stored on the order with a unique
constraint; a repeat with the same ref returns the existing order.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from datetime import datetime
from typing import Optional, Union

from ..datastore import BackendError, DataStore
from ..records import (
    DEBT,
    PAYMENT_METHODS,
    CustomerDebtRecord,
    DebtTransactionRecord,
    OrderItemRecord,
    OrderRecord,
)
from ..time_utils import utcnow
from ..validation import ValidationError
from . import debt_service
from .cart_service import WHOLESALE, PosState, clamp_percent, clear_cart, sub_total


STEP_ORDER = "order"
STEP_ITEMS = "order_items"
STEP_DEBT_TRANSACTION = debt_service.STEP_TRANSACTION
STEP_CUSTOMER_BALANCE = debt_service.STEP_BALANCE

DEBT_NOTE = "Mua hàng (Sỉ)"


@dataclass(frozen=True)
class Totals:
    sub_total: int
    discount_percent: int
    discount_amount: int
    total: int

    def to_dict(self) -> dict:
        return {
            "sub_total": self.sub_total,
            "discount_percent": self.discount_percent,
            "discount_amount": self.discount_amount,
            "total": self.total,
        }


@dataclass(frozen=True)
class SettlementSuccess:
    order: OrderRecord
    items: tuple[OrderItemRecord, ...]
    debt_transaction: Optional[DebtTransactionRecord] = None
    customer: Optional[CustomerDebtRecord] = None
    replayed: bool = False

    ok = True

    def to_dict(self) -> dict:
        return {
            "ok": True,
            "replayed": self.replayed,
            "order": self.order.to_dict(),
            "items": [item.to_dict() for item in self.items],
            "debt_transaction": self.debt_transaction.to_dict() if self.debt_transaction else None,
            "customer": self.customer.to_dict() if self.customer else None,
        }


@dataclass(frozen=True)
class SettlementFailure:
    step: str
    error: str
    partially_applied: bool = False
    completed_steps: tuple[str, ...] = field(default_factory=tuple)

    ok = False

    def to_dict(self) -> dict:
        return {
            "ok": False,
            "failed_step": self.step,
            "error": self.error,
            "partially_applied": self.partially_applied,
            "completed_steps": list(self.completed_steps),
        }


SettlementResult = Union[SettlementSuccess, SettlementFailure]


def compute_totals(sub_total_amount: int, discount_percent) -> Totals:
    """
    discount_amount = sub_total * percent / 100, rounded half-up to a whole
    đồng; total = sub_total - discount_amount. Percent is clamped to [0, 100].
    """
    percent = clamp_percent(discount_percent)
    discount = (Decimal(sub_total_amount) * percent / Decimal(100)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    discount_amount = int(discount)
    return Totals(
        sub_total=sub_total_amount,
        discount_percent=percent,
        discount_amount=discount_amount,
        total=sub_total_amount - discount_amount,
    )


def totals_for(state: PosState) -> Totals:
    return compute_totals(sub_total(state), state.discount_percent)


def validate_settlement(state: PosState, method: str) -> None:
    """Raise ValidationError for any settlement the register must refuse outright."""
    if state.settling:
        raise ValidationError("A settlement is already in progress")
    if state.is_empty:
        raise ValidationError("Cart is empty")
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
    if state.price_mode == WHOLESALE and state.customer is None:
        raise ValidationError("Wholesale sales require a customer")
    if method == DEBT and state.customer is None:
        raise ValidationError("Debt payment requires a customer")
    if method == DEBT and state.price_mode != WHOLESALE:
        raise ValidationError("Debt payment is only available for wholesale sales")


def begin_settlement(state: PosState, method: str) -> PosState:
    """
    Validate and flip the settling flag; a second call on the result is refused.

    Usage:
        pending = begin_settlement(state, method)
        result = settle(store, state, method, client_ref=ref)
        state = apply_settlement(pending, result)
    """
    validate_settlement(state, method)
    return replace(state, settling=True)


def _find_replay(store: DataStore, client_ref: str | None) -> Optional[SettlementSuccess]:
    if not client_ref:
        return None
    row = store.first("orders", {"client_ref": client_ref})
    if row is None:
        return None
    order = OrderRecord.from_row(row)
    items = tuple(
        OrderItemRecord.from_row(r)
        for r in store.select("order_items", {"order_id": order.id})
    )
    txn_row = store.first("debt_transactions", {"order_id": order.id})
    return SettlementSuccess(
        order=order,
        items=items,
        debt_transaction=DebtTransactionRecord.from_row(txn_row) if txn_row else None,
        replayed=True,
    )


def settle(
    store: DataStore,
    state: PosState,
    method: str,
    *,
    client_ref: str | None = None,
    actor_id: int | None = None,
    now: datetime | None = None,
) -> SettlementResult:
    """
    Turn the cart into an Order with its OrderItems and, for debt sales, a
    ledger entry plus the customer's balance update.

    Raises ValidationError (zero writes) for an invalid settlement.
    Backend failures come back as SettlementFailure; `partially_applied`
    is set only when the store could not roll back completed steps.
    """
    validate_settlement(state, method)

    replay = _find_replay(store, client_ref)
    if replay is not None:
        return replay

    totals = totals_for(state)
    now = now or utcnow()
    customer_id = state.customer.id if state.customer else None

    completed: list[str] = []
    step = STEP_ORDER
    txn = None
    customer = None
    try:
        with store.transaction():
            order_row = store.insert("orders", [{
                "sub_total": totals.sub_total,
                "discount_percent": totals.discount_percent,
                "discount_amount": totals.discount_amount,
                "total_amount": totals.total,
                "payment_method": method,
                "price_mode": state.price_mode,
                "customer_id": customer_id,
                "client_ref": client_ref,
                "created_by": actor_id,
                "created_at": now,
            }])[0]
            order = OrderRecord.from_row(order_row)
            completed.append(step)

            step = STEP_ITEMS
            item_rows = store.insert("order_items", [
                {
                    "order_id": order.id,
                    "product_id": line.product_id,
                    "product_name": line.name,
                    "quantity": line.quantity,
                    "price": line.price,
                }
                for line in state.lines
            ])
            items = tuple(OrderItemRecord.from_row(r) for r in item_rows)
            completed.append(step)

            if method == DEBT:
                step = STEP_DEBT_TRANSACTION
                txn = debt_service.append_entry(
                    store,
                    customer_id=customer_id,
                    amount=totals.total,
                    type_=DEBT,
                    note=DEBT_NOTE,
                    order_id=order.id,
                    actor_id=actor_id,
                    now=now,
                ) if totals.total > 0 else None
                completed.append(step)

                step = STEP_CUSTOMER_BALANCE
                customer = debt_service.apply_to_balance(
                    store, customer_id, totals.total, now, status_rule=debt_service.sale_status,
                )
                completed.append(step)
    except BackendError as exc:
        if step == STEP_ORDER and client_ref:
            # Lost the race on uq_orders_client_ref to an identical submit
            replay = _find_replay(store, client_ref)
            if replay is not None:
                return replay
        partially = bool(completed) and not store.atomic
        return SettlementFailure(
            step=step,
            error=str(exc),
            partially_applied=partially,
            completed_steps=tuple(completed) if partially else (),
        )

    return SettlementSuccess(
        order=order,
        items=items,
        debt_transaction=txn,
        customer=customer,
    )


def apply_settlement(state: PosState, result: SettlementResult) -> PosState:
    """
    Next register state after a settlement attempt.

    Success: cart cleared, discount reset, customer cleared for wholesale.
    Failure: the cart is kept; only the settling flag is released.
    """
    if not result.ok:
        return replace(state, settling=False)
    cleared = replace(clear_cart(state), settling=False)
    if state.price_mode == WHOLESALE:
        cleared = replace(cleared, customer=None)
    return cleared
