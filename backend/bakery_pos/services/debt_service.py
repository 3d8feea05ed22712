# Overview: Customer debt ledger; append-only transactions plus the cached running balance.

"""
Debt Ledger Service

WHY: Wholesale customers buy on credit and pay back in cash later. The
shop needs a trustworthy answer to "how much does this customer owe?"

DESIGN:
- debt_transactions is the source of truth (append-only; debt adds,
  repayment subtracts)
- customer_debts.amount is a cache of the signed sum, updated in the same
  transaction as every ledger append
- audit_balance() recomputes the sum from the log and reports drift

STATUS RULES:
- balance <= 0            -> paid
- was paid, balance > 0   -> pending
- otherwise unchanged     (overdue stays overdue until paid off)

A debt sale settled at the register uses sale_status instead: paid when
the new balance is <= 0, pending otherwise, whatever the previous status.

`overdue` is a manual flag (mark_overdue); nothing derives it from time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..datastore import BackendError, DataStore, PartialWriteError
from ..records import DEBT, REPAYMENT, TRANSACTION_TYPES, CustomerDebtRecord, DebtTransactionRecord
from ..records import DEBT_OVERDUE as STATUS_OVERDUE
from ..records import DEBT_PAID as STATUS_PAID
from ..records import DEBT_PENDING as STATUS_PENDING
from ..time_utils import utcnow
from ..validation import NotFoundError, ValidationError, require_choice, require_positive_int

CUSTOMER_FIELDS = ("name", "phone", "address", "image")

STEP_TRANSACTION = "debt_transaction"
STEP_BALANCE = "customer_balance"


@dataclass(frozen=True)
class LedgerEntry:
    transaction: DebtTransactionRecord
    customer: CustomerDebtRecord


@dataclass(frozen=True)
class BalanceAudit:
    customer_id: int
    stored_balance: int
    ledger_balance: int
    transaction_count: int

    @property
    def drift(self) -> int:
        return self.stored_balance - self.ledger_balance

    @property
    def ok(self) -> bool:
        return self.drift == 0

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "stored_balance": self.stored_balance,
            "ledger_balance": self.ledger_balance,
            "transaction_count": self.transaction_count,
            "drift": self.drift,
            "ok": self.ok,
        }


def next_status(previous: str, balance: int) -> str:
    """Ledger entries: an overdue customer stays overdue while they still owe."""
    if balance <= 0:
        return STATUS_PAID
    if previous == STATUS_PAID:
        return STATUS_PENDING
    return previous


def sale_status(previous: str, balance: int) -> str:
    """Debt sales at the register: a new sale always resets the customer to pending."""
    return STATUS_PAID if balance <= 0 else STATUS_PENDING


def initials_for(name: str) -> str:
    stripped = (name or "").strip()
    return stripped[0].upper() if stripped else "?"


def signed_amount(amount: int, type_: str) -> int:
    return amount if type_ == DEBT else -amount


# ============================================================================
# Customers
# ============================================================================

def get_customer(store: DataStore, customer_id: int) -> CustomerDebtRecord:
    row = store.first("customer_debts", {"id": customer_id})
    if row is None:
        raise NotFoundError("Customer not found")
    return CustomerDebtRecord.from_row(row)


def list_customers(store: DataStore, search: str | None = None) -> list[CustomerDebtRecord]:
    """All customers, most recently active first; `search` matches name (any case) or phone."""
    customers = [
        CustomerDebtRecord.from_row(row)
        for row in store.select("customer_debts", order=["-last_activity"])
    ]
    term = (search or "").strip().lower()
    if not term:
        return customers
    return [
        c for c in customers
        if term in c.name.lower() or (c.phone and term in c.phone)
    ]


def _clean_customer_fields(payload: dict) -> dict:
    patch = {}
    for key in CUSTOMER_FIELDS:
        if key not in payload:
            continue
        value = payload[key]
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{key} must be a string")
        patch[key] = value.strip() if isinstance(value, str) else None
    return patch


def create_customer(store: DataStore, payload: dict, now: datetime | None = None) -> CustomerDebtRecord:
    """New customers start at balance 0 with status paid."""
    unknown = set(payload or {}) - set(CUSTOMER_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")
    fields = _clean_customer_fields(payload or {})
    if not fields.get("name"):
        raise ValidationError("Missing required fields: name")

    row = store.insert("customer_debts", [{
        **fields,
        "initials": initials_for(fields["name"]),
        "amount": 0,
        "status": STATUS_PAID,
        "last_activity": now or utcnow(),
    }])[0]
    return CustomerDebtRecord.from_row(row)


def update_customer(store: DataStore, customer_id: int, payload: dict) -> CustomerDebtRecord:
    """Profile fields only; balance and status move through the ledger."""
    unknown = set(payload or {}) - set(CUSTOMER_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")
    get_customer(store, customer_id)

    patch = _clean_customer_fields(payload or {})
    if "name" in patch:
        if not patch["name"]:
            raise ValidationError("name cannot be blank")
        patch["initials"] = initials_for(patch["name"])
    if not patch:
        return get_customer(store, customer_id)

    rows = store.update("customer_debts", {"id": customer_id}, patch)
    return CustomerDebtRecord.from_row(rows[0])


# ============================================================================
# Ledger
# ============================================================================

def validate_transaction(amount, type_) -> tuple[int, str]:
    amount = require_positive_int(amount, "amount")
    require_choice(type_, TRANSACTION_TYPES, "type")
    return amount, type_


def append_entry(
    store: DataStore,
    *,
    customer_id: int,
    amount: int,
    type_: str,
    note: str | None = None,
    order_id: int | None = None,
    actor_id: int | None = None,
    now: datetime | None = None,
) -> DebtTransactionRecord:
    row = store.insert("debt_transactions", [{
        "customer_id": customer_id,
        "amount": amount,
        "type": type_,
        "note": note,
        "order_id": order_id,
        "created_by": actor_id,
        "created_at": now or utcnow(),
    }])[0]
    return DebtTransactionRecord.from_row(row)


def apply_to_balance(
    store: DataStore,
    customer_id: int,
    delta: int,
    now: datetime | None = None,
    status_rule: Callable[[str, int], str] = next_status,
) -> CustomerDebtRecord:
    """Move the cached balance by `delta` and recompute status from the fresh row."""
    current = get_customer(store, customer_id)
    balance = current.amount + delta
    rows = store.update("customer_debts", {"id": customer_id}, {
        "amount": balance,
        "status": status_rule(current.status, balance),
        "last_activity": now or utcnow(),
    })
    if not rows:
        raise BackendError("Customer balance update matched no rows", table="customer_debts")
    return CustomerDebtRecord.from_row(rows[0])


def record_transaction(
    store: DataStore,
    customer_id: int,
    amount,
    type_: str,
    note: str | None = None,
    *,
    order_id: int | None = None,
    actor_id: int | None = None,
    now: datetime | None = None,
) -> LedgerEntry:
    """
    Append a ledger row and move the customer's balance with it.

    Raises ValidationError before any write for a non-positive or
    non-integer amount or an unknown type. On a non-atomic store a failure
    after the append raises PartialWriteError.
    """
    amount, type_ = validate_transaction(amount, type_)
    get_customer(store, customer_id)
    now = now or utcnow()

    completed: list[str] = []
    step = STEP_TRANSACTION
    try:
        with store.transaction():
            txn = append_entry(
                store,
                customer_id=customer_id,
                amount=amount,
                type_=type_,
                note=note,
                order_id=order_id,
                actor_id=actor_id,
                now=now,
            )
            completed.append(step)
            step = STEP_BALANCE
            customer = apply_to_balance(store, customer_id, signed_amount(amount, type_), now)
            completed.append(step)
    except BackendError as exc:
        if completed and not store.atomic:
            raise PartialWriteError(str(exc), completed_steps=completed, failed_step=step) from exc
        raise

    return LedgerEntry(transaction=txn, customer=customer)


def list_transactions(
    store: DataStore,
    customer_id: int | None = None,
    *,
    since: datetime | None = None,
    until: datetime | None = None,
    limit: int | None = None,
) -> list[DebtTransactionRecord]:
    """Read-only history, newest first."""
    filters: dict = {}
    if customer_id is not None:
        filters["customer_id"] = customer_id
    if since is not None and until is not None:
        filters["created_at"] = ("between", (since, until))
    elif since is not None:
        filters["created_at"] = ("gte", since)
    elif until is not None:
        filters["created_at"] = ("lt", until)
    rows = store.select("debt_transactions", filters, order=["-created_at"], limit=limit)
    return [DebtTransactionRecord.from_row(row) for row in rows]


def audit_balance(store: DataStore, customer_id: int) -> BalanceAudit:
    customer = get_customer(store, customer_id)
    entries = list_transactions(store, customer_id)
    return BalanceAudit(
        customer_id=customer.id,
        stored_balance=customer.amount,
        ledger_balance=sum(e.signed_amount for e in entries),
        transaction_count=len(entries),
    )


def mark_overdue(store: DataStore, customer_id: int) -> CustomerDebtRecord:
    customer = get_customer(store, customer_id)
    if customer.amount <= 0:
        raise ValidationError("Only customers with an outstanding balance can be marked overdue")
    if customer.status == STATUS_OVERDUE:
        return customer
    rows = store.update("customer_debts", {"id": customer_id}, {"status": STATUS_OVERDUE})
    return CustomerDebtRecord.from_row(rows[0])


def debt_summary(store: DataStore) -> dict:
    customers = list_customers(store)
    owing = [c for c in customers if c.amount > 0]
    return {
        "total_outstanding": sum(c.amount for c in owing),
        "customers_with_debt": len(owing),
        "overdue_count": sum(1 for c in customers if c.status == STATUS_OVERDUE),
        "customer_count": len(customers),
    }
