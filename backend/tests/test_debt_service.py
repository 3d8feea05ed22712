"""
Debt ledger tests.

Ledger invariants: append-only rows, cached balance equals the signed
ledger sum, status follows the balance.
"""

from datetime import datetime, timedelta

import pytest

from bakery_pos.datastore import PartialWriteError
from bakery_pos.services import debt_service
from bakery_pos.validation import NotFoundError, ValidationError

NOW = datetime(2024, 5, 2, 2, 30)


@pytest.fixture
def store(fake_store):
    return fake_store


@pytest.fixture
def customer(store):
    return debt_service.create_customer(store, {"name": "anh Tuấn", "phone": "0905111222"}, now=NOW)


def test_new_customer_starts_paid_at_zero(customer):
    assert customer.amount == 0
    assert customer.status == "paid"
    assert customer.initials == "A"


def test_create_customer_requires_name(store):
    with pytest.raises(ValidationError, match="name"):
        debt_service.create_customer(store, {"phone": "0905"})
    assert store.writes == []


def test_debt_then_larger_repayment_goes_negative_and_paid(store, customer):
    debt_service.record_transaction(store, customer.id, 100000, "debt", now=NOW)
    entry = debt_service.record_transaction(store, customer.id, 150000, "repayment", now=NOW)

    assert entry.customer.amount == -50000
    assert entry.customer.status == "paid"


def test_debt_moves_paid_customer_to_pending(store, customer):
    entry = debt_service.record_transaction(store, customer.id, 50000, "debt", note="Nợ tiền bánh", now=NOW)

    assert entry.transaction.amount == 50000
    assert entry.transaction.note == "Nợ tiền bánh"
    assert entry.customer.amount == 50000
    assert entry.customer.status == "pending"


def test_overdue_stays_overdue_until_paid_off(store, customer):
    debt_service.record_transaction(store, customer.id, 80000, "debt", now=NOW)
    assert debt_service.mark_overdue(store, customer.id).status == "overdue"

    partial = debt_service.record_transaction(store, customer.id, 30000, "repayment", now=NOW)
    assert partial.customer.status == "overdue"

    settled = debt_service.record_transaction(store, customer.id, 50000, "repayment", now=NOW)
    assert settled.customer.status == "paid"
    assert settled.customer.amount == 0


def test_mark_overdue_requires_outstanding_balance(store, customer):
    with pytest.raises(ValidationError):
        debt_service.mark_overdue(store, customer.id)


@pytest.mark.parametrize("amount", [0, -100, 1.5, "abc", None, True])
def test_invalid_amount_rejected_before_any_write(store, customer, amount):
    writes_before = list(store.writes)
    with pytest.raises(ValidationError):
        debt_service.record_transaction(store, customer.id, amount, "debt")
    assert store.writes == writes_before


def test_unknown_type_rejected(store, customer):
    with pytest.raises(ValidationError):
        debt_service.record_transaction(store, customer.id, 1000, "gift")


def test_unknown_customer(store):
    with pytest.raises(NotFoundError):
        debt_service.record_transaction(store, 999, 1000, "debt")


def test_balance_failure_after_append_is_reported_as_partial(store, customer):
    store.fail_on["customer_debts"] = "update"

    with pytest.raises(PartialWriteError) as exc_info:
        debt_service.record_transaction(store, customer.id, 20000, "debt", now=NOW)

    assert exc_info.value.completed_steps == ("debt_transaction",)
    assert exc_info.value.failed_step == "customer_balance"


def test_audit_detects_drift(store, customer):
    debt_service.record_transaction(store, customer.id, 40000, "debt", now=NOW)
    debt_service.record_transaction(store, customer.id, 10000, "repayment", now=NOW)

    audit = debt_service.audit_balance(store, customer.id)
    assert audit.ok
    assert audit.ledger_balance == 30000
    assert audit.transaction_count == 2

    store.update("customer_debts", {"id": customer.id}, {"amount": 99999})
    audit = debt_service.audit_balance(store, customer.id)
    assert not audit.ok
    assert audit.drift == 99999 - 30000


def test_list_transactions_newest_first_and_windowed(store, customer):
    debt_service.record_transaction(store, customer.id, 1000, "debt", now=NOW - timedelta(days=2))
    debt_service.record_transaction(store, customer.id, 2000, "debt", now=NOW)

    entries = debt_service.list_transactions(store, customer.id)
    assert [e.amount for e in entries] == [2000, 1000]

    recent = debt_service.list_transactions(store, customer.id, since=NOW - timedelta(hours=1), until=NOW + timedelta(hours=1))
    assert [e.amount for e in recent] == [2000]


def test_list_customers_search_matches_name_or_phone(store, customer):
    debt_service.create_customer(store, {"name": "Cô Ba"}, now=NOW)

    assert [c.name for c in debt_service.list_customers(store, search="tuấn")] == ["anh Tuấn"]
    assert [c.name for c in debt_service.list_customers(store, search="0905111")] == ["anh Tuấn"]


def test_update_customer_cannot_touch_balance(store, customer):
    with pytest.raises(ValidationError, match="not allowed"):
        debt_service.update_customer(store, customer.id, {"amount": 0})


def test_summary(store, customer):
    other = debt_service.create_customer(store, {"name": "Cô Ba"}, now=NOW)
    debt_service.record_transaction(store, customer.id, 70000, "debt", now=NOW)
    debt_service.record_transaction(store, other.id, 30000, "debt", now=NOW)
    debt_service.mark_overdue(store, other.id)

    summary = debt_service.debt_summary(store)

    assert summary == {
        "total_outstanding": 100000,
        "customers_with_debt": 2,
        "overdue_count": 1,
        "customer_count": 2,
    }
