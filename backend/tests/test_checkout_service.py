"""
Checkout / settlement tests.

Uses FakeStore so each write is visible and failures can be injected at a
chosen table.
"""

from datetime import datetime

import pytest

from bakery_pos.records import CustomerDebtRecord, ProductRecord
from bakery_pos.services import cart_service, checkout_service, debt_service
from bakery_pos.services.cart_service import PosState
from bakery_pos.validation import ValidationError

NOW = datetime(2024, 5, 2, 2, 30)


@pytest.fixture
def catalog(product_rows):
    return {row["id"]: ProductRecord.from_row(row) for row in product_rows}


@pytest.fixture
def store(fake_store, product_rows, customer_row):
    fake_store.seed("products", *product_rows)
    fake_store.seed("customer_debts", customer_row)
    return fake_store


@pytest.fixture
def customer(customer_row):
    return CustomerDebtRecord.from_row(customer_row)


def _retail_cart(catalog):
    # 2 x 20000 + 2 x 15000 = 70000
    state = cart_service.add_or_increment(PosState(), catalog[1], 2)
    return cart_service.add_or_increment(state, catalog[2], 2)


def _wholesale_cart(catalog, customer):
    state = PosState(price_mode="wholesale", customer=customer)
    return cart_service.add_or_increment(state, catalog[1], 10)  # 10 x 17000


# ============================================================================
# Totals
# ============================================================================

def test_ten_percent_discount_on_70000():
    totals = checkout_service.compute_totals(70000, 10)

    assert totals.discount_amount == 7000
    assert totals.total == 63000


def test_discount_rounds_half_up_to_whole_dong():
    assert checkout_service.compute_totals(15005, 10).discount_amount == 1501
    assert checkout_service.compute_totals(15004, 10).discount_amount == 1500


def test_full_discount_totals_zero():
    assert checkout_service.compute_totals(70000, 100).total == 0


# ============================================================================
# Validation (zero writes)
# ============================================================================

def test_empty_cart_rejected(store):
    with pytest.raises(ValidationError, match="empty"):
        checkout_service.settle(store, PosState(), "cash")
    assert store.writes == []


def test_debt_without_customer_rejected_with_zero_writes(store, catalog):
    state = cart_service.set_price_mode(_retail_cart(catalog), "wholesale", catalog)

    with pytest.raises(ValidationError):
        checkout_service.settle(store, state, "debt")
    assert store.writes == []


def test_debt_in_retail_mode_rejected(store, catalog, customer):
    state = cart_service.select_customer(_retail_cart(catalog), customer)

    with pytest.raises(ValidationError, match="wholesale"):
        checkout_service.settle(store, state, "debt")
    assert store.writes == []


def test_unknown_payment_method_rejected(store, catalog):
    with pytest.raises(ValidationError):
        checkout_service.settle(store, _retail_cart(catalog), "card")


def test_second_settlement_refused_while_first_in_flight(catalog):
    pending = checkout_service.begin_settlement(_retail_cart(catalog), "cash")

    assert pending.settling is True
    with pytest.raises(ValidationError, match="in progress"):
        checkout_service.begin_settlement(pending, "cash")


# ============================================================================
# Successful settlements
# ============================================================================

def test_cash_sale_writes_order_and_items(store, catalog):
    state = cart_service.set_discount(_retail_cart(catalog), 10)

    result = checkout_service.settle(store, state, "cash", now=NOW)

    assert result.ok
    assert result.order.total_amount == 63000
    assert result.order.discount_amount == 7000
    assert result.order.payment_method == "cash"
    assert [(i.product_id, i.quantity, i.price) for i in result.items] == [(1, 2, 20000), (2, 2, 15000)]
    assert store.writes == [("insert", "orders"), ("insert", "order_items")]
    assert result.debt_transaction is None


def test_debt_sale_appends_ledger_and_moves_balance(store, catalog, customer):
    state = _wholesale_cart(catalog, customer)

    result = checkout_service.settle(store, state, "debt", now=NOW)

    assert result.ok
    assert result.debt_transaction.amount == 170000
    assert result.debt_transaction.type == "debt"
    assert result.debt_transaction.order_id == result.order.id
    assert result.debt_transaction.note == "Mua hàng (Sỉ)"
    assert result.customer.amount == 170000
    assert result.customer.status == "pending"
    assert store.writes == [
        ("insert", "orders"),
        ("insert", "order_items"),
        ("insert", "debt_transactions"),
        ("update", "customer_debts"),
    ]


def test_debt_sale_to_overdue_customer_resets_to_pending(store, catalog, customer):
    debt_service.record_transaction(store, customer.id, 80000, "debt", now=NOW)
    overdue = debt_service.mark_overdue(store, customer.id)
    assert overdue.status == "overdue"

    result = checkout_service.settle(store, _wholesale_cart(catalog, overdue), "debt", now=NOW)

    assert result.ok
    assert result.customer.amount == 250000
    assert result.customer.status == "pending"


def test_ledger_debt_entry_keeps_overdue(store, customer):
    debt_service.record_transaction(store, customer.id, 80000, "debt", now=NOW)
    debt_service.mark_overdue(store, customer.id)

    entry = debt_service.record_transaction(store, customer.id, 20000, "debt", now=NOW)

    assert entry.customer.status == "overdue"


def test_wholesale_cash_sale_leaves_debt_untouched(store, catalog, customer):
    result = checkout_service.settle(store, _wholesale_cart(catalog, customer), "cash", now=NOW)

    assert result.ok
    assert store.rows("debt_transactions") == []
    assert store.rows("customer_debts")[0]["amount"] == 0


def test_apply_settlement_clears_cart_and_wholesale_customer(store, catalog, customer):
    state = cart_service.set_discount(_wholesale_cart(catalog, customer), 5)
    pending = checkout_service.begin_settlement(state, "debt")
    result = checkout_service.settle(store, state, "debt", now=NOW)

    next_state = checkout_service.apply_settlement(pending, result)

    assert next_state.is_empty
    assert next_state.discount_percent == 0
    assert next_state.customer is None
    assert next_state.settling is False


def test_replayed_client_ref_returns_existing_order(store, catalog):
    state = _retail_cart(catalog)
    first = checkout_service.settle(store, state, "cash", client_ref="ref-1", now=NOW)
    writes_after_first = list(store.writes)

    second = checkout_service.settle(store, state, "cash", client_ref="ref-1", now=NOW)

    assert second.ok
    assert second.replayed is True
    assert second.order.id == first.order.id
    assert store.writes == writes_after_first
    assert len(store.rows("orders")) == 1


# ============================================================================
# Failures
# ============================================================================

def test_failure_before_any_write_is_not_partial(store, catalog):
    store.fail_on["orders"] = "insert"

    result = checkout_service.settle(store, _retail_cart(catalog), "cash", now=NOW)

    assert not result.ok
    assert result.step == "order"
    assert result.partially_applied is False
    assert store.rows("orders") == []


def test_balance_failure_on_non_atomic_store_reports_partial(store, catalog, customer):
    store.fail_on["customer_debts"] = "update"

    result = checkout_service.settle(store, _wholesale_cart(catalog, customer), "debt", now=NOW)

    assert not result.ok
    assert result.step == "customer_balance"
    assert result.partially_applied is True
    assert result.completed_steps == ("order", "order_items", "debt_transaction")
    assert result.to_dict()["failed_step"] == "customer_balance"


def test_balance_failure_on_atomic_store_rolls_back(make_store, product_rows, customer_row, catalog, customer):
    store = make_store(atomic=True)
    store.seed("products", *product_rows)
    store.seed("customer_debts", customer_row)
    store.fail_on["customer_debts"] = "update"

    result = checkout_service.settle(store, _wholesale_cart(catalog, customer), "debt", now=NOW)

    assert not result.ok
    assert result.partially_applied is False
    assert store.rows("orders") == []
    assert store.rows("debt_transactions") == []


def test_failed_settlement_keeps_cart(store, catalog):
    state = _retail_cart(catalog)
    pending = checkout_service.begin_settlement(state, "cash")
    store.fail_on["order_items"] = "insert"

    result = checkout_service.settle(store, state, "cash", now=NOW)
    next_state = checkout_service.apply_settlement(pending, result)

    assert not result.ok
    assert next_state.lines == state.lines
    assert next_state.settling is False
