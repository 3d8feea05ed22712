"""
Pytest fixtures for the bakery POS backend tests.

Provides the app on an in-memory database, a test client, staff logins,
and FakeStore: a dict-backed DataStore that records every write and can be
told to fail on a given table, for exercising partial-failure paths that a
real transactional database never produces.
"""

import copy
from contextlib import contextmanager
from datetime import datetime

import pytest
from flask import g

from bakery_pos import create_app
from bakery_pos.datastore import BackendError, DataStore
from bakery_pos.extensions import db
from bakery_pos.services.auth_service import create_account

TEST_PASSWORD = "Password123"


class FakeStore(DataStore):
    """
    In-memory DataStore.

    - writes: list of (op, table) for every successful write
    - fail_on: {table: op} makes that op on that table raise BackendError
    - atomic=True snapshots tables on transaction() and restores on error
    """

    def __init__(self, atomic: bool = False):
        self.atomic = atomic
        self.tables: dict[str, list[dict]] = {}
        self.writes: list[tuple[str, str]] = []
        self.fail_on: dict[str, str] = {}
        self._ids: dict[str, int] = {}

    # -- helpers ------------------------------------------------------------

    def seed(self, table: str, *rows: dict) -> list[dict]:
        """Insert rows without recording them as writes."""
        out = []
        for row in rows:
            row = dict(row)
            if "id" not in row:
                row["id"] = self._next_id(table)
            else:
                self._ids[table] = max(self._ids.get(table, 0), row["id"])
            self.tables.setdefault(table, []).append(row)
            out.append(dict(row))
        return out

    def rows(self, table: str) -> list[dict]:
        return [dict(r) for r in self.tables.get(table, [])]

    def _next_id(self, table: str) -> int:
        self._ids[table] = self._ids.get(table, 0) + 1
        return self._ids[table]

    def _check_fail(self, op: str, table: str) -> None:
        if self.fail_on.get(table) == op:
            raise BackendError(f"{op} on {table} failed", table=table)

    @staticmethod
    def _matches(row: dict, filters: dict | None) -> bool:
        for name, raw in (filters or {}).items():
            op, value = raw if isinstance(raw, tuple) else ("eq", raw)
            actual = row.get(name)
            if op == "eq" and actual != value:
                return False
            if op == "ne" and actual == value:
                return False
            if op == "gt" and not (actual is not None and actual > value):
                return False
            if op == "gte" and not (actual is not None and actual >= value):
                return False
            if op == "lt" and not (actual is not None and actual < value):
                return False
            if op == "lte" and not (actual is not None and actual <= value):
                return False
            if op == "in" and actual not in value:
                return False
            if op == "ilike" and str(value).lower() not in str(actual or "").lower():
                return False
            if op == "between":
                low, high = value
                if actual is None or not (low <= actual < high):
                    return False
        return True

    # -- DataStore ----------------------------------------------------------

    def select(self, table, filters=None, order=None, limit=None):
        self._check_fail("select", table)
        rows = [dict(r) for r in self.tables.get(table, []) if self._matches(r, filters)]
        rows.sort(key=lambda r: r["id"])
        for key in reversed(order or []):
            name = key.lstrip("-")
            rows.sort(key=lambda r: (r.get(name) is None, r.get(name) or 0), reverse=key.startswith("-"))
        return rows[:limit] if limit is not None else rows

    def insert(self, table, records):
        self._check_fail("insert", table)
        if table == "orders":
            refs = {r.get("client_ref") for r in self.tables.get("orders", []) if r.get("client_ref")}
            for record in records:
                if record.get("client_ref") in refs:
                    raise BackendError("duplicate client_ref", table=table)
        out = []
        for record in records:
            row = {"id": self._next_id(table), **record}
            self.tables.setdefault(table, []).append(row)
            out.append(dict(row))
        self.writes.append(("insert", table))
        return out

    def update(self, table, filters, patch):
        self._check_fail("update", table)
        out = []
        for row in self.tables.get(table, []):
            if self._matches(row, filters):
                row.update(patch)
                out.append(dict(row))
        self.writes.append(("update", table))
        return out

    def delete(self, table, filters):
        self._check_fail("delete", table)
        keep = [r for r in self.tables.get(table, []) if not self._matches(r, filters)]
        removed = len(self.tables.get(table, [])) - len(keep)
        self.tables[table] = keep
        self.writes.append(("delete", table))
        return removed

    @contextmanager
    def transaction(self):
        if not self.atomic:
            yield self
            return
        snapshot = copy.deepcopy(self.tables)
        try:
            yield self
        except BaseException:
            self.tables = snapshot
            raise


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def make_store():
    """Factory for stores with custom atomicity."""
    return FakeStore


@pytest.fixture
def product_rows():
    """A small bakery catalog (ids 1..4)."""
    return [
        {"id": 1, "name": "Bánh mì thịt", "category": "Bánh mì", "price": 20000, "wholesale_price": 17000, "stock": 50, "image": None, "base_product_id": None},
        {"id": 2, "name": "Bánh bao", "category": "Bánh bao", "price": 15000, "wholesale_price": None, "stock": 10, "image": None, "base_product_id": None},
        {"id": 3, "name": "Cà phê sữa", "category": "Đồ uống", "price": 20000, "wholesale_price": 0, "stock": None, "image": None, "base_product_id": None},
        {"id": 4, "name": "Bánh bông lan", "category": "Bánh ngọt", "price": 35000, "wholesale_price": 30000, "stock": 5, "image": None, "base_product_id": None},
    ]


@pytest.fixture
def customer_row():
    return {
        "id": 1, "name": "Chị Lan", "phone": "0905000111", "address": None,
        "image": None, "initials": "C", "amount": 0, "status": "paid",
        "last_activity": datetime(2024, 5, 1, 3, 0),
    }


# ============================================================================
# App / database
# ============================================================================

@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'STORE_TIMEZONE': 'Asia/Ho_Chi_Minh',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        g.pop("store", None)

        yield db.session

        db.session.rollback()
        g.pop("store", None)


@pytest.fixture(scope='function')
def use_fake_store(app, db_session):
    """Route every get_store() call in the app through a fresh FakeStore."""
    store = FakeStore()
    app.extensions["bakery_pos.store_factory"] = lambda: store
    g.pop("store", None)
    yield store
    app.extensions.pop("bakery_pos.store_factory", None)
    g.pop("store", None)


@pytest.fixture(scope='function')
def login(client, db_session):
    """
    login(role) -> Authorization headers for a fresh account with that role.

    profile=False creates the account without a profile row (guest fallback).
    """
    def _login(role="admin", *, profile=True, email=None):
        email = email or f"{role}@test.local"
        create_account(email, TEST_PASSWORD, full_name=f"Test {role}" if profile else None, role=role)
        resp = client.post("/api/auth/login", json={"email": email, "password": TEST_PASSWORD})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['token']}"}

    return _login
