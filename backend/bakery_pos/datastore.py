# Overview: Table-level data access used by the service layer (select / insert / update / delete).

"""
Data store boundary.

The domain services never touch SQLAlchemy directly. They talk to a
DataStore that speaks in table names and plain dict rows, the same shape a
hosted backend's query API returns. Rows are turned into typed records by
bakery_pos.records before any business logic reads them.

FILTERS: {"column": value} means equality. A (op, value) tuple selects
another comparison: eq, ne, gt, gte, lt, lte, in, ilike, and between
(half-open [low, high)).

ORDER: list of column names; a leading "-" sorts descending.

TRANSACTIONS: `with store.transaction():` groups writes. Stores with
`atomic = True` roll every write in the block back on error; others leave
already-applied writes in place and callers must report that.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import (
    CakeOrder,
    CustomerDebt,
    DebtTransaction,
    InventoryLog,
    Order,
    OrderItem,
    Product,
    Profile,
    Shift,
)
from .services.concurrency import run_with_retry
from .time_utils import parse_iso_datetime


class BackendError(Exception):
    """Raised when the backing store rejects or fails a read/write."""
    def __init__(self, message: str, *, table: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.table = table
        self.details = details or {}


class RecordError(BackendError):
    """A row came back from the store in a shape the domain cannot use."""


class PartialWriteError(BackendError):
    """A multi-step write failed after some steps were already applied."""
    def __init__(self, message: str, *, completed_steps: Iterable[str], failed_step: str):
        super().__init__(message, details={"completed_steps": list(completed_steps), "failed_step": failed_step})
        self.completed_steps = tuple(completed_steps)
        self.failed_step = failed_step


TABLES = {
    "products": Product,
    "inventory_logs": InventoryLog,
    "orders": Order,
    "order_items": OrderItem,
    "customer_debts": CustomerDebt,
    "debt_transactions": DebtTransaction,
    "cake_orders": CakeOrder,
    "shifts": Shift,
    "profiles": Profile,
}

# Ledger-style tables: rows are written once and never changed.
APPEND_ONLY_TABLES = frozenset({"debt_transactions", "inventory_logs"})

OPERATORS = ("eq", "ne", "gt", "gte", "lt", "lte", "in", "ilike", "between")


class DataStore:
    """Interface every store implements. See module docstring for semantics."""

    atomic = False

    def select(
        self,
        table: str,
        filters: dict | None = None,
        order: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict]:
        raise NotImplementedError

    def insert(self, table: str, records: list[dict]) -> list[dict]:
        raise NotImplementedError

    def update(self, table: str, filters: dict, patch: dict) -> list[dict]:
        raise NotImplementedError

    def delete(self, table: str, filters: dict) -> int:
        raise NotImplementedError

    @contextmanager
    def transaction(self) -> Iterator["DataStore"]:
        yield self

    def first(self, table: str, filters: dict | None = None, order: list[str] | None = None) -> dict | None:
        rows = self.select(table, filters, order=order, limit=1)
        return rows[0] if rows else None


def _split_filter(value: Any) -> tuple[str, Any]:
    if isinstance(value, tuple) and len(value) == 2 and value[0] in OPERATORS:
        return value
    return "eq", value


def _normalize_iso(value: Any) -> Any:
    # Rows carry "...Z" timestamps; comparisons against DateTime columns need datetimes.
    if isinstance(value, str) and value.endswith("Z"):
        return parse_iso_datetime(value)
    return value


class SqlDataStore(DataStore):
    """
    DataStore over the Flask-SQLAlchemy session.

    Outside a transaction block every call commits on its own, like a
    hosted backend's REST call. Inside one, writes are flushed and the
    whole block commits or rolls back together.
    """

    atomic = True

    def __init__(self, session=None):
        self._session = session
        self._depth = 0

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _model(self, table: str):
        model = TABLES.get(table)
        if model is None:
            raise BackendError(f"Unknown table: {table}", table=table)
        return model

    def _column(self, model, table: str, name: str):
        column = getattr(model, name, None)
        if column is None or name not in model.__table__.columns:
            raise BackendError(f"Unknown column {table}.{name}", table=table)
        return column

    def _apply_filters(self, query, model, table: str, filters: dict | None):
        for name, raw in (filters or {}).items():
            column = self._column(model, table, name)
            op, value = _split_filter(raw)
            if op in ("in", "between"):
                value = [_normalize_iso(v) for v in value]
            else:
                value = _normalize_iso(value)
            if op == "eq":
                query = query.filter(column.is_(None) if value is None else column == value)
            elif op == "ne":
                query = query.filter(column.isnot(None) if value is None else column != value)
            elif op == "gt":
                query = query.filter(column > value)
            elif op == "gte":
                query = query.filter(column >= value)
            elif op == "lt":
                query = query.filter(column < value)
            elif op == "lte":
                query = query.filter(column <= value)
            elif op == "in":
                query = query.filter(column.in_(list(value)))
            elif op == "ilike":
                query = query.filter(column.ilike(f"%{value}%"))
            elif op == "between":
                low, high = value
                query = query.filter(column >= low, column < high)
        return query

    def _finish(self) -> None:
        if self._depth:
            self.session.flush()
        else:
            self.session.commit()

    def _run(self, table: str, op):
        try:
            if self._depth:
                return op()
            return run_with_retry(op)
        except BackendError:
            if not self._depth:
                self.session.rollback()
            raise
        except SQLAlchemyError as exc:
            if not self._depth:
                self.session.rollback()
            raise BackendError(f"Write to {table} failed", table=table, details={"reason": str(exc.__class__.__name__)}) from exc

    def select(self, table, filters=None, order=None, limit=None):
        model = self._model(table)

        def _op():
            query = self._apply_filters(self.session.query(model), model, table, filters)
            for key in order or []:
                desc = key.startswith("-")
                column = self._column(model, table, key.lstrip("-"))
                query = query.order_by(column.desc() if desc else column.asc())
            query = query.order_by(model.id.asc())
            if limit is not None:
                query = query.limit(limit)
            return [row.to_dict() for row in query.all()]

        return self._run(table, _op)

    def insert(self, table, records):
        model = self._model(table)
        columns = set(model.__table__.columns.keys())
        for record in records:
            unknown = set(record) - columns
            if unknown:
                raise BackendError(f"Unknown column(s) for {table}: {', '.join(sorted(unknown))}", table=table)

        def _op():
            objs = [model(**{k: _normalize_iso(v) for k, v in record.items()}) for record in records]
            self.session.add_all(objs)
            self.session.flush()
            rows = [obj.to_dict() for obj in objs]
            self._finish()
            return rows

        return self._run(table, _op)

    def update(self, table, filters, patch):
        if table in APPEND_ONLY_TABLES:
            raise BackendError(f"{table} is append-only", table=table)
        if not filters:
            raise BackendError("update requires a filter", table=table)
        model = self._model(table)
        for name in patch:
            self._column(model, table, name)

        def _op():
            objs = self._apply_filters(self.session.query(model), model, table, filters).all()
            for obj in objs:
                for name, value in patch.items():
                    setattr(obj, name, _normalize_iso(value))
            self.session.flush()
            rows = [obj.to_dict() for obj in objs]
            self._finish()
            return rows

        return self._run(table, _op)

    def delete(self, table, filters):
        if table in APPEND_ONLY_TABLES:
            raise BackendError(f"{table} is append-only", table=table)
        if not filters:
            raise BackendError("delete requires a filter", table=table)
        model = self._model(table)

        def _op():
            objs = self._apply_filters(self.session.query(model), model, table, filters).all()
            for obj in objs:
                self.session.delete(obj)
            self._finish()
            return len(objs)

        return self._run(table, _op)

    @contextmanager
    def transaction(self):
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise BackendError("Transaction failed", details={"reason": exc.__class__.__name__}) from exc
        except BaseException:
            self.session.rollback()
            raise
        finally:
            self._depth = 0


def get_store() -> DataStore:
    """
    Store for the current request.

    One instance per app context, built by the factory registered under
    app.extensions["bakery_pos.store_factory"] (SqlDataStore by default).
    """
    from flask import current_app, g
    if "store" not in g:
        factory = current_app.extensions.get("bakery_pos.store_factory", SqlDataStore)
        g.store = factory()
    return g.store
