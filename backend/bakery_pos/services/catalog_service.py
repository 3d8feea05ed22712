# Overview: Product catalog and stock imports.

"""
Catalog Service

PRICING: every price shown at the register goes through
cart_service.unit_price so listing and cart never disagree.

STOCK:
- NULL stock means "unlimited" (not tracked)
- import_stock() appends an InventoryLog row and raises stock to
  (0 if unlimited else stock) + quantity in the same transaction
- composite products (base_product_id set) keep stock 0; they are made
  from the base item on demand
"""

from __future__ import annotations

from datetime import datetime

from ..datastore import BackendError, DataStore, PartialWriteError
from ..models import Product
from ..records import PRICE_MODES, RETAIL, UNLIMITED, InventoryLogRecord, ProductRecord
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    enforce_rules_stock_import,
    validate_payload,
)
from .cart_service import unit_price

ALL_CATEGORIES = "Tất cả"
CATEGORIES = ("Bánh mì", "Bánh bao", "Bánh ngọt", "Thực phẩm", "Đồ uống")

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "price", "wholesale_price", "stock", "image", "base_product_id"},
    required_on_create={"name", "price"},
)


def get_product(store: DataStore, product_id: int) -> ProductRecord:
    row = store.first("products", {"id": product_id})
    if row is None:
        raise NotFoundError("Product not found")
    return ProductRecord.from_row(row)


def load_catalog(store: DataStore) -> dict[int, ProductRecord]:
    return {p.id: p for p in (ProductRecord.from_row(r) for r in store.select("products", order=["name"]))}


def list_products(
    store: DataStore,
    category: str | None = None,
    search: str | None = None,
    price_mode: str = RETAIL,
) -> list[dict]:
    """Products ordered by name, each carrying its unit_price in `price_mode`."""
    if price_mode not in PRICE_MODES:
        raise ValidationError(f"price_mode must be one of: {', '.join(PRICE_MODES)}")
    filters = {}
    if category and category != ALL_CATEGORIES:
        filters["category"] = category
    if search and search.strip():
        filters["name"] = ("ilike", search.strip())

    products = [ProductRecord.from_row(r) for r in store.select("products", filters, order=["name"])]
    return [{**p.to_dict(), "unit_price": unit_price(p, price_mode)} for p in products]


def _normalize_product_payload(payload: dict) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    if payload.get("stock") == UNLIMITED:
        payload["stock"] = None
    return payload


def _check_base_product(store: DataStore, patch: dict, product_id: int | None = None) -> None:
    base_id = patch.get("base_product_id")
    if base_id is None:
        return
    if product_id is not None and base_id == product_id:
        raise ValidationError("A product cannot be its own base product")
    row = store.first("products", {"id": base_id})
    if row is None:
        raise ValidationError(f"Unknown base product: {base_id}")
    base = ProductRecord.from_row(row)
    if base.base_product_id is not None:
        raise ValidationError("Base product cannot itself be composite")
    patch["stock"] = 0


def create_product(store: DataStore, payload: dict, placeholder_image: str | None = None) -> ProductRecord:
    patch = validate_payload(
        model=Product,
        payload=_normalize_product_payload(payload),
        policy=PRODUCT_POLICY,
        partial=False,
    )
    enforce_rules_product(patch)
    _check_base_product(store, patch)

    if patch.get("wholesale_price") is None:
        patch["wholesale_price"] = patch["price"]
    if not patch.get("image"):
        patch["image"] = placeholder_image
    patch.setdefault("stock", 0)
    patch.setdefault("category", CATEGORIES[0])

    now = utcnow()
    row = store.insert("products", [{**patch, "created_at": now, "updated_at": now}])[0]
    return ProductRecord.from_row(row)


def update_product(store: DataStore, product_id: int, payload: dict) -> ProductRecord:
    get_product(store, product_id)
    patch = validate_payload(
        model=Product,
        payload=_normalize_product_payload(payload),
        policy=PRODUCT_POLICY,
        partial=True,
    )
    enforce_rules_product(patch)
    _check_base_product(store, patch, product_id)
    if not patch:
        return get_product(store, product_id)

    rows = store.update("products", {"id": product_id}, {**patch, "updated_at": utcnow()})
    return ProductRecord.from_row(rows[0])


def import_stock(
    store: DataStore,
    product_id: int,
    quantity,
    price,
    note: str | None = None,
    actor_id: int | None = None,
    now: datetime | None = None,
) -> tuple[InventoryLogRecord, ProductRecord]:
    """Receive a delivery. Returns (inventory log, updated product)."""
    qty, unit_cost = enforce_rules_stock_import(quantity, price)
    product = get_product(store, product_id)
    if product.base_product_id is not None:
        raise ValidationError("Stock is imported on the base product, not the composite")
    now = now or utcnow()

    completed: list[str] = []
    step = "inventory_log"
    try:
        with store.transaction():
            log = store.insert("inventory_logs", [{
                "product_id": product_id,
                "quantity": qty,
                "price": unit_cost,
                "note": note,
                "created_by": actor_id,
                "created_at": now,
            }])[0]
            completed.append(step)

            step = "product_stock"
            current = get_product(store, product_id)
            base = 0 if current.is_unlimited else current.stock
            rows = store.update("products", {"id": product_id}, {"stock": base + qty, "updated_at": now})
            completed.append(step)
    except BackendError as exc:
        if completed and not store.atomic:
            raise PartialWriteError(str(exc), completed_steps=completed, failed_step=step) from exc
        raise

    return InventoryLogRecord.from_row(log), ProductRecord.from_row(rows[0])


def list_inventory_logs(store: DataStore, limit: int = 50, product_id: int | None = None) -> list[InventoryLogRecord]:
    filters = {"product_id": product_id} if product_id is not None else None
    rows = store.select("inventory_logs", filters, order=["-created_at"], limit=limit)
    return [InventoryLogRecord.from_row(row) for row in rows]
