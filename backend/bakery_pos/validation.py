from __future__ import annotations
from datetime import datetime
from bakery_pos.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# 999,999,999 đồng. Keeps amounts well inside a 32-bit column.
MAX_AMOUNT = 999_999_999


class ValidationError(ValueError):
    """400-level input problem; the action is blocked and nothing is written."""


class ConflictError(ValidationError):
    """409-level business rule conflict (e.g. delivering a canceled cake order)."""


class NotFoundError(LookupError):
    """404-level: the referenced record does not exist."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer parsing: ints and plain digit strings only.
    Rejects bools, floats, decimals and scientific notation.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def require_positive_int(value: Any, field: str = "amount") -> int:
    number = coerce_int(value, field)
    if number <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    if number > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT:,}")
    return number


def require_choice(value: Any, choices, field: str) -> str:
    if value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")
    return value


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_amount(patch: dict, field: str) -> None:
    value = patch.get(field)
    if value is None:
        return
    if value < 0:
        raise ValidationError(f"{field} must be >= 0")
    if value > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT:,}")


def enforce_rules_product(patch: dict) -> None:
    """Business rules that are not captured by column metadata alone."""
    _check_amount(patch, "price")
    _check_amount(patch, "wholesale_price")
    if patch.get("stock") is not None and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")


def enforce_rules_stock_import(quantity: Any, price: Any) -> tuple[int, int]:
    qty = require_positive_int(quantity, "quantity")
    unit_price = coerce_int(price, "price")
    if unit_price < 0:
        raise ValidationError("price must be >= 0")
    return qty, unit_price
