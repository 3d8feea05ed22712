# Overview: Register cart state and the pure operations that transform it.

"""
Cart Engine

STATE: Everything the register holds between taps lives in one PosState
value (lines, price mode, selected customer, discount, settling flag).
Operations take a state and return a new one; nothing is kept in module
globals, so the HTTP layer can round-trip the state as JSON and tests can
drive it directly.

INVARIANTS:
- At most one line per product id
- Every stored line has quantity >= 1 (a line reaching 0 is dropped)
- Totals are derived on every read, never cached on the state
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Optional

from ..records import PRICE_MODES, RETAIL, WHOLESALE, CustomerDebtRecord, ProductRecord
from ..validation import ValidationError, coerce_int, require_choice


@dataclass(frozen=True)
class CartLine:
    """Product snapshot plus quantity and the unit price frozen at add time."""
    product_id: int
    name: str
    quantity: int
    price: int
    image: Optional[str] = None

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "image": self.image,
            "quantity": self.quantity,
            "price": self.price,
            "line_total": self.line_total,
        }


@dataclass(frozen=True)
class PosState:
    lines: tuple[CartLine, ...] = ()
    price_mode: str = RETAIL
    customer: Optional[CustomerDebtRecord] = None
    discount_percent: int = 0
    settling: bool = False

    def line_for(self, product_id: int) -> Optional[CartLine]:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    @property
    def is_empty(self) -> bool:
        return not self.lines


def unit_price(product: ProductRecord, mode: str) -> int:
    """Price of one unit in the given mode; wholesale falls back to retail when unset."""
    if mode == WHOLESALE:
        return product.wholesale_price or product.price
    return product.price


def _catalog_index(catalog: Iterable[ProductRecord] | Mapping[int, ProductRecord]) -> dict[int, ProductRecord]:
    if isinstance(catalog, Mapping):
        return dict(catalog)
    return {product.id: product for product in catalog}


def _put_line(state: PosState, product: ProductRecord, quantity: int) -> PosState:
    """Replace (or insert, or drop) the product's line, keeping cart order."""
    price = unit_price(product, state.price_mode)
    lines: list[CartLine] = []
    found = False
    for line in state.lines:
        if line.product_id != product.id:
            lines.append(line)
            continue
        found = True
        if quantity > 0:
            lines.append(replace(line, quantity=quantity, price=price))
    if not found and quantity > 0:
        lines.append(CartLine(
            product_id=product.id,
            name=product.name,
            image=product.image,
            quantity=quantity,
            price=price,
        ))
    return replace(state, lines=tuple(lines))


def add_or_increment(state: PosState, product: ProductRecord, delta: int = 1) -> PosState:
    """
    Tap on a product tile.

    Existing line: quantity += delta and its price is refreshed to the
    active mode. New line: quantity = delta. A result <= 0 removes the line.
    """
    delta = coerce_int(delta, "delta")
    existing = state.line_for(product.id)
    current = existing.quantity if existing else 0
    return _put_line(state, product, current + delta)


def set_quantity(state: PosState, product: ProductRecord, qty: int) -> PosState:
    """Keypad confirm. qty <= 0 silently removes the line."""
    qty = coerce_int(qty, "quantity")
    return _put_line(state, product, qty)


def remove_line(state: PosState, product_id: int) -> PosState:
    return replace(state, lines=tuple(line for line in state.lines if line.product_id != product_id))


def set_price_mode(
    state: PosState,
    mode: str,
    catalog: Iterable[ProductRecord] | Mapping[int, ProductRecord],
) -> PosState:
    """
    Switch retail/wholesale and re-price every line from the catalog.

    Quantities never change. A line whose product is no longer in the
    catalog keeps its current price.
    """
    require_choice(mode, PRICE_MODES, "price_mode")
    index = _catalog_index(catalog)
    lines = []
    for line in state.lines:
        product = index.get(line.product_id)
        if product is None:
            lines.append(line)
        else:
            lines.append(replace(line, price=unit_price(product, mode)))
    return replace(state, price_mode=mode, lines=tuple(lines))


def total_item_count(state: PosState) -> int:
    return sum(line.quantity for line in state.lines)


def sub_total(state: PosState) -> int:
    return sum(line.price * line.quantity for line in state.lines)


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_quantity_input(text) -> int:
    """
    Free-text quantity from the keypad field.

    Leading digits are read ("12abc" -> 12); anything non-numeric reads as
    1; the result is clamped to >= 1.
    """
    if isinstance(text, int) and not isinstance(text, bool):
        return max(1, text)
    match = _LEADING_INT.match(str(text or ""))
    if not match:
        return 1
    return max(1, int(match.group(1)))


def keypad_input(current: str, key: str) -> str:
    """
    Quantity keypad: "C" resets to "0"; a digit replaces a lone "0" or "1",
    otherwise it is appended.
    """
    if key == "C":
        return "0"
    if not (isinstance(key, str) and key.isdigit()):
        raise ValidationError("Keypad key must be a digit or 'C'")
    if current in ("0", "1"):
        return key
    return (current or "") + key


def clamp_percent(value) -> int:
    """Discount field: non-numeric reads as 0, then clamped to [0, 100]."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        number = value
    else:
        match = _LEADING_INT.match(str(value if value is not None else ""))
        number = int(match.group(1)) if match else 0
    return min(100, max(0, number))


def set_discount(state: PosState, percent) -> PosState:
    return replace(state, discount_percent=clamp_percent(percent))


def select_customer(state: PosState, customer: Optional[CustomerDebtRecord]) -> PosState:
    return replace(state, customer=customer)


def clear_cart(state: PosState) -> PosState:
    return replace(state, lines=(), discount_percent=0)


# ============================================================================
# JSON round-trip for the register client
# ============================================================================

def state_to_dict(state: PosState) -> dict:
    return {
        "lines": [line.to_dict() for line in state.lines],
        "price_mode": state.price_mode,
        "customer": state.customer.to_dict() if state.customer else None,
        "discount_percent": state.discount_percent,
        "settling": state.settling,
        "total_item_count": total_item_count(state),
        "sub_total": sub_total(state),
    }


def state_from_payload(
    payload: dict,
    catalog: Iterable[ProductRecord] | Mapping[int, ProductRecord],
    customer: Optional[CustomerDebtRecord] = None,
) -> PosState:
    """
    Rebuild a PosState from client JSON.

    Only product ids and quantities are trusted from the client; names and
    prices are re-read from the catalog in the requested price mode.

    Payload:
        {"price_mode": "retail", "discount_percent": 10,
         "lines": [{"product_id": 1, "quantity": 2}, ...]}
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    mode = payload.get("price_mode") or RETAIL
    require_choice(mode, PRICE_MODES, "price_mode")

    raw_lines = payload.get("lines") or []
    if not isinstance(raw_lines, list):
        raise ValidationError("lines must be a list")

    index = _catalog_index(catalog)
    state = PosState(price_mode=mode, customer=customer)
    for raw in raw_lines:
        if not isinstance(raw, dict):
            raise ValidationError("each line must be an object")
        product_id = coerce_int(raw.get("product_id"), "product_id")
        product = index.get(product_id)
        if product is None:
            raise ValidationError(f"Unknown product: {product_id}")
        state = add_or_increment(state, product, raw.get("quantity", 1))

    return set_discount(state, payload.get("discount_percent", 0))
