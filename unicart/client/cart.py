# unicart/client/cart.py
from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation

from ..errors import InvalidCartItem
from ..utils.money import D, round_money
from .session_state import LocalSessionState


@dataclass(frozen=True)
class CartLine:
    item_id: str
    name: str
    unit_price: float
    quantity: int

    def line_total_dec(self) -> Decimal:
        return round_money(D(self.unit_price) * Decimal(self.quantity))

    def as_api(self) -> dict:
        return {"id": self.item_id, "name": self.name, "price": self.unit_price, "quantity": self.quantity}


def _field(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def _price(item) -> float:
    try:
        price = D(_field(item, "price"))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidCartItem(f"{_field(item, 'name') or 'item'} has an invalid price")
    if not price.is_finite() or price < 0:
        raise InvalidCartItem(f"{_field(item, 'name') or 'item'} has an invalid price")
    return float(round_money(price))


class CartEngine:
    """
    The device's cart: at most one line per item id, quantities >= 1.

    Totals are derived from the lines on every read. Each mutation writes the
    whole cart to local session state before returning.
    """

    def __init__(self, state: LocalSessionState):
        self._state = state
        self._lines: dict[str, CartLine] = {}
        for raw in state.load_cart():
            self._lines[raw["id"]] = CartLine(raw["id"], raw["name"], raw["price"], raw["quantity"])

    # ---- reads ----
    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def total_items(self) -> int:
        return sum(l.quantity for l in self._lines.values())

    def total_amount_dec(self) -> Decimal:
        return round_money(sum((l.line_total_dec() for l in self._lines.values()), Decimal("0")))

    @property
    def total_amount(self) -> float:
        return float(self.total_amount_dec())

    def quantity_of(self, item_id) -> int:
        line = self._lines.get(str(item_id))
        return line.quantity if line else 0

    def snapshot(self) -> list[dict]:
        return [l.as_api() for l in self._lines.values()]

    # ---- mutations ----
    def add_item(self, item) -> CartLine:
        """Add one unit of a menu item (mapping or object with id, name, price)."""
        item_id = _field(item, "id")
        if item_id is None:
            raise InvalidCartItem("menu item has no id")
        key = str(item_id)
        line = self._lines.get(key)
        if line:
            line = replace(line, quantity=line.quantity + 1)
        else:
            line = CartLine(key, _field(item, "name") or "", _price(item), 1)
        self._lines[key] = line
        self._persist()
        return line

    def set_quantity(self, item_id, quantity: int) -> None:
        key = str(item_id)
        if int(quantity) <= 0:
            self.remove(key)
            return
        line = self._lines.get(key)
        if line is None:
            return
        self._lines[key] = replace(line, quantity=int(quantity))
        self._persist()

    def remove(self, item_id) -> None:
        self._lines.pop(str(item_id), None)
        self._persist()

    def clear(self) -> None:
        self._lines.clear()
        self._persist()

    def _persist(self):
        self._state.save_cart(self._lines.values())
