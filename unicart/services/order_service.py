# unicart/services/order_service.py
from __future__ import annotations

import random
import string
import time
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import (
    EmptyCart, InvalidCartItem, MissingContactInfo, NoActiveSlot, OrdersClosed, PersistenceFailure, OrderNotFound,
)
from ..model import MenuItem, Order
from ..utils.money import D, round_money, line_total
from .batch_service import current_batch

REQUIRED_CONTACT_FIELDS = ("phone", "delivery_location", "collection_point")
PAYMENT_MODE = "cod"  # pay on delivery only

_BASE36_UPPER = string.digits + string.ascii_uppercase


def generate_order_id(now_ms: int | None = None, rng=random) -> str:
    """ORD-<last 4 digits of epoch millis>-<2 base36 chars>. No collision check."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    time_part = str(now_ms)[-4:].rjust(4, "0")
    rand_part = "".join(rng.choice(_BASE36_UPPER) for _ in range(2))
    return f"ORD-{time_part}-{rand_part}"


def _catalog_prices(lines) -> dict:
    ids = {int(str(raw.get("id"))) for raw in lines if str(raw.get("id") or "").isdigit()}
    if not ids:
        return {}
    return {str(m.id): m.price for m in MenuItem.query.filter(MenuItem.id.in_(ids)).all()}


def _unit_price(raw: dict, catalog: dict) -> Decimal:
    """Catalog price when the item is on the menu, else the submitted one (finite, >= 0)."""
    key = str(raw.get("id"))
    if catalog.get(key) is not None:
        return round_money(catalog[key])
    try:
        price = D(raw.get("price"))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidCartItem(f"item {key} has an invalid price")
    if not price.is_finite() or price < 0:
        raise InvalidCartItem(f"item {key} has an invalid price")
    return round_money(price)


def _snapshot_lines(lines) -> list[dict]:
    """Copy submitted cart lines into the frozen shape stored on the order."""
    snapshot = []
    for raw in lines or []:
        try:
            qty = int(raw.get("quantity") or 0)
        except (TypeError, ValueError, AttributeError):
            raise EmptyCart("cart contains an invalid line")
        if qty < 1:
            raise EmptyCart("cart contains an invalid line")
        snapshot.append((raw, qty))

    catalog = _catalog_prices([raw for raw, _ in snapshot])
    return [
        {
            "id": str(raw.get("id")),
            "name": raw.get("name"),
            "price": float(_unit_price(raw, catalog)),
            "quantity": qty,
        }
        for raw, qty in snapshot
    ]


def _missing_contact(contact: dict) -> list[str]:
    return [f for f in REQUIRED_CONTACT_FIELDS if not str(contact.get(f) or "").strip()]


def place_order(lines, contact: dict, *, user_id: str | None = None, customer_name: str | None = None) -> Order:
    """
    Validate, resolve the current batch and persist an order.

    The batch activity check and the insert are not atomic: a batch closed
    between them still receives the order.
    """
    if not lines:
        raise EmptyCart()
    items = _snapshot_lines(lines)

    contact = contact or {}
    missing = _missing_contact(contact)
    if missing:
        raise MissingContactInfo(missing)

    batch = current_batch()
    if batch is None:
        raise NoActiveSlot()
    if not batch.is_active:
        current_app.logger.info("placement rejected: batch %s (%s) is closed", batch.id, batch.slot_label)
        raise OrdersClosed(batch.slot_label)

    total = round_money(sum((line_total(i["price"], i["quantity"]) for i in items), D(0)))

    order = Order(
        id=generate_order_id(),
        batch_id=batch.id,
        user_id=user_id,
        customer_name=(customer_name or "").strip() or "Guest",
        phone=str(contact["phone"]).strip(),
        delivery_location=str(contact["delivery_location"]).strip(),
        collection_point=str(contact["collection_point"]).strip(),
        items=items,
        total_amount=total,
        payment_mode=PAYMENT_MODE,
    )
    try:
        db.session.add(order)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("order insert failed: %s", e)
        raise PersistenceFailure() from e

    current_app.logger.info("order %s placed in batch %s (%s items, %s)",
                            order.id, batch.id, order.item_count, total)
    return order


def get_order(order_id: str) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFound(f"order {order_id} not found")
    return order
