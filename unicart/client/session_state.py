# unicart/client/session_state.py
"""
Device-local durable state: the cart snapshot and the ids of orders placed
from this device (most recent first).

Each key is one JSON file in the state directory. Reads never raise: a missing
or corrupt file yields the empty default.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path

log = logging.getLogger(__name__)

CART_KEY = "unicart_cart"
ORDER_IDS_KEY = "unicart_recent_order_ids"
LEGACY_ACTIVE_ORDER_KEY = "unicart_active_order_id"


# ---- codecs ----------------------------------------------------------------

def dump_cart(lines) -> str:
    return json.dumps([
        {"id": l.item_id, "name": l.name, "price": l.unit_price, "quantity": l.quantity}
        for l in lines
    ])


def parse_cart(text: str | None) -> list[dict]:
    """Decode a stored cart; malformed input or lines are dropped, never raised."""
    if not text:
        return []
    try:
        raw = json.loads(text)
    except (TypeError, ValueError):
        log.warning("stored cart is corrupt; starting empty")
        return []
    if not isinstance(raw, list):
        return []
    lines = []
    for entry in raw:
        if not isinstance(entry, dict) or entry.get("id") is None:
            continue
        try:
            qty = int(entry.get("quantity"))
            price = float(entry.get("price"))
        except (TypeError, ValueError):
            continue
        if qty < 1:
            continue
        lines.append({"id": str(entry["id"]), "name": entry.get("name") or "", "price": price, "quantity": qty})
    return lines


def dump_order_ids(ids) -> str:
    return json.dumps(list(ids))


def parse_order_ids(text: str | None) -> list[str]:
    if not text:
        return []
    try:
        raw = json.loads(text)
    except (TypeError, ValueError):
        log.warning("stored order ids are corrupt; starting empty")
        return []
    if not isinstance(raw, list):
        return []
    return list(dict.fromkeys(x for x in raw if isinstance(x, str) and x))


# ---- store -----------------------------------------------------------------

class LocalSessionState:
    def __init__(self, state_dir):
        self.state_dir = Path(state_dir)

    def _path(self, key: str) -> Path:
        return self.state_dir / f"{key}.json"

    def _read(self, key: str) -> str | None:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            log.warning("could not read %s: %s", key, e)
            return None

    def _write(self, key: str, text: str) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)

    # cart
    def load_cart(self) -> list[dict]:
        return parse_cart(self._read(CART_KEY))

    def save_cart(self, lines) -> None:
        self._write(CART_KEY, dump_cart(lines))

    # recent orders
    def load_order_ids(self) -> list[str]:
        ids = parse_order_ids(self._read(ORDER_IDS_KEY))
        legacy = self._read(LEGACY_ACTIVE_ORDER_KEY)
        if legacy:
            try:
                legacy_id = json.loads(legacy)
            except ValueError:
                legacy_id = legacy.strip()
            if isinstance(legacy_id, str) and legacy_id and legacy_id not in ids:
                ids.append(legacy_id)
        return ids

    def save_order_ids(self, ids) -> None:
        self._write(ORDER_IDS_KEY, dump_order_ids(ids))

    def record_order(self, order_id: str) -> list[str]:
        """Put an id at the front of the recent list and persist it."""
        ids = [order_id] + [i for i in self.load_order_ids() if i != order_id]
        self.save_order_ids(ids)
        return ids
