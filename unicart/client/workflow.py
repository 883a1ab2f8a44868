# unicart/client/workflow.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import EmptyCart, MissingContactInfo, UnicartError
from .api import ApiClient
from .cart import CartEngine
from .session_state import LocalSessionState

log = logging.getLogger(__name__)

REQUIRED_CONTACT_FIELDS = ("phone", "delivery_location", "collection_point")


@dataclass
class PlacementOutcome:
    order_id: str | None = None
    error: UnicartError | None = None

    @property
    def ok(self) -> bool:
        return self.order_id is not None

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        return f"Order {self.order_id} placed"


class OrderPlacement:
    """Device half of placing an order: local checks, submit, then update local state."""

    def __init__(self, cart: CartEngine, state: LocalSessionState, api: ApiClient, customer_name: str | None = None):
        self.cart = cart
        self.state = state
        self.api = api
        self.customer_name = customer_name

    def place(self, contact: dict) -> str:
        if self.cart.is_empty:
            raise EmptyCart()
        contact = {k: str((contact or {}).get(k) or "").strip() for k in REQUIRED_CONTACT_FIELDS}
        missing = [k for k, v in contact.items() if not v]
        if missing:
            raise MissingContactInfo(missing)

        # Any failure past this point leaves the cart untouched for a resubmit.
        order_id = self.api.place_order(self.cart.snapshot(), contact, self.customer_name or "Guest")

        self.state.record_order(order_id)
        self.cart.clear()
        log.info("order %s placed", order_id)
        return order_id

    def current_slot(self) -> dict | None:
        """The batch a new order would join, or None; for the cart screen's open/closed notice."""
        return self.api.current_batch()

    def confirmation(self, order_id: str) -> dict:
        return self.api.get_order(order_id)

    def submit(self, contact: dict) -> PlacementOutcome:
        """Like place(), but every rejection comes back as a user-facing outcome."""
        try:
            return PlacementOutcome(order_id=self.place(contact))
        except UnicartError as e:
            log.info("placement rejected (%s): %s", e.code, e.message)
            return PlacementOutcome(error=e)
