# unicart/errors.py
"""
Error taxonomy shared by the API and the device client.

Every error carries a stable ``code`` (sent as ``data.code`` in the API error
envelope) so the client can raise the same class on its side of the wire.
"""
from __future__ import annotations


class UnicartError(Exception):
    code = "unicart_error"
    status = 400
    default_message = "request failed"

    def __init__(self, message: str | None = None, data: dict | None = None):
        self.message = message or self.default_message
        self.data = data or {}
        super().__init__(self.message)

    def as_data(self) -> dict:
        return {"code": self.code, **self.data}


# ---- placement -------------------------------------------------------------

class EmptyCart(UnicartError):
    code = "empty_cart"
    status = 422
    default_message = "Your cart is empty"


class MissingContactInfo(UnicartError):
    code = "missing_contact_info"
    status = 422
    default_message = "Please enter your phone number and delivery location so we can contact you."

    def __init__(self, fields=None, message: str | None = None):
        self.fields = list(fields or [])
        super().__init__(message, {"fields": self.fields} if self.fields else None)


class NoActiveSlot(UnicartError):
    code = "no_active_slot"
    status = 409
    default_message = "No delivery slot is open yet. Please wait for the next batch."


class OrdersClosed(UnicartError):
    code = "orders_closed"
    status = 409

    def __init__(self, slot_label: str | None = None, message: str | None = None):
        self.slot_label = slot_label
        if message is None:
            message = f'Orders for "{slot_label}" are closed.' if slot_label else "Orders are closed."
        super().__init__(message, {"slot_label": slot_label})


class InvalidCartItem(UnicartError):
    code = "invalid_cart_item"
    status = 422
    default_message = "One of the items in your cart is not valid"


class PersistenceFailure(UnicartError):
    code = "persistence_failure"
    status = 503
    default_message = "Could not save your order. Please try again."


# ---- tracking --------------------------------------------------------------

class TrackingUnavailable(UnicartError):
    code = "tracking_unavailable"
    status = 410

    def __init__(self, order_id: str | None = None, message: str | None = None):
        self.order_id = order_id
        super().__init__(message or "This order is no longer trackable.", {"order_id": order_id})


class OrderNotFound(UnicartError):
    code = "order_not_found"
    status = 404
    default_message = "order not found"


# ---- batch manager ---------------------------------------------------------

class BatchNotFound(UnicartError):
    code = "batch_not_found"
    status = 404
    default_message = "batch not found"


class InvalidBatchTransition(UnicartError):
    code = "invalid_batch_transition"
    status = 409


class InvalidBatchInput(UnicartError):
    code = "invalid_batch_input"
    status = 422


_BY_CODE = {
    cls.code: cls
    for cls in (
        EmptyCart, MissingContactInfo, NoActiveSlot, OrdersClosed, InvalidCartItem, PersistenceFailure,
        TrackingUnavailable, OrderNotFound, BatchNotFound, InvalidBatchTransition, InvalidBatchInput,
    )
}


def error_from_payload(payload: dict | None, status: int | None = None) -> UnicartError:
    """Rebuild a typed error from an ``api_error`` envelope."""
    payload = payload or {}
    data = payload.get("data") or {}
    message = payload.get("message")
    cls = _BY_CODE.get(data.get("code"))
    if cls is OrdersClosed:
        return OrdersClosed(data.get("slot_label"), message=message)
    if cls is MissingContactInfo:
        return MissingContactInfo(data.get("fields"), message=message)
    if cls is TrackingUnavailable:
        return TrackingUnavailable(data.get("order_id"), message=message)
    if cls is not None:
        return cls(message)
    if status is not None and status >= 500:
        return PersistenceFailure(message)
    return UnicartError(message)
