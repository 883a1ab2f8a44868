# unicart/services/tracking_service.py
"""
Order history and live stage resolution.

Orders never carry a step of their own; the stage shown for an order is always
read from its batch, so one batch update is reflected on every order in it.
"""
from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..errors import TrackingUnavailable
from ..model import Order, OrderBatch, STAGES
from .order_service import get_order


def stage_view(current_step: int, status_message: str | None = None) -> list[dict]:
    """Map a batch step onto the fixed stage list: completed / current / pending."""
    stages = []
    for step, label in enumerate(STAGES, start=1):
        if step < current_step:
            state = "completed"
        elif step == current_step:
            state = "current"
        else:
            state = "pending"
        stages.append({
            "step": step,
            "label": label,
            "state": state,
            "message": status_message if state == "current" else None,
        })
    return stages


def tracking_snapshot(order_id: str) -> dict:
    order = get_order(order_id)
    batch = db.session.get(OrderBatch, order.batch_id) if order.batch_id is not None else None
    if batch is None:
        raise TrackingUnavailable(order.id)
    return {
        "order_id": order.id,
        "batch_id": batch.id,
        "slot_label": batch.slot_label,
        "current_step": batch.current_step,
        "status_message": batch.status_message,
        "stages": stage_view(batch.current_step, batch.status_message),
        "total_amount": float(order.total_amount or 0),
        "item_count": order.item_count,
    }


def resolve_history(local_ids, user_id: str | None = None) -> list[Order]:
    """
    Orders this viewer can see: the device's local ids, plus (when signed in)
    everything the user owns server-side. Merged by id so guest orders placed
    before sign-in are kept.
    """
    wanted = [i for i in dict.fromkeys(local_ids or []) if i]
    merged: dict[str, Order] = {}
    if wanted:
        for o in Order.query.filter(Order.id.in_(wanted)).all():
            merged[o.id] = o
    if user_id:
        for o in Order.query.filter(Order.user_id == user_id).all():
            merged[o.id] = o
    return sorted(merged.values(), key=lambda o: o.created_at or datetime.min, reverse=True)


def initial_selection(order_ids, authenticated: bool) -> str | None:
    """Auto-select only a guest's single order; everyone else starts at the list."""
    ids = list(order_ids or [])
    if len(ids) == 1 and not authenticated:
        return ids[0]
    return None
