# unicart/services/batch_service.py
"""
Batch Manager.

A batch moves through ``no-batch -> open <-> closed -> archived``. There is no
stored "current batch" pointer: the current batch is always the most recently
created row, so creating a new batch implicitly supersedes the previous one
for new placements while existing orders keep their original ``batch_id``.
"""
from __future__ import annotations

import io

import pandas as pd
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import BatchNotFound, InvalidBatchInput, InvalidBatchTransition, PersistenceFailure
from ..model import Order, OrderBatch, FIRST_STEP, LAST_STEP, OPENING_MESSAGE

EXPORT_COLUMNS = ["Order ID", "Name", "Phone", "Items", "Total (Rs)", "Date"]


def current_batch() -> OrderBatch | None:
    return (OrderBatch.query
            .order_by(OrderBatch.created_at.desc(), OrderBatch.id.desc())
            .first())


def get_batch(batch_id: int) -> OrderBatch:
    batch = db.session.get(OrderBatch, batch_id)
    if batch is None:
        raise BatchNotFound(f"batch {batch_id} not found")
    return batch


def _commit(action: str):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("batch %s failed: %s", action, e)
        raise PersistenceFailure(f"could not {action} batch") from e


def create_batch(slot_label: str) -> OrderBatch:
    label = (slot_label or "").strip()
    if not label:
        raise InvalidBatchInput("slot label is required")

    existing = current_batch()
    if existing is not None:
        raise InvalidBatchTransition(
            f'batch "{existing.slot_label}" is still {existing.state}; close and archive it first'
        )

    batch = OrderBatch(
        slot_label=label,
        current_step=FIRST_STEP,
        status_message=OPENING_MESSAGE,
        is_active=True,
    )
    db.session.add(batch)
    _commit("create")
    current_app.logger.info("batch %s created for slot %r; orders are open", batch.id, label)
    return batch


def set_active(batch_id: int, active: bool) -> OrderBatch:
    """Open or close a batch. Re-opening keeps the current step."""
    batch = get_batch(batch_id)
    if batch.is_active == bool(active):
        return batch
    batch.is_active = bool(active)
    batch.touch()
    _commit("open" if active else "close")
    current_app.logger.info("batch %s is now %s", batch.id, batch.state)
    return batch


def toggle_batch(batch_id: int) -> OrderBatch:
    batch = get_batch(batch_id)
    return set_active(batch.id, not batch.is_active)


def advance_stage(batch_id: int, step, status_message: str | None = None) -> OrderBatch:
    """Set the fulfilment step; allowed while closed so staff can finish a slot."""
    try:
        step = int(step)
    except (TypeError, ValueError):
        raise InvalidBatchInput("current_step must be an integer")
    if not FIRST_STEP <= step <= LAST_STEP:
        raise InvalidBatchInput(f"current_step must be between {FIRST_STEP} and {LAST_STEP}")

    batch = get_batch(batch_id)
    batch.current_step = step
    if status_message is not None:
        batch.status_message = str(status_message)
    batch.touch()
    _commit("update")
    current_app.logger.info("batch %s at step %s: %s", batch.id, step, batch.status_message)
    return batch


def archive_batch(batch_id: int) -> None:
    batch = get_batch(batch_id)
    if batch.is_active:
        raise InvalidBatchTransition(f'close "{batch.slot_label}" before archiving it')
    db.session.delete(batch)
    _commit("archive")
    current_app.logger.info("batch %s (%s) archived", batch_id, batch.slot_label)


# ---- reporting -------------------------------------------------------------

def batch_orders(batch_id: int) -> list[Order]:
    return (Order.query
            .filter(Order.batch_id == batch_id)
            .order_by(Order.created_at.asc())
            .all())


def export_filename(batch: OrderBatch) -> str:
    return "_".join(batch.slot_label.split()) + "_Orders.csv"


def export_batch_csv(batch_id: int) -> tuple[str, str]:
    """Render a batch's orders as CSV. Returns (filename, csv_text)."""
    batch = get_batch(batch_id)
    rows = [
        {
            "Order ID": o.id,
            "Name": o.customer_name,
            "Phone": o.phone,
            "Items": o.items_summary(),
            "Total (Rs)": float(o.total_amount or 0),
            "Date": o.created_at.date().isoformat() if o.created_at else "",
        }
        for o in batch_orders(batch.id)
    ]
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    buf = io.StringIO()
    df.to_csv(buf, index=False)
    return export_filename(batch), buf.getvalue()
