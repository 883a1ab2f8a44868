# unicart/batch/routes.py
from flask import request, Response

from ..services import batch_service
from ..utils.api import ok, err
from ..utils.decorators import admin_required
from . import bp


@bp.get("/current")
def get_current():
    """Public: lets the cart screen say whether a slot is open before placing."""
    batch = batch_service.current_batch()
    return ok("current batch", {"batch": batch.as_api() if batch else None})


@bp.post("")
@admin_required
def create_batch():
    """
    Body: { "slot_label": "Lunch 12:30" }
    Opens a new batch at step 1. Rejected while a previous batch still exists.
    """
    data = request.get_json(silent=True) or {}
    batch = batch_service.create_batch(data.get("slot_label"))
    return ok("batch created; orders are open", {"batch": batch.as_api()}, status=201)


@bp.patch("/<int:batch_id>/stage")
@admin_required
def update_stage(batch_id: int):
    """
    Body: { "current_step": 1..5, "status_message": str }
    Permitted whether the batch is open or closed.
    """
    data = request.get_json(silent=True) or {}
    if "current_step" not in data:
        return err("current_step is required", 422, {"code": "invalid_batch_input"})
    batch = batch_service.advance_stage(batch_id, data.get("current_step"), data.get("status_message"))
    return ok("tracking status updated", {"batch": batch.as_api()})


@bp.patch("/<int:batch_id>/active")
@admin_required
def set_active(batch_id: int):
    """Body: { "is_active": bool }"""
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get("is_active"), bool):
        return err("is_active must be true or false", 422, {"code": "invalid_batch_input"})
    batch = batch_service.set_active(batch_id, data["is_active"])
    return ok("batch opened" if batch.is_active else "batch closed", {"batch": batch.as_api()})


@bp.post("/<int:batch_id>/toggle")
@admin_required
def toggle(batch_id: int):
    batch = batch_service.toggle_batch(batch_id)
    return ok("batch opened" if batch.is_active else "batch closed", {"batch": batch.as_api()})


@bp.delete("/<int:batch_id>")
@admin_required
def archive(batch_id: int):
    batch_service.archive_batch(batch_id)
    return ok("batch archived", {"batch_id": batch_id})


@bp.get("/<int:batch_id>/orders")
@admin_required
def list_batch_orders(batch_id: int):
    batch = batch_service.get_batch(batch_id)
    orders = batch_service.batch_orders(batch.id)
    return ok("orders", {
        "batch": batch.as_api(),
        "total": len(orders),
        "items": [o.as_api() for o in orders],
    })


@bp.get("/<int:batch_id>/export")
@admin_required
def export_orders(batch_id: int):
    filename, body = batch_service.export_batch_csv(batch_id)
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
