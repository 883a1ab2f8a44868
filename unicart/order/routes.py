# unicart/order/routes.py
from datetime import datetime, timedelta

from flask import current_app, request

from ..extensions import db
from ..model import Order, OrderBatch
from ..services import order_service, tracking_service
from ..utils.api import ok, err
from ..utils.decorators import admin_required, current_identity
from . import bp


@bp.post("")
def place():
    """
    Body: {
      "items": [{"id", "name", "price", "quantity"}],
      "contact": {"phone", "delivery_location", "collection_point"},
      "customer_name": "Guest"          # ignored when the token carries a name
    }
    Header: Authorization: Bearer <token>   (optional; guests may order)
    """
    who = current_identity()
    payload = request.get_json(silent=True) or {}
    order = order_service.place_order(
        payload.get("items") or [],
        payload.get("contact") or {},
        user_id=who.user_id,
        customer_name=who.name or payload.get("customer_name"),
    )
    resp = ok("order placed", {"order_id": order.id, "order": order.as_api()}, status=201)
    resp.headers["X-Order-Id"] = order.id
    return resp


@bp.get("")
@admin_required
def list_orders():
    """
    Query params:
      - page, per_page
      - batch_id=12
      - phone=98...
      - start=YYYY-MM-DD
      - end=YYYY-MM-DD (inclusive)
    """
    q = Order.query

    batch_id = request.args.get("batch_id", type=int)
    phone = request.args.get("phone")
    start = request.args.get("start")
    end = request.args.get("end")

    if batch_id is not None: q = q.filter(Order.batch_id == batch_id)
    if phone: q = q.filter(Order.phone == phone)
    try:
        if start:
            q = q.filter(Order.created_at >= datetime.fromisoformat(start))
        if end:
            # make end inclusive for the whole day
            q = q.filter(Order.created_at < datetime.fromisoformat(end) + timedelta(days=1))
    except ValueError:
        return err("start and end must be YYYY-MM-DD", 422, {"code": "invalid_date"})

    page = max(request.args.get("page", 1, type=int), 1)
    per = min(max(request.args.get("per_page", 20, type=int), 1), 100)

    q = q.order_by(Order.created_at.desc())
    paged = q.paginate(page=page, per_page=per, error_out=False)

    return ok("orders", {
        "page": page,
        "per_page": per,
        "total": paged.total,
        "items": [o.as_api() for o in paged.items],
    })


@bp.get("/history")
def history():
    """
    Query params:
      - ids=ORD-1234-AB,ORD-5678-CD   (order ids stored on this device)
    Signed-in callers also get every order they own.
    """
    who = current_identity()
    local_ids = [i.strip() for i in (request.args.get("ids") or "").split(",") if i.strip()]
    orders = tracking_service.resolve_history(local_ids, who.user_id)
    ids = [o.id for o in orders]
    return ok("order history", {
        "authenticated": who.authenticated,
        "selected": tracking_service.initial_selection(ids, who.authenticated),
        "items": [o.as_summary() for o in orders],
    })


@bp.get("/<order_id>")
def get_order(order_id: str):
    order = order_service.get_order(order_id)
    batch = db.session.get(OrderBatch, order.batch_id) if order.batch_id is not None else None
    return ok("order", {
        "order": order.as_api(),
        "slot_label": batch.slot_label if batch else None,
    })


@bp.get("/<order_id>/tracking")
def tracking(order_id: str):
    snapshot = tracking_service.tracking_snapshot(order_id)
    snapshot["poll_interval"] = current_app.config["POLL_INTERVAL"]
    return ok("tracking", snapshot)
