# --- menu/routes.py ---
from flask import request
from sqlalchemy import asc

from ..extensions import db
from ..model import MenuItem, Restaurant
from ..utils.api import ok
from . import bp


def _restaurant_status():
    return {r.name: r.is_open for r in Restaurant.query.all()}


@bp.get("")
def list_menu():
    """
    Read-only menu for the home screen.
    q           -> substring match on item name
    category_id -> filter by category
    restaurant  -> filter by restaurant name
    Each item carries `orderable`: available and its restaurant is not closed.
    """
    q = (request.args.get("q") or "").strip()
    category_id = request.args.get("category_id", type=int)
    restaurant = (request.args.get("restaurant") or "").strip()

    qry = MenuItem.query
    if q:
        qry = qry.filter(MenuItem.name.ilike(f"%{q}%"))
    if category_id is not None:
        qry = qry.filter(MenuItem.category_id == category_id)
    if restaurant:
        qry = qry.filter(MenuItem.restaurant_name == restaurant)

    status = _restaurant_status()
    items = [i.as_api(status.get(i.restaurant_name)) for i in qry.order_by(asc(MenuItem.name)).all()]
    return ok("menu", {"items": items, "restaurants": status})


@bp.get("/<int:item_id>")
def get_item(item_id: int):
    item = db.get_or_404(MenuItem, item_id)
    return ok("menu item", {"item": item.as_api(_restaurant_status().get(item.restaurant_name))})
