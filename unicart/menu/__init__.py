from flask import Blueprint

bp = Blueprint("menu", __name__, url_prefix="/menu")

from . import routes  # noqa: E402,F401
