# ------ unicart/model/__init__.py ------

from .batch import OrderBatch, STAGES, FIRST_STEP, LAST_STEP, OPENING_MESSAGE
from .order import Order
from .category import Category
from .menu import MenuItem, Restaurant

__all__ = [
    "OrderBatch",
    "STAGES",
    "FIRST_STEP",
    "LAST_STEP",
    "OPENING_MESSAGE",
    "Order",
    "Category",
    "MenuItem",
    "Restaurant",
]
