# unicart/model/menu.py
from ..extensions import db
from sqlalchemy.sql import func

class Restaurant(db.Model):
    __tablename__ = "restaurants"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True, index=True)
    is_open = db.Column(db.Boolean, nullable=False, default=True)

    def as_dict(self):
        return {"id": self.id, "name": self.name, "is_open": self.is_open}


class MenuItem(db.Model):
    __tablename__ = "menu_items"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    image_url = db.Column(db.String(1024))
    is_available = db.Column(db.Boolean, default=True)

    # flat name, matched against Restaurant.name
    restaurant_name = db.Column(db.String(120), index=True)

    category_id = db.Column(
        db.Integer,
        db.ForeignKey("category.id"),
        nullable=True
    )
    created_at = db.Column(db.DateTime, server_default=func.now())

    def as_api(self, restaurant_open: bool | None = None):
        orderable = bool(self.is_available) and restaurant_open is not False
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": float(self.price or 0),
            "image_url": self.image_url,
            "is_available": self.is_available,
            "restaurant_name": self.restaurant_name,
            "restaurant_open": restaurant_open,
            "orderable": orderable,
            "category": self.category.as_dict() if self.category else None,
        }
