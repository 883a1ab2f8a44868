from datetime import datetime
from ..extensions import db

class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(16), primary_key=True)  # e.g., "ORD-4821-X7"

    # Plain column, not a FK: archiving a batch must leave its orders in place.
    batch_id = db.Column(db.Integer, nullable=True, index=True)
    user_id = db.Column(db.String(64), nullable=True, index=True)

    # Customer snapshot
    customer_name = db.Column(db.String(120))
    phone = db.Column(db.String(50))
    delivery_location = db.Column(db.String(255))
    collection_point = db.Column(db.String(255))

    # [{"id", "name", "price", "quantity"}] frozen at order time
    items = db.Column(db.JSON, nullable=False, default=list)
    total_amount = db.Column(db.Numeric(12, 2))
    payment_mode = db.Column(db.String(16), default="cod")

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    @property
    def item_count(self) -> int:
        return sum(int(i.get("quantity") or 0) for i in (self.items or []))

    def items_summary(self) -> str:
        return " | ".join(f"{i.get('quantity')}x {i.get('name')}" for i in (self.items or []))

    def as_api(self):
        return {
            "id": self.id,
            "batch_id": self.batch_id,
            "user_id": self.user_id,
            "customer": {
                "name": self.customer_name,
                "phone": self.phone,
                "delivery_location": self.delivery_location,
                "collection_point": self.collection_point,
            },
            "items": list(self.items or []),
            "item_count": self.item_count,
            "total_amount": float(self.total_amount or 0),
            "payment_mode": self.payment_mode,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def as_summary(self):
        items = self.items or []
        return {
            "id": self.id,
            "total_amount": float(self.total_amount or 0),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "first_item": items[0].get("name") if items else None,
            "more_items": max(len(items) - 1, 0),
            "item_count": self.item_count,
        }
