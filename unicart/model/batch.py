# unicart/model/batch.py
from datetime import datetime
from ..extensions import db

# Fixed fulfilment stages shared by every order in a batch; order and count are part of the API.
STAGES = (
    "Order Placed",
    "Order Accepted",
    "Preparing Food",
    "Out for Delivery",
    "Delivered",
)
FIRST_STEP = 1
LAST_STEP = len(STAGES)
OPENING_MESSAGE = "Accepting orders"


class OrderBatch(db.Model):
    __tablename__ = "order_batches"
    # ids are never reused; orders of an archived batch still point at the old id
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    slot_label = db.Column(db.String(120), nullable=False)
    current_step = db.Column(db.Integer, nullable=False, default=FIRST_STEP)
    status_message = db.Column(db.String(255), nullable=False, default=OPENING_MESSAGE)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def touch(self):
        self.updated_at = datetime.utcnow()

    @property
    def state(self) -> str:
        return "open" if self.is_active else "closed"

    def as_api(self):
        return {
            "id": self.id,
            "slot_label": self.slot_label,
            "current_step": self.current_step,
            "status_message": self.status_message,
            "is_active": self.is_active,
            "state": self.state,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
