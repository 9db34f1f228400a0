# portal/models/order.py
import uuid

from portal.extensions import db
from portal.models._time import utcnow

# Stavy, které admin může objednávce nastavit
ORDER_STATUSES = ("pending", "confirmed", "cancelled")


def _new_order_id() -> str:
    return uuid.uuid4().hex


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=_new_order_id)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # hostovská objednávka nemá user_id
    user_id = db.Column(db.String(64), db.ForeignKey("profiles.id"), nullable=True, index=True)
    status = db.Column(db.String(32), nullable=False, default="pending")

    # celkový objem je jen informativní (text), statistiky ho přepočítávají z položek
    total_volume = db.Column(db.String(32), nullable=True)
    note = db.Column(db.Text, nullable=True)

    # snapshot kontaktu v okamžiku objednávky
    customer_name = db.Column(db.String(150), nullable=True)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(50), nullable=True)
    customer_company = db.Column(db.String(150), nullable=True)

    profile = db.relationship("Profile", back_populates="orders")
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "user_id": self.user_id,
            "status": self.status,
            "total_volume": self.total_volume,
            "note": self.note,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "customer_company": self.customer_company,
            "order_items": [it.to_dict() for it in self.items],
        }

    def __repr__(self):
        return f"<Order #{self.id} – {self.customer_name} – {self.status}>"
