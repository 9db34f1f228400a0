# portal/models/order_item.py
from portal.extensions import db


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    # "5", "20" (litry) nebo "maly" / "velky" / "baleni"
    volume = db.Column(db.String(20), nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": str(self.product_id),
            "quantity": self.quantity,
            "volume": self.volume,
            "product": self.product.to_dict() if self.product else None,
        }

    def __repr__(self):
        return f"<OrderItem {self.product_id} × {self.quantity} ({self.volume})>"
