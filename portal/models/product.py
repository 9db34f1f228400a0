# portal/models/product.py
from portal.extensions import db
from portal.models._time import utcnow

# Kategorie, které admin může produktu přiřadit
PRODUCT_CATEGORIES = ("Víno", "Nápoje", "Ovocné víno", "Ovocné", "Dusík", "Plyny", "PET")


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), nullable=False)
    category = db.Column(db.String(50), nullable=False, index=True)
    in_stock = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self) -> dict:
        # id jako string, UI s ním tak počítá
        return {
            "id": str(self.id),
            "name": self.name,
            "category": self.category,
            "in_stock": bool(self.in_stock),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<Product {self.name} [{self.category}]>"
