# portal/scripts/seed_dev.py
# Použití: python -m portal.scripts.seed_dev
from datetime import timedelta

from portal.app import create_app
from portal.extensions import db
from portal.models import Order, OrderItem, Product, Profile
from portal.models._time import utcnow
from portal.services.auth_gateway import get_gateway


def main():
    app = create_app()

    with app.app_context():
        db.create_all()

        if Product.query.count() == 0:
            for name, category in (
                ("Cabernet Sauvignon", "Víno"),
                ("Ryzlink rýnský", "Víno"),
                ("Jablečný mošt", "Nápoje"),
                ("Rybízové víno", "Ovocné víno"),
                ("Dusík N2", "Dusík"),
                ("Cola PET", "PET"),
            ):
                db.session.add(Product(name=name, category=category, in_stock=True))
            db.session.flush()

        if db.session.get(Profile, "dev-admin") is None:
            db.session.add(Profile(id="dev-admin", email="admin@example.com", full_name="Admin", is_admin=True))

        customer = db.session.get(Profile, "dev-customer")
        if customer is None:
            customer = Profile(
                id="dev-customer",
                email="zakaznik@example.com",
                full_name="Jan Novák",
                company="Vinotéka U Sklepa",
            )
            db.session.add(customer)

            wine = Product.query.filter_by(category="Víno").first()
            gas = Product.query.filter_by(category="Dusík").first()
            now = utcnow()
            for days_back, qty in ((2, 3), (35, 2), (70, 5)):
                o = Order(
                    user_id=customer.id,
                    created_at=now - timedelta(days=days_back),
                    customer_name=customer.full_name,
                    customer_email=customer.email,
                    customer_company=customer.company,
                    total_volume=str(qty * 20),
                    note="seed order",
                )
                o.items.append(OrderItem(product_id=wine.id, quantity=qty, volume="20"))
                o.items.append(OrderItem(product_id=gas.id, quantity=1, volume="maly"))
                db.session.add(o)

        db.session.commit()
        print("[OK] Seeded products, profiles and orders")
        print(f"[OK] Admin token: {get_gateway().issue_token('dev-admin')}")


if __name__ == "__main__":
    main()
